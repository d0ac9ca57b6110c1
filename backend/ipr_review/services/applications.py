"""Application creation, lookup and stage history helpers."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ipr_review.models.application import IprApplication
from ipr_review.models.stage_history import StageHistoryEntry
from ipr_review.schemas.application import ApplicationCreate
from ipr_review.workflow.errors import NotFoundError, PermissionDeniedError
from ipr_review.workflow.roles import Actor

logger = logging.getLogger(__name__)


def create_application(db: Session, payload: ApplicationCreate, *, applicant: Actor) -> IprApplication:
    """Create a draft application owned by the calling applicant."""

    if applicant.role != "applicant":
        raise PermissionDeniedError(
            f"Role '{applicant.role}' may not create applications",
            rule="permission.create_application",
        )
    application = IprApplication(
        applicant_id=applicant.id,
        mentor_id=payload.mentor_id,
        inventor_ids_json=_clean_ids(payload.inventor_ids),
        fields_json={str(name).strip(): value for name, value in payload.fields.items() if str(name).strip()},
        stage="draft",
        changes_required=False,
    )
    db.add(application)
    db.commit()
    db.refresh(application)
    logger.info("workflow.application_created application_id=%s applicant_id=%s", application.id, applicant.id)
    return application


def get_application(db: Session, application_id: int, *, for_update: bool = False) -> IprApplication:
    """Return one application or raise ``NotFoundError``.

    With ``for_update`` the row is re-read under ``SELECT ... FOR UPDATE`` so
    writers that rewrite ``fields_json`` or the stage flags start from the
    latest committed state and serialize on the row until commit.
    """

    if for_update:
        stmt = (
            select(IprApplication)
            .where(IprApplication.id == application_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        application = db.scalars(stmt).one_or_none()
    else:
        application = db.get(IprApplication, application_id)
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")
    return application


def set_field_value(application: IprApplication, field_name: str, value: str) -> None:
    """Write one field into the application's field map."""

    # JSON columns only track reassignment, not in-place mutation.
    fields = dict(application.fields_json or {})
    fields[field_name] = value
    application.fields_json = fields


def record_stage_event(
    db: Session,
    application: IprApplication,
    *,
    event_type: str,
    changed_by_id: str,
    from_stage: str | None = None,
    comments: str | None = None,
    metadata: dict[str, object] | None = None,
) -> StageHistoryEntry:
    """Append a stage history entry for the application's current stage."""

    entry = StageHistoryEntry(
        application_id=application.id,
        event_type=event_type,
        from_stage=from_stage,
        to_stage=application.stage,
        changed_by_id=changed_by_id,
        comments=comments,
        metadata_json=metadata or {},
    )
    db.add(entry)
    return entry


def hand_back_to_reviewer(
    db: Session,
    application: IprApplication,
    *,
    changed_by_id: str,
    comments: str,
    automatic: bool,
) -> None:
    """Clear the changes-required flag so the stage reviewer can decide again."""

    application.changes_required = False
    record_stage_event(
        db,
        application,
        event_type="resubmitted",
        from_stage=application.stage,
        changed_by_id=changed_by_id,
        comments=comments,
        metadata={"automatic": automatic},
    )
    logger.info(
        "workflow.application_resubmitted application_id=%s stage=%s automatic=%s",
        application.id,
        application.stage,
        automatic,
    )


def list_stage_history(db: Session, application_id: int) -> list[StageHistoryEntry]:
    """Return stage history entries in chronological order."""

    stmt = (
        select(StageHistoryEntry)
        .where(StageHistoryEntry.application_id == application_id)
        .order_by(StageHistoryEntry.created_at.asc(), StageHistoryEntry.id.asc())
    )
    return list(db.scalars(stmt).all())


def _clean_ids(values: list[str]) -> list[str]:
    cleaned: list[str] = []
    for raw in values:
        value = str(raw).strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned
