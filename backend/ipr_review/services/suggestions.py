"""Suggestion lifecycle: propose, respond, list and count field edits.

Accepting a suggestion is the only way an application's field value changes.
Acceptance is applied immediately, so when several suggestions are pending
for one field the most recently accepted one determines the value.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ipr_review.models.application import IprApplication
from ipr_review.models.edit_suggestion import EditSuggestion
from ipr_review.schemas.suggestion import (
    AuthorScope,
    FieldSuggestionGroup,
    SuggestionBatchRespondRequest,
    SuggestionCreate,
    SuggestionListData,
    SuggestionRead,
    SuggestionRespondRequest,
    SuggestionSummary,
)
from ipr_review.services.applications import (
    get_application,
    hand_back_to_reviewer,
    record_stage_event,
    set_field_value,
)
from ipr_review.services.suggestion_store import SqlSuggestionStore, SuggestionRecord, SuggestionStore
from ipr_review.workflow.authorization import AuthorizationPolicy, RoleCapabilityPolicy, authorize
from ipr_review.workflow.errors import (
    AlreadyResolvedError,
    InvalidTransitionError,
    ValidationError,
    WorkflowError,
)
from ipr_review.workflow.field_kinds import resolve_field_kind
from ipr_review.workflow.roles import Actor
from ipr_review.workflow.value_change import ValueChangeStrategy, WholeValueReplace

logger = logging.getLogger(__name__)

_ACTION_STATUS = {"accept": "accepted", "reject": "rejected"}


@dataclass(slots=True)
class SuggestionResponseResult:
    """Outcome of answering one or more suggestions."""

    application: IprApplication
    suggestions: list[EditSuggestion] = field(default_factory=list)
    resubmitted: bool = False


def add_suggestion(
    store: SuggestionStore,
    application: IprApplication,
    payload: SuggestionCreate,
    *,
    actor: Actor,
) -> EditSuggestion:
    """Validate and store one pending suggestion without committing."""

    field_name = payload.field_name.strip()
    if not field_name:
        raise ValidationError("Field name is required", rule="suggestion.field_required")
    suggested_value = payload.suggested_value.strip()
    if not suggested_value:
        raise ValidationError(
            f"Suggested value for '{field_name}' must not be blank",
            rule="suggestion.value_required",
        )
    original_value = payload.original_value
    if original_value is None:
        original_value = (application.fields_json or {}).get(field_name)
    note = (payload.suggestion_note or "").strip() or None
    field_path = (payload.field_path or "").strip() or None

    return store.create(
        SuggestionRecord(
            application_id=application.id,
            field_name=field_name,
            field_path=field_path,
            author_id=actor.id,
            author_role=actor.role,
            original_value=original_value,
            suggested_value=suggested_value,
            suggestion_note=note,
        )
    )


def propose_suggestion(
    db: Session,
    application_id: int,
    payload: SuggestionCreate,
    *,
    actor: Actor,
    policy: AuthorizationPolicy | None = None,
) -> EditSuggestion:
    """Create a pending suggestion for one field of an application."""

    policy = policy or RoleCapabilityPolicy()
    application = get_application(db, application_id)
    authorize(policy, actor, application, "suggest")
    try:
        suggestion = add_suggestion(SqlSuggestionStore(db), application, payload, actor=actor)
        db.commit()
    except WorkflowError:
        db.rollback()
        raise
    db.refresh(suggestion)
    logger.info(
        "workflow.suggestion_created suggestion_id=%s application_id=%s field=%s author_role=%s",
        suggestion.id,
        application_id,
        suggestion.field_name,
        suggestion.author_role,
    )
    return suggestion


def respond_to_suggestion(
    db: Session,
    suggestion_id: int,
    payload: SuggestionRespondRequest,
    *,
    actor: Actor,
    policy: AuthorizationPolicy | None = None,
    strategy: ValueChangeStrategy | None = None,
) -> SuggestionResponseResult:
    """Accept or reject one pending suggestion."""

    policy = policy or RoleCapabilityPolicy()
    strategy = strategy or WholeValueReplace()
    store = SqlSuggestionStore(db)

    suggestion = store.get_one(suggestion_id)
    application = get_application(db, suggestion.application_id, for_update=True)
    try:
        resolved = _resolve(
            db,
            store,
            application,
            suggestion,
            action=payload.action,
            note=payload.response,
            actor=actor,
            policy=policy,
            strategy=strategy,
        )
        resubmitted = _maybe_hand_back(db, application, [resolved], actor=actor)
        db.commit()
    except WorkflowError:
        db.rollback()
        raise
    db.refresh(resolved)
    db.refresh(application)
    return SuggestionResponseResult(application=application, suggestions=[resolved], resubmitted=resubmitted)


def respond_to_suggestion_batch(
    db: Session,
    application_id: int,
    payload: SuggestionBatchRespondRequest,
    *,
    actor: Actor,
    policy: AuthorizationPolicy | None = None,
    strategy: ValueChangeStrategy | None = None,
) -> SuggestionResponseResult:
    """Answer several suggestions of one application; all succeed or none do."""

    policy = policy or RoleCapabilityPolicy()
    strategy = strategy or WholeValueReplace()
    store = SqlSuggestionStore(db)
    application = get_application(db, application_id, for_update=True)

    resolved: list[EditSuggestion] = []
    try:
        for item in payload.responses:
            suggestion = store.get_one(item.suggestion_id)
            if suggestion.application_id != application.id:
                raise ValidationError(
                    f"Edit suggestion {item.suggestion_id} does not belong to application {application.id}",
                    rule="suggestion.application_mismatch",
                )
            resolved.append(
                _resolve(
                    db,
                    store,
                    application,
                    suggestion,
                    action=item.action,
                    note=item.response,
                    actor=actor,
                    policy=policy,
                    strategy=strategy,
                )
            )
        resubmitted = _maybe_hand_back(db, application, resolved, actor=actor)
        db.commit()
    except WorkflowError:
        db.rollback()
        raise
    for suggestion in resolved:
        db.refresh(suggestion)
    db.refresh(application)
    return SuggestionResponseResult(application=application, suggestions=resolved, resubmitted=resubmitted)


def list_suggestions_for_field(
    db: Session,
    application_id: int,
    *,
    field_name: str | None = None,
    field_path: str | None = None,
) -> list[EditSuggestion]:
    """Return every suggestion matching the field name or field path, oldest first."""

    clean_name = (field_name or "").strip()
    clean_path = (field_path or "").strip()
    conditions = []
    if clean_name:
        conditions.append(EditSuggestion.field_name == clean_name)
    if clean_path:
        conditions.append(EditSuggestion.field_path == clean_path)
    if not conditions:
        raise ValidationError("A field name or field path is required", rule="suggestion.field_required")
    stmt = (
        select(EditSuggestion)
        .where(EditSuggestion.application_id == application_id, or_(*conditions))
        .order_by(EditSuggestion.created_at.asc(), EditSuggestion.id.asc())
    )
    return list(db.scalars(stmt).all())


def list_suggestions(
    db: Session,
    application_id: int,
    *,
    status: str | None = None,
    field_name: str | None = None,
    field_path: str | None = None,
) -> SuggestionListData:
    """Return an application's suggestions with per-field groups and status counts.

    When ``field_name`` or ``field_path`` is given only matching suggestions are
    listed and counted.
    """

    get_application(db, application_id)
    if field_name is None and field_path is None:
        suggestions = SqlSuggestionStore(db).get(application_id)
    else:
        suggestions = list_suggestions_for_field(db, application_id, field_name=field_name, field_path=field_path)
    summary = summarize_suggestions(suggestions)
    if status is not None:
        suggestions = [suggestion for suggestion in suggestions if suggestion.status == status]

    grouped: dict[str, list[SuggestionRead]] = defaultdict(list)
    rows = [SuggestionRead.model_validate(suggestion) for suggestion in suggestions]
    for row in rows:
        grouped[row.field_name].append(row)
    groups = [
        FieldSuggestionGroup(field_name=name, field_kind=resolve_field_kind(name), suggestions=items)
        for name, items in grouped.items()
    ]
    return SuggestionListData(suggestions=rows, groups=groups, summary=summary)


def count_pending_suggestions(
    db: Session,
    application_id: int,
    *,
    author_scope: AuthorScope | None = None,
) -> int:
    """Count pending suggestions, optionally only reviewer- or applicant-authored ones."""

    stmt = select(func.count(EditSuggestion.id)).where(
        EditSuggestion.application_id == application_id,
        EditSuggestion.status == "pending",
    )
    if author_scope == "applicant":
        stmt = stmt.where(EditSuggestion.author_role == "applicant")
    elif author_scope == "reviewer":
        stmt = stmt.where(EditSuggestion.author_role != "applicant")
    return int(db.scalar(stmt) or 0)


def summarize_suggestions(suggestions: list[EditSuggestion]) -> SuggestionSummary:
    summary = SuggestionSummary(total=len(suggestions))
    for suggestion in suggestions:
        if suggestion.status == "pending":
            summary.pending += 1
        elif suggestion.status == "accepted":
            summary.accepted += 1
        elif suggestion.status == "rejected":
            summary.rejected += 1
    return summary


def _resolve(
    db: Session,
    store: SuggestionStore,
    application: IprApplication,
    suggestion: EditSuggestion,
    *,
    action: str,
    note: str | None,
    actor: Actor,
    policy: AuthorizationPolicy,
    strategy: ValueChangeStrategy,
) -> EditSuggestion:
    status = _ACTION_STATUS.get(action)
    if status is None:
        raise ValidationError(f"Action must be 'accept' or 'reject', not '{action}'", rule="suggestion.action")
    if suggestion.status != "pending":
        raise AlreadyResolvedError(
            f"Edit suggestion {suggestion.id} has already been {suggestion.status}",
            rule="suggestion.monotone_status",
        )
    respond_action = "respond_to_applicant" if suggestion.author_role == "applicant" else "respond_to_reviewer"
    authorize(policy, actor, application, respond_action)

    # Snapshot the baseline before the status write refreshes anything.
    current_value = (application.fields_json or {}).get(suggestion.field_name)
    try:
        resolved = store.update_status(
            suggestion.id,
            status,
            (note or "").strip() or None,
            responder_id=actor.id,
        )
    except InvalidTransitionError as exc:
        raise AlreadyResolvedError(str(exc), rule="suggestion.monotone_status") from exc

    if status == "accepted":
        stale = strategy.is_stale(current_value, resolved)
        new_value = strategy.apply(current_value, resolved)
        set_field_value(application, resolved.field_name, new_value)
        record_stage_event(
            db,
            application,
            event_type="suggestion_applied",
            changed_by_id=actor.id,
            comments=f"Applied edit suggestion for {resolved.field_name}",
            metadata={
                "suggestion_id": resolved.id,
                "field_name": resolved.field_name,
                "previous_value": current_value,
                "suggested_value": new_value,
                "strategy": strategy.name,
                "stale": stale,
            },
        )
        if stale:
            logger.warning(
                "workflow.stale_suggestion_applied suggestion_id=%s application_id=%s field=%s",
                resolved.id,
                application.id,
                resolved.field_name,
            )
    logger.info(
        "workflow.suggestion_responded suggestion_id=%s application_id=%s action=%s responder_role=%s",
        resolved.id,
        application.id,
        action,
        actor.role,
    )
    return resolved


def _maybe_hand_back(
    db: Session,
    application: IprApplication,
    resolved: list[EditSuggestion],
    *,
    actor: Actor,
) -> bool:
    if not application.changes_required:
        return False
    if not any(suggestion.author_role != "applicant" for suggestion in resolved):
        return False
    if count_pending_suggestions(db, application.id, author_scope="reviewer") > 0:
        return False
    hand_back_to_reviewer(
        db,
        application,
        changed_by_id=actor.id,
        comments="All requested changes have been addressed",
        automatic=True,
    )
    return True
