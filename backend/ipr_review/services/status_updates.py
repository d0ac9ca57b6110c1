"""Append-only status update timeline for applications."""

from __future__ import annotations

import logging
from typing import Literal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ipr_review.models.status_update import StatusUpdate
from ipr_review.schemas.status_update import StatusUpdateCreate
from ipr_review.services.applications import get_application
from ipr_review.workflow.authorization import AuthorizationPolicy, RoleCapabilityPolicy, authorize
from ipr_review.workflow.errors import NotFoundError, ValidationError
from ipr_review.workflow.roles import Actor

logger = logging.getLogger(__name__)

TimelineOrder = Literal["desc", "asc"]


def add_status_update(
    db: Session,
    application_id: int,
    payload: StatusUpdateCreate,
    *,
    actor: Actor,
    policy: AuthorizationPolicy | None = None,
) -> StatusUpdate:
    """Post a timeline entry. Never changes application fields or stage."""

    policy = policy or RoleCapabilityPolicy()
    message = payload.update_message.strip()
    if not message:
        raise ValidationError("Status update message must not be blank", rule="status_update.message_required")
    application = get_application(db, application_id)
    authorize(policy, actor, application, "post_update")

    update = StatusUpdate(
        application_id=application.id,
        author_id=actor.id,
        author_role=actor.role,
        update_type=payload.update_type,
        priority=payload.priority,
        message=message,
        notify_applicant=payload.notify_applicant,
        notify_inventors=payload.notify_inventors,
    )
    db.add(update)
    db.commit()
    db.refresh(update)
    logger.info(
        "workflow.status_update_added status_update_id=%s application_id=%s type=%s priority=%s",
        update.id,
        application.id,
        update.update_type,
        update.priority,
    )
    return update


def delete_status_update(
    db: Session,
    update_id: int,
    *,
    actor: Actor,
    policy: AuthorizationPolicy | None = None,
) -> None:
    """Hard-delete one status update."""

    policy = policy or RoleCapabilityPolicy()
    update = db.get(StatusUpdate, update_id)
    if update is None:
        raise NotFoundError(f"Status update {update_id} not found")
    application = get_application(db, update.application_id)
    authorize(policy, actor, application, "delete_update")
    db.delete(update)
    db.commit()
    logger.info("workflow.status_update_deleted status_update_id=%s application_id=%s", update_id, application.id)


def list_status_updates(
    db: Session,
    application_id: int,
    *,
    order: TimelineOrder = "desc",
) -> list[StatusUpdate]:
    """Return timeline entries newest first, or oldest first for compact rendering."""

    get_application(db, application_id)
    stmt = select(StatusUpdate).where(StatusUpdate.application_id == application_id)
    if order == "asc":
        stmt = stmt.order_by(StatusUpdate.created_at.asc(), StatusUpdate.id.asc())
    else:
        stmt = stmt.order_by(StatusUpdate.created_at.desc(), StatusUpdate.id.desc())
    return list(db.scalars(stmt).all())
