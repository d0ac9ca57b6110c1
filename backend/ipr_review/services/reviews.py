"""Approval pipeline: submission, stage decisions and review history."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from ipr_review.models.application import IprApplication
from ipr_review.models.edit_suggestion import EditSuggestion
from ipr_review.models.review_decision import ReviewDecision
from ipr_review.schemas.review import (
    ReviewDecisionCreate,
    ReviewDecisionRead,
    ReviewHistoryData,
    ReviewHistorySummary,
    StageHistoryRead,
)
from ipr_review.schemas.suggestion import SuggestionBatchCreate, SuggestionRead
from ipr_review.services.applications import (
    get_application,
    hand_back_to_reviewer,
    list_stage_history,
    record_stage_event,
)
from ipr_review.services.suggestion_store import SqlSuggestionStore
from ipr_review.services.suggestions import add_suggestion, count_pending_suggestions, summarize_suggestions
from ipr_review.workflow.authorization import AuthorizationPolicy, RoleCapabilityPolicy, authorize
from ipr_review.workflow.errors import InvalidTransitionError, ValidationError, WorkflowError
from ipr_review.workflow.roles import Actor, is_review_stage, is_terminal_stage, next_stage, stage_owner

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SuggestionBatchResult:
    """Suggestions stored by a batch and the decision that sent the application back."""

    application: IprApplication
    decision: ReviewDecision
    suggestions: list[EditSuggestion] = field(default_factory=list)


def submit_application(
    db: Session,
    application_id: int,
    *,
    actor: Actor,
    policy: AuthorizationPolicy | None = None,
) -> IprApplication:
    """Move a draft into review: mentor review if a mentor is assigned, else DRD review."""

    policy = policy or RoleCapabilityPolicy()
    application = get_application(db, application_id, for_update=True)
    authorize(policy, actor, application, "submit")
    if application.stage != "draft":
        raise InvalidTransitionError(
            f"Application {application.id} was already submitted (stage '{application.stage}')",
            rule="pipeline.submit_from_draft",
        )
    if not (application.fields_json or {}).get("title", "").strip():
        raise ValidationError("Application title is required before submission", rule="pipeline.title_required")

    application.stage = "mentor_review" if application.mentor_id else "drd_review"
    record_stage_event(
        db,
        application,
        event_type="submitted",
        from_stage="draft",
        changed_by_id=actor.id,
        comments="Application submitted for review",
    )
    db.commit()
    db.refresh(application)
    logger.info("workflow.application_submitted application_id=%s stage=%s", application.id, application.stage)
    return application


def resubmit_application(
    db: Session,
    application_id: int,
    *,
    actor: Actor,
    comments: str | None = None,
    policy: AuthorizationPolicy | None = None,
) -> IprApplication:
    """Hand a changes-required application back to its stage reviewer."""

    policy = policy or RoleCapabilityPolicy()
    application = get_application(db, application_id, for_update=True)
    authorize(policy, actor, application, "resubmit")
    if not application.changes_required:
        raise InvalidTransitionError(
            f"Application {application.id} is not waiting on applicant changes",
            rule="pipeline.resubmit_requires_changes",
        )
    hand_back_to_reviewer(
        db,
        application,
        changed_by_id=actor.id,
        comments=(comments or "").strip() or "Applicant resubmitted the application",
        automatic=False,
    )
    db.commit()
    db.refresh(application)
    return application


def submit_review_decision(
    db: Session,
    application_id: int,
    payload: ReviewDecisionCreate,
    *,
    actor: Actor,
    policy: AuthorizationPolicy | None = None,
) -> ReviewDecision:
    """Record a stage decision and advance, hold, or close the application."""

    policy = policy or RoleCapabilityPolicy()
    application = get_application(db, application_id, for_update=True)
    try:
        decision = _record_decision(
            db,
            application,
            stage=payload.stage,
            decision_value=payload.decision,
            comments=payload.comments,
            actor=actor,
            policy=policy,
        )
        db.commit()
    except WorkflowError:
        db.rollback()
        raise
    db.refresh(decision)
    db.refresh(application)
    return decision


def submit_suggestion_batch(
    db: Session,
    application_id: int,
    payload: SuggestionBatchCreate,
    *,
    actor: Actor,
    policy: AuthorizationPolicy | None = None,
) -> SuggestionBatchResult:
    """Store a reviewer's suggestions and send the application back in one step."""

    policy = policy or RoleCapabilityPolicy()
    application = get_application(db, application_id, for_update=True)
    authorize(policy, actor, application, "suggest")
    owner = stage_owner(application.stage)
    if actor.role == "applicant" or owner is None or owner.send_back_decision is None:
        raise InvalidTransitionError(
            f"Batch suggestions cannot send back application {application.id} at stage '{application.stage}'",
            rule="pipeline.batch_stage",
        )

    store = SqlSuggestionStore(db)
    try:
        suggestions = [add_suggestion(store, application, item, actor=actor) for item in payload.suggestions]
        decision = _record_decision(
            db,
            application,
            stage=application.stage,
            decision_value=owner.send_back_decision,
            comments=payload.comments,
            actor=actor,
            policy=policy,
        )
        db.commit()
    except WorkflowError:
        db.rollback()
        raise
    for suggestion in suggestions:
        db.refresh(suggestion)
    db.refresh(decision)
    db.refresh(application)
    return SuggestionBatchResult(application=application, decision=decision, suggestions=suggestions)


def list_review_decisions(db: Session, application_id: int) -> list[ReviewDecision]:
    """Return review decisions oldest first."""

    stmt = (
        select(ReviewDecision)
        .where(ReviewDecision.application_id == application_id)
        .order_by(ReviewDecision.created_at.asc(), ReviewDecision.id.asc())
    )
    return list(db.scalars(stmt).all())


def get_review_history(db: Session, application_id: int) -> ReviewHistoryData:
    """Return decisions, suggestions and stage history for one application."""

    get_application(db, application_id)
    decisions = list_review_decisions(db, application_id)
    suggestions = SqlSuggestionStore(db).get(application_id)
    summary = summarize_suggestions(suggestions)
    return ReviewHistoryData(
        decisions=[ReviewDecisionRead.model_validate(row) for row in decisions],
        suggestions=[SuggestionRead.model_validate(row) for row in suggestions],
        stage_history=[StageHistoryRead.model_validate(row) for row in list_stage_history(db, application_id)],
        summary=ReviewHistorySummary(**summary.model_dump(), decisions=len(decisions)),
    )


def _record_decision(
    db: Session,
    application: IprApplication,
    *,
    stage: str,
    decision_value: str,
    comments: str | None,
    actor: Actor,
    policy: AuthorizationPolicy,
) -> ReviewDecision:
    if is_terminal_stage(application.stage):
        raise InvalidTransitionError(
            f"Application {application.id} is already {application.stage}",
            rule="pipeline.terminal",
        )
    if not is_review_stage(stage) or stage != application.stage:
        raise InvalidTransitionError(
            f"Application {application.id} is at stage '{application.stage}', not '{stage}'",
            rule="pipeline.stage_mismatch",
        )
    authorize(policy, actor, application, "decide")
    owner = actor.capabilities
    if decision_value not in owner.decisions:
        raise ValidationError(
            f"Decision '{decision_value}' is not valid at stage '{stage}'; expected one of {list(owner.decisions)}",
            rule="pipeline.decision_value",
        )
    if application.changes_required:
        raise InvalidTransitionError(
            f"Application {application.id} is waiting on the applicant to address requested changes",
            rule="pipeline.awaiting_applicant",
        )

    clean_comments = (comments or "").strip() or None
    from_stage = application.stage
    if decision_value == owner.approve_decision:
        application.stage = next_stage(from_stage) or "approved"
    else:
        db.flush()
        if clean_comments is None and count_pending_suggestions(db, application.id) == 0:
            raise ValidationError(
                "Comments are required when no suggestions are pending",
                rule="pipeline.comments_or_suggestions",
            )
        if owner.send_back_decision == "reject":
            application.stage = "rejected"
        else:
            application.changes_required = True

    decision = ReviewDecision(
        application_id=application.id,
        stage=stage,
        reviewer_id=actor.id,
        reviewer_role=actor.role,
        decision=decision_value,
        comments=clean_comments,
    )
    db.add(decision)
    record_stage_event(
        db,
        application,
        event_type="decision",
        from_stage=from_stage,
        changed_by_id=actor.id,
        comments=clean_comments,
        metadata={"decision": decision_value, "changes_required": application.changes_required},
    )
    db.flush()
    logger.info(
        "workflow.review_decision application_id=%s stage=%s decision=%s to_stage=%s",
        application.id,
        stage,
        decision_value,
        application.stage,
    )
    return decision
