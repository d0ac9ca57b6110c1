"""Review decision and history routes."""

from fastapi import APIRouter, BackgroundTasks, Depends, Path
from sqlalchemy.orm import Session

from ipr_review.db.dependencies import get_db
from ipr_review.identity import get_actor, get_authorization_policy
from ipr_review.schemas.common import ApiResponse
from ipr_review.schemas.review import ReviewDecisionCreate, ReviewDecisionRead, ReviewHistoryData
from ipr_review.services.applications import get_application
from ipr_review.services.notifications import dispatch_notifications, plan_review_decision
from ipr_review.services.reviews import get_review_history, submit_review_decision
from ipr_review.workflow.authorization import AuthorizationPolicy
from ipr_review.workflow.roles import Actor

router = APIRouter(prefix="/applications/{application_id}")


@router.post("/decisions", response_model=ApiResponse[ReviewDecisionRead], status_code=201)
def post_decision(
    payload: ReviewDecisionCreate,
    background_tasks: BackgroundTasks,
    application_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
) -> ApiResponse[ReviewDecisionRead]:
    """Record the current stage's decision."""

    decision = submit_review_decision(db, application_id, payload, actor=actor, policy=policy)
    application = get_application(db, application_id)
    background_tasks.add_task(dispatch_notifications, plan_review_decision(application, decision))
    return ApiResponse(data=ReviewDecisionRead.model_validate(decision))


@router.get("/history", response_model=ApiResponse[ReviewHistoryData])
def get_history(
    application_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> ApiResponse[ReviewHistoryData]:
    """Return decisions, suggestions and stage history for an application."""

    return ApiResponse(data=get_review_history(db, application_id))
