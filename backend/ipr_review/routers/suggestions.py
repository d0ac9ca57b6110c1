"""Edit suggestion routes."""

from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query
from sqlalchemy.orm import Session

from ipr_review.db.dependencies import get_db
from ipr_review.identity import get_actor, get_authorization_policy
from ipr_review.schemas.common import ApiResponse
from ipr_review.schemas.review import ReviewDecisionRead
from ipr_review.schemas.suggestion import (
    AuthorScope,
    PendingCountData,
    SuggestionBatchCreate,
    SuggestionBatchRespondRequest,
    SuggestionCreate,
    SuggestionListData,
    SuggestionRead,
    SuggestionRespondRequest,
    SuggestionStatus,
)
from ipr_review.services.applications import get_application
from ipr_review.services.notifications import (
    Notification,
    dispatch_notifications,
    plan_application_ready_for_review,
    plan_review_decision,
    plan_suggestion_responded,
    plan_suggestions_created,
)
from ipr_review.services.reviews import submit_suggestion_batch
from ipr_review.services.suggestions import (
    SuggestionResponseResult,
    count_pending_suggestions,
    list_suggestions,
    propose_suggestion,
    respond_to_suggestion,
    respond_to_suggestion_batch,
)
from ipr_review.workflow.authorization import AuthorizationPolicy
from ipr_review.workflow.roles import Actor

router = APIRouter()


@router.post(
    "/applications/{application_id}/suggestions",
    response_model=ApiResponse[SuggestionRead],
    status_code=201,
)
def post_suggestion(
    payload: SuggestionCreate,
    background_tasks: BackgroundTasks,
    application_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
) -> ApiResponse[SuggestionRead]:
    """Propose a replacement value for one field."""

    suggestion = propose_suggestion(db, application_id, payload, actor=actor, policy=policy)
    application = get_application(db, application_id)
    background_tasks.add_task(dispatch_notifications, plan_suggestions_created(application, [suggestion]))
    return ApiResponse(data=SuggestionRead.model_validate(suggestion))


@router.post(
    "/applications/{application_id}/suggestions/batch",
    response_model=ApiResponse[ReviewDecisionRead],
    status_code=201,
)
def post_suggestion_batch(
    payload: SuggestionBatchCreate,
    background_tasks: BackgroundTasks,
    application_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
) -> ApiResponse[ReviewDecisionRead]:
    """Submit several suggestions and request changes in one step."""

    result = submit_suggestion_batch(db, application_id, payload, actor=actor, policy=policy)
    notifications = plan_suggestions_created(result.application, result.suggestions)
    notifications.extend(plan_review_decision(result.application, result.decision))
    background_tasks.add_task(dispatch_notifications, notifications)
    return ApiResponse(data=ReviewDecisionRead.model_validate(result.decision))


@router.get("/applications/{application_id}/suggestions", response_model=ApiResponse[SuggestionListData])
def get_suggestions(
    application_id: int = Path(..., ge=1),
    field: str | None = Query(default=None, min_length=1),
    field_path: str | None = Query(default=None, min_length=1),
    status: SuggestionStatus | None = Query(default=None),
    db: Session = Depends(get_db),
) -> ApiResponse[SuggestionListData]:
    """List suggestions for an application, or for one field when given."""

    suggestions = list_suggestions(db, application_id, status=status, field_name=field, field_path=field_path)
    return ApiResponse(data=suggestions)


@router.get(
    "/applications/{application_id}/suggestions/pending-count",
    response_model=ApiResponse[PendingCountData],
)
def get_pending_count(
    application_id: int = Path(..., ge=1),
    author_scope: AuthorScope | None = Query(default=None),
    db: Session = Depends(get_db),
) -> ApiResponse[PendingCountData]:
    """Count pending suggestions, optionally by author side."""

    get_application(db, application_id)
    pending = count_pending_suggestions(db, application_id, author_scope=author_scope)
    return ApiResponse(
        data=PendingCountData(application_id=application_id, author_scope=author_scope, pending=pending)
    )


@router.post("/suggestions/{suggestion_id}/respond", response_model=ApiResponse[SuggestionRead])
def post_response(
    payload: SuggestionRespondRequest,
    background_tasks: BackgroundTasks,
    suggestion_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
) -> ApiResponse[SuggestionRead]:
    """Accept or reject one suggestion."""

    result = respond_to_suggestion(db, suggestion_id, payload, actor=actor, policy=policy)
    background_tasks.add_task(dispatch_notifications, _response_notifications(result))
    return ApiResponse(data=SuggestionRead.model_validate(result.suggestions[0]))


@router.post(
    "/applications/{application_id}/respond/batch",
    response_model=ApiResponse[list[SuggestionRead]],
)
def post_batch_response(
    payload: SuggestionBatchRespondRequest,
    background_tasks: BackgroundTasks,
    application_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
) -> ApiResponse[list[SuggestionRead]]:
    """Answer several suggestions at once; all or none are applied."""

    result = respond_to_suggestion_batch(db, application_id, payload, actor=actor, policy=policy)
    background_tasks.add_task(dispatch_notifications, _response_notifications(result))
    return ApiResponse(data=[SuggestionRead.model_validate(row) for row in result.suggestions])


def _response_notifications(result: SuggestionResponseResult) -> list[Notification]:
    notifications: list[Notification] = []
    for suggestion in result.suggestions:
        notifications.extend(plan_suggestion_responded(result.application, suggestion))
    if result.resubmitted:
        notifications.extend(plan_application_ready_for_review(result.application, resubmitted=True))
    return notifications
