"""Status update timeline routes."""

from typing import Literal

from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query
from sqlalchemy.orm import Session

from ipr_review.db.dependencies import get_db
from ipr_review.identity import get_actor, get_authorization_policy
from ipr_review.schemas.common import ApiResponse, DeleteResult
from ipr_review.schemas.status_update import StatusUpdateCreate, StatusUpdateRead
from ipr_review.services.applications import get_application
from ipr_review.services.notifications import dispatch_notifications, plan_status_update
from ipr_review.services.status_updates import add_status_update, delete_status_update, list_status_updates
from ipr_review.workflow.authorization import AuthorizationPolicy
from ipr_review.workflow.roles import Actor

router = APIRouter()


@router.post(
    "/applications/{application_id}/status-updates",
    response_model=ApiResponse[StatusUpdateRead],
    status_code=201,
)
def post_status_update(
    payload: StatusUpdateCreate,
    background_tasks: BackgroundTasks,
    application_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
) -> ApiResponse[StatusUpdateRead]:
    """Post a timeline entry on an application."""

    update = add_status_update(db, application_id, payload, actor=actor, policy=policy)
    application = get_application(db, application_id)
    background_tasks.add_task(dispatch_notifications, plan_status_update(application, update))
    return ApiResponse(data=StatusUpdateRead.model_validate(update))


@router.get(
    "/applications/{application_id}/status-updates",
    response_model=ApiResponse[list[StatusUpdateRead]],
)
def get_status_updates(
    application_id: int = Path(..., ge=1),
    order: Literal["desc", "asc"] = Query(default="desc"),
    db: Session = Depends(get_db),
) -> ApiResponse[list[StatusUpdateRead]]:
    """List timeline entries, newest first unless ``order=asc``."""

    updates = list_status_updates(db, application_id, order=order)
    return ApiResponse(data=[StatusUpdateRead.model_validate(update) for update in updates])


@router.delete("/status-updates/{update_id}", response_model=ApiResponse[DeleteResult])
def remove_status_update(
    update_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
) -> ApiResponse[DeleteResult]:
    """Delete one status update."""

    delete_status_update(db, update_id, actor=actor, policy=policy)
    return ApiResponse(data=DeleteResult(id=update_id, deleted=True))
