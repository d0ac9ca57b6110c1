"""Application submission and lookup routes."""

from fastapi import APIRouter, BackgroundTasks, Depends, Path
from sqlalchemy.orm import Session

from ipr_review.db.dependencies import get_db
from ipr_review.identity import get_actor, get_authorization_policy
from ipr_review.schemas.application import ApplicationCreate, ApplicationRead
from ipr_review.schemas.common import ApiResponse
from ipr_review.services.applications import create_application, get_application
from ipr_review.services.notifications import dispatch_notifications, plan_application_ready_for_review
from ipr_review.services.reviews import resubmit_application, submit_application
from ipr_review.workflow.authorization import AuthorizationPolicy
from ipr_review.workflow.roles import Actor

router = APIRouter(prefix="/applications")


@router.post("", response_model=ApiResponse[ApplicationRead], status_code=201)
def post_application(
    payload: ApplicationCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> ApiResponse[ApplicationRead]:
    """Create a draft application for the calling applicant."""

    application = create_application(db, payload, applicant=actor)
    return ApiResponse(data=ApplicationRead.model_validate(application))


@router.get("/{application_id}", response_model=ApiResponse[ApplicationRead])
def get_application_view(
    application_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> ApiResponse[ApplicationRead]:
    """Return one application with its current field values and stage."""

    return ApiResponse(data=ApplicationRead.model_validate(get_application(db, application_id)))


@router.post("/{application_id}/submit", response_model=ApiResponse[ApplicationRead])
def post_submit(
    background_tasks: BackgroundTasks,
    application_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
) -> ApiResponse[ApplicationRead]:
    """Submit a draft into the review pipeline."""

    application = submit_application(db, application_id, actor=actor, policy=policy)
    background_tasks.add_task(
        dispatch_notifications, plan_application_ready_for_review(application, resubmitted=False)
    )
    return ApiResponse(data=ApplicationRead.model_validate(application))


@router.post("/{application_id}/resubmit", response_model=ApiResponse[ApplicationRead])
def post_resubmit(
    background_tasks: BackgroundTasks,
    application_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
) -> ApiResponse[ApplicationRead]:
    """Hand a changes-required application back to its reviewer."""

    application = resubmit_application(db, application_id, actor=actor, policy=policy)
    background_tasks.add_task(
        dispatch_notifications, plan_application_ready_for_review(application, resubmitted=True)
    )
    return ApiResponse(data=ApplicationRead.model_validate(application))
