"""Notification planning and fire-and-forget dispatch.

The workflow only decides that a notification should go out and to whom.
Delivery is handed to a ``NotificationDispatcher`` after the triggering
transaction has committed; delivery failures are logged and never propagate.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Literal
from urllib import error as urllib_error
from urllib import request as urllib_request

from ipr_review.config import Settings, get_settings
from ipr_review.models.application import IprApplication
from ipr_review.models.edit_suggestion import EditSuggestion
from ipr_review.models.review_decision import ReviewDecision
from ipr_review.models.status_update import StatusUpdate
from ipr_review.workflow.roles import is_review_stage, stage_owner

logger = logging.getLogger(__name__)

RecipientType = Literal["user", "role"]


@dataclass(slots=True)
class Notification:
    """One message to deliver to a user or to everyone holding a role."""

    recipient_type: RecipientType
    recipient: str
    notification_type: str
    title: str
    message: str
    application_id: int
    metadata: dict[str, object] = field(default_factory=dict)


class NotificationDeliveryError(RuntimeError):
    """Raised by dispatchers when a notification cannot be delivered."""


class NotificationDispatcher(ABC):
    """Abstract notification delivery interface."""

    @abstractmethod
    def deliver(self, notification: Notification) -> None:
        """Deliver one notification."""


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Writes notifications to the log instead of delivering them."""

    def deliver(self, notification: Notification) -> None:
        logger.info(
            "notifications.delivered recipient_type=%s recipient=%s type=%s application_id=%s",
            notification.recipient_type,
            notification.recipient,
            notification.notification_type,
            notification.application_id,
        )


class WebhookNotificationDispatcher(NotificationDispatcher):
    """Posts each notification as JSON to a delivery webhook."""

    def __init__(self, url: str, *, timeout_seconds: int = 10):
        self.url = url
        self.timeout_seconds = timeout_seconds

    def deliver(self, notification: Notification) -> None:
        body = json.dumps(asdict(notification)).encode("utf-8")
        req = urllib_request.Request(
            self.url,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                resp.read()
        except urllib_error.HTTPError as exc:
            raise NotificationDeliveryError(f"Notification webhook HTTP {exc.code}") from exc
        except urllib_error.URLError as exc:
            raise NotificationDeliveryError(f"Notification webhook request failed: {exc.reason}") from exc


def get_notification_dispatcher(settings: Settings | None = None) -> NotificationDispatcher:
    """Return the dispatcher configured for this process."""

    settings = settings or get_settings()
    if settings.notification_webhook_url:
        return WebhookNotificationDispatcher(
            settings.notification_webhook_url,
            timeout_seconds=settings.notification_timeout_seconds,
        )
    return LoggingNotificationDispatcher()


def dispatch_notifications(
    notifications: Iterable[Notification],
    dispatcher: NotificationDispatcher | None = None,
) -> int:
    """Deliver notifications, logging failures instead of raising. Returns the delivered count."""

    dispatcher = dispatcher or get_notification_dispatcher()
    delivered = 0
    for notification in notifications:
        try:
            dispatcher.deliver(notification)
        except Exception:
            logger.exception(
                "notifications.delivery_failed recipient=%s type=%s application_id=%s",
                notification.recipient,
                notification.notification_type,
                notification.application_id,
            )
            continue
        delivered += 1
    return delivered


def plan_suggestions_created(
    application: IprApplication, suggestions: list[EditSuggestion]
) -> list[Notification]:
    """Tell the other side of the review that suggestions are waiting."""

    if not suggestions:
        return []
    first = suggestions[0]
    fields = sorted({suggestion.field_name for suggestion in suggestions})
    metadata: dict[str, object] = {
        "suggestion_ids": [suggestion.id for suggestion in suggestions],
        "fields": fields,
    }
    if first.author_role == "applicant":
        owner = stage_owner(application.stage)
        if owner is None:
            return []
        return [
            _role_or_mentor(
                application,
                owner.name,
                notification_type="ipr_counter_suggestion",
                title="Applicant proposed changes",
                message=f"The applicant proposed changes to {', '.join(fields)} on application {application.id}.",
                metadata=metadata,
            )
        ]
    return [
        Notification(
            recipient_type="user",
            recipient=application.applicant_id,
            notification_type="ipr_edit_suggestions",
            title="Reviewer suggested changes",
            message=(
                f"{len(suggestions)} change(s) were suggested for {', '.join(fields)} "
                f"on application {application.id}."
            ),
            application_id=application.id,
            metadata=metadata,
        )
    ]


def plan_suggestion_responded(application: IprApplication, suggestion: EditSuggestion) -> list[Notification]:
    """Tell the suggestion author how it was answered."""

    action = "accepted" if suggestion.status == "accepted" else "rejected"
    message = f'Your suggested change to "{suggestion.field_name}" on application {application.id} was {action}.'
    if suggestion.responder_note:
        message = f'{message} Response: "{suggestion.responder_note}"'
    return [
        Notification(
            recipient_type="user",
            recipient=suggestion.author_id,
            notification_type="ipr_suggestion_response",
            title=f"Your suggestion was {action}",
            message=message,
            application_id=application.id,
            metadata={"suggestion_id": suggestion.id, "field_name": suggestion.field_name, "action": action},
        )
    ]


def plan_application_ready_for_review(application: IprApplication, *, resubmitted: bool) -> list[Notification]:
    """Tell the stage reviewer the application is waiting on them."""

    owner = stage_owner(application.stage)
    if owner is None:
        return []
    if resubmitted:
        title = "Application resubmitted"
        message = f"The applicant addressed the requested changes on application {application.id}."
    else:
        title = "Application awaiting review"
        message = f"Application {application.id} is ready for {application.stage.replace('_', ' ')}."
    return [
        _role_or_mentor(
            application,
            owner.name,
            notification_type="ipr_resubmitted" if resubmitted else "ipr_review_ready",
            title=title,
            message=message,
            metadata={"stage": application.stage},
        )
    ]


def plan_review_decision(application: IprApplication, decision: ReviewDecision) -> list[Notification]:
    """Tell the applicant about a decision, and the next reviewer if it advanced."""

    notifications = [
        Notification(
            recipient_type="user",
            recipient=application.applicant_id,
            notification_type="ipr_review_decision",
            title=f"Review decision: {decision.decision.replace('_', ' ')}",
            message=(
                f"The {decision.reviewer_role.replace('_', ' ')} recorded '{decision.decision}' "
                f"for application {application.id} at {decision.stage.replace('_', ' ')}."
                + (f" Comments: {decision.comments}" if decision.comments else "")
            ),
            application_id=application.id,
            metadata={"decision_id": decision.id, "stage": decision.stage, "decision": decision.decision},
        )
    ]
    if application.stage != decision.stage and is_review_stage(application.stage):
        notifications.extend(plan_application_ready_for_review(application, resubmitted=False))
    return notifications


def plan_status_update(application: IprApplication, update: StatusUpdate) -> list[Notification]:
    """Fan a status update out to the applicant and inventors per its notify flags."""

    recipients: list[str] = []
    if update.notify_applicant:
        recipients.append(application.applicant_id)
    if update.notify_inventors:
        for inventor_id in application.inventor_ids_json or []:
            if inventor_id not in recipients:
                recipients.append(inventor_id)
    return [
        Notification(
            recipient_type="user",
            recipient=recipient,
            notification_type=f"ipr_status_update_{update.update_type}",
            title=f"Application update ({update.priority})",
            message=update.message,
            application_id=application.id,
            metadata={"status_update_id": update.id, "priority": update.priority},
        )
        for recipient in recipients
    ]


def _role_or_mentor(
    application: IprApplication,
    role_name: str,
    *,
    notification_type: str,
    title: str,
    message: str,
    metadata: dict[str, object],
) -> Notification:
    if role_name == "mentor" and application.mentor_id:
        recipient_type: RecipientType = "user"
        recipient = application.mentor_id
    else:
        recipient_type = "role"
        recipient = role_name
    return Notification(
        recipient_type=recipient_type,
        recipient=recipient,
        notification_type=notification_type,
        title=title,
        message=message,
        application_id=application.id,
        metadata=metadata,
    )
