"""Authorization checks consumed by the workflow services."""

from __future__ import annotations

from typing import Literal, Protocol

from ipr_review.models.application import IprApplication
from ipr_review.workflow.errors import PermissionDeniedError
from ipr_review.workflow.roles import Actor, is_terminal_stage

WorkflowAction = Literal[
    "submit",
    "resubmit",
    "suggest",
    "respond_to_reviewer",
    "respond_to_applicant",
    "decide",
    "post_update",
    "delete_update",
]


class AuthorizationPolicy(Protocol):
    """Answers "may this actor do this to this application right now?"."""

    def is_permitted(self, actor: Actor, application: IprApplication, action: WorkflowAction) -> bool:
        """Return whether ``actor`` may perform ``action`` on ``application``."""


class RoleCapabilityPolicy:
    """Default policy derived from role capabilities and application ownership."""

    def is_permitted(self, actor: Actor, application: IprApplication, action: WorkflowAction) -> bool:
        role = actor.capabilities
        is_owner = actor.role == "applicant" and actor.id == application.applicant_id

        if action in {"submit", "resubmit", "respond_to_reviewer"}:
            return is_owner
        if action == "suggest":
            if is_terminal_stage(application.stage):
                return False
            if is_owner:
                return application.changes_required
            return role.can_suggest and role.owns(application.stage) and self._is_assigned(actor, application)
        if action in {"respond_to_applicant", "decide"}:
            if action == "decide" and not role.can_decide:
                return False
            return role.owns(application.stage) and self._is_assigned(actor, application)
        if action in {"post_update", "delete_update"}:
            return role.can_post_updates
        return False

    @staticmethod
    def _is_assigned(actor: Actor, application: IprApplication) -> bool:
        if actor.role == "mentor" and application.mentor_id:
            return actor.id == application.mentor_id
        return True


def authorize(
    policy: AuthorizationPolicy,
    actor: Actor,
    application: IprApplication,
    action: WorkflowAction,
) -> None:
    """Raise ``PermissionDeniedError`` unless the policy allows the action."""

    if not policy.is_permitted(actor, application, action):
        raise PermissionDeniedError(
            f"Role '{actor.role}' may not {action.replace('_', ' ')} on application {application.id} "
            f"at stage '{application.stage}'",
            rule=f"permission.{action}",
        )
