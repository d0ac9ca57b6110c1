"""Request identity and authorization dependencies.

Identity resolution happens upstream; by the time a request reaches the API
the gateway has put the caller's id and role in headers.
"""

from fastapi import Header

from ipr_review.workflow.authorization import AuthorizationPolicy, RoleCapabilityPolicy
from ipr_review.workflow.errors import PermissionDeniedError
from ipr_review.workflow.roles import ROLE_CAPABILITIES, Actor


def get_actor(
    x_actor_id: str = Header(..., min_length=1),
    x_actor_role: str = Header(..., min_length=1),
) -> Actor:
    """Build the calling actor from identity headers."""

    role = x_actor_role.strip().lower()
    if role not in ROLE_CAPABILITIES:
        raise PermissionDeniedError(f"Unknown role '{x_actor_role}'", rule="permission.role")
    return Actor(id=x_actor_id.strip(), role=role)


def get_authorization_policy() -> AuthorizationPolicy:
    """Return the authorization policy used by workflow routes."""

    return RoleCapabilityPolicy()
