"""Pipeline stages and role capabilities for IPR reviews."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PipelineStage = Literal["draft", "mentor_review", "drd_review", "dean_review", "approved", "rejected"]
RoleName = Literal["applicant", "mentor", "drd_reviewer", "dean"]
SuggestionAuthorRole = Literal["mentor", "drd_reviewer", "applicant"]

REVIEW_STAGES: tuple[str, ...] = ("mentor_review", "drd_review", "dean_review")
TERMINAL_STAGES: frozenset[str] = frozenset({"approved", "rejected"})
_NEXT_STAGE: dict[str, str] = {
    "draft": "mentor_review",
    "mentor_review": "drd_review",
    "drd_review": "dean_review",
    "dean_review": "approved",
}


@dataclass(frozen=True, slots=True)
class ReviewerRole:
    """What one role may do in the review pipeline."""

    name: str
    can_suggest: bool
    can_decide: bool
    stage_owned: str | None
    approve_decision: str | None = None
    send_back_decision: str | None = None
    can_post_updates: bool = False

    @property
    def decisions(self) -> tuple[str, ...]:
        return tuple(value for value in (self.approve_decision, self.send_back_decision) if value)

    def owns(self, stage: str) -> bool:
        return self.stage_owned is not None and self.stage_owned == stage


ROLE_CAPABILITIES: dict[str, ReviewerRole] = {
    "applicant": ReviewerRole(name="applicant", can_suggest=False, can_decide=False, stage_owned=None),
    "mentor": ReviewerRole(
        name="mentor",
        can_suggest=True,
        can_decide=True,
        stage_owned="mentor_review",
        approve_decision="approved",
        send_back_decision="changes_required",
    ),
    "drd_reviewer": ReviewerRole(
        name="drd_reviewer",
        can_suggest=True,
        can_decide=True,
        stage_owned="drd_review",
        approve_decision="approved",
        send_back_decision="changes_required",
        can_post_updates=True,
    ),
    "dean": ReviewerRole(
        name="dean",
        can_suggest=False,
        can_decide=True,
        stage_owned="dean_review",
        approve_decision="approve",
        send_back_decision="reject",
    ),
}


@dataclass(frozen=True, slots=True)
class Actor:
    """Caller identity as resolved by the identity collaborator."""

    id: str
    role: str

    @property
    def capabilities(self) -> ReviewerRole:
        return get_role(self.role)


def get_role(name: str) -> ReviewerRole:
    """Return the capability record for a role name, or a capability-less one."""

    role = ROLE_CAPABILITIES.get(name)
    if role is None:
        return ReviewerRole(name=name, can_suggest=False, can_decide=False, stage_owned=None)
    return role


def stage_owner(stage: str) -> ReviewerRole | None:
    """Return the role that decides at ``stage``."""

    return next((role for role in ROLE_CAPABILITIES.values() if role.owns(stage)), None)


def next_stage(stage: str) -> str | None:
    return _NEXT_STAGE.get(stage)


def is_review_stage(stage: str) -> bool:
    return stage in REVIEW_STAGES


def is_terminal_stage(stage: str) -> bool:
    return stage in TERMINAL_STAGES
