"""Review decision and history schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ipr_review.schemas.suggestion import SuggestionRead, SuggestionSummary

DecisionValue = Literal["approved", "changes_required", "approve", "reject"]
ReviewStage = Literal["mentor_review", "drd_review", "dean_review"]


class ReviewDecisionCreate(BaseModel):
    """Decision payload for the current review stage."""

    stage: ReviewStage
    decision: DecisionValue
    comments: str | None = None


class ReviewDecisionRead(BaseModel):
    """Serialized review decision."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    stage: str
    reviewer_id: str
    reviewer_role: str
    decision: str
    comments: str | None
    created_at: datetime


class StageHistoryRead(BaseModel):
    """Serialized stage history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    event_type: str
    from_stage: str | None
    to_stage: str
    changed_by_id: str
    comments: str | None
    metadata_json: dict[str, object]
    created_at: datetime


class ReviewHistorySummary(SuggestionSummary):
    """Decision count plus suggestion counts."""

    decisions: int = 0


class ReviewHistoryData(BaseModel):
    """Full review trail for one application."""

    decisions: list[ReviewDecisionRead] = Field(default_factory=list)
    suggestions: list[SuggestionRead] = Field(default_factory=list)
    stage_history: list[StageHistoryRead] = Field(default_factory=list)
    summary: ReviewHistorySummary = Field(default_factory=ReviewHistorySummary)
