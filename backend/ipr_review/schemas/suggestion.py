"""Edit suggestion request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

SuggestionStatus = Literal["pending", "accepted", "rejected"]
SuggestionAction = Literal["accept", "reject"]
AuthorScope = Literal["reviewer", "applicant"]


class SuggestionCreate(BaseModel):
    """One proposed replacement value for one field."""

    field_name: str = Field(min_length=1, max_length=128)
    field_path: str | None = Field(default=None, max_length=255)
    original_value: str | None = None
    suggested_value: str
    suggestion_note: str | None = None


class SuggestionBatchCreate(BaseModel):
    """Several suggestions submitted together with overall comments."""

    suggestions: list[SuggestionCreate] = Field(min_length=1)
    comments: str | None = None


class SuggestionRespondRequest(BaseModel):
    """Applicant (or reviewer) answer to one suggestion."""

    action: SuggestionAction
    response: str | None = None


class SuggestionBatchResponseItem(SuggestionRespondRequest):
    """One entry of a batch response."""

    suggestion_id: int = Field(ge=1)


class SuggestionBatchRespondRequest(BaseModel):
    """All-or-nothing batch of responses."""

    responses: list[SuggestionBatchResponseItem] = Field(min_length=1)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "SuggestionBatchRespondRequest":
        ids = [item.suggestion_id for item in self.responses]
        if len(ids) != len(set(ids)):
            raise ValueError("Each suggestion may appear only once in a batch.")
        return self


class SuggestionRead(BaseModel):
    """Serialized edit suggestion."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    field_name: str
    field_path: str | None
    author_id: str
    author_role: str
    original_value: str | None
    suggested_value: str
    suggestion_note: str | None
    status: str
    responder_id: str | None
    responder_note: str | None
    responded_at: datetime | None
    created_at: datetime


class SuggestionSummary(BaseModel):
    """Suggestion counts by status."""

    total: int = 0
    pending: int = 0
    accepted: int = 0
    rejected: int = 0


class FieldSuggestionGroup(BaseModel):
    """Suggestions for one field, with the configured field kind."""

    field_name: str
    field_kind: str
    suggestions: list[SuggestionRead] = Field(default_factory=list)


class SuggestionListData(BaseModel):
    """Suggestions for an application, grouped and summarized."""

    suggestions: list[SuggestionRead] = Field(default_factory=list)
    groups: list[FieldSuggestionGroup] = Field(default_factory=list)
    summary: SuggestionSummary = Field(default_factory=SuggestionSummary)


class PendingCountData(BaseModel):
    """Pending suggestion count."""

    application_id: int
    author_scope: AuthorScope | None = None
    pending: int
