"""Application request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ApplicationCreate(BaseModel):
    """Draft application payload."""

    fields: dict[str, str] = Field(default_factory=dict)
    mentor_id: str | None = Field(default=None, min_length=1)
    inventor_ids: list[str] = Field(default_factory=list)


class ApplicationRead(BaseModel):
    """Serialized application."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    applicant_id: str
    mentor_id: str | None
    inventor_ids_json: list[str]
    fields_json: dict[str, str]
    stage: str
    changes_required: bool
    created_at: datetime
    updated_at: datetime
