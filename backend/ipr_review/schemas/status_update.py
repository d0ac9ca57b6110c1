"""Status update request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

StatusUpdateType = Literal["hearing", "document_request", "milestone", "general"]
StatusUpdatePriority = Literal["low", "medium", "high", "urgent"]


class StatusUpdateCreate(BaseModel):
    """Timeline entry payload."""

    update_message: str
    update_type: StatusUpdateType = "general"
    priority: StatusUpdatePriority = "medium"
    notify_applicant: bool = True
    notify_inventors: bool = True


class StatusUpdateRead(BaseModel):
    """Serialized status update."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    author_id: str
    author_role: str
    update_type: str
    priority: str
    message: str
    notify_applicant: bool
    notify_inventors: bool
    created_at: datetime
