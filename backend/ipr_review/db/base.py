"""SQLAlchemy metadata registry import for Alembic."""

from ipr_review.models import (
    EditSuggestion,
    IprApplication,
    ReviewDecision,
    StageHistoryEntry,
    StatusUpdate,
)
from ipr_review.models.base import Base

__all__ = ["Base", "IprApplication", "EditSuggestion", "ReviewDecision", "StageHistoryEntry", "StatusUpdate"]
