"""ORM models package exports."""

from ipr_review.models.application import IprApplication
from ipr_review.models.edit_suggestion import EditSuggestion
from ipr_review.models.review_decision import ReviewDecision
from ipr_review.models.stage_history import StageHistoryEntry
from ipr_review.models.status_update import StatusUpdate

__all__ = [
    "IprApplication",
    "EditSuggestion",
    "ReviewDecision",
    "StageHistoryEntry",
    "StatusUpdate",
]
