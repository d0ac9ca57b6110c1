"""Keyed persistence for edit suggestions.

The store holds no business rules: no authorization, no filtering beyond the
application key, and no field mutation. Status changes are a compare-and-swap
on ``status = 'pending'`` so that of several concurrent resolvers exactly one
wins; the losers see ``InvalidTransitionError``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ipr_review.models.edit_suggestion import EditSuggestion
from ipr_review.workflow.errors import InvalidTransitionError, NotFoundError

TERMINAL_STATUSES = frozenset({"accepted", "rejected"})


@dataclass(slots=True)
class SuggestionRecord:
    """Fields a caller supplies when creating a suggestion."""

    application_id: int
    field_name: str
    author_id: str
    author_role: str
    suggested_value: str
    original_value: str | None = None
    field_path: str | None = None
    suggestion_note: str | None = None


class SuggestionStore(ABC):
    """Abstract suggestion store contract."""

    @abstractmethod
    def get(self, application_id: int) -> list[EditSuggestion]:
        """Return every suggestion for an application in creation order."""

    @abstractmethod
    def get_one(self, suggestion_id: int) -> EditSuggestion:
        """Return one suggestion or raise ``NotFoundError``."""

    @abstractmethod
    def create(self, record: SuggestionRecord) -> EditSuggestion:
        """Persist a new pending suggestion."""

    @abstractmethod
    def update_status(
        self,
        suggestion_id: int,
        status: str,
        responder_note: str | None = None,
        *,
        responder_id: str | None = None,
    ) -> EditSuggestion:
        """Resolve a pending suggestion."""


class SqlSuggestionStore(SuggestionStore):
    """Suggestion store backed by the request's SQLAlchemy session.

    Writes are flushed, not committed; the calling service owns the
    transaction boundary.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, application_id: int) -> list[EditSuggestion]:
        stmt = (
            select(EditSuggestion)
            .where(EditSuggestion.application_id == application_id)
            .order_by(EditSuggestion.created_at.asc(), EditSuggestion.id.asc())
        )
        return list(self.db.scalars(stmt).all())

    def get_one(self, suggestion_id: int) -> EditSuggestion:
        suggestion = self.db.get(EditSuggestion, suggestion_id)
        if suggestion is None:
            raise NotFoundError(f"Edit suggestion {suggestion_id} not found")
        return suggestion

    def create(self, record: SuggestionRecord) -> EditSuggestion:
        suggestion = EditSuggestion(
            application_id=record.application_id,
            field_name=record.field_name,
            field_path=record.field_path,
            author_id=record.author_id,
            author_role=record.author_role,
            original_value=record.original_value,
            suggested_value=record.suggested_value,
            suggestion_note=record.suggestion_note,
            status="pending",
        )
        self.db.add(suggestion)
        self.db.flush()
        self.db.refresh(suggestion)
        return suggestion

    def update_status(
        self,
        suggestion_id: int,
        status: str,
        responder_note: str | None = None,
        *,
        responder_id: str | None = None,
    ) -> EditSuggestion:
        if status not in TERMINAL_STATUSES:
            raise InvalidTransitionError(
                f"Suggestions can only move to accepted or rejected, not '{status}'",
                rule="suggestion.status_target",
            )
        suggestion = self.get_one(suggestion_id)
        result = self.db.execute(
            update(EditSuggestion)
            .where(EditSuggestion.id == suggestion_id, EditSuggestion.status == "pending")
            .values(
                status=status,
                responder_note=responder_note,
                responder_id=responder_id,
                responded_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.refresh(suggestion)
            raise InvalidTransitionError(
                f"Edit suggestion {suggestion_id} is already {suggestion.status}",
                rule="suggestion.monotone_status",
            )
        self.db.refresh(suggestion)
        return suggestion
