"""Unit tests for the keyed suggestion store."""

from __future__ import annotations

import unittest

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ipr_review.models.application import IprApplication
from ipr_review.models.base import Base
from ipr_review.models.edit_suggestion import EditSuggestion
from ipr_review.services.suggestion_store import SqlSuggestionStore, SuggestionRecord
from ipr_review.workflow.errors import InvalidTransitionError, NotFoundError


class SuggestionStoreTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        self.db.execute(delete(EditSuggestion))
        self.db.execute(delete(IprApplication))
        self.db.commit()
        self.application = IprApplication(
            applicant_id="applicant-1",
            fields_json={"title": "Old"},
            stage="mentor_review",
        )
        self.db.add(self.application)
        self.db.commit()
        self.store = SqlSuggestionStore(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def _record(self, value: str, field_name: str = "title") -> SuggestionRecord:
        return SuggestionRecord(
            application_id=self.application.id,
            field_name=field_name,
            author_id="mentor-1",
            author_role="mentor",
            original_value="Old",
            suggested_value=value,
        )

    def test_create_assigns_identity_and_forces_pending(self) -> None:
        suggestion = self.store.create(self._record("New"))
        self.db.commit()

        self.assertIsNotNone(suggestion.id)
        self.assertIsNotNone(suggestion.created_at)
        self.assertEqual(suggestion.status, "pending")
        self.assertIsNone(suggestion.responded_at)

    def test_get_returns_application_suggestions_in_creation_order(self) -> None:
        first = self.store.create(self._record("First"))
        second = self.store.create(self._record("Second", field_name="description"))
        third = self.store.create(self._record("Third"))
        self.db.commit()

        rows = self.store.get(self.application.id)
        self.assertEqual([row.id for row in rows], [first.id, second.id, third.id])
        self.assertEqual(self.store.get(self.application.id + 100), [])

    def test_get_one_raises_not_found_for_unknown_id(self) -> None:
        with self.assertRaises(NotFoundError):
            self.store.get_one(9999)

    def test_update_status_resolves_pending_suggestion(self) -> None:
        suggestion = self.store.create(self._record("New"))

        resolved = self.store.update_status(suggestion.id, "rejected", "not needed", responder_id="applicant-1")
        self.db.commit()

        self.assertEqual(resolved.status, "rejected")
        self.assertEqual(resolved.responder_note, "not needed")
        self.assertEqual(resolved.responder_id, "applicant-1")
        self.assertIsNotNone(resolved.responded_at)

    def test_update_status_on_terminal_suggestion_is_invalid_transition(self) -> None:
        suggestion = self.store.create(self._record("New"))
        self.store.update_status(suggestion.id, "accepted")
        self.db.commit()

        with self.assertRaises(InvalidTransitionError):
            self.store.update_status(suggestion.id, "rejected", "too late")
        self.db.rollback()

        self.assertEqual(self.store.get_one(suggestion.id).status, "accepted")

    def test_update_status_rejects_non_terminal_target(self) -> None:
        suggestion = self.store.create(self._record("New"))

        with self.assertRaises(InvalidTransitionError):
            self.store.update_status(suggestion.id, "pending")

    def test_update_status_raises_not_found_for_unknown_id(self) -> None:
        with self.assertRaises(NotFoundError):
            self.store.update_status(4242, "accepted")


if __name__ == "__main__":
    unittest.main()
