"""Service-level tests for submission, stage decisions and review history."""

from __future__ import annotations

import unittest

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ipr_review.models.application import IprApplication
from ipr_review.models.base import Base
from ipr_review.models.edit_suggestion import EditSuggestion
from ipr_review.models.review_decision import ReviewDecision
from ipr_review.models.stage_history import StageHistoryEntry
from ipr_review.schemas.application import ApplicationCreate
from ipr_review.schemas.review import ReviewDecisionCreate
from ipr_review.schemas.suggestion import SuggestionBatchCreate, SuggestionCreate, SuggestionRespondRequest
from ipr_review.services.applications import create_application
from ipr_review.services.reviews import (
    get_review_history,
    resubmit_application,
    submit_application,
    submit_review_decision,
    submit_suggestion_batch,
)
from ipr_review.services.suggestions import propose_suggestion, respond_to_suggestion
from ipr_review.workflow.errors import (
    InvalidTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from ipr_review.workflow.roles import Actor

APPLICANT = Actor(id="applicant-1", role="applicant")
MENTOR = Actor(id="mentor-1", role="mentor")
DRD = Actor(id="drd-1", role="drd_reviewer")
DEAN = Actor(id="dean-1", role="dean")


class ReviewPipelineTests(unittest.TestCase):
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
        self.db.execute(delete(StageHistoryEntry))
        self.db.execute(delete(ReviewDecision))
        self.db.execute(delete(EditSuggestion))
        self.db.execute(delete(IprApplication))
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()

    def _submitted(self, *, mentor_id: str | None = "mentor-1") -> int:
        application = create_application(
            self.db,
            ApplicationCreate(
                fields={"title": "Solar coating", "description": "Sheds dust", "iprType": "patent"},
                mentor_id=mentor_id,
                inventor_ids=["inventor-1"],
            ),
            applicant=APPLICANT,
        )
        return submit_application(self.db, application.id, actor=APPLICANT).id

    def _decide(self, application_id: int, stage: str, decision: str, comments: str | None = None, *, actor: Actor):
        return submit_review_decision(
            self.db,
            application_id,
            ReviewDecisionCreate(stage=stage, decision=decision, comments=comments),
            actor=actor,
        )

    def _application(self, application_id: int) -> IprApplication:
        self.db.expire_all()
        return self.db.get(IprApplication, application_id)

    def test_submit_routes_to_mentor_or_straight_to_drd(self) -> None:
        with_mentor = self._submitted()
        without_mentor = self._submitted(mentor_id=None)

        self.assertEqual(self._application(with_mentor).stage, "mentor_review")
        self.assertEqual(self._application(without_mentor).stage, "drd_review")
        with self.assertRaises(InvalidTransitionError):
            submit_application(self.db, with_mentor, actor=APPLICANT)

    def test_submit_requires_owner_and_title(self) -> None:
        draft = create_application(self.db, ApplicationCreate(fields={"title": "  "}), applicant=APPLICANT)

        with self.assertRaises(PermissionDeniedError):
            submit_application(self.db, draft.id, actor=Actor(id="applicant-2", role="applicant"))
        with self.assertRaises(ValidationError):
            submit_application(self.db, draft.id, actor=APPLICANT)
        self.assertEqual(self._application(draft.id).stage, "draft")

    def test_only_applicants_create_applications(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            create_application(self.db, ApplicationCreate(fields={"title": "x"}), applicant=MENTOR)

    def test_send_back_needs_comments_or_pending_suggestions(self) -> None:
        application_id = self._submitted()

        with self.assertRaises(ValidationError):
            self._decide(application_id, "mentor_review", "changes_required", "", actor=MENTOR)
        self.assertFalse(self._application(application_id).changes_required)

        propose_suggestion(
            self.db,
            application_id,
            SuggestionCreate(field_name="title", suggested_value="Hydrophobic solar coating"),
            actor=MENTOR,
        )
        decision = self._decide(application_id, "mentor_review", "changes_required", "", actor=MENTOR)

        self.assertEqual(decision.decision, "changes_required")
        self.assertIsNone(decision.comments)
        application = self._application(application_id)
        self.assertEqual(application.stage, "mentor_review")
        self.assertTrue(application.changes_required)

    def test_send_back_with_comments_only(self) -> None:
        application_id = self._submitted()

        self._decide(application_id, "mentor_review", "changes_required", "Clarify the claims", actor=MENTOR)

        self.assertTrue(self._application(application_id).changes_required)

    def test_approvals_walk_the_pipeline_to_approved(self) -> None:
        application_id = self._submitted()

        self._decide(application_id, "mentor_review", "approved", actor=MENTOR)
        self.assertEqual(self._application(application_id).stage, "drd_review")
        self._decide(application_id, "drd_review", "approved", "Looks complete", actor=DRD)
        self.assertEqual(self._application(application_id).stage, "dean_review")
        self._decide(application_id, "dean_review", "approve", actor=DEAN)
        self.assertEqual(self._application(application_id).stage, "approved")

        with self.assertRaises(InvalidTransitionError):
            self._decide(application_id, "dean_review", "approve", actor=DEAN)

    def test_dean_reject_closes_the_application_and_needs_comments(self) -> None:
        application_id = self._submitted(mentor_id=None)
        self._decide(application_id, "drd_review", "approved", actor=DRD)

        with self.assertRaises(ValidationError):
            self._decide(application_id, "dean_review", "reject", actor=DEAN)
        self._decide(application_id, "dean_review", "reject", "Prior art exists", actor=DEAN)

        application = self._application(application_id)
        self.assertEqual(application.stage, "rejected")
        self.assertFalse(application.changes_required)
        with self.assertRaises(PermissionDeniedError):
            propose_suggestion(
                self.db,
                application_id,
                SuggestionCreate(field_name="title", suggested_value="Too late"),
                actor=DRD,
            )

    def test_decision_must_match_current_stage(self) -> None:
        application_id = self._submitted()

        with self.assertRaises(InvalidTransitionError):
            self._decide(application_id, "drd_review", "approved", actor=DRD)
        self.assertEqual(self._application(application_id).stage, "mentor_review")

    def test_decision_requires_stage_owner_and_valid_value(self) -> None:
        application_id = self._submitted()

        with self.assertRaises(PermissionDeniedError):
            self._decide(application_id, "mentor_review", "approved", actor=DRD)
        with self.assertRaises(PermissionDeniedError):
            self._decide(application_id, "mentor_review", "approved", actor=Actor(id="mentor-2", role="mentor"))
        with self.assertRaises(ValidationError):
            self._decide(application_id, "mentor_review", "approve", actor=MENTOR)
        self.assertEqual(self._application(application_id).stage, "mentor_review")

    def test_reviewer_waits_for_applicant_after_send_back(self) -> None:
        application_id = self._submitted()
        self._decide(application_id, "mentor_review", "changes_required", "Rework the title", actor=MENTOR)

        with self.assertRaises(InvalidTransitionError):
            self._decide(application_id, "mentor_review", "approved", actor=MENTOR)

        resubmitted = resubmit_application(self.db, application_id, actor=APPLICANT, comments="Done")
        self.assertFalse(resubmitted.changes_required)
        self.assertEqual(resubmitted.stage, "mentor_review")
        with self.assertRaises(InvalidTransitionError):
            resubmit_application(self.db, application_id, actor=APPLICANT)

        self._decide(application_id, "mentor_review", "approved", actor=MENTOR)
        self.assertEqual(self._application(application_id).stage, "drd_review")

    def test_suggestion_batch_sends_back_in_one_step(self) -> None:
        application_id = self._submitted()

        result = submit_suggestion_batch(
            self.db,
            application_id,
            SuggestionBatchCreate(
                suggestions=[
                    SuggestionCreate(field_name="title", suggested_value="Hydrophobic solar coating"),
                    SuggestionCreate(field_name="description", suggested_value="Sheds dust and water"),
                ],
                comments="Two small fixes",
            ),
            actor=MENTOR,
        )

        self.assertEqual(len(result.suggestions), 2)
        self.assertEqual(result.decision.decision, "changes_required")
        self.assertEqual(result.decision.comments, "Two small fixes")
        self.assertTrue(result.application.changes_required)

    def test_suggestion_batch_is_rolled_back_when_an_item_is_invalid(self) -> None:
        application_id = self._submitted()

        with self.assertRaises(ValidationError):
            submit_suggestion_batch(
                self.db,
                application_id,
                SuggestionBatchCreate(
                    suggestions=[
                        SuggestionCreate(field_name="title", suggested_value="Fine"),
                        SuggestionCreate(field_name="description", suggested_value="  "),
                    ]
                ),
                actor=MENTOR,
            )

        self.assertEqual(get_review_history(self.db, application_id).summary.total, 0)
        self.assertFalse(self._application(application_id).changes_required)

    def test_review_history_collects_decisions_suggestions_and_stages(self) -> None:
        application_id = self._submitted()
        batch = submit_suggestion_batch(
            self.db,
            application_id,
            SuggestionBatchCreate(suggestions=[SuggestionCreate(field_name="title", suggested_value="Better")]),
            actor=MENTOR,
        )
        respond_to_suggestion(
            self.db, batch.suggestions[0].id, SuggestionRespondRequest(action="accept"), actor=APPLICANT
        )
        self._decide(application_id, "mentor_review", "approved", actor=MENTOR)

        history = get_review_history(self.db, application_id)

        self.assertEqual([row.decision for row in history.decisions], ["changes_required", "approved"])
        self.assertEqual(history.summary.decisions, 2)
        self.assertEqual(history.summary.accepted, 1)
        self.assertEqual(history.summary.pending, 0)
        self.assertEqual(
            [row.event_type for row in history.stage_history],
            ["submitted", "decision", "suggestion_applied", "resubmitted", "decision"],
        )
        self.assertEqual(history.stage_history[-1].to_stage, "drd_review")


if __name__ == "__main__":
    unittest.main()
