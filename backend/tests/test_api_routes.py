"""HTTP-level tests: envelopes, identity headers and error status mapping."""

from __future__ import annotations

import unittest

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ipr_review.db.dependencies import get_db
from ipr_review.main import app
from ipr_review.models.base import Base

APPLICANT = {"X-Actor-Id": "applicant-1", "X-Actor-Role": "applicant"}
MENTOR = {"X-Actor-Id": "mentor-1", "X-Actor-Role": "mentor"}
DRD = {"X-Actor-Id": "drd-1", "X-Actor-Role": "drd_reviewer"}


class ApiRouteTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)

        def override_get_db():
            db = cls.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        # Not entered as a context manager, so the startup database check never runs.
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls) -> None:
        app.dependency_overrides.pop(get_db, None)
        cls.engine.dispose()

    def setUp(self) -> None:
        Base.metadata.drop_all(self.engine)
        Base.metadata.create_all(self.engine)

    def _submitted_application(self) -> int:
        created = self.client.post(
            "/applications",
            json={"fields": {"title": "Solar coating", "description": "Sheds dust"}, "mentor_id": "mentor-1"},
            headers=APPLICANT,
        )
        self.assertEqual(created.status_code, 201)
        application_id = created.json()["data"]["id"]
        submitted = self.client.post(f"/applications/{application_id}/submit", headers=APPLICANT)
        self.assertEqual(submitted.status_code, 200)
        self.assertEqual(submitted.json()["data"]["stage"], "mentor_review")
        return application_id

    def test_suggest_accept_and_read_back(self) -> None:
        application_id = self._submitted_application()

        proposed = self.client.post(
            f"/applications/{application_id}/suggestions",
            json={"field_name": "title", "suggested_value": "Hydrophobic solar coating", "suggestion_note": "clearer"},
            headers=MENTOR,
        )
        self.assertEqual(proposed.status_code, 201)
        suggestion = proposed.json()["data"]
        self.assertEqual(suggestion["status"], "pending")
        self.assertEqual(suggestion["original_value"], "Solar coating")

        count = self.client.get(
            f"/applications/{application_id}/suggestions/pending-count",
            params={"author_scope": "reviewer"},
        )
        self.assertEqual(count.json()["data"]["pending"], 1)

        answered = self.client.post(
            f"/suggestions/{suggestion['id']}/respond",
            json={"action": "accept"},
            headers=APPLICANT,
        )
        self.assertEqual(answered.status_code, 200)
        self.assertEqual(answered.json()["data"]["status"], "accepted")

        application = self.client.get(f"/applications/{application_id}").json()["data"]
        self.assertEqual(application["fields_json"]["title"], "Hydrophobic solar coating")

        by_field = self.client.get(f"/applications/{application_id}/suggestions", params={"field": "title"})
        field_listing = by_field.json()["data"]
        self.assertEqual(field_listing["summary"]["accepted"], 1)
        self.assertEqual(len(field_listing["groups"]), 1)
        self.assertEqual(field_listing["groups"][0]["field_name"], "title")
        self.assertEqual(field_listing["groups"][0]["field_kind"], "short_text")
        self.assertEqual(
            [row["id"] for row in field_listing["groups"][0]["suggestions"]],
            [row["id"] for row in field_listing["suggestions"]],
        )

    def test_workflow_errors_map_to_status_codes(self) -> None:
        application_id = self._submitted_application()

        blank = self.client.post(
            f"/applications/{application_id}/suggestions",
            json={"field_name": "title", "suggested_value": "  "},
            headers=MENTOR,
        )
        self.assertEqual(blank.status_code, 422)
        self.assertEqual(blank.json()["error"], "ValidationError")
        self.assertEqual(blank.json()["rule"], "suggestion.value_required")

        missing = self.client.get("/applications/999")
        self.assertEqual(missing.status_code, 404)

        forbidden = self.client.post(
            f"/applications/{application_id}/suggestions",
            json={"field_name": "title", "suggested_value": "DRD edit"},
            headers=DRD,
        )
        self.assertEqual(forbidden.status_code, 403)
        self.assertEqual(forbidden.json()["rule"], "permission.suggest")

        proposed = self.client.post(
            f"/applications/{application_id}/suggestions",
            json={"field_name": "title", "suggested_value": "New"},
            headers=MENTOR,
        ).json()["data"]
        self.client.post(f"/suggestions/{proposed['id']}/respond", json={"action": "reject"}, headers=APPLICANT)
        again = self.client.post(
            f"/suggestions/{proposed['id']}/respond", json={"action": "accept"}, headers=APPLICANT
        )
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json()["error"], "AlreadyResolvedError")

        no_gate = self.client.post(
            f"/applications/{application_id}/decisions",
            json={"stage": "mentor_review", "decision": "changes_required", "comments": ""},
            headers=MENTOR,
        )
        self.assertEqual(no_gate.status_code, 422)
        self.assertEqual(no_gate.json()["rule"], "pipeline.comments_or_suggestions")

    def test_identity_headers_are_required(self) -> None:
        application_id = self._submitted_application()

        unknown_role = self.client.post(
            f"/applications/{application_id}/suggestions",
            json={"field_name": "title", "suggested_value": "New"},
            headers={"X-Actor-Id": "someone", "X-Actor-Role": "janitor"},
        )
        self.assertEqual(unknown_role.status_code, 403)
        self.assertEqual(unknown_role.json()["error"], "PermissionDeniedError")
        self.assertEqual(unknown_role.json()["rule"], "permission.role")

        anonymous = self.client.post(
            f"/applications/{application_id}/suggestions",
            json={"field_name": "title", "suggested_value": "New"},
        )
        self.assertEqual(anonymous.status_code, 422)

    def test_batch_suggestions_then_history(self) -> None:
        application_id = self._submitted_application()

        batch = self.client.post(
            f"/applications/{application_id}/suggestions/batch",
            json={
                "suggestions": [
                    {"field_name": "title", "suggested_value": "Hydrophobic solar coating"},
                    {"field_name": "description", "suggested_value": "Sheds dust and water"},
                ],
                "comments": "Two fixes",
            },
            headers=MENTOR,
        )
        self.assertEqual(batch.status_code, 201)
        self.assertEqual(batch.json()["data"]["decision"], "changes_required")

        listing = self.client.get(f"/applications/{application_id}/suggestions").json()["data"]
        ids = [row["id"] for row in listing["suggestions"]]
        self.assertEqual([group["field_name"] for group in listing["groups"]], ["title", "description"])

        answered = self.client.post(
            f"/applications/{application_id}/respond/batch",
            json={
                "responses": [
                    {"suggestion_id": ids[0], "action": "accept"},
                    {"suggestion_id": ids[1], "action": "reject", "response": "Keep mine"},
                ]
            },
            headers=APPLICANT,
        )
        self.assertEqual(answered.status_code, 200)
        self.assertEqual([row["status"] for row in answered.json()["data"]], ["accepted", "rejected"])

        application = self.client.get(f"/applications/{application_id}").json()["data"]
        self.assertFalse(application["changes_required"])

        history = self.client.get(f"/applications/{application_id}/history").json()["data"]
        self.assertEqual(history["summary"]["decisions"], 1)
        self.assertEqual(history["stage_history"][-1]["event_type"], "resubmitted")

    def test_status_update_timeline(self) -> None:
        application_id = self._submitted_application()

        blank = self.client.post(
            f"/applications/{application_id}/status-updates",
            json={"update_message": ""},
            headers=DRD,
        )
        self.assertEqual(blank.status_code, 422)

        first = self.client.post(
            f"/applications/{application_id}/status-updates",
            json={"update_message": "Filed", "update_type": "milestone"},
            headers=DRD,
        ).json()["data"]
        second = self.client.post(
            f"/applications/{application_id}/status-updates",
            json={"update_message": "Hearing on Friday", "update_type": "hearing", "priority": "high"},
            headers=DRD,
        ).json()["data"]

        newest_first = self.client.get(f"/applications/{application_id}/status-updates").json()["data"]
        self.assertEqual([row["id"] for row in newest_first], [second["id"], first["id"]])
        oldest_first = self.client.get(
            f"/applications/{application_id}/status-updates", params={"order": "asc"}
        ).json()["data"]
        self.assertEqual([row["id"] for row in oldest_first], [first["id"], second["id"]])

        denied = self.client.delete(f"/status-updates/{first['id']}", headers=MENTOR)
        self.assertEqual(denied.status_code, 403)
        deleted = self.client.delete(f"/status-updates/{first['id']}", headers=DRD)
        self.assertEqual(deleted.json()["data"], {"id": first["id"], "deleted": True})


if __name__ == "__main__":
    unittest.main()
