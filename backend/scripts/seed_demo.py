"""Seed a demo IPR application with a pending mentor suggestion.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py
    # or
    python -m scripts.seed_demo
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Make `ipr_review` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from ipr_review.db.session import SessionLocal
from ipr_review.schemas.application import ApplicationCreate
from ipr_review.schemas.suggestion import SuggestionCreate
from ipr_review.services.applications import create_application
from ipr_review.services.reviews import submit_application
from ipr_review.services.suggestions import list_suggestions, propose_suggestion
from ipr_review.workflow.roles import Actor


def build_demo_application() -> ApplicationCreate:
    """Return a deterministic demo patent application."""

    return ApplicationCreate(
        fields={
            "title": "Self-cleaning solar panel coating",
            "description": "A hydrophobic nano-coating that sheds dust from photovoltaic panels.",
            "iprType": "patent",
            "projectType": "phd",
            "filingType": "provisional",
        },
        mentor_id="mentor-demo",
        inventor_ids=["inventor-demo-1", "inventor-demo-2"],
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a demo IPR application.")
    parser.add_argument("--applicant-id", default="applicant-demo")
    parser.add_argument("--mentor-id", default="mentor-demo")
    args = parser.parse_args()

    applicant = Actor(id=args.applicant_id, role="applicant")
    mentor = Actor(id=args.mentor_id, role="mentor")
    payload = build_demo_application()
    payload.mentor_id = args.mentor_id

    with SessionLocal() as db:
        application_id = create_application(db, payload, applicant=applicant).id
        submit_application(db, application_id, actor=applicant)
        propose_suggestion(
            db,
            application_id,
            SuggestionCreate(
                field_name="title",
                suggested_value="Self-cleaning hydrophobic coating for solar panels",
                suggestion_note="Lead with the mechanism.",
            ),
            actor=mentor,
        )
        listing = list_suggestions(db, application_id)

    print(f"Seeded application {application_id}")
    print(f"Suggestions: {listing.summary.model_dump()}")


if __name__ == "__main__":
    main()
