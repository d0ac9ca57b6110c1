"""initial review workflow schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "ipr_applications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("applicant_id", sa.String(length=255), nullable=False),
        sa.Column("mentor_id", sa.String(length=255), nullable=True),
        sa.Column("inventor_ids_json", sa.JSON(), nullable=False),
        sa.Column("fields_json", sa.JSON(), nullable=False),
        sa.Column("stage", sa.String(length=32), nullable=False),
        sa.Column("changes_required", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ipr_applications_applicant_id", "ipr_applications", ["applicant_id"], unique=False)
    op.create_index("ix_ipr_applications_mentor_id", "ipr_applications", ["mentor_id"], unique=False)
    op.create_index("ix_ipr_applications_stage", "ipr_applications", ["stage"], unique=False)

    op.create_table(
        "edit_suggestions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("field_name", sa.String(length=128), nullable=False),
        sa.Column("field_path", sa.String(length=255), nullable=True),
        sa.Column("author_id", sa.String(length=255), nullable=False),
        sa.Column("author_role", sa.String(length=32), nullable=False),
        sa.Column("original_value", sa.Text(), nullable=True),
        sa.Column("suggested_value", sa.Text(), nullable=False),
        sa.Column("suggestion_note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("responder_id", sa.String(length=255), nullable=True),
        sa.Column("responder_note", sa.Text(), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["application_id"], ["ipr_applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_edit_suggestions_application_id", "edit_suggestions", ["application_id"], unique=False)
    op.create_index("ix_edit_suggestions_field_name", "edit_suggestions", ["field_name"], unique=False)
    op.create_index("ix_edit_suggestions_status", "edit_suggestions", ["status"], unique=False)

    op.create_table(
        "review_decisions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("stage", sa.String(length=32), nullable=False),
        sa.Column("reviewer_id", sa.String(length=255), nullable=False),
        sa.Column("reviewer_role", sa.String(length=32), nullable=False),
        sa.Column("decision", sa.String(length=32), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["application_id"], ["ipr_applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_review_decisions_application_id", "review_decisions", ["application_id"], unique=False)

    op.create_table(
        "stage_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(length=32), nullable=False),
        sa.Column("from_stage", sa.String(length=32), nullable=True),
        sa.Column("to_stage", sa.String(length=32), nullable=False),
        sa.Column("changed_by_id", sa.String(length=255), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("metadata_json", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["application_id"], ["ipr_applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_stage_history_application_id", "stage_history", ["application_id"], unique=False)

    op.create_table(
        "status_updates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("author_id", sa.String(length=255), nullable=False),
        sa.Column("author_role", sa.String(length=32), nullable=False),
        sa.Column("update_type", sa.String(length=32), nullable=False),
        sa.Column("priority", sa.String(length=16), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notify_applicant", sa.Boolean(), nullable=False),
        sa.Column("notify_inventors", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["application_id"], ["ipr_applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_status_updates_application_id", "status_updates", ["application_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_status_updates_application_id", table_name="status_updates")
    op.drop_table("status_updates")
    op.drop_index("ix_stage_history_application_id", table_name="stage_history")
    op.drop_table("stage_history")
    op.drop_index("ix_review_decisions_application_id", table_name="review_decisions")
    op.drop_table("review_decisions")
    op.drop_index("ix_edit_suggestions_status", table_name="edit_suggestions")
    op.drop_index("ix_edit_suggestions_field_name", table_name="edit_suggestions")
    op.drop_index("ix_edit_suggestions_application_id", table_name="edit_suggestions")
    op.drop_table("edit_suggestions")
    op.drop_index("ix_ipr_applications_stage", table_name="ipr_applications")
    op.drop_index("ix_ipr_applications_mentor_id", table_name="ipr_applications")
    op.drop_index("ix_ipr_applications_applicant_id", table_name="ipr_applications")
    op.drop_table("ipr_applications")
