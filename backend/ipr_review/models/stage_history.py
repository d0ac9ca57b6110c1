"""Application stage history model."""

from sqlalchemy import JSON, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ipr_review.models.base import Base, CreatedAtMixin, IdMixin


class StageHistoryEntry(Base, IdMixin, CreatedAtMixin):
    """Audit entry for stage transitions and applied field edits."""

    __tablename__ = "stage_history"

    application_id: Mapped[int] = mapped_column(
        ForeignKey("ipr_applications.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String(32), nullable=False)
    from_stage: Mapped[str | None] = mapped_column(String(32), nullable=True)
    to_stage: Mapped[str] = mapped_column(String(32), nullable=False)
    changed_by_id: Mapped[str] = mapped_column(String(255), nullable=False)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_json: Mapped[dict[str, object]] = mapped_column(JSON, default=dict, nullable=False)
