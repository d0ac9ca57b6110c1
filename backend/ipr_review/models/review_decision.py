"""Per-stage review decision model."""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ipr_review.models.base import Base, CreatedAtMixin, IdMixin


class ReviewDecision(Base, IdMixin, CreatedAtMixin):
    """Terminal action a reviewing role took at one pipeline stage."""

    __tablename__ = "review_decisions"

    application_id: Mapped[int] = mapped_column(
        ForeignKey("ipr_applications.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    stage: Mapped[str] = mapped_column(String(32), nullable=False)
    reviewer_id: Mapped[str] = mapped_column(String(255), nullable=False)
    reviewer_role: Mapped[str] = mapped_column(String(32), nullable=False)
    decision: Mapped[str] = mapped_column(String(32), nullable=False)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
