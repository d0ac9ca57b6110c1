"""Field-level edit suggestion model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ipr_review.models.base import Base, CreatedAtMixin, IdMixin


class EditSuggestion(Base, IdMixin, CreatedAtMixin):
    """Proposed whole-value replacement for one application field."""

    __tablename__ = "edit_suggestions"

    application_id: Mapped[int] = mapped_column(
        ForeignKey("ipr_applications.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    field_name: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    field_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    author_id: Mapped[str] = mapped_column(String(255), nullable=False)
    author_role: Mapped[str] = mapped_column(String(32), nullable=False)
    original_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    suggested_value: Mapped[str] = mapped_column(Text, nullable=False)
    suggestion_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="pending", index=True, nullable=False)
    responder_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    responder_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
