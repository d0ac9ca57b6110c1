"""Status update timeline model."""

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ipr_review.models.base import Base, CreatedAtMixin, IdMixin


class StatusUpdate(Base, IdMixin, CreatedAtMixin):
    """Informational timeline entry posted by the DRD."""

    __tablename__ = "status_updates"

    application_id: Mapped[int] = mapped_column(
        ForeignKey("ipr_applications.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    author_id: Mapped[str] = mapped_column(String(255), nullable=False)
    author_role: Mapped[str] = mapped_column(String(32), nullable=False)
    update_type: Mapped[str] = mapped_column(String(32), default="general", nullable=False)
    priority: Mapped[str] = mapped_column(String(16), default="medium", nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    notify_applicant: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notify_inventors: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
