"""IPR application ORM model."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ipr_review.models.base import Base, CreatedAtMixin, IdMixin


class IprApplication(Base, IdMixin, CreatedAtMixin):
    """Application under review with its authoritative field values."""

    __tablename__ = "ipr_applications"

    applicant_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    mentor_id: Mapped[str | None] = mapped_column(String(255), index=True, nullable=True)
    inventor_ids_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    fields_json: Mapped[dict[str, str]] = mapped_column(JSON, default=dict, nullable=False)
    stage: Mapped[str] = mapped_column(String(32), default="draft", index=True, nullable=False)
    changes_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
