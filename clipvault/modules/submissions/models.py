"""Submission ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clipvault.core.database import Base, BaseModelMixin
from clipvault.core.enums import FileTypeEnum, SubmissionStatusEnum

if TYPE_CHECKING:
    from clipvault.modules.identity.models import User


class Submission(BaseModelMixin, Base):
    """Uploaded clip or screenshot awaiting or past moderation."""

    __tablename__ = "submissions"
    __table_args__ = (Index("ix_submissions_status_created_at", "status", "created_at"),)

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_url: Mapped[str] = mapped_column(String(512), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[FileTypeEnum] = mapped_column(
        SAEnum(FileTypeEnum, name="file_type_enum", native_enum=False),
        nullable=False,
    )
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    blob_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[SubmissionStatusEnum] = mapped_column(
        SAEnum(SubmissionStatusEnum, name="submission_status_enum", native_enum=False),
        default=SubmissionStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    reject_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)
    reviewed_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped[User] = relationship(back_populates="submissions", foreign_keys=[user_id])
    reviewer: Mapped[User | None] = relationship(foreign_keys=[reviewed_by])
