"""Audit ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clipvault.core.database import AppendOnlyModelMixin, Base

if TYPE_CHECKING:
    from clipvault.modules.identity.models import User


class AdminLog(AppendOnlyModelMixin, Base):
    """Append-only record of a privileged action."""

    __tablename__ = "admin_logs"

    admin_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    admin: Mapped["User"] = relationship(back_populates="admin_logs")
