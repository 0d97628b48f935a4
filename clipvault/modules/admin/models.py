"""Admin ORM models."""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clipvault.core.database import Base, BaseModelMixin


class SystemSetting(BaseModelMixin, Base):
    """Runtime key/value setting editable by admins."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
