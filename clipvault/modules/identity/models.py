"""Identity ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clipvault.core.database import Base, BaseModelMixin
from clipvault.core.enums import RoleEnum

if TYPE_CHECKING:
    from clipvault.modules.audit.models import AdminLog
    from clipvault.modules.ledger.models import Payout
    from clipvault.modules.submissions.models import Submission


class User(BaseModelMixin, Base):
    """Platform user resolved from an external identity provider account."""

    __tablename__ = "users"

    external_id: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    nickname: Mapped[str] = mapped_column(String(255), nullable=False)
    balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    role: Mapped[RoleEnum] = mapped_column(
        SAEnum(RoleEnum, name="role_enum", native_enum=False),
        default=RoleEnum.USER,
        nullable=False,
        index=True,
    )
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_submission_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    submissions: Mapped[list["Submission"]] = relationship(
        back_populates="user",
        foreign_keys="Submission.user_id",
        passive_deletes=True,
    )
    payouts: Mapped[list["Payout"]] = relationship(
        back_populates="user",
        foreign_keys="Payout.user_id",
        passive_deletes=True,
    )
    admin_logs: Mapped[list["AdminLog"]] = relationship(back_populates="admin", passive_deletes=True)
