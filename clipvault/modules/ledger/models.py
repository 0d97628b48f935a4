"""Ledger ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clipvault.core.database import AppendOnlyModelMixin, Base
from clipvault.core.enums import PayoutStatusEnum

if TYPE_CHECKING:
    from clipvault.modules.identity.models import User


class Payout(AppendOnlyModelMixin, Base):
    """Credit written to a user's balance by staff."""

    __tablename__ = "payouts"
    __table_args__ = (CheckConstraint("amount > 0", name="amount_positive"),)

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    reason: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[PayoutStatusEnum] = mapped_column(
        SAEnum(PayoutStatusEnum, name="payout_status_enum", native_enum=False),
        default=PayoutStatusEnum.COMPLETED,
        nullable=False,
    )
    admin_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped[User] = relationship(back_populates="payouts", foreign_keys=[user_id])
    admin: Mapped[User] = relationship(foreign_keys=[admin_id])
