"""Ledger schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from clipvault.core.enums import PayoutStatusEnum
from clipvault.shared.utils import MONEY_MAX_DIGITS


class PayoutRead(BaseModel):
    """Payout response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    amount: Decimal
    reason: str
    status: PayoutStatusEnum
    admin_id: UUID
    created_at: datetime
    completed_at: datetime | None


class BalanceCreditRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=MONEY_MAX_DIGITS)
    reason: str = Field(min_length=3, max_length=200)


class BalanceCreditRead(BaseModel):
    """Result of a staff balance credit."""

    balance: Decimal
    payout: PayoutRead
