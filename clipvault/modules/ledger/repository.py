"""Ledger repository layer."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.enums import PayoutStatusEnum
from clipvault.modules.identity.models import User
from clipvault.modules.ledger.models import Payout


class LedgerRepository:
    """DB access methods for balances and payouts."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def atomic(self):
        return self.session.begin_nested()

    async def increment_balance(self, user_id: UUID, amount: Decimal) -> Decimal | None:
        """Add ``amount`` in the database and return the new balance, or None if no such user."""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(balance=User.balance + amount)
            .returning(User.balance)
            .execution_options(synchronize_session="fetch")
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def create_payout(
        self,
        user_id: UUID,
        amount: Decimal,
        reason: str,
        admin_id: UUID,
        completed_at: datetime | None,
    ) -> Payout:
        payout = Payout(
            user_id=user_id,
            amount=amount,
            reason=reason,
            admin_id=admin_id,
            status=PayoutStatusEnum.COMPLETED,
            completed_at=completed_at,
        )
        self.session.add(payout)
        await self.session.flush()
        return payout

    async def list_payouts_for_user(
        self,
        user_id: UUID,
        limit: int,
        offset: int,
    ) -> tuple[list[Payout], int]:
        base_stmt: Select[tuple[Payout]] = select(Payout).where(Payout.user_id == user_id)
        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Payout.created_at.desc()).limit(limit).offset(offset)
        items = list((await self.session.scalars(stmt)).all())
        return items, total
