"""Balance ledger business logic layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.config import get_settings
from clipvault.core.database import get_db_session
from clipvault.core.enums import AdminActionEnum
from clipvault.core.metrics import BALANCE_CREDITED_TOTAL
from clipvault.modules.access.policy import AccessPolicy, Capability, access_policy
from clipvault.modules.audit.repository import AuditRepository
from clipvault.modules.audit.service import AuditService
from clipvault.modules.identity.models import User
from clipvault.modules.ledger.models import Payout
from clipvault.modules.ledger.repository import LedgerRepository
from clipvault.modules.ledger.schemas import BalanceCreditRequest
from clipvault.shared.exceptions import NotFoundException, ValidationException
from clipvault.shared.request_context import RequestContext
from clipvault.shared.utils import CENT, to_money, utc_now

settings = get_settings()
logger = logging.getLogger(__name__)

REASON_MIN_LENGTH = 3
REASON_MAX_LENGTH = 200


@dataclass(slots=True)
class CreditResult:
    balance: Decimal
    payout: Payout


class LedgerService:
    """Credits user balances and keeps the payout journal in step."""

    def __init__(
        self,
        repository: LedgerRepository,
        audit_service: AuditService,
        policy: AccessPolicy = access_policy,
        max_credit_amount: Decimal | None = None,
    ) -> None:
        self.repository = repository
        self.audit_service = audit_service
        self.policy = policy
        self.max_credit_amount = to_money(
            settings.max_credit_amount if max_credit_amount is None else max_credit_amount,
        )

    async def credit(self, user_id: UUID, amount: Decimal, reason: str, admin: User) -> CreditResult:
        """Increase balance and append a completed payout as one unit.

        Callers already inside a savepoint (bonus on review) get a nested one,
        so a failure here undoes their change too.
        """
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationException("Amount must be positive")

        async with self.repository.atomic():
            balance = await self.repository.increment_balance(user_id, amount)
            if balance is None:
                raise NotFoundException("User not found")
            payout = await self.repository.create_payout(
                user_id=user_id,
                amount=amount,
                reason=reason,
                admin_id=admin.id,
                completed_at=utc_now(),
            )

        BALANCE_CREDITED_TOTAL.inc(float(amount))
        logger.info("Credited %s to user %s by %s (%s)", amount, user_id, admin.id, reason)
        return CreditResult(balance=balance, payout=payout)

    async def credit_balance(
        self,
        actor: User,
        target_user_id: UUID,
        payload: BalanceCreditRequest,
        context: RequestContext | None = None,
    ) -> CreditResult:
        """Staff-initiated credit with limits and an audit entry."""
        self.policy.ensure(actor, Capability.EDIT_USERS)
        self.policy.ensure_can_modify_user(actor, target_user_id)

        amount = to_money(payload.amount)
        if amount < CENT or amount > self.max_credit_amount:
            raise ValidationException(f"Amount must be between {CENT} and {self.max_credit_amount}")
        reason = payload.reason.strip()
        if not REASON_MIN_LENGTH <= len(reason) <= REASON_MAX_LENGTH:
            raise ValidationException(
                f"Reason must be {REASON_MIN_LENGTH}-{REASON_MAX_LENGTH} characters",
            )

        result = await self.credit(target_user_id, amount, reason, actor)
        await self.audit_service.record(
            actor,
            AdminActionEnum.ADD_BALANCE,
            {
                "user_id": str(target_user_id),
                "amount": str(amount),
                "reason": reason,
                "new_balance": str(result.balance),
            },
            context,
        )
        return result

    async def list_user_payouts(self, user: User, limit: int, offset: int) -> tuple[list[Payout], int]:
        return await self.repository.list_payouts_for_user(user.id, limit=limit, offset=offset)


async def get_ledger_service(session: AsyncSession = Depends(get_db_session)) -> LedgerService:
    """Dependency provider for ledger service."""
    return LedgerService(LedgerRepository(session), AuditService(AuditRepository(session)))
