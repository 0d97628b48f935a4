"""Admin business logic layer."""

from __future__ import annotations

import logging
import re
from datetime import datetime, time, timezone
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.database import get_db_session
from clipvault.core.enums import AdminActionEnum, RoleEnum, SubmissionStatusEnum
from clipvault.modules.access.policy import AccessPolicy, Capability, access_policy
from clipvault.modules.admin.models import SystemSetting
from clipvault.modules.admin.repository import AdminRepository
from clipvault.modules.admin.schemas import (
    BALANCE_OVERWRITE_LIMIT,
    AdminUserRead,
    CategoryCount,
    DashboardStatsRead,
    UserAdminUpdate,
)
from clipvault.modules.audit.repository import AuditRepository
from clipvault.modules.audit.service import AuditService
from clipvault.modules.identity.models import User
from clipvault.modules.submissions.schemas import SubmissionRead
from clipvault.shared.exceptions import NotFoundException, ValidationException
from clipvault.shared.request_context import RequestContext
from clipvault.shared.utils import to_money, utc_now

logger = logging.getLogger(__name__)

RECENT_SUBMISSIONS_LIMIT = 10
SETTING_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,100}$")


class AdminService:
    """Admin domain service."""

    def __init__(
        self,
        repository: AdminRepository,
        audit_service: AuditService,
        policy: AccessPolicy = access_policy,
    ) -> None:
        self.repository = repository
        self.audit_service = audit_service
        self.policy = policy

    async def update_user(
        self,
        actor: User,
        target_id: UUID,
        payload: UserAdminUpdate,
        context: RequestContext | None = None,
    ) -> User:
        """Apply a partial edit to another user's account.

        A balance given here replaces the stored value as-is; no payout is written.
        """
        self.policy.ensure(actor, Capability.EDIT_USERS)
        self.policy.ensure_can_modify_user(actor, target_id)

        changes = payload.model_dump(exclude_none=True)
        if not changes:
            raise ValidationException("Nothing to update")
        if "role" in changes:
            self.policy.ensure(actor, Capability.EDIT_ROLES)
        if "balance" in changes:
            balance = to_money(changes["balance"])
            if abs(balance) > BALANCE_OVERWRITE_LIMIT:
                raise ValidationException(
                    f"Balance must be between -{BALANCE_OVERWRITE_LIMIT} and {BALANCE_OVERWRITE_LIMIT}",
                )
            changes["balance"] = balance

        user = await self.repository.get_user_by_id(target_id)
        if user is None:
            raise NotFoundException("User not found")

        user = await self.repository.update_user(user, changes)
        logger.info("User %s updated by %s: %s", target_id, actor.id, sorted(changes))
        await self.audit_service.record(
            actor,
            AdminActionEnum.UPDATE_USER,
            {
                "user_id": str(target_id),
                "changes": {
                    key: value.value if isinstance(value, RoleEnum) else value
                    for key, value in changes.items()
                },
            },
            context,
        )
        return user

    async def list_users(
        self,
        actor: User,
        *,
        role: RoleEnum | None,
        is_banned: bool | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[AdminUserRead], int]:
        self.policy.ensure(actor, Capability.EDIT_USERS)
        search = (search or "").strip() or None
        rows, total = await self.repository.list_users(
            role=role,
            is_banned=is_banned,
            search=search,
            limit=limit,
            offset=offset,
        )
        items = [
            AdminUserRead.model_validate(user).model_copy(
                update={"submission_count": submissions, "payout_count": payouts},
            )
            for user, submissions, payouts in rows
        ]
        return items, total

    async def get_dashboard_stats(self, actor: User) -> DashboardStatsRead:
        """Return aggregated moderation snapshot."""
        self.policy.ensure(actor, Capability.VIEW_DASHBOARD)

        by_status = await self.repository.count_submissions_by_status()
        start_of_day = datetime.combine(utc_now().date(), time.min, tzinfo=timezone.utc)
        recent = await self.repository.list_recent_submissions(RECENT_SUBMISSIONS_LIMIT)
        return DashboardStatsRead(
            total_users=await self.repository.count_users(),
            total_submissions=sum(by_status.values()),
            pending_submissions=by_status.get(SubmissionStatusEnum.PENDING, 0),
            approved_submissions=by_status.get(SubmissionStatusEnum.APPROVED, 0),
            rejected_submissions=by_status.get(SubmissionStatusEnum.REJECTED, 0),
            today_submissions=await self.repository.count_submissions_since(start_of_day),
            total_payouts=to_money(await self.repository.sum_completed_payouts()),
            submissions_by_category=[
                CategoryCount(category=category, count=count)
                for category, count in await self.repository.count_submissions_by_category()
            ],
            recent_submissions=[SubmissionRead.model_validate(item) for item in recent],
        )

    async def get_setting(self, actor: User, key: str) -> SystemSetting:
        self.policy.ensure(actor, Capability.MANAGE_SETTINGS)
        setting = await self.repository.get_setting(key)
        if setting is None:
            raise NotFoundException("Setting not found")
        return setting

    async def set_setting(
        self,
        actor: User,
        key: str,
        value: str,
        context: RequestContext | None = None,
    ) -> SystemSetting:
        self.policy.ensure(actor, Capability.MANAGE_SETTINGS)
        if not SETTING_KEY_PATTERN.match(key):
            raise ValidationException("Setting key must be 1-100 characters of letters, digits, '_', '.' or '-'")

        setting = await self.repository.upsert_setting(key, value)
        logger.info("Setting %s updated by %s", key, actor.id)
        await self.audit_service.record(
            actor,
            AdminActionEnum.UPDATE_SETTING,
            {"key": key, "value": value},
            context,
        )
        return setting


async def get_admin_service(session: AsyncSession = Depends(get_db_session)) -> AdminService:
    """Dependency provider for admin service."""
    return AdminService(AdminRepository(session), AuditService(AuditRepository(session)))
