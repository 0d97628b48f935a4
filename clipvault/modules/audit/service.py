"""Audit business logic layer."""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.database import get_db_session
from clipvault.core.enums import AdminActionEnum
from clipvault.core.metrics import AUDIT_LOG_FAILURES_TOTAL
from clipvault.modules.access.policy import AccessPolicy, Capability, access_policy
from clipvault.modules.audit.models import AdminLog
from clipvault.modules.audit.repository import AuditRepository
from clipvault.modules.audit.schemas import AdminLogFilters
from clipvault.modules.identity.models import User
from clipvault.shared.request_context import RequestContext

logger = logging.getLogger(__name__)


def serialize_details(details: dict[str, Any]) -> str:
    return json.dumps(details, default=str, sort_keys=True)


class AuditService:
    """Append-only admin audit log.

    Writes never fail the caller: an entry that cannot be stored is logged,
    counted and dropped, and the business change it describes stays committed.
    """

    def __init__(self, repository: AuditRepository, policy: AccessPolicy = access_policy) -> None:
        self.repository = repository
        self.policy = policy

    async def record(
        self,
        admin: User,
        action: AdminActionEnum,
        details: dict[str, Any],
        context: RequestContext | None = None,
    ) -> AdminLog | None:
        context = context or RequestContext()
        try:
            async with self.repository.atomic():
                return await self.repository.create_log(
                    admin_id=admin.id,
                    action=action.value,
                    details=serialize_details(details),
                    ip_address=context.ip_address,
                    user_agent=context.user_agent,
                )
        except Exception:
            AUDIT_LOG_FAILURES_TOTAL.inc()
            logger.exception("Failed to write audit entry %s for admin %s", action.value, admin.id)
            return None

    async def list_logs(
        self,
        actor: User,
        filters: AdminLogFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[AdminLog], int]:
        """List audit entries newest first (admin only)."""
        self.policy.ensure(actor, Capability.VIEW_AUDIT_LOG)
        return await self.repository.list_logs(
            admin_id=filters.admin_id,
            action=filters.action.value if filters.action else None,
            limit=limit,
            offset=offset,
        )


async def get_audit_service(session: AsyncSession = Depends(get_db_session)) -> AuditService:
    """Dependency provider for audit service."""
    return AuditService(AuditRepository(session))
