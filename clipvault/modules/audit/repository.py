"""Audit repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.modules.audit.models import AdminLog


class AuditRepository:
    """DB operations for the admin audit log."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def atomic(self):
        """Savepoint isolating one audit write from the surrounding transaction."""
        return self.session.begin_nested()

    async def create_log(
        self,
        admin_id: UUID,
        action: str,
        details: str,
        ip_address: str | None,
        user_agent: str | None,
    ) -> AdminLog:
        log = AdminLog(
            admin_id=admin_id,
            action=action,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(log)
        await self.session.flush()
        return log

    async def list_logs(
        self,
        *,
        admin_id: UUID | None,
        action: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[AdminLog], int]:
        base_stmt: Select[tuple[AdminLog]] = select(AdminLog)
        if admin_id is not None:
            base_stmt = base_stmt.where(AdminLog.admin_id == admin_id)
        if action is not None:
            base_stmt = base_stmt.where(AdminLog.action == action)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(AdminLog.created_at.desc(), AdminLog.id.desc()).limit(limit).offset(offset)
        items = list((await self.session.scalars(stmt)).all())
        return items, total
