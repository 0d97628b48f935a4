"""Identity repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.enums import RoleEnum
from clipvault.modules.identity.models import User


class IdentityRepository:
    """DB operations for identity domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_user_by_external_id(self, external_id: str) -> User | None:
        stmt = select(User).where(User.external_id == external_id)
        return await self.session.scalar(stmt)

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        stmt = select(User).where(User.id == user_id)
        return await self.session.scalar(stmt)

    async def create_user(self, external_id: str, nickname: str, role: RoleEnum) -> User | None:
        """Insert user; return None when another request created the same external id first."""
        user = User(external_id=external_id, nickname=nickname, role=role)
        try:
            async with self.session.begin_nested():
                self.session.add(user)
        except IntegrityError:
            return None
        return user

    async def update_nickname(self, user: User, nickname: str) -> User:
        user.nickname = nickname
        await self.session.flush()
        return user
