"""Role capability decisions shared by every privileged operation."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType
from typing import Protocol
from uuid import UUID

from fastapi import Depends

from clipvault.core.enums import RoleEnum
from clipvault.modules.identity.models import User
from clipvault.modules.identity.service import get_current_user
from clipvault.shared.exceptions import ForbiddenException


class Capability(StrEnum):
    """Privileged abilities granted by role."""

    REVIEW_SUBMISSIONS = "review_submissions"
    VIEW_DASHBOARD = "view_dashboard"
    EDIT_USERS = "edit_users"
    EDIT_ROLES = "edit_roles"
    VIEW_AUDIT_LOG = "view_audit_log"
    MANAGE_SETTINGS = "manage_settings"


_STAFF_CAPABILITIES = frozenset(
    {
        Capability.REVIEW_SUBMISSIONS,
        Capability.VIEW_DASHBOARD,
        Capability.EDIT_USERS,
    },
)

ROLE_CAPABILITIES: Mapping[RoleEnum, frozenset[Capability]] = MappingProxyType(
    {
        RoleEnum.USER: frozenset(),
        RoleEnum.MODERATOR: _STAFF_CAPABILITIES,
        RoleEnum.ADMIN: frozenset(Capability),
    },
)

_DENIAL_MESSAGES: Mapping[Capability, str] = MappingProxyType(
    {
        Capability.REVIEW_SUBMISSIONS: "Moderator access required to review submissions",
        Capability.VIEW_DASHBOARD: "Moderator access required",
        Capability.EDIT_USERS: "Moderator access required to edit users",
        Capability.EDIT_ROLES: "Only admins can change roles",
        Capability.VIEW_AUDIT_LOG: "Only admins can view the audit log",
        Capability.MANAGE_SETTINGS: "Only admins can manage settings",
    },
)


class Actor(Protocol):
    id: UUID
    role: RoleEnum


class AccessPolicy:
    """Answers who may act on which resource."""

    def __init__(
        self,
        role_capabilities: Mapping[RoleEnum, frozenset[Capability]] = ROLE_CAPABILITIES,
    ) -> None:
        self.role_capabilities = role_capabilities

    def can(self, actor: Actor, capability: Capability) -> bool:
        return capability in self.role_capabilities.get(actor.role, frozenset())

    def ensure(self, actor: Actor, capability: Capability) -> None:
        if not self.can(actor, capability):
            raise ForbiddenException(_DENIAL_MESSAGES[capability])

    def can_modify_user(self, actor: Actor, target_id: UUID) -> bool:
        """Staff may edit other accounts through the admin path, never their own."""
        if actor.id == target_id:
            return False
        return actor.role in (RoleEnum.ADMIN, RoleEnum.MODERATOR)

    def ensure_can_modify_user(self, actor: Actor, target_id: UUID) -> None:
        if not self.can_modify_user(actor, target_id):
            raise ForbiddenException("Cannot modify this user")


access_policy = AccessPolicy()


def get_access_policy() -> AccessPolicy:
    """Dependency provider for the access policy."""
    return access_policy


def require_capability(capability: Capability):
    """Dependency factory rejecting callers without ``capability``."""

    async def _checker(
        current_user: User = Depends(get_current_user),
        policy: AccessPolicy = Depends(get_access_policy),
    ) -> User:
        policy.ensure(current_user, capability)
        return current_user

    return _checker
