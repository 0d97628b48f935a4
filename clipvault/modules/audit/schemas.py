"""Audit schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from clipvault.core.enums import AdminActionEnum


class AdminLogRead(BaseModel):
    """Audit entry response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    admin_id: UUID
    action: str
    details: str
    ip_address: str | None
    user_agent: str | None
    created_at: datetime


class AdminLogFilters(BaseModel):
    admin_id: UUID | None = None
    action: AdminActionEnum | None = None
