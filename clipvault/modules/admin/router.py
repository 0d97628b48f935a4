"""Admin API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from clipvault.core.enums import AdminActionEnum, RoleEnum
from clipvault.modules.access.policy import Capability, require_capability
from clipvault.modules.admin.rate_limit import enforce_admin_rate_limit
from clipvault.modules.admin.schemas import (
    AdminUserRead,
    DashboardStatsRead,
    SettingRead,
    SettingUpdate,
    UserAdminUpdate,
)
from clipvault.modules.admin.service import AdminService, get_admin_service
from clipvault.modules.audit.schemas import AdminLogFilters, AdminLogRead
from clipvault.modules.audit.service import AuditService, get_audit_service
from clipvault.modules.identity.schemas import UserRead
from clipvault.modules.ledger.schemas import BalanceCreditRead, BalanceCreditRequest, PayoutRead
from clipvault.modules.ledger.service import LedgerService, get_ledger_service
from clipvault.modules.submissions.router import get_submission_filters
from clipvault.modules.submissions.schemas import (
    BulkReviewRequest,
    BulkReviewResult,
    ReviewRequest,
    SubmissionFilters,
    SubmissionRead,
)
from clipvault.modules.submissions.service import SubmissionService, get_submission_service
from clipvault.shared.pagination import Page, build_page, pagination_params
from clipvault.shared.request_context import RequestContext, get_request_context

router = APIRouter(prefix="/admin", tags=["admin"])

get_staff_pagination = pagination_params(default_limit=20, max_limit=100)
get_log_pagination = pagination_params(default_limit=50, max_limit=200)


@router.get("/stats", response_model=DashboardStatsRead)
async def get_stats(
    service: AdminService = Depends(get_admin_service),
    current_user=Depends(require_capability(Capability.VIEW_DASHBOARD)),
) -> DashboardStatsRead:
    """Moderation dashboard counters."""
    return await service.get_dashboard_stats(current_user)


@router.get("/submissions", response_model=Page[SubmissionRead])
async def list_submissions(
    user_id: UUID | None = Query(default=None),
    filters: SubmissionFilters = Depends(get_submission_filters),
    pagination=Depends(get_staff_pagination),
    service: SubmissionService = Depends(get_submission_service),
    current_user=Depends(require_capability(Capability.VIEW_DASHBOARD)),
) -> Page[SubmissionRead]:
    """Moderation queue across all users."""
    filters = filters.model_copy(update={"user_id": user_id})
    items, total = await service.list_submissions(
        current_user,
        filters,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [SubmissionRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.post(
    "/submissions/bulk-review",
    response_model=BulkReviewResult,
    dependencies=[Depends(enforce_admin_rate_limit)],
)
async def bulk_review_submissions(
    payload: BulkReviewRequest,
    service: SubmissionService = Depends(get_submission_service),
    context: RequestContext = Depends(get_request_context),
    current_user=Depends(require_capability(Capability.REVIEW_SUBMISSIONS)),
) -> BulkReviewResult:
    updated = await service.bulk_review(current_user, payload, context)
    return BulkReviewResult(updated=updated)


@router.post(
    "/submissions/{submission_id}/review",
    response_model=SubmissionRead,
    dependencies=[Depends(enforce_admin_rate_limit)],
)
async def review_submission(
    submission_id: UUID,
    payload: ReviewRequest,
    service: SubmissionService = Depends(get_submission_service),
    context: RequestContext = Depends(get_request_context),
    current_user=Depends(require_capability(Capability.REVIEW_SUBMISSIONS)),
) -> SubmissionRead:
    """Approve or reject a pending submission."""
    submission = await service.review_submission(current_user, submission_id, payload, context)
    return SubmissionRead.model_validate(submission)


@router.get("/users", response_model=Page[AdminUserRead])
async def list_users(
    role: RoleEnum | None = Query(default=None),
    is_banned: bool | None = Query(default=None),
    search: str | None = Query(default=None, max_length=100),
    pagination=Depends(get_staff_pagination),
    service: AdminService = Depends(get_admin_service),
    current_user=Depends(require_capability(Capability.EDIT_USERS)),
) -> Page[AdminUserRead]:
    items, total = await service.list_users(
        current_user,
        role=role,
        is_banned=is_banned,
        search=search,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return build_page(items, total, pagination)


@router.patch(
    "/users/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(enforce_admin_rate_limit)],
)
async def update_user(
    user_id: UUID,
    payload: UserAdminUpdate,
    service: AdminService = Depends(get_admin_service),
    context: RequestContext = Depends(get_request_context),
    current_user=Depends(require_capability(Capability.EDIT_USERS)),
) -> UserRead:
    """Change role, ban flag or balance of another user."""
    user = await service.update_user(current_user, user_id, payload, context)
    return UserRead.model_validate(user)


@router.post(
    "/users/{user_id}/add-balance",
    response_model=BalanceCreditRead,
    dependencies=[Depends(enforce_admin_rate_limit)],
)
async def add_balance(
    user_id: UUID,
    payload: BalanceCreditRequest,
    service: LedgerService = Depends(get_ledger_service),
    context: RequestContext = Depends(get_request_context),
    current_user=Depends(require_capability(Capability.EDIT_USERS)),
) -> BalanceCreditRead:
    """Credit a user's balance and record the payout."""
    result = await service.credit_balance(current_user, user_id, payload, context)
    return BalanceCreditRead(balance=result.balance, payout=PayoutRead.model_validate(result.payout))


@router.get("/logs", response_model=Page[AdminLogRead])
async def list_logs(
    admin_id: UUID | None = Query(default=None),
    action: AdminActionEnum | None = Query(default=None),
    pagination=Depends(get_log_pagination),
    service: AuditService = Depends(get_audit_service),
    current_user=Depends(require_capability(Capability.VIEW_AUDIT_LOG)),
) -> Page[AdminLogRead]:
    """Audit trail of privileged actions, newest first."""
    items, total = await service.list_logs(
        current_user,
        AdminLogFilters(admin_id=admin_id, action=action),
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [AdminLogRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/settings/{key}", response_model=SettingRead)
async def get_setting(
    key: str = Path(min_length=1, max_length=100),
    service: AdminService = Depends(get_admin_service),
    current_user=Depends(require_capability(Capability.MANAGE_SETTINGS)),
) -> SettingRead:
    setting = await service.get_setting(current_user, key)
    return SettingRead.model_validate(setting)


@router.put(
    "/settings/{key}",
    response_model=SettingRead,
    dependencies=[Depends(enforce_admin_rate_limit)],
)
async def set_setting(
    payload: SettingUpdate,
    key: str = Path(min_length=1, max_length=100),
    service: AdminService = Depends(get_admin_service),
    context: RequestContext = Depends(get_request_context),
    current_user=Depends(require_capability(Capability.MANAGE_SETTINGS)),
) -> SettingRead:
    setting = await service.set_setting(current_user, key, payload.value, context)
    return SettingRead.model_validate(setting)
