"""Submissions API router."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from clipvault.core.enums import SubmissionStatusEnum
from clipvault.core.storage import IncomingFile
from clipvault.modules.identity.service import get_current_user
from clipvault.modules.submissions.rate_limit import enforce_submission_rate_limit
from clipvault.modules.submissions.schemas import (
    CategoriesRead,
    LimitsRead,
    SubmissionFilters,
    SubmissionRead,
)
from clipvault.modules.submissions.service import SubmissionService, get_submission_service
from clipvault.shared.pagination import Page, build_page, pagination_params

router = APIRouter(prefix="/submissions", tags=["submissions"])

get_user_pagination = pagination_params(default_limit=20, max_limit=50)


def get_submission_filters(
    status_filter: SubmissionStatusEnum | None = Query(default=None, alias="status"),
    category: str | None = Query(default=None, max_length=50),
    created_from: datetime | None = Query(default=None),
    created_to: datetime | None = Query(default=None),
) -> SubmissionFilters:
    """Query-string filters for submission listings."""
    return SubmissionFilters(
        status=status_filter,
        category=category,
        created_from=created_from,
        created_to=created_to,
    )


@router.post(
    "",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_submission_rate_limit)],
)
async def create_submission(
    file: UploadFile = File(...),
    category: str = Form(...),
    description: str | None = Form(default=None),
    service: SubmissionService = Depends(get_submission_service),
    current_user=Depends(get_current_user),
) -> SubmissionRead:
    """Upload a clip or screenshot for moderation."""
    incoming = IncomingFile(
        filename=file.filename or "",
        content_type=file.content_type or "",
        stream=file.file,
        declared_size=file.size,
    )
    submission = await service.create_submission(current_user, incoming, category, description)
    return SubmissionRead.model_validate(submission)


@router.get("", response_model=Page[SubmissionRead])
async def list_my_submissions(
    filters: SubmissionFilters = Depends(get_submission_filters),
    pagination=Depends(get_user_pagination),
    service: SubmissionService = Depends(get_submission_service),
    current_user=Depends(get_current_user),
) -> Page[SubmissionRead]:
    """List current user's submissions, newest first."""
    items, total = await service.list_user_submissions(
        current_user,
        filters,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [SubmissionRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/meta/categories", response_model=CategoriesRead)
async def get_categories(
    service: SubmissionService = Depends(get_submission_service),
    _current_user=Depends(get_current_user),
) -> CategoriesRead:
    return CategoriesRead(categories=await service.get_categories())


@router.get("/meta/limits", response_model=LimitsRead)
async def get_limits(_current_user=Depends(get_current_user)) -> LimitsRead:
    return SubmissionService.get_limits()


@router.get("/{submission_id}", response_model=SubmissionRead)
async def get_submission(
    submission_id: UUID,
    service: SubmissionService = Depends(get_submission_service),
    current_user=Depends(get_current_user),
) -> SubmissionRead:
    submission = await service.get_user_submission(current_user, submission_id)
    return SubmissionRead.model_validate(submission)


@router.delete("/{submission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_submission(
    submission_id: UUID,
    service: SubmissionService = Depends(get_submission_service),
    current_user=Depends(get_current_user),
) -> Response:
    """Withdraw a pending submission."""
    await service.delete_submission(current_user, submission_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
