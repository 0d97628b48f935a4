from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from clipvault.core.enums import RoleEnum, SubmissionStatusEnum
from clipvault.modules.submissions.schemas import SubmissionFilters, SubmissionRead
from clipvault.shared.exceptions import (
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)


@pytest.mark.asyncio
async def test_owner_deletes_pending_submission_and_blob(
    submission_service,
    blob_store,
    store,
    make_user,
    incoming_file,
) -> None:
    owner = make_user()
    submission = await submission_service.create_submission(owner, incoming_file(), "Epic Kill", None)

    await submission_service.delete_submission(owner, submission.id)

    assert store.submissions == {}
    assert blob_store.blobs == {}


@pytest.mark.asyncio
async def test_delete_hides_foreign_and_missing_submissions(submission_service, store, make_user, make_submission) -> None:
    submission = make_submission(make_user())

    with pytest.raises(NotFoundException):
        await submission_service.delete_submission(make_user(), submission.id)
    with pytest.raises(NotFoundException):
        await submission_service.delete_submission(make_user(), uuid4())
    assert submission.id in store.submissions


@pytest.mark.asyncio
async def test_reviewed_submission_cannot_be_deleted(submission_service, store, make_user, make_submission) -> None:
    owner = make_user()
    submission = make_submission(owner, status=SubmissionStatusEnum.APPROVED)

    with pytest.raises(InvalidStateException):
        await submission_service.delete_submission(owner, submission.id)
    assert submission.id in store.submissions


@pytest.mark.asyncio
async def test_delete_survives_blob_cleanup_failure(submission_service, blob_store, store, make_user, make_submission) -> None:
    owner = make_user()
    submission = make_submission(owner)
    blob_store.fail_delete = True

    await submission_service.delete_submission(owner, submission.id)

    assert store.submissions == {}


@pytest.mark.asyncio
async def test_blob_kept_when_delete_commit_fails(
    submission_service,
    blob_store,
    store,
    make_user,
    incoming_file,
) -> None:
    owner = make_user()
    submission = await submission_service.create_submission(owner, incoming_file(), "Epic Kill", None)
    store.failing.add("commit")

    with pytest.raises(RuntimeError):
        await submission_service.delete_submission(owner, submission.id)

    assert submission.blob_id in blob_store.blobs


@pytest.mark.asyncio
async def test_user_listing_only_returns_own_rows_newest_first(
    submission_service,
    make_user,
    make_submission,
) -> None:
    owner = make_user()
    older = make_submission(owner)
    newer = make_submission(owner, status=SubmissionStatusEnum.REJECTED)
    make_submission(make_user())

    items, total = await submission_service.list_user_submissions(
        owner,
        SubmissionFilters(user_id=uuid4()),
        limit=20,
        offset=0,
    )
    rejected, rejected_total = await submission_service.list_user_submissions(
        owner,
        SubmissionFilters(status=SubmissionStatusEnum.REJECTED),
        limit=20,
        offset=0,
    )

    assert [item.id for item in items] == [newer.id, older.id]
    assert total == 2
    assert [item.id for item in rejected] == [newer.id]
    assert rejected_total == 1
    assert SubmissionRead.model_validate(items[0]).status == SubmissionStatusEnum.REJECTED


@pytest.mark.asyncio
async def test_moderation_queue_requires_dashboard_access(
    submission_service,
    make_user,
    make_submission,
) -> None:
    first = make_submission(make_user(), category="Trick Shot")
    make_submission(make_user(), category="Team Play")

    items, total = await submission_service.list_submissions(
        make_user(RoleEnum.MODERATOR),
        SubmissionFilters(category="Trick Shot"),
        limit=10,
        offset=0,
    )
    assert [item.id for item in items] == [first.id]
    assert total == 1

    with pytest.raises(ForbiddenException):
        await submission_service.list_submissions(make_user(), SubmissionFilters(), limit=10, offset=0)


@pytest.mark.asyncio
async def test_date_range_filters(submission_service, make_user, make_submission) -> None:
    moderator = make_user(RoleEnum.ADMIN)
    early = make_submission(make_user())
    late = make_submission(make_user())

    items, _ = await submission_service.list_submissions(
        moderator,
        SubmissionFilters(created_from=late.created_at),
        limit=10,
        offset=0,
    )
    assert [item.id for item in items] == [late.id]

    items, _ = await submission_service.list_submissions(
        moderator,
        SubmissionFilters(created_to=early.created_at),
        limit=10,
        offset=0,
    )
    assert [item.id for item in items] == [early.id]

    with pytest.raises(ValidationException):
        await submission_service.list_submissions(
            moderator,
            SubmissionFilters(created_from=late.created_at, created_to=late.created_at - timedelta(days=1)),
            limit=10,
            offset=0,
        )


@pytest.mark.asyncio
async def test_naive_date_bounds_are_read_as_utc(submission_service, make_user, make_submission) -> None:
    owner = make_user()
    early = make_submission(owner)
    late = make_submission(owner)

    items, total = await submission_service.list_user_submissions(
        owner,
        SubmissionFilters(
            created_from=late.created_at.replace(tzinfo=None),
            created_to=late.created_at,
        ),
        limit=10,
        offset=0,
    )

    assert total == 1
    assert [item.id for item in items] == [late.id]
    assert early.id not in {item.id for item in items}


@pytest.mark.asyncio
async def test_get_user_submission_is_owner_only(submission_service, make_user, make_submission) -> None:
    owner = make_user()
    submission = make_submission(owner)

    assert (await submission_service.get_user_submission(owner, submission.id)) is submission
    with pytest.raises(NotFoundException):
        await submission_service.get_user_submission(make_user(RoleEnum.ADMIN), submission.id)
