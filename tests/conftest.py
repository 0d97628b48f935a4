from __future__ import annotations

import asyncio
import io
from collections.abc import Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from clipvault.core.enums import (
    FileTypeEnum,
    PayoutStatusEnum,
    RoleEnum,
    SubmissionStatusEnum,
)
from clipvault.core.storage import BlobTooLargeException, IncomingFile
from clipvault.modules.admin.service import AdminService
from clipvault.modules.audit.service import AuditService
from clipvault.modules.identity.service import IdentityService
from clipvault.modules.ledger.service import LedgerService
from clipvault.modules.submissions.schemas import SubmissionFilters
from clipvault.modules.submissions.service import SubmissionService
from clipvault.shared.exceptions import StorageException

BASE_TIME = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


@dataclass
class FakeUser:
    id: UUID
    external_id: str
    nickname: str
    role: RoleEnum = RoleEnum.USER
    balance: Decimal = Decimal("0.00")
    is_banned: bool = False
    last_submission_at: datetime | None = None
    created_at: datetime = BASE_TIME
    updated_at: datetime = BASE_TIME


@dataclass
class FakeSubmission:
    id: UUID
    user_id: UUID
    blob_id: str
    file_url: str
    file_name: str
    file_type: FileTypeEnum
    file_size: int
    category: str
    description: str | None
    status: SubmissionStatusEnum = SubmissionStatusEnum.PENDING
    reject_reason: str | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    created_at: datetime = BASE_TIME
    updated_at: datetime = BASE_TIME


@dataclass
class FakePayout:
    id: UUID
    user_id: UUID
    amount: Decimal
    reason: str
    admin_id: UUID
    status: PayoutStatusEnum
    completed_at: datetime | None
    created_at: datetime = BASE_TIME


@dataclass
class FakeAdminLog:
    id: UUID
    admin_id: UUID
    action: str
    details: str
    ip_address: str | None
    user_agent: str | None
    created_at: datetime = BASE_TIME


@dataclass
class FakeSetting:
    key: str
    value: str
    updated_at: datetime = BASE_TIME


class SimulatedFailure(RuntimeError):
    """Raised by fakes when a test asks an operation to fail."""


@dataclass
class FakeStore:
    """In-memory tables with savepoint semantics.

    ``atomic()`` snapshots every row and restores it if the block raises, so a
    failure half way through a multi-step write leaves no trace.
    """

    users: dict[UUID, FakeUser] = field(default_factory=dict)
    submissions: dict[UUID, FakeSubmission] = field(default_factory=dict)
    payouts: list[FakePayout] = field(default_factory=list)
    logs: list[FakeAdminLog] = field(default_factory=list)
    settings: dict[str, FakeSetting] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    _ticks: int = 0

    def now(self) -> datetime:
        self._ticks += 1
        return BASE_TIME + timedelta(seconds=self._ticks)

    def maybe_fail(self, operation: str) -> None:
        if operation in self.failing:
            raise SimulatedFailure(f"{operation} failed")

    def _snapshot(self) -> dict:
        return {
            "users": {key: (row, dict(vars(row))) for key, row in self.users.items()},
            "submissions": {key: (row, dict(vars(row))) for key, row in self.submissions.items()},
            "payouts": list(self.payouts),
            "logs": list(self.logs),
            "settings": {key: (row, dict(vars(row))) for key, row in self.settings.items()},
        }

    def _restore(self, snapshot: dict) -> None:
        for name in ("users", "submissions", "settings"):
            table = {}
            for key, (row, values) in snapshot[name].items():
                vars(row).update(values)
                table[key] = row
            setattr(self, name, table)
        self.payouts = snapshot["payouts"]
        self.logs = snapshot["logs"]

    @asynccontextmanager
    async def atomic(self):
        snapshot = self._snapshot()
        try:
            yield
        except BaseException:
            self._restore(snapshot)
            raise


class FakeIdentityRepository:
    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self.race_winner: FakeUser | None = None

    async def get_user_by_external_id(self, external_id: str) -> FakeUser | None:
        return next((user for user in self.store.users.values() if user.external_id == external_id), None)

    async def get_user_by_id(self, user_id: UUID) -> FakeUser | None:
        return self.store.users.get(user_id)

    async def create_user(self, external_id: str, nickname: str, role: RoleEnum) -> FakeUser | None:
        if self.race_winner is not None:
            self.store.users[self.race_winner.id] = self.race_winner
            return None
        if await self.get_user_by_external_id(external_id) is not None:
            return None
        user = FakeUser(id=uuid4(), external_id=external_id, nickname=nickname, role=role)
        self.store.users[user.id] = user
        return user

    async def update_nickname(self, user: FakeUser, nickname: str) -> FakeUser:
        user.nickname = nickname
        return user


class FakeSubmissionRepository:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    def atomic(self):
        return self.store.atomic()

    async def create_submission(self, **fields) -> FakeSubmission:
        self.store.maybe_fail("create_submission")
        now = self.store.now()
        submission = FakeSubmission(id=uuid4(), created_at=now, updated_at=now, **fields)
        self.store.submissions[submission.id] = submission
        return submission

    async def touch_last_submission(self, user: FakeUser, submitted_at: datetime) -> None:
        self.store.maybe_fail("touch_last_submission")
        user.last_submission_at = submitted_at

    async def get_submission_by_id(self, submission_id: UUID) -> FakeSubmission | None:
        # Yield so concurrent reviews both observe the pending row.
        await asyncio.sleep(0)
        return self.store.submissions.get(submission_id)

    async def list_submissions(
        self,
        filters: SubmissionFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[FakeSubmission], int]:
        rows = [
            item
            for item in self.store.submissions.values()
            if (filters.user_id is None or item.user_id == filters.user_id)
            and (filters.status is None or item.status == filters.status)
            and (not filters.category or item.category == filters.category)
            and (filters.created_from is None or item.created_at >= filters.created_from)
            and (filters.created_to is None or item.created_at <= filters.created_to)
        ]
        rows.sort(key=lambda item: item.created_at, reverse=True)
        return rows[offset : offset + limit], len(rows)

    async def transition_pending(
        self,
        submission_id: UUID,
        *,
        status: SubmissionStatusEnum,
        reject_reason: str | None,
        reviewer_id: UUID,
        reviewed_at: datetime,
    ) -> FakeSubmission | None:
        submission = self.store.submissions.get(submission_id)
        if submission is None or submission.status != SubmissionStatusEnum.PENDING:
            return None
        submission.status = status
        submission.reject_reason = reject_reason
        submission.reviewed_by = reviewer_id
        submission.reviewed_at = reviewed_at
        return submission

    async def bulk_transition(
        self,
        submission_ids,
        *,
        status: SubmissionStatusEnum,
        reject_reason: str | None,
        reviewer_id: UUID,
        reviewed_at: datetime,
    ) -> int:
        updated = 0
        for submission_id in submission_ids:
            if await self.transition_pending(
                submission_id,
                status=status,
                reject_reason=reject_reason,
                reviewer_id=reviewer_id,
                reviewed_at=reviewed_at,
            ):
                updated += 1
        return updated

    async def delete_pending(self, submission_id: UUID, user_id: UUID) -> bool:
        submission = self.store.submissions.get(submission_id)
        if (
            submission is None
            or submission.user_id != user_id
            or submission.status != SubmissionStatusEnum.PENDING
        ):
            return False
        del self.store.submissions[submission_id]
        return True

    async def commit(self) -> None:
        self.store.maybe_fail("commit")

    async def most_used_categories(self, limit: int) -> list[str]:
        counts: dict[str, int] = {}
        for item in self.store.submissions.values():
            counts[item.category] = counts.get(item.category, 0) + 1
        ranked = sorted(counts.items(), key=lambda pair: (-pair[1], pair[0]))
        return [category for category, _ in ranked[:limit]]


class FakeLedgerRepository:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    def atomic(self):
        return self.store.atomic()

    async def increment_balance(self, user_id: UUID, amount: Decimal) -> Decimal | None:
        user = self.store.users.get(user_id)
        if user is None:
            return None
        user.balance += amount
        return user.balance

    async def create_payout(
        self,
        user_id: UUID,
        amount: Decimal,
        reason: str,
        admin_id: UUID,
        completed_at: datetime | None,
    ) -> FakePayout:
        self.store.maybe_fail("create_payout")
        payout = FakePayout(
            id=uuid4(),
            user_id=user_id,
            amount=amount,
            reason=reason,
            admin_id=admin_id,
            status=PayoutStatusEnum.COMPLETED,
            completed_at=completed_at,
            created_at=self.store.now(),
        )
        self.store.payouts.append(payout)
        return payout

    async def list_payouts_for_user(
        self,
        user_id: UUID,
        limit: int,
        offset: int,
    ) -> tuple[list[FakePayout], int]:
        rows = sorted(
            (item for item in self.store.payouts if item.user_id == user_id),
            key=lambda item: item.created_at,
            reverse=True,
        )
        return rows[offset : offset + limit], len(rows)


class FakeAuditRepository:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    def atomic(self):
        return self.store.atomic()

    async def create_log(
        self,
        admin_id: UUID,
        action: str,
        details: str,
        ip_address: str | None,
        user_agent: str | None,
    ) -> FakeAdminLog:
        self.store.maybe_fail("create_log")
        log = FakeAdminLog(
            id=uuid4(),
            admin_id=admin_id,
            action=action,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=self.store.now(),
        )
        self.store.logs.append(log)
        return log

    async def list_logs(
        self,
        *,
        admin_id: UUID | None,
        action: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[FakeAdminLog], int]:
        rows = [
            log
            for log in self.store.logs
            if (admin_id is None or log.admin_id == admin_id) and (action is None or log.action == action)
        ]
        rows.sort(key=lambda log: log.created_at, reverse=True)
        return rows[offset : offset + limit], len(rows)


class FakeAdminRepository:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def get_user_by_id(self, user_id: UUID) -> FakeUser | None:
        return self.store.users.get(user_id)

    async def update_user(self, user: FakeUser, changes: dict) -> FakeUser:
        for key, value in changes.items():
            setattr(user, key, value)
        return user

    async def list_users(self, *, role, is_banned, search, limit, offset):
        rows = [
            user
            for user in self.store.users.values()
            if (role is None or user.role == role)
            and (is_banned is None or user.is_banned == is_banned)
            and (search is None or search.lower() in user.nickname.lower() or user.external_id == search)
        ]
        result = [
            (
                user,
                sum(1 for item in self.store.submissions.values() if item.user_id == user.id),
                sum(1 for item in self.store.payouts if item.user_id == user.id),
            )
            for user in rows[offset : offset + limit]
        ]
        return result, len(rows)

    async def count_users(self) -> int:
        return len(self.store.users)

    async def count_submissions_by_status(self) -> dict[SubmissionStatusEnum, int]:
        counts: dict[SubmissionStatusEnum, int] = {}
        for item in self.store.submissions.values():
            counts[item.status] = counts.get(item.status, 0) + 1
        return counts

    async def count_submissions_since(self, since: datetime) -> int:
        return sum(1 for item in self.store.submissions.values() if item.created_at >= since)

    async def sum_completed_payouts(self) -> Decimal:
        return sum((item.amount for item in self.store.payouts), Decimal("0"))

    async def count_submissions_by_category(self) -> list[tuple[str, int]]:
        counts: dict[str, int] = {}
        for item in self.store.submissions.values():
            counts[item.category] = counts.get(item.category, 0) + 1
        return sorted(counts.items(), key=lambda pair: (-pair[1], pair[0]))

    async def list_recent_submissions(self, limit: int) -> list[FakeSubmission]:
        rows = sorted(self.store.submissions.values(), key=lambda item: item.created_at, reverse=True)
        return rows[:limit]

    async def get_setting(self, key: str) -> FakeSetting | None:
        return self.store.settings.get(key)

    async def upsert_setting(self, key: str, value: str) -> FakeSetting:
        setting = self.store.settings.get(key)
        if setting is None:
            setting = FakeSetting(key=key, value=value, updated_at=self.store.now())
            self.store.settings[key] = setting
        else:
            setting.value = value
            setting.updated_at = self.store.now()
        return setting


class FakeBlobStore:
    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.fail_delete = False

    def public_url(self, blob_id: str) -> str:
        return f"/uploads/{blob_id}"

    async def save(self, blob_id: str, stream, *, max_bytes: int) -> int:
        data = stream.read()
        if len(data) > max_bytes:
            raise BlobTooLargeException(f"File size exceeds the limit of {max_bytes} bytes")
        self.blobs[blob_id] = data
        return len(data)

    async def delete(self, blob_id: str) -> None:
        if self.fail_delete:
            raise StorageException(f"Failed to delete blob {blob_id}")
        self.blobs.pop(blob_id, None)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def make_user(store: FakeStore) -> Callable[..., FakeUser]:
    def _make_user(
        role: RoleEnum = RoleEnum.USER,
        *,
        balance: Decimal = Decimal("0.00"),
        is_banned: bool = False,
        nickname: str | None = None,
    ) -> FakeUser:
        user_id = uuid4()
        user = FakeUser(
            id=user_id,
            external_id=user_id.hex,
            nickname=nickname or f"player-{user_id.hex[:6]}",
            role=role,
            balance=balance,
            is_banned=is_banned,
        )
        store.users[user.id] = user
        return user

    return _make_user


@pytest.fixture
def make_submission(store: FakeStore) -> Callable[..., FakeSubmission]:
    def _make_submission(
        owner: FakeUser,
        *,
        status: SubmissionStatusEnum = SubmissionStatusEnum.PENDING,
        category: str = "Epic Kill",
    ) -> FakeSubmission:
        now = store.now()
        blob_id = f"{uuid4().hex}.mp4"
        submission = FakeSubmission(
            id=uuid4(),
            user_id=owner.id,
            blob_id=blob_id,
            file_url=f"/uploads/{blob_id}",
            file_name="clip.mp4",
            file_type=FileTypeEnum.VIDEO,
            file_size=1024,
            category=category,
            description=None,
            status=status,
            created_at=now,
            updated_at=now,
        )
        store.submissions[submission.id] = submission
        return submission

    return _make_submission


def make_incoming(
    data: bytes = b"\x00" * 64,
    *,
    filename: str = "clip.mp4",
    content_type: str = "video/mp4",
    declared_size: int | None = None,
) -> IncomingFile:
    return IncomingFile(
        filename=filename,
        content_type=content_type,
        stream=io.BytesIO(data),
        declared_size=len(data) if declared_size is None else declared_size,
    )


@pytest.fixture
def incoming_file() -> Callable[..., IncomingFile]:
    return make_incoming


@pytest.fixture
def identity_repository(store: FakeStore) -> FakeIdentityRepository:
    return FakeIdentityRepository(store)


@pytest.fixture
def identity_service(identity_repository: FakeIdentityRepository) -> IdentityService:
    return IdentityService(identity_repository, admin_external_ids=("epic-admin-001",))


@pytest.fixture
def audit_service(store: FakeStore) -> AuditService:
    return AuditService(FakeAuditRepository(store))


@pytest.fixture
def ledger_service(store: FakeStore, audit_service: AuditService) -> LedgerService:
    return LedgerService(FakeLedgerRepository(store), audit_service)


@pytest.fixture
def submission_service(
    store: FakeStore,
    ledger_service: LedgerService,
    audit_service: AuditService,
    blob_store: FakeBlobStore,
) -> SubmissionService:
    return SubmissionService(FakeSubmissionRepository(store), ledger_service, audit_service, blob_store)


@pytest.fixture
def admin_service(store: FakeStore, audit_service: AuditService) -> AdminService:
    return AdminService(FakeAdminRepository(store), audit_service)
