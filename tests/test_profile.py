from __future__ import annotations

from decimal import Decimal

import pytest

from clipvault.core.enums import PayoutStatusEnum, RoleEnum, SubmissionStatusEnum
from clipvault.modules.profile.service import ProfileService


class FakeProfileRepository:
    def __init__(self, store) -> None:
        self.store = store

    def _submissions(self, user_id):
        return [item for item in self.store.submissions.values() if item.user_id == user_id]

    def _payouts(self, user_id):
        return [item for item in self.store.payouts if item.user_id == user_id]

    async def count_submissions_by_status(self, user_id):
        counts: dict[SubmissionStatusEnum, int] = {}
        for item in self._submissions(user_id):
            counts[item.status] = counts.get(item.status, 0) + 1
        return counts

    async def payout_totals(self, user_id):
        completed = [item for item in self._payouts(user_id) if item.status == PayoutStatusEnum.COMPLETED]
        return len(completed), sum((item.amount for item in completed), Decimal("0"))

    async def recent_submissions(self, user_id, limit):
        return sorted(self._submissions(user_id), key=lambda item: item.created_at, reverse=True)[:limit]

    async def recent_payouts(self, user_id, limit):
        return sorted(self._payouts(user_id), key=lambda item: item.created_at, reverse=True)[:limit]


@pytest.fixture
def profile_service(store) -> ProfileService:
    return ProfileService(FakeProfileRepository(store))


@pytest.mark.asyncio
async def test_stats_summarize_only_own_records(
    profile_service,
    ledger_service,
    make_user,
    make_submission,
) -> None:
    admin = make_user(RoleEnum.ADMIN)
    player = make_user()
    make_submission(make_user())
    for status in (
        SubmissionStatusEnum.PENDING,
        SubmissionStatusEnum.APPROVED,
        SubmissionStatusEnum.APPROVED,
        SubmissionStatusEnum.REJECTED,
    ):
        make_submission(player, status=status)
    await ledger_service.credit(player.id, Decimal("3.5"), "bonus", admin)
    await ledger_service.credit(player.id, Decimal("1.25"), "bonus", admin)

    stats = await profile_service.get_stats(player)
    profile = await profile_service.get_profile(player)

    assert stats.total_submissions == 4
    assert stats.pending_submissions == 1
    assert stats.approved_submissions == 2
    assert stats.rejected_submissions == 1
    assert stats.payout_count == 2
    assert stats.total_earned == Decimal("4.75")
    assert len(stats.recent_submissions) == 4
    assert profile.balance == Decimal("4.75")
    assert profile.submission_count == 4
    assert profile.payout_count == 2


@pytest.mark.asyncio
async def test_dashboard_keeps_three_most_recent(profile_service, ledger_service, make_user, make_submission) -> None:
    admin = make_user(RoleEnum.ADMIN)
    player = make_user()
    created = [make_submission(player) for _ in range(5)]
    for index in range(4):
        await ledger_service.credit(player.id, Decimal(index + 1), f"payout {index}", admin)

    dashboard = await profile_service.get_dashboard(player)

    assert dashboard.user.id == player.id
    assert [item.id for item in dashboard.recent_submissions] == [item.id for item in reversed(created[-3:])]
    assert [item.amount for item in dashboard.recent_payouts] == [Decimal("4.00"), Decimal("3.00"), Decimal("2.00")]
