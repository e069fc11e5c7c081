"""Unit tests for seat change and usage use cases

Tests cover:
- Usage record creation for additions and removals
- Proration sign symmetry
- Companies without a billable subscription
- Period proration totals
- Usage summary
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.usage import (
    CalculatePeriodProration,
    GetUsageSummary,
    RecordUserAddition,
    RecordUserRemoval,
    SeatChangeCommandDTO,
)
from src.domain.billing_clock import utc_now
from src.domain.billing_history import BillingEventType
from src.domain.usage_record import UsageEventType, UsageRecord
from src.domain.user import User


@pytest.fixture
def open_subscription(sample_subscription):
    """Subscription whose period ends 15.5 days from now"""
    sample_subscription.current_period_start = utc_now() - timedelta(days=15)
    sample_subscription.current_period_end = utc_now() + timedelta(days=15, hours=12)
    return sample_subscription


@pytest.fixture
def mock_subscription_repo(open_subscription):
    repo = MagicMock()
    repo.get_billable_by_company_id = AsyncMock(return_value=open_subscription)
    repo.update = AsyncMock(side_effect=lambda s: s)
    return repo


@pytest.fixture
def mock_usage_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=lambda r: r)
    return repo


@pytest.fixture
def sample_user():
    return User(id="user-42", company_id="acme01", name="Ada")


@pytest.fixture
def mock_user_repo(sample_user):
    repo = MagicMock()
    repo.count_active = AsyncMock(return_value=11)
    repo.get_by_id = AsyncMock(return_value=sample_user)
    repo.update = AsyncMock(side_effect=lambda u: u)
    return repo


@pytest.fixture
def command():
    return SeatChangeCommandDTO(
        company_id="acme01",
        user_id="user-42",
        user_name="Ada",
        performed_by="admin-1",
    )


def build(cls, mock_uow, mock_subscription_repo, mock_usage_repo, mock_user_repo, mock_history):
    return cls(
        uow=mock_uow,
        subscription_repo=mock_subscription_repo,
        usage_repo=mock_usage_repo,
        user_repo=mock_user_repo,
        history=mock_history,
    )


@pytest.mark.asyncio
class TestRecordUserAddition:

    async def test_records_addition_with_positive_proration(
        self, command, mock_uow, mock_subscription_repo, mock_usage_repo, mock_user_repo,
        mock_history, open_subscription, sample_user,
    ):
        """
        Given: A company with a billable subscription and now 11 active users
        When: A user addition is recorded
        Then: Usage record goes 10 -> 11 with a positive proration
        """
        # Arrange
        use_case = build(
            RecordUserAddition, mock_uow, mock_subscription_repo, mock_usage_repo, mock_user_repo, mock_history
        )

        # Act
        result = await use_case.execute(command)

        # Assert
        assert result.is_ok()
        record = result.value
        assert record.event_type == "user_added"
        assert record.user_count_before == 10
        assert record.user_count_after == 11
        assert record.proration_amount > 0
        assert open_subscription.current_user_count == 11
        assert sample_user.billing_active is True
        assert sample_user.billing_added_at is not None
        mock_uow.commit.assert_called_once()
        assert mock_history.log.call_args.kwargs["event_type"] == BillingEventType.USER_ADDED

    async def test_no_billable_subscription_is_skipped(
        self, command, mock_uow, mock_subscription_repo, mock_usage_repo, mock_user_repo, mock_history
    ):
        # Arrange
        mock_subscription_repo.get_billable_by_company_id = AsyncMock(return_value=None)
        use_case = build(
            RecordUserAddition, mock_uow, mock_subscription_repo, mock_usage_repo, mock_user_repo, mock_history
        )

        # Act
        result = await use_case.execute(command)

        # Assert
        assert result.is_ok()
        assert result.value is None
        mock_usage_repo.create.assert_not_called()
        mock_history.log.assert_not_called()


@pytest.mark.asyncio
class TestRecordUserRemoval:

    async def test_removal_negates_addition(
        self, command, mock_uow, mock_subscription_repo, mock_usage_repo, mock_user_repo, mock_history, sample_user
    ):
        """
        Given: The same subscription and period
        When: A user is added and then removed
        Then: The removal's proration is the exact negation of the addition's
        """
        # Arrange
        addition = build(
            RecordUserAddition, mock_uow, mock_subscription_repo, mock_usage_repo, mock_user_repo, mock_history
        )
        removal = build(
            RecordUserRemoval, mock_uow, mock_subscription_repo, mock_usage_repo, mock_user_repo, mock_history
        )

        # Act
        added = await addition.execute(command)
        mock_user_repo.count_active = AsyncMock(return_value=10)
        removed = await removal.execute(command)

        # Assert
        assert removed.is_ok()
        assert removed.value.event_type == "user_removed"
        assert removed.value.user_count_before == 11
        assert removed.value.user_count_after == 10
        assert removed.value.proration_amount == -added.value.proration_amount
        assert sample_user.billing_active is False

    async def test_store_failure_rolls_back(
        self, command, mock_uow, mock_subscription_repo, mock_usage_repo, mock_user_repo, mock_history
    ):
        # Arrange
        mock_usage_repo.create = AsyncMock(side_effect=RuntimeError("disk full"))
        use_case = build(
            RecordUserRemoval, mock_uow, mock_subscription_repo, mock_usage_repo, mock_user_repo, mock_history
        )

        # Act
        result = await use_case.execute(command)

        # Assert
        assert result.is_err()
        assert result.error.code == "internal"
        mock_uow.rollback.assert_called_once()
        mock_history.log.assert_not_called()


@pytest.mark.asyncio
class TestCalculatePeriodProration:

    async def test_returns_quantized_total(self):
        # Arrange
        usage_repo = MagicMock()
        usage_repo.sum_proration = AsyncMock(return_value=Decimal("0.516666"))
        use_case = CalculatePeriodProration(usage_repo)

        # Act
        result = await use_case.execute("acme01", datetime(2024, 9, 1, tzinfo=timezone.utc), datetime(2024, 10, 1, tzinfo=timezone.utc))

        # Assert
        assert result.is_ok()
        assert result.value == Decimal("0.52")
        usage_repo.sum_proration.assert_called_once_with(
            "acme01", datetime(2024, 9, 1, tzinfo=timezone.utc), datetime(2024, 10, 1, tzinfo=timezone.utc)
        )


@pytest.mark.asyncio
class TestGetUsageSummary:

    def _record(self, event_type, amount):
        return UsageRecord(
            company_id="acme01",
            subscription_id="sub-local-1",
            event_type=event_type,
            user_id="user-1",
            user_count_before=10,
            user_count_after=11,
            proration_amount=Decimal(amount),
            billing_period_start=datetime(2024, 9, 1, tzinfo=timezone.utc),
            billing_period_end=datetime(2024, 10, 1, tzinfo=timezone.utc),
            timestamp=datetime(2024, 9, 10, tzinfo=timezone.utc),
        )

    async def test_counts_and_nets_proration(self, sample_subscription):
        # Arrange
        subscription_repo = MagicMock()
        subscription_repo.get_billable_by_company_id = AsyncMock(return_value=sample_subscription)
        usage_repo = MagicMock()
        usage_repo.get_by_company_id = AsyncMock(
            return_value=[
                self._record(UsageEventType.USER_ADDED, "0.70"),
                self._record(UsageEventType.USER_ADDED, "0.50"),
                self._record(UsageEventType.USER_REMOVED, "-0.50"),
            ]
        )
        use_case = GetUsageSummary(subscription_repo, usage_repo)

        # Act
        result = await use_case.execute("acme01")

        # Assert
        assert result.is_ok()
        summary = result.value
        assert summary.users_added == 2
        assert summary.users_removed == 1
        assert summary.total_proration == Decimal("0.70")
        assert summary.period_start == datetime(2024, 9, 1, tzinfo=timezone.utc)
        assert len(summary.records) == 3

    async def test_no_subscription_ever(self):
        # Arrange
        subscription_repo = MagicMock()
        subscription_repo.get_billable_by_company_id = AsyncMock(return_value=None)
        subscription_repo.get_latest_by_company_id = AsyncMock(return_value=None)
        use_case = GetUsageSummary(subscription_repo, MagicMock())

        # Act
        result = await use_case.execute("acme01")

        # Assert
        assert result.is_err()
        assert result.error.code == "subscription-not-found"
