"""Unit tests for the scheduled billing workers

Tests cover:
- Monthly billing step order and the still-due re-check
- Grace period, cancellation and usage sync outcomes
- Retry sweep treatment of exhausted and terminal payments
- Trial notice window and delivery failures
"""

import pytest
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from libs.result import Error, Return
from src.domain.billing_clock import utc_now
from src.domain.company import AccountStatus, Company
from src.domain.pricing import PricingPolicy
from src.worker import (
    CancellationSweepWorker,
    GracePeriodSweepWorker,
    MonthlyBillingWorker,
    PaymentRetrySweepWorker,
    TrialExpirationSweepWorker,
    UsageSyncWorker,
)
from src.worker.base import FAILED, PROCESSED, SKIPPED


@pytest.fixture
def worker_kwargs():
    return {
        "session_factory": MagicMock(),
        "gateway": MagicMock(),
        "pricing": PricingPolicy(),
        "concurrency": 1,
    }


def use_case_returning(mock_cls, result):
    mock_cls.return_value.execute = AsyncMock(return_value=result)
    return mock_cls.return_value


@pytest.mark.asyncio
class TestMonthlyBillingWorker:

    @pytest.fixture
    def subscription_repo(self, sample_subscription):
        with patch("src.worker.monthly_billing.SqlAlchemySubscriptionRepository") as repo_cls:
            repo_cls.return_value.get_by_id = AsyncMock(return_value=sample_subscription)
            yield repo_cls.return_value

    @patch("src.worker.monthly_billing.AdvanceBillingPeriod")
    @patch("src.worker.monthly_billing.CreateInvoice")
    @patch("src.worker.monthly_billing.UpdateSubscriptionQuantity")
    async def test_syncs_invoices_then_advances(
        self, mock_sync, mock_invoice, mock_advance, subscription_repo, worker_kwargs, sample_subscription
    ):
        """
        Given: A due active subscription
        When: The worker processes it
        Then: Seats are synced, the current period is invoiced and the period is rolled
        """
        # Arrange
        use_case_returning(mock_sync, Return.ok(SimpleNamespace(changed=False)))
        invoice = use_case_returning(mock_invoice, Return.ok(None))
        advance = use_case_returning(mock_advance, Return.ok(None))
        worker = MonthlyBillingWorker(**worker_kwargs)

        # Act
        outcome = await worker.process(MagicMock(), sample_subscription)

        # Assert
        assert outcome == PROCESSED
        command = invoice.execute.call_args.args[0]
        assert command.subscription_id == "sub-local-1"
        assert command.period_start == sample_subscription.current_period_start
        assert command.period_end == sample_subscription.current_period_end
        advance.execute.assert_called_once_with(
            "sub-local-1", expected_period_end=sample_subscription.current_period_end
        )

    @patch("src.worker.monthly_billing.AdvanceBillingPeriod")
    @patch("src.worker.monthly_billing.CreateInvoice")
    @patch("src.worker.monthly_billing.UpdateSubscriptionQuantity")
    async def test_cancel_at_period_end_is_not_invoiced(
        self, mock_sync, mock_invoice, mock_advance, subscription_repo, worker_kwargs, sample_subscription
    ):
        # Arrange
        use_case_returning(mock_sync, Return.ok(SimpleNamespace(changed=False)))
        invoice = use_case_returning(mock_invoice, Return.ok(None))
        sample_subscription.cancel_at_period_end = True
        worker = MonthlyBillingWorker(**worker_kwargs)

        # Act
        outcome = await worker.process(MagicMock(), sample_subscription)

        # Assert
        assert outcome == SKIPPED
        invoice.execute.assert_not_called()

    @patch("src.worker.monthly_billing.AdvanceBillingPeriod")
    @patch("src.worker.monthly_billing.CreateInvoice")
    @patch("src.worker.monthly_billing.UpdateSubscriptionQuantity")
    async def test_already_advanced_by_another_run(
        self, mock_sync, mock_invoice, mock_advance, subscription_repo, worker_kwargs, sample_subscription
    ):
        # Arrange
        use_case_returning(mock_sync, Return.ok(SimpleNamespace(changed=False)))
        invoice = use_case_returning(mock_invoice, Return.ok(None))
        selected = SimpleNamespace(id="sub-local-1", next_payment_date=sample_subscription.next_payment_date)
        sample_subscription.next_payment_date = sample_subscription.next_payment_date + timedelta(days=30)
        worker = MonthlyBillingWorker(**worker_kwargs)

        # Act
        outcome = await worker.process(MagicMock(), selected)

        # Assert
        assert outcome == SKIPPED
        invoice.execute.assert_not_called()

    @patch("src.worker.monthly_billing.AdvanceBillingPeriod")
    @patch("src.worker.monthly_billing.CreateInvoice")
    @patch("src.worker.monthly_billing.UpdateSubscriptionQuantity")
    async def test_invoice_failure_leaves_period(
        self, mock_sync, mock_invoice, mock_advance, subscription_repo, worker_kwargs, sample_subscription
    ):
        # Arrange
        use_case_returning(mock_sync, Return.ok(SimpleNamespace(changed=False)))
        use_case_returning(
            mock_invoice, Return.err(Error(code="payment-gateway-error", message="Gateway down"))
        )
        advance = use_case_returning(mock_advance, Return.ok(None))
        worker = MonthlyBillingWorker(**worker_kwargs)

        # Act
        outcome = await worker.process(MagicMock(), sample_subscription)

        # Assert
        assert outcome == FAILED
        advance.execute.assert_not_called()


@pytest.mark.asyncio
class TestStatusSweeps:

    @patch("src.worker.grace_period_sweep.SuspendAccount")
    async def test_grace_sweep_counts_unchanged_as_skipped(self, mock_suspend, worker_kwargs):
        """
        Given: A subscription paid after selection
        When: The grace sweep processes it
        Then: Suspension reports no change and the record is skipped
        """
        # Arrange
        suspend = use_case_returning(mock_suspend, Return.ok(SimpleNamespace(changed=False)))
        worker = GracePeriodSweepWorker(**worker_kwargs)

        # Act
        outcome = await worker.process(MagicMock(), SimpleNamespace(id="sub-local-1"))

        # Assert
        assert outcome == SKIPPED
        assert suspend.execute.call_args.kwargs["only_if_grace_expired"] is True

    @patch("src.worker.grace_period_sweep.SuspendAccount")
    async def test_grace_sweep_suspends(self, mock_suspend, worker_kwargs):
        # Arrange
        use_case_returning(mock_suspend, Return.ok(SimpleNamespace(changed=True)))
        worker = GracePeriodSweepWorker(**worker_kwargs)

        # Act & Assert
        assert await worker.process(MagicMock(), SimpleNamespace(id="sub-local-1")) == PROCESSED

    @patch("src.worker.cancellation_sweep.FinalizeCancellation")
    async def test_cancellation_sweep_requires_period_end(self, mock_finalize, worker_kwargs):
        # Arrange
        finalize = use_case_returning(mock_finalize, Return.ok(SimpleNamespace(changed=True)))
        worker = CancellationSweepWorker(**worker_kwargs)

        # Act
        outcome = await worker.process(MagicMock(), SimpleNamespace(id="sub-local-1"))

        # Assert
        assert outcome == PROCESSED
        finalize.execute.assert_called_once_with("sub-local-1", only_if_period_ended=True)

    @patch("src.worker.usage_sync.UpdateSubscriptionQuantity")
    async def test_usage_sync_conflict_is_skipped(self, mock_sync, worker_kwargs):
        # Arrange
        use_case_returning(mock_sync, Return.err(Error(code="conflict", message="Version mismatch")))
        worker = UsageSyncWorker(**worker_kwargs)

        # Act & Assert
        assert await worker.process(MagicMock(), SimpleNamespace(id="sub-local-1")) == SKIPPED


@pytest.mark.asyncio
class TestPaymentRetrySweepWorker:

    @pytest.mark.parametrize("code", ["retry-exhausted", "already-in-terminal-state"])
    @patch("src.worker.payment_retry_sweep.RetryPayment")
    async def test_unretryable_payments_are_skipped(self, mock_retry, code, worker_kwargs):
        # Arrange
        use_case_returning(mock_retry, Return.err(Error(code=code, message="Not retryable")))
        worker = PaymentRetrySweepWorker(**worker_kwargs)

        # Act & Assert
        assert await worker.process(MagicMock(), SimpleNamespace(id="pay-1")) == SKIPPED

    @patch("src.worker.payment_retry_sweep.RetryPayment")
    async def test_gateway_error_fails(self, mock_retry, worker_kwargs):
        # Arrange
        use_case_returning(
            mock_retry, Return.err(Error(code="payment-gateway-error", message="Gateway down"))
        )
        worker = PaymentRetrySweepWorker(**worker_kwargs)

        # Act & Assert
        assert await worker.process(MagicMock(), SimpleNamespace(id="pay-1")) == FAILED


@pytest.mark.asyncio
class TestTrialExpirationSweepWorker:

    def _company(self, company_id, ends_in):
        return Company(
            id=company_id,
            name=company_id,
            account_status=AccountStatus.TRIAL,
            trial_ends_at=utc_now() + ends_in,
        )

    @patch("src.worker.trial_expiration_sweep.SqlAlchemyCompanyRepository")
    async def test_selects_trials_ending_within_a_day_and_ended_trials(self, mock_repo_cls, worker_kwargs):
        """
        Given: One trial ending in 6 hours and one that ended 6 hours ago unnoticed
        When: The sweep selects
        Then: Both companies get a notice, with the cutoff one day ahead
        """
        # Arrange
        soon = self._company("soon", timedelta(hours=6))
        ended = self._company("ended", -timedelta(hours=6))
        get_trials = AsyncMock(return_value=[ended, soon])
        mock_repo_cls.return_value.get_trials_ending_before = get_trials
        worker = TrialExpirationSweepWorker(notification_service=MagicMock(), **worker_kwargs)
        now = utc_now()

        # Act
        selected = await worker.select(MagicMock(), now)

        # Assert
        assert selected == [ended, soon]
        get_trials.assert_called_once_with(now + timedelta(days=1))

    async def test_undelivered_notice_fails(self, worker_kwargs):
        # Arrange
        notifier = MagicMock()
        notifier.send_trial_expiring_notice = AsyncMock(return_value=False)
        worker = TrialExpirationSweepWorker(notification_service=notifier, **worker_kwargs)

        # Act
        outcome = await worker.process(MagicMock(), self._company("soon", timedelta(hours=6)))

        # Assert
        assert outcome == FAILED

    async def test_delivered_notice_is_processed(self, worker_kwargs):
        # Arrange
        notifier = MagicMock()
        notifier.send_trial_expiring_notice = AsyncMock(return_value=True)
        worker = TrialExpirationSweepWorker(notification_service=notifier, **worker_kwargs)
        company = self._company("soon", timedelta(hours=6))

        # Act
        outcome = await worker.process(MagicMock(), company)

        # Assert
        assert outcome == PROCESSED
        notifier.send_trial_expiring_notice.assert_called_once_with(company)
