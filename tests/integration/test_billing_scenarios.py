"""End-to-end billing scenarios against a real database

Tests cover:
- Subscription creation and first invoice
- Proration of a mid-period seat addition on the next invoice
- Three failed charges leading to the grace period
- Grace period expiry and suspension by the sweep
- Immediate cancellation and the reactivation boundary
- Retries of exhausted payments
- One payment per intent when deliveries race
- Monthly billing run
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from src.adapter.repositories import (
    SqlAlchemyBillingHistoryRepository,
    SqlAlchemyCompanyRepository,
    SqlAlchemyInvoiceLineRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemySubscriptionRepository,
    SqlAlchemyUsageRecordRepository,
    SqlAlchemyUserRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.price_cache import PriceCache
from src.app.use_cases.invoice import CreateInvoice, CreateInvoiceCommandDTO, MarkInvoiceAsPaid
from src.app.use_cases.payment import (
    HandlePaymentFailure,
    PaymentFailureCommandDTO,
    ProcessPayment,
    RetryPayment,
)
from src.app.use_cases.subscription import (
    CancelSubscription,
    CancelSubscriptionCommandDTO,
    CreateSubscription,
    CreateSubscriptionCommandDTO,
    ReactivateSubscription,
    ReactivateSubscriptionCommandDTO,
)
from src.app.use_cases.usage import RecordUserAddition, SeatChangeCommandDTO
from src.domain.billing_clock import utc_now
from src.domain.billing_history import BillingEventType
from src.domain.company import AccountStatus
from src.domain.invoice import InvoiceStatus
from src.domain.payment import Payment, PaymentStatus
from src.domain.subscription import SubscriptionStatus
from src.domain.user import User
from src.worker import GracePeriodSweepWorker, MonthlyBillingWorker


class BillingServices:
    """Use cases wired to one session, the way the API routes wire them"""

    def __init__(self, session: AsyncSession, gateway, history, pricing):
        self.gateway = gateway
        self.history = history
        self.pricing = pricing
        self.uow = SqlAlchemyUnitOfWork(session)
        self.subscriptions = SqlAlchemySubscriptionRepository(session)
        self.companies = SqlAlchemyCompanyRepository(session)
        self.users = SqlAlchemyUserRepository(session)
        self.invoices = SqlAlchemyInvoiceRepository(session)
        self.invoice_lines = SqlAlchemyInvoiceLineRepository(session)
        self.payments = SqlAlchemyPaymentRepository(session)
        self.usage = SqlAlchemyUsageRecordRepository(session)

    def create_subscription(self):
        return CreateSubscription(
            self.uow, self.subscriptions, self.companies, self.users,
            self.gateway, self.history, PriceCache(), self.pricing,
        )

    def create_invoice(self):
        return CreateInvoice(
            self.uow, self.subscriptions, self.invoices, self.invoice_lines,
            self.usage, self.gateway, self.history, self.pricing,
        )

    def record_user_addition(self):
        return RecordUserAddition(self.uow, self.subscriptions, self.usage, self.users, self.history)

    def process_payment(self):
        return ProcessPayment(self.uow, self.payments, self.invoices, self.gateway, self.history, self.pricing)

    def handle_payment_failure(self):
        return HandlePaymentFailure(
            self.uow, self.payments, self.subscriptions, self.companies, self.history, self.pricing
        )

    def retry_payment(self):
        return RetryPayment(self.uow, self.payments, self.gateway, self.history)

    def mark_invoice_paid(self):
        return MarkInvoiceAsPaid(self.uow, self.invoices, self.subscriptions, self.companies, self.history)

    def cancel_subscription(self):
        return CancelSubscription(self.uow, self.subscriptions, self.companies, self.gateway, self.history)

    def reactivate_subscription(self):
        return ReactivateSubscription(self.uow, self.subscriptions, self.companies, self.gateway, self.history)


@pytest.fixture
def services(db_session, gateway, history, pricing):
    return BillingServices(db_session, gateway, history, pricing)


async def subscribe(services) -> str:
    result = await services.create_subscription().execute(
        CreateSubscriptionCommandDTO(company_id="acme01", payment_method_id="pm_card_visa", created_by="admin-1")
    )
    assert result.is_ok(), result.error
    return result.value.subscription_id


async def invoice_current_period(services, subscription_id):
    result = await services.create_invoice().execute(CreateInvoiceCommandDTO(subscription_id=subscription_id))
    assert result.is_ok(), result.error
    return result.value


async def fresh(session_factory, repo_cls, entity_id):
    """Read an entity in a new session, bypassing the test session's identity map"""
    async with session_factory() as session:
        return await repo_cls(session).get_by_id(entity_id)


@pytest.mark.asyncio
class TestSubscriptionAndInvoice:

    async def test_ten_users_are_billed_ten_dollars(self, company, services, session_factory):
        """
        Given: A company with 10 active users at 1.00 per user
        When: It subscribes without trial and the period is invoiced
        Then: The subscription is active with 10 seats and the invoice totals 10.00 in one line
        """
        # Act
        subscription_id = await subscribe(services)
        created = await invoice_current_period(services, subscription_id)

        # Assert
        subscription = await fresh(session_factory, SqlAlchemySubscriptionRepository, subscription_id)
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.current_user_count == 10

        invoice = await fresh(session_factory, SqlAlchemyInvoiceRepository, created.invoice_id)
        assert invoice.total == Decimal("10.00")
        assert invoice.status == InvoiceStatus.OPEN
        assert invoice.invoice_number.startswith("INV-")
        lines = await services.invoice_lines.get_by_invoice_id(invoice.id)
        assert len(lines) == 1
        assert lines[0].amount == Decimal("10.00")

    async def test_invoicing_twice_returns_same_invoice(self, company, services, gateway):
        # Arrange
        subscription_id = await subscribe(services)
        first = await invoice_current_period(services, subscription_id)

        # Act
        second = await invoice_current_period(services, subscription_id)

        # Assert
        assert second.already_existed is True
        assert second.invoice_id == first.invoice_id
        assert gateway.calls.count("invoice.create") == 1

    async def test_mid_period_addition_adds_proration_line(self, company, services, db_session):
        """
        Given: A September period with 15 of its 30 days left
        When: A user is added and the period is invoiced
        Then: The proration is half a seat, 0.50, on its own invoice line
        """
        # Arrange
        subscription_id = await subscribe(services)
        subscription = await services.subscriptions.get_by_id(subscription_id)
        subscription.current_period_start = datetime(2024, 9, 1, tzinfo=timezone.utc)
        subscription.current_period_end = datetime(2024, 9, 30, tzinfo=timezone.utc)
        await services.subscriptions.update(subscription)
        await db_session.commit()

        db_session.add(User(id="new-user", company_id="acme01", name="New"))
        await db_session.commit()

        # Act
        with patch(
            "src.app.use_cases.usage.record_seat_change.utc_now",
            return_value=datetime(2024, 9, 15, tzinfo=timezone.utc),
        ):
            added = await services.record_user_addition().execute(
                SeatChangeCommandDTO(company_id="acme01", user_id="new-user", user_name="New")
            )
        created = await invoice_current_period(services, subscription_id)

        # Assert
        assert added.is_ok()
        assert added.value.proration_amount == Decimal("0.50")

        lines = await services.invoice_lines.get_by_invoice_id(created.invoice_id)
        proration_lines = [line for line in lines if line.proration]
        assert len(proration_lines) == 1
        assert proration_lines[0].amount == Decimal("0.50")


@pytest.mark.asyncio
class TestPaymentFailures:

    async def _open_payment(self, services):
        subscription_id = await subscribe(services)
        created = await invoice_current_period(services, subscription_id)
        invoice = await services.invoices.get_by_id(created.invoice_id)
        payment = await services.process_payment().execute(invoice.id, invoice.stripe_payment_intent_id)
        assert payment.is_ok(), payment.error
        return subscription_id, payment.value

    async def test_third_failure_starts_grace_period_once(self, company, services, session_factory):
        """
        Given: A pending payment with 3 allowed attempts
        When: The charge fails three times, then once more
        Then: Grace starts on the third failure, ends 7 days later, and is not restarted
        """
        # Arrange
        subscription_id, payment = await self._open_payment(services)
        decline = PaymentFailureCommandDTO(
            payment_intent_id=payment.stripe_payment_intent_id, failure_code="card_declined"
        )
        handler = services.handle_payment_failure()

        # Act
        first = await handler.execute(decline)
        second = await handler.execute(decline)
        before_third = utc_now()
        third = await handler.execute(decline)
        after_third = utc_now()
        fourth = await handler.execute(decline)

        # Assert
        assert [r.value.attempt_number for r in (first, second, third, fourth)] == [1, 2, 3, 3]
        assert [r.value.grace_period_started for r in (first, second, third, fourth)] == [
            False, False, True, False
        ]

        subscription = await fresh(session_factory, SqlAlchemySubscriptionRepository, subscription_id)
        assert subscription.status == SubscriptionStatus.PAST_DUE
        assert before_third + timedelta(days=7) <= subscription.grace_period_ends_at
        assert subscription.grace_period_ends_at <= after_third + timedelta(days=7)

        company_row = await fresh(session_factory, SqlAlchemyCompanyRepository, "acme01")
        assert company_row.account_status == AccountStatus.PAST_DUE

        async with session_factory() as session:
            entries = await SqlAlchemyBillingHistoryRepository(session).get_by_company_id("acme01")
        events = [entry.event_type for entry in entries]
        assert events.count(BillingEventType.GRACE_PERIOD_STARTED) == 1
        assert events.count(BillingEventType.PAYMENT_FAILED) == 4

    async def test_exhausted_payment_is_not_retried(self, company, services, session_factory):
        """
        Given: A failed payment already at attempt 3 of 3
        When: RetryPayment is called
        Then: retry-exhausted is returned and the stored payment is unchanged
        """
        # Arrange
        _, payment = await self._open_payment(services)
        stored = await services.payments.get_by_id(payment.payment_id)
        stored.status = PaymentStatus.FAILED
        stored.attempt_number = 3
        stored = await services.payments.update(stored)
        await services.uow.commit()
        version_before = stored.version

        # Act
        result = await services.retry_payment().execute(payment.payment_id)

        # Assert
        assert result.is_err()
        assert result.error.code == "retry-exhausted"
        reloaded = await fresh(session_factory, SqlAlchemyPaymentRepository, payment.payment_id)
        assert reloaded.attempt_number == 3
        assert reloaded.status == PaymentStatus.FAILED
        assert reloaded.version == version_before

    async def test_racing_deliveries_record_one_payment(
        self, company, services, session_factory, gateway, history, pricing
    ):
        """
        Given: Two sessions recording the same payment intent
        When: The second one's lookup misses the first one's payment
        Then: Its insert hits the unique key and it returns the stored payment
        """
        # Arrange
        subscription_id = await subscribe(services)
        created = await invoice_current_period(services, subscription_id)
        invoice = await services.invoices.get_by_id(created.invoice_id)
        intent_id = invoice.stripe_payment_intent_id

        async with session_factory() as first, session_factory() as second:
            early = BillingServices(first, gateway, history, pricing)
            late = BillingServices(second, gateway, history, pricing)
            real_lookup = late.payments.get_by_payment_intent_id
            lookups = []

            async def stale_then_real(payment_intent_id):
                lookups.append(payment_intent_id)
                if len(lookups) == 1:
                    return None
                return await real_lookup(payment_intent_id)

            late.payments.get_by_payment_intent_id = stale_then_real

            # Act
            winner = await early.process_payment().execute(invoice.id, intent_id)
            loser = await late.process_payment().execute(invoice.id, intent_id)

        # Assert
        assert winner.is_ok(), winner.error
        assert loser.is_ok(), loser.error
        assert loser.value.payment_id == winner.value.payment_id
        async with session_factory() as session:
            rows = (await session.exec(select(Payment).where(Payment.stripe_payment_intent_id == intent_id))).all()
        assert len(rows) == 1

    async def test_paying_twice_is_idempotent(self, company, services):
        # Arrange
        subscription_id = await subscribe(services)
        created = await invoice_current_period(services, subscription_id)
        mark_paid = services.mark_invoice_paid()

        # Act
        first = await mark_paid.execute(created.invoice_id)
        second = await mark_paid.execute(created.invoice_id)

        # Assert
        assert first.is_ok() and first.value.already_paid is False
        assert second.is_ok() and second.value.already_paid is True


@pytest.mark.asyncio
class TestSweeps:

    async def test_expired_grace_period_suspends_account(
        self, company, services, session_factory, gateway, pricing
    ):
        """
        Given: A past_due subscription whose grace period ended a minute ago
        When: The grace period sweep runs
        Then: Subscription and company are suspended
        """
        # Arrange
        subscription_id = await subscribe(services)
        subscription = await services.subscriptions.get_by_id(subscription_id)
        subscription.status = SubscriptionStatus.PAST_DUE
        subscription.grace_period_ends_at = utc_now() - timedelta(minutes=1)
        await services.subscriptions.update(subscription)
        await services.uow.commit()

        worker = GracePeriodSweepWorker(
            session_factory=session_factory, gateway=gateway, pricing=pricing, concurrency=1
        )

        # Act
        result = await worker.run_once()

        # Assert
        assert result.total_records == 1
        assert result.processed == 1
        subscription = await fresh(session_factory, SqlAlchemySubscriptionRepository, subscription_id)
        assert subscription.status == SubscriptionStatus.SUSPENDED
        assert subscription.grace_period_ends_at is None
        company_row = await fresh(session_factory, SqlAlchemyCompanyRepository, "acme01")
        assert company_row.account_status == AccountStatus.SUSPENDED
        assert company_row.suspension_reason == "grace_period_expired"

        # A second run finds nothing left to do
        rerun = await worker.run_once()
        assert rerun.total_records == 0

    async def test_monthly_billing_invoices_and_rolls_period(
        self, company, services, session_factory, gateway, pricing
    ):
        # Arrange
        subscription_id = await subscribe(services)
        subscription = await services.subscriptions.get_by_id(subscription_id)
        period_end = subscription.current_period_end
        subscription.next_payment_date = utc_now() - timedelta(minutes=1)
        await services.subscriptions.update(subscription)
        await services.uow.commit()

        worker = MonthlyBillingWorker(
            session_factory=session_factory, gateway=gateway, pricing=pricing, concurrency=1
        )

        # Act
        result = await worker.run_once()

        # Assert
        assert result.processed == 1
        rolled = await fresh(session_factory, SqlAlchemySubscriptionRepository, subscription_id)
        assert rolled.current_period_start == period_end
        assert rolled.next_payment_date > utc_now()
        assert gateway.calls.count("invoice.finalize") == 1


@pytest.mark.asyncio
class TestCancellation:

    async def test_immediate_cancel_then_reactivate_is_rejected(self, company, services, session_factory):
        """
        Given: An active subscription
        When: It is canceled immediately and reactivation is attempted
        Then: It is canceled with the company, and reactivation fails as terminal
        """
        # Arrange
        subscription_id = await subscribe(services)

        # Act
        canceled = await services.cancel_subscription().execute(
            CancelSubscriptionCommandDTO(subscription_id=subscription_id, immediate=True, canceled_by="admin-1")
        )
        reactivated = await services.reactivate_subscription().execute(
            ReactivateSubscriptionCommandDTO(subscription_id=subscription_id, reactivated_by="admin-1")
        )

        # Assert
        assert canceled.is_ok()
        assert canceled.value.status == "canceled"
        subscription = await fresh(session_factory, SqlAlchemySubscriptionRepository, subscription_id)
        assert subscription.status == SubscriptionStatus.CANCELED
        assert subscription.canceled_at is not None
        company_row = await fresh(session_factory, SqlAlchemyCompanyRepository, "acme01")
        assert company_row.account_status == AccountStatus.CANCELED

        assert reactivated.is_err()
        assert reactivated.error.code == "already-in-terminal-state"
