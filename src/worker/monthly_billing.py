"""Monthly Billing Background Worker

Invoices subscriptions whose next payment date has arrived.
Scheduled daily at 02:00 UTC.
"""

import asyncio
import logging

from src.adapter.repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyInvoiceLineRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemySubscriptionRepository,
    SqlAlchemyUsageRecordRepository,
    SqlAlchemyUserRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.invoice import CreateInvoice, CreateInvoiceCommandDTO
from src.app.use_cases.subscription import AdvanceBillingPeriod, UpdateSubscriptionQuantity
from src.domain.subscription import SubscriptionStatus
from .base import SweepWorker, SKIPPED, run_cli

logger = logging.getLogger(__name__)

INVOICEABLE_STATUSES = (SubscriptionStatus.TRIAL, SubscriptionStatus.ACTIVE)


class MonthlyBillingWorker(SweepWorker):
    """
    Background worker for monthly seat billing

    Per subscription:
    1. Sync seat quantity with the active-user count
    2. Re-read and confirm the subscription is still due
    3. Create the invoice of the current period (idempotent per period)
    4. Roll the period forward as the last, version-guarded step

    A crash between steps is repaired by the next run: the invoice is
    found instead of recreated and the period is rolled then.
    """

    job_name = "monthly_billing"

    async def select(self, session, now):
        return await SqlAlchemySubscriptionRepository(session).get_due_for_billing(now)

    async def process(self, session, record) -> str:
        uow = SqlAlchemyUnitOfWork(session)
        subscription_repo = SqlAlchemySubscriptionRepository(session)
        company_repo = SqlAlchemyCompanyRepository(session)

        # Step 1: Seat sync
        sync_result = await UpdateSubscriptionQuantity(
            uow=uow,
            subscription_repo=subscription_repo,
            user_repo=SqlAlchemyUserRepository(session),
            gateway=self.gateway,
            history=self.history,
        ).execute(record.id)
        if sync_result.is_err():
            return self.outcome(record.id, sync_result)

        # Step 2: Still due?
        subscription = await subscription_repo.get_by_id(record.id)
        if (
            subscription is None
            or subscription.status not in INVOICEABLE_STATUSES
            or subscription.cancel_at_period_end
            or subscription.next_payment_date > record.next_payment_date
        ):
            logger.info(f"Subscription {record.id} no longer due, skipping")
            return SKIPPED

        # Step 3: Invoice the current period
        invoice_result = await CreateInvoice(
            uow=uow,
            subscription_repo=subscription_repo,
            invoice_repo=SqlAlchemyInvoiceRepository(session),
            invoice_line_repo=SqlAlchemyInvoiceLineRepository(session),
            usage_repo=SqlAlchemyUsageRecordRepository(session),
            gateway=self.gateway,
            history=self.history,
            pricing=self.pricing,
        ).execute(
            CreateInvoiceCommandDTO(
                subscription_id=subscription.id,
                period_start=subscription.current_period_start,
                period_end=subscription.current_period_end,
            )
        )
        if invoice_result.is_err():
            return self.outcome(record.id, invoice_result)

        # Step 4: Roll the period
        advance_result = await AdvanceBillingPeriod(
            uow=uow,
            subscription_repo=subscription_repo,
            company_repo=company_repo,
        ).execute(subscription.id, expected_period_end=subscription.current_period_end)

        return self.outcome(record.id, advance_result)


async def main():
    await run_cli(MonthlyBillingWorker, "Monthly Billing Worker", default_interval=86400)


if __name__ == "__main__":
    asyncio.run(main())
