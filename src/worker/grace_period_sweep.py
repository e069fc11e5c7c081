"""Grace Period Sweep Background Worker

Suspends accounts whose grace period has ended.
Scheduled daily at 03:00 UTC.
"""

import asyncio
import logging

from src.adapter.repositories import SqlAlchemyCompanyRepository, SqlAlchemySubscriptionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.subscription import SuspendAccount
from .base import SweepWorker, run_cli

logger = logging.getLogger(__name__)


class GracePeriodSweepWorker(SweepWorker):
    """
    Suspends past_due subscriptions with grace_period_ends_at <= now

    The deadline is re-checked on the fresh record, so a payment that
    arrived after selection keeps the account active.
    """

    job_name = "grace_period_sweep"

    async def select(self, session, now):
        return await SqlAlchemySubscriptionRepository(session).get_grace_period_expired(now)

    async def process(self, session, record) -> str:
        result = await SuspendAccount(
            uow=SqlAlchemyUnitOfWork(session),
            subscription_repo=SqlAlchemySubscriptionRepository(session),
            company_repo=SqlAlchemyCompanyRepository(session),
            history=self.history,
        ).execute(record.id, reason="grace_period_expired", only_if_grace_expired=True)

        return self.outcome(record.id, result, changed=result.is_ok() and result.value.changed)


async def main():
    await run_cli(GracePeriodSweepWorker, "Grace Period Sweep Worker", default_interval=86400)


if __name__ == "__main__":
    asyncio.run(main())
