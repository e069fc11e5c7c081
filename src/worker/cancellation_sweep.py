"""Deferred Cancellation Sweep Background Worker

Finalizes cancel-at-period-end subscriptions once the period is over.
Scheduled daily at 00:30 UTC. The gateway's subscription-deleted event
does the same; whichever runs first wins and the other is a no-op.
"""

import asyncio
import logging

from src.adapter.repositories import SqlAlchemyCompanyRepository, SqlAlchemySubscriptionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.subscription import FinalizeCancellation
from .base import SweepWorker, run_cli

logger = logging.getLogger(__name__)


class CancellationSweepWorker(SweepWorker):
    job_name = "cancellation_sweep"

    async def select(self, session, now):
        return await SqlAlchemySubscriptionRepository(session).get_pending_cancellation(now)

    async def process(self, session, record) -> str:
        result = await FinalizeCancellation(
            uow=SqlAlchemyUnitOfWork(session),
            subscription_repo=SqlAlchemySubscriptionRepository(session),
            company_repo=SqlAlchemyCompanyRepository(session),
            history=self.history,
        ).execute(record.id, only_if_period_ended=True)

        return self.outcome(record.id, result, changed=result.is_ok() and result.value.changed)


async def main():
    await run_cli(CancellationSweepWorker, "Deferred Cancellation Sweep Worker", default_interval=86400)


if __name__ == "__main__":
    asyncio.run(main())
