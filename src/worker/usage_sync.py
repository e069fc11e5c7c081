"""Usage Sync Background Worker

Converges gateway seat quantities to the active-user counts.
Scheduled hourly.
"""

import asyncio
import logging

from src.adapter.repositories import SqlAlchemySubscriptionRepository, SqlAlchemyUserRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.subscription import UpdateSubscriptionQuantity
from .base import SweepWorker, run_cli

logger = logging.getLogger(__name__)


class UsageSyncWorker(SweepWorker):
    """Runs UpdateSubscriptionQuantity for every trial/active subscription"""

    job_name = "usage_sync"

    async def select(self, session, now):
        return await SqlAlchemySubscriptionRepository(session).get_syncable()

    async def process(self, session, record) -> str:
        result = await UpdateSubscriptionQuantity(
            uow=SqlAlchemyUnitOfWork(session),
            subscription_repo=SqlAlchemySubscriptionRepository(session),
            user_repo=SqlAlchemyUserRepository(session),
            gateway=self.gateway,
            history=self.history,
        ).execute(record.id)

        return self.outcome(record.id, result, changed=result.is_ok() and result.value.changed)


async def main():
    await run_cli(UsageSyncWorker, "Usage Sync Worker", default_interval=3600)


if __name__ == "__main__":
    asyncio.run(main())
