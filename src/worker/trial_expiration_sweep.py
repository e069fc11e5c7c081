"""Trial Expiration Sweep Background Worker

Warns companies whose trial ends within a day.
Scheduled daily at 01:00 UTC.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Optional

from config import ApplicationConfig
from src.adapter.repositories import SqlAlchemyCompanyRepository
from src.adapter.services.notification_service import create_notification_service
from src.app.services.notification_service import NotificationService
from .base import SweepWorker, PROCESSED, FAILED, run_cli

logger = logging.getLogger(__name__)

NOTICE_WINDOW = timedelta(days=1)


class TrialExpirationSweepWorker(SweepWorker):
    """
    Sends trial-expiring notices; never changes billing state

    Selects trial companies with trial_ends_at <= now + 1 day, including
    trials already over whose company is still in trial, so a notice that
    failed on an earlier run is sent again.
    """

    job_name = "trial_expiration_sweep"

    def __init__(self, *args, notification_service: Optional[NotificationService] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.notification_service = notification_service or create_notification_service(
            ApplicationConfig.TRIAL_NOTIFICATION_WEBHOOK
        )

    async def select(self, session, now):
        return await SqlAlchemyCompanyRepository(session).get_trials_ending_before(now + NOTICE_WINDOW)

    async def process(self, session, record) -> str:
        sent = await self.notification_service.send_trial_expiring_notice(record)
        if not sent:
            logger.warning(f"Trial notice for company {record.id} was not delivered")
            return FAILED
        return PROCESSED


async def main():
    await run_cli(TrialExpirationSweepWorker, "Trial Expiration Sweep Worker", default_interval=86400)


if __name__ == "__main__":
    asyncio.run(main())
