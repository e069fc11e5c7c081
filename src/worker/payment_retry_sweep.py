"""Payment Retry Sweep Background Worker

Retries failed payments whose retry date has arrived.
Scheduled daily at 04:00 UTC.
"""

import asyncio
import logging

from src.adapter.repositories import SqlAlchemyPaymentRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.errors import ErrorCode
from src.app.use_cases.payment import RetryPayment
from .base import SweepWorker, SKIPPED, run_cli

logger = logging.getLogger(__name__)


class PaymentRetrySweepWorker(SweepWorker):
    """Retries failed payments with next_retry_date <= now and attempts left"""

    job_name = "payment_retry_sweep"

    async def select(self, session, now):
        return await SqlAlchemyPaymentRepository(session).get_due_for_retry(now)

    async def process(self, session, record) -> str:
        result = await RetryPayment(
            uow=SqlAlchemyUnitOfWork(session),
            payment_repo=SqlAlchemyPaymentRepository(session),
            gateway=self.gateway,
            history=self.history,
        ).execute(record.id)

        if result.is_err() and result.error.code in (
            ErrorCode.RETRY_EXHAUSTED.value,
            ErrorCode.ALREADY_IN_TERMINAL_STATE.value,
        ):
            logger.info(f"Payment {record.id} not retried: {result.error.code}")
            return SKIPPED

        return self.outcome(record.id, result)


async def main():
    await run_cli(PaymentRetrySweepWorker, "Payment Retry Sweep Worker", default_interval=86400)


if __name__ == "__main__":
    asyncio.run(main())
