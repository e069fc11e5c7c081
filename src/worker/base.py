"""Sweep Worker Base

Shared run loop for the scheduled reconciliation jobs.
"""

import asyncio
import logging
import time
from typing import Any, List, Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Result
from src.adapter.services.billing_history_logger import SqlAlchemyBillingHistoryLogger
from src.adapter.services.stripe_gateway import StripePaymentGateway
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.errors import ErrorCode
from src.domain.billing_clock import utc_now
from src.domain.pricing import PricingPolicy
from .dtos import SweepResultDTO

logger = logging.getLogger(__name__)

PROCESSED = "processed"
SKIPPED = "skipped"
FAILED = "failed"


class SweepWorker:
    """
    Base class for idempotent periodic sweeps

    Subclasses implement select() and process(). Selection runs in one
    session; every record is then processed in its own session and unit
    of work, at most `concurrency` at a time. A failing record is logged
    and counted, and the batch carries on.

    Usage:
        worker = GracePeriodSweepWorker()
        result = await worker.run_once()

        # Run continuously
        await worker.run_forever(interval_seconds=86400)
    """

    job_name = "sweep"

    def __init__(
        self,
        db_uri: Optional[str] = None,
        session_factory=None,
        gateway: Optional[PaymentGateway] = None,
        pricing: Optional[PricingPolicy] = None,
        concurrency: Optional[int] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            session_factory: Existing AsyncSession factory; no engine is created when given
            gateway: Payment gateway (defaults to Stripe from config)
            pricing: Pricing policy (defaults to config)
            concurrency: Max records processed at once (defaults to SWEEP_CONCURRENCY)
        """
        if session_factory is None:
            self.db_uri = db_uri or ApplicationConfig.DB_URI
            self.engine = create_async_engine(self.db_uri, echo=False, future=True)
            self.async_session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )
        else:
            self.engine = None
            self.async_session_factory = session_factory

        self._gateway = gateway
        self.pricing = pricing or PricingPolicy.from_config(ApplicationConfig)
        self.concurrency = concurrency or ApplicationConfig.SWEEP_CONCURRENCY
        self.history = SqlAlchemyBillingHistoryLogger(self.async_session_factory)

        logger.info(f"{self.__class__.__name__} initialized")

    @property
    def gateway(self) -> PaymentGateway:
        if self._gateway is None:
            self._gateway = StripePaymentGateway.from_config(ApplicationConfig)
        return self._gateway

    async def select(self, session: AsyncSession, now) -> List[Any]:
        """Return the records due for this run"""
        raise NotImplementedError

    async def process(self, session: AsyncSession, record: Any) -> str:
        """Handle one record; return PROCESSED, SKIPPED or FAILED"""
        raise NotImplementedError

    def outcome(self, record_id: str, result: Result, changed: bool = True) -> str:
        """Classify a use case result; version conflicts mean another run won"""
        if result.is_err():
            if result.error.code == ErrorCode.CONFLICT.value:
                logger.info(f"{self.job_name}: {record_id} modified concurrently, skipping")
                return SKIPPED
            logger.error(
                f"{self.job_name}: {record_id} failed: "
                f"{result.error.code} {result.error.message} {result.error.reason or ''}"
            )
            return FAILED
        return PROCESSED if changed else SKIPPED

    async def _process_isolated(self, semaphore: asyncio.Semaphore, record: Any) -> str:
        async with semaphore:
            try:
                async with self.async_session_factory() as session:
                    return await self.process(session, record)
            except Exception as e:
                logger.error(f"{self.job_name}: unexpected error on {record.id}: {e}")
                return FAILED

    async def run_once(self) -> SweepResultDTO:
        start_time = time.time()
        started_at = utc_now()

        logger.info(f"Starting {self.job_name}")

        async with self.async_session_factory() as session:
            records = await self.select(session, started_at)

        logger.info(f"{self.job_name}: {len(records)} records selected")

        semaphore = asyncio.Semaphore(self.concurrency)
        outcomes = await asyncio.gather(
            *(self._process_isolated(semaphore, record) for record in records)
        )

        execution_time_ms = int((time.time() - start_time) * 1000)

        result = SweepResultDTO(
            job_name=self.job_name,
            total_records=len(records),
            processed=outcomes.count(PROCESSED),
            skipped=outcomes.count(SKIPPED),
            failed=outcomes.count(FAILED),
            started_at=started_at,
            execution_time_ms=execution_time_ms,
        )

        logger.info(
            f"{self.job_name} complete: {result.processed} processed, "
            f"{result.skipped} skipped, {result.failed} failed, {execution_time_ms}ms"
        )

        return result

    async def run_forever(self, interval_seconds: int = 86400):
        """
        Run the sweep continuously

        Args:
            interval_seconds: Seconds between runs
        """
        logger.info(f"Starting continuous {self.job_name} with {interval_seconds}s interval")

        while True:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"{self.job_name} cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        if self.engine is not None:
            await self.engine.dispose()
        logger.info(f"{self.__class__.__name__} shutdown complete")


async def run_cli(worker_cls, description: str, default_interval: int):
    """
    Shared entry point for running a sweep as a standalone script

    Usage:
        python -m src.worker.<job>                 # run once
        python -m src.worker.<job> --continuous    # run every default_interval seconds
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--continuous", action="store_true", help="Run continuously"
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=default_interval,
        help=f"Seconds between runs (default: {default_interval})",
    )
    args = parser.parse_args()

    worker = worker_cls()

    try:
        if args.continuous:
            await worker.run_forever(interval_seconds=args.interval)
        else:
            result = await worker.run_once()
            print(f"{result.job_name} complete:")
            print(f"  Total records: {result.total_records}")
            print(f"  Processed: {result.processed}")
            print(f"  Skipped: {result.skipped}")
            print(f"  Failed: {result.failed}")
            print(f"  Execution time: {result.execution_time_ms}ms")
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()
