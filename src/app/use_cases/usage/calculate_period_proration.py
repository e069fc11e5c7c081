"""CalculatePeriodProration Use Case"""

import logging
from datetime import datetime
from decimal import Decimal
from libs.result import Result, Return
from src.app.repositories.usage_record_repository import UsageRecordRepository
from src.app.use_cases.errors import error_from_exception
from src.domain.billing_clock import quantize_money

logger = logging.getLogger(__name__)


class CalculatePeriodProration:
    """
    Use Case: Net proration for a company over a billing window

    Sums proration_amount of usage records inside [period_start, period_end]
    that are flagged will_affect_next_invoice. Additions and removals
    cancel out, so the result may be negative.
    """

    def __init__(self, usage_repo: UsageRecordRepository):
        self.usage_repo = usage_repo

    async def execute(
        self, company_id: str, period_start: datetime, period_end: datetime
    ) -> Result[Decimal]:
        try:
            total = await self.usage_repo.sum_proration(company_id, period_start, period_end)
        except Exception as e:
            logger.error(f"Failed to sum proration for company {company_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to calculate proration"))

        return Return.ok(quantize_money(total))
