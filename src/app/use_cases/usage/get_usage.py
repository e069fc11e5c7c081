"""Usage read use cases"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.usage_record_repository import UsageRecordRepository
from src.app.use_cases.errors import error_from_exception, not_found
from src.domain.billing_clock import quantize_money
from src.domain.usage_record import UsageEventType
from .dtos import UsageRecordDTO, UsageRecordListDTO, UsageSummaryDTO

logger = logging.getLogger(__name__)

SUMMARY_RECORD_LIMIT = 500


class GetUsageRecords:
    """Use Case: List a company's seat changes, newest first"""

    def __init__(self, usage_repo: UsageRecordRepository):
        self.usage_repo = usage_repo

    async def execute(
        self,
        company_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> Result[UsageRecordListDTO]:
        try:
            records = await self.usage_repo.get_by_company_id(
                company_id, start_date=start_date, end_date=end_date, limit=limit
            )
        except Exception as e:
            logger.error(f"Failed to list usage records for company {company_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to list usage records"))

        items = [UsageRecordDTO.from_entity(r) for r in records]
        return Return.ok(UsageRecordListDTO(records=items, count=len(items)))


class GetUsageSummary:
    """
    Use Case: Summarize seat activity of the current billing period

    Uses the billable subscription, falling back to the most recent one
    so that suspended or canceled companies still see their last period.
    """

    def __init__(
        self,
        subscription_repo: SubscriptionRepository,
        usage_repo: UsageRecordRepository,
    ):
        self.subscription_repo = subscription_repo
        self.usage_repo = usage_repo

    async def execute(self, company_id: str) -> Result[UsageSummaryDTO]:
        try:
            subscription = await self.subscription_repo.get_billable_by_company_id(company_id)
            if not subscription:
                subscription = await self.subscription_repo.get_latest_by_company_id(company_id)
            if not subscription:
                return Return.err(not_found("Subscription", f"for company {company_id}"))

            records = await self.usage_repo.get_by_company_id(
                company_id,
                start_date=subscription.current_period_start,
                end_date=subscription.current_period_end,
                limit=SUMMARY_RECORD_LIMIT,
            )
        except Exception as e:
            logger.error(f"Failed to summarize usage for company {company_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to summarize usage"))

        added = sum(
            1 for r in records
            if r.event_type in (UsageEventType.USER_ADDED, UsageEventType.USER_REACTIVATED)
        )
        removed = sum(1 for r in records if r.event_type == UsageEventType.USER_REMOVED)
        total_proration = sum(
            (Decimal(r.proration_amount) for r in records if r.will_affect_next_invoice),
            Decimal("0"),
        )

        return Return.ok(
            UsageSummaryDTO(
                company_id=company_id,
                subscription_id=subscription.id,
                period_start=subscription.current_period_start,
                period_end=subscription.current_period_end,
                current_user_count=subscription.current_user_count,
                users_added=added,
                users_removed=removed,
                total_proration=quantize_money(total_proration),
                records=[UsageRecordDTO.from_entity(r) for r in records],
            )
        )
