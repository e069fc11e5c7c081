"""Usage Record Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from src.domain.usage_record import UsageRecord


class UsageRecordRepository(ABC):
    """
    Repository interface for UsageRecord persistence

    Usage records are append-only: there is no update.
    """

    @abstractmethod
    async def create(self, record: UsageRecord) -> UsageRecord:
        pass

    @abstractmethod
    async def get_by_company_id(
        self,
        company_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[UsageRecord]:
        """
        Retrieve usage records, newest first

        Args:
            company_id: Company identifier
            start_date: Inclusive lower bound on timestamp
            end_date: Inclusive upper bound on timestamp
            limit: Maximum number of records

        Returns:
            List of usage records
        """
        pass

    @abstractmethod
    async def sum_proration(
        self, company_id: str, period_start: datetime, period_end: datetime
    ) -> Decimal:
        """
        Sum proration_amount of records that affect the next invoice

        Args:
            company_id: Company identifier
            period_start: Inclusive window start
            period_end: Inclusive window end

        Returns:
            Signed total, zero when there are no records
        """
        pass
