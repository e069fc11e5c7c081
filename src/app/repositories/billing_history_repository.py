"""Billing History Repository Interface"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.billing_history import BillingHistoryEntry


class BillingHistoryRepository(ABC):
    """Append-only access to the billing audit trail"""

    @abstractmethod
    async def create(self, entry: BillingHistoryEntry) -> BillingHistoryEntry:
        pass

    @abstractmethod
    async def get_by_company_id(self, company_id: str, limit: int = 100) -> List[BillingHistoryEntry]:
        pass
