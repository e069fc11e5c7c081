"""SQLAlchemy Billing History Repository Implementation"""

from typing import List
from sqlmodel import select
from src.adapter.repositories.base import SqlAlchemyRepository
from src.app.repositories.billing_history_repository import BillingHistoryRepository
from src.domain.billing_history import BillingHistoryEntry


class SqlAlchemyBillingHistoryRepository(SqlAlchemyRepository, BillingHistoryRepository):

    async def create(self, entry: BillingHistoryEntry) -> BillingHistoryEntry:
        return await self._add(entry)

    async def get_by_company_id(self, company_id: str, limit: int = 100) -> List[BillingHistoryEntry]:
        statement = (
            select(BillingHistoryEntry)
            .where(BillingHistoryEntry.company_id == company_id)
            .order_by(BillingHistoryEntry.timestamp.desc())
            .limit(limit)
        )
        result = await self._execute(statement)
        return list(result.scalars().all())
