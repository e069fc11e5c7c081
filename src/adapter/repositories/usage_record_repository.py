"""SQLAlchemy Usage Record Repository Implementation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from sqlmodel import select, func
from src.adapter.repositories.base import SqlAlchemyRepository
from src.app.repositories.usage_record_repository import UsageRecordRepository
from src.domain.usage_record import UsageRecord


class SqlAlchemyUsageRecordRepository(SqlAlchemyRepository, UsageRecordRepository):
    """SQLAlchemy implementation of UsageRecordRepository"""

    async def create(self, record: UsageRecord) -> UsageRecord:
        return await self._add(record)

    async def get_by_company_id(
        self,
        company_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[UsageRecord]:
        statement = select(UsageRecord).where(UsageRecord.company_id == company_id)

        if start_date:
            statement = statement.where(UsageRecord.timestamp >= start_date)
        if end_date:
            statement = statement.where(UsageRecord.timestamp <= end_date)

        statement = statement.order_by(UsageRecord.timestamp.desc()).limit(limit)

        result = await self._execute(statement)
        return list(result.scalars().all())

    async def sum_proration(
        self, company_id: str, period_start: datetime, period_end: datetime
    ) -> Decimal:
        statement = (
            select(func.sum(UsageRecord.proration_amount))
            .where(UsageRecord.company_id == company_id)
            .where(UsageRecord.will_affect_next_invoice == True)  # noqa: E712
            .where(UsageRecord.timestamp >= period_start)
            .where(UsageRecord.timestamp <= period_end)
        )
        result = await self._execute(statement)
        total = result.scalar_one_or_none()
        if total is None:
            return Decimal("0")
        return Decimal(str(total))
