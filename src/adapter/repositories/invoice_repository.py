"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session.
"""

from typing import Optional, List
from datetime import datetime
from sqlmodel import select
from src.adapter.repositories.base import SqlAlchemyRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice, InvoiceStatus


class SqlAlchemyInvoiceRepository(SqlAlchemyRepository, InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Uses async session for database operations.
    """

    async def create(self, invoice: Invoice) -> Invoice:
        return await self._add(invoice)

    async def get_by_id(self, invoice_id: str) -> Optional[Invoice]:
        statement = select(Invoice).where(Invoice.id == invoice_id)
        result = await self._execute(statement)
        return result.scalar_one_or_none()

    async def get_by_stripe_invoice_id(self, stripe_invoice_id: str) -> Optional[Invoice]:
        statement = (
            select(Invoice)
            .where(Invoice.stripe_invoice_id == stripe_invoice_id)
            .limit(1)
        )
        result = await self._execute(statement)
        return result.scalars().first()

    async def get_for_period(
        self, subscription_id: str, period_start: datetime
    ) -> Optional[Invoice]:
        """
        Retrieve the non-void invoice issued for a billing period

        Args:
            subscription_id: Subscription identifier
            period_start: Start of billing period

        Returns:
            Invoice if one exists, None otherwise
        """
        statement = (
            select(Invoice)
            .where(Invoice.subscription_id == subscription_id)
            .where(Invoice.period_start == period_start)
            .where(Invoice.status != InvoiceStatus.VOID)
            .limit(1)
        )
        result = await self._execute(statement)
        return result.scalars().first()

    async def get_by_company_id(
        self,
        company_id: str,
        status: Optional[InvoiceStatus] = None,
        limit: int = 50,
    ) -> List[Invoice]:
        statement = select(Invoice).where(Invoice.company_id == company_id)

        if status:
            statement = statement.where(Invoice.status == status)

        statement = statement.order_by(Invoice.period_start.desc()).limit(limit)

        result = await self._execute(statement)
        return list(result.scalars().all())

    async def list_recent(
        self, status: Optional[InvoiceStatus] = None, limit: int = 200
    ) -> List[Invoice]:
        statement = select(Invoice)

        if status:
            statement = statement.where(Invoice.status == status)

        statement = statement.order_by(Invoice.created_at.desc()).limit(limit)

        result = await self._execute(statement)
        return list(result.scalars().all())

    async def update(self, invoice: Invoice) -> Invoice:
        return await self._compare_and_swap(invoice)
