"""SQLAlchemy Invoice Line Repository Implementation"""

from typing import List
from sqlmodel import select
from src.adapter.repositories.base import SqlAlchemyRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.domain.invoice_line import InvoiceLine


class SqlAlchemyInvoiceLineRepository(SqlAlchemyRepository, InvoiceLineRepository):
    """SQLAlchemy implementation of InvoiceLineRepository"""

    async def get_by_invoice_id(self, invoice_id: str) -> List[InvoiceLine]:
        statement = (
            select(InvoiceLine)
            .where(InvoiceLine.invoice_id == invoice_id)
            .order_by(InvoiceLine.position)
        )
        result = await self._execute(statement)
        return list(result.scalars().all())

    async def create(self, invoice_line: InvoiceLine) -> InvoiceLine:
        return await self._add(invoice_line)
