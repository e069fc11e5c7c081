"""Invoice Line Repository Interface"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.invoice_line import InvoiceLine


class InvoiceLineRepository(ABC):
    """Repository interface for InvoiceLine persistence"""

    @abstractmethod
    async def get_by_invoice_id(self, invoice_id: str) -> List[InvoiceLine]:
        """
        Retrieve all line items for an invoice ordered by position

        Args:
            invoice_id: Invoice ID

        Returns:
            List of invoice lines
        """
        pass

    @abstractmethod
    async def create(self, invoice_line: InvoiceLine) -> InvoiceLine:
        pass
