"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from datetime import datetime
from src.domain.invoice import Invoice, InvoiceStatus


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    Provides access to invoice data for billing operations.
    """

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice
        """
        pass

    @abstractmethod
    async def get_by_id(self, invoice_id: str) -> Optional[Invoice]:
        """
        Retrieve invoice by ID

        Args:
            invoice_id: Invoice ID

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_stripe_invoice_id(self, stripe_invoice_id: str) -> Optional[Invoice]:
        """
        Retrieve invoice by gateway invoice reference

        Used by webhook handlers, which only know the gateway ID.

        Args:
            stripe_invoice_id: Gateway invoice ID

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_for_period(
        self, subscription_id: str, period_start: datetime
    ) -> Optional[Invoice]:
        """
        Retrieve the invoice already issued for a billing period

        Used to prevent duplicate invoice generation.

        Args:
            subscription_id: Subscription identifier
            period_start: Start of billing period

        Returns:
            Invoice if one exists, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_company_id(
        self,
        company_id: str,
        status: Optional[InvoiceStatus] = None,
        limit: int = 50,
    ) -> List[Invoice]:
        """
        Retrieve a company's invoices, newest period first

        Args:
            company_id: Company identifier
            status: Optional filter by status
            limit: Maximum number of invoices to return

        Returns:
            List of invoices
        """
        pass

    @abstractmethod
    async def list_recent(
        self, status: Optional[InvoiceStatus] = None, limit: int = 200
    ) -> List[Invoice]:
        """Retrieve invoices across companies, newest created first"""
        pass

    @abstractmethod
    async def update(self, invoice: Invoice) -> Invoice:
        """
        Persist changes guarded by the invoice's version

        Raises:
            ConcurrentModificationError: Stored version differs
        """
        pass
