"""Invoice read use cases"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.use_cases.errors import error_from_exception, not_found
from src.domain.invoice import InvoiceStatus
from .dtos import InvoiceDTO, InvoiceListDTO

logger = logging.getLogger(__name__)


class GetInvoice:
    """
    Use Case: Fetch one invoice with its line items

    When company_id is given, invoices of other companies are reported
    as not found.
    """

    def __init__(self, invoice_repo: InvoiceRepository, invoice_line_repo: InvoiceLineRepository):
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo

    async def execute(
        self, invoice_id: str, company_id: Optional[str] = None
    ) -> Result[InvoiceDTO]:
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if not invoice or (company_id and invoice.company_id != company_id):
                return Return.err(not_found("Invoice", invoice_id))

            lines = await self.invoice_line_repo.get_by_invoice_id(invoice.id)
        except Exception as e:
            logger.error(f"Failed to load invoice {invoice_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to load invoice"))

        return Return.ok(InvoiceDTO.from_entity(invoice, lines=lines))


class GetInvoiceByStripeId:
    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(self, stripe_invoice_id: str) -> Result[InvoiceDTO]:
        try:
            invoice = await self.invoice_repo.get_by_stripe_invoice_id(stripe_invoice_id)
        except Exception as e:
            logger.error(f"Failed to load invoice {stripe_invoice_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to load invoice"))

        if not invoice:
            return Return.err(not_found("Invoice", stripe_invoice_id))
        return Return.ok(InvoiceDTO.from_entity(invoice))


class GetCompanyInvoices:
    """Use Case: A company's invoices, newest period first"""

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(
        self,
        company_id: str,
        status: Optional[InvoiceStatus] = None,
        limit: int = 50,
    ) -> Result[InvoiceListDTO]:
        try:
            invoices = await self.invoice_repo.get_by_company_id(
                company_id, status=status, limit=limit
            )
        except Exception as e:
            logger.error(f"Failed to list invoices for company {company_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to list invoices"))

        items = [InvoiceDTO.from_entity(invoice) for invoice in invoices]
        return Return.ok(InvoiceListDTO(invoices=items, count=len(items)))


class GetAllInvoices:
    """
    Use Case: Cross-company invoice listing for super admins

    Business Rules:
    1. Status filter runs in the query; 2 * limit rows are fetched
       newest first
    2. The created_at window is applied in memory, then the list is
       cut to limit
    3. Each invoice is enriched with its company's name
    """

    def __init__(self, invoice_repo: InvoiceRepository, company_repo: CompanyRepository):
        self.invoice_repo = invoice_repo
        self.company_repo = company_repo

    async def execute(
        self,
        status: Optional[InvoiceStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> Result[InvoiceListDTO]:
        try:
            invoices = await self.invoice_repo.list_recent(status=status, limit=limit * 2)

            if start_date:
                invoices = [i for i in invoices if i.created_at >= start_date]
            if end_date:
                invoices = [i for i in invoices if i.created_at <= end_date]
            invoices = invoices[:limit]

            names = await self.company_repo.get_names(
                sorted({invoice.company_id for invoice in invoices})
            )
        except Exception as e:
            logger.error(f"Failed to list invoices: {e}")
            return Return.err(error_from_exception(e, "Failed to list invoices"))

        items = [
            InvoiceDTO.from_entity(invoice, company_name=names.get(invoice.company_id))
            for invoice in invoices
        ]
        return Return.ok(InvoiceListDTO(invoices=items, count=len(items)))
