"""Invoice API Routes

FastAPI routes for a company's invoices.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.auth import require_company_admin
from src.api.error import ClientError
from src.api.schemas.billing_request import SuccessResponse
from src.adapter.repositories import SqlAlchemyInvoiceLineRepository, SqlAlchemyInvoiceRepository
from src.app.use_cases.invoice import GetCompanyInvoices, GetInvoice, InvoiceDTO, InvoiceListDTO
from src.depends import get_session
from src.domain.invoice import InvoiceStatus

router = APIRouter(prefix="/billing/companies/{company_id}/invoices", tags=["Invoices"])


@router.get("", response_model=SuccessResponse[InvoiceListDTO])
async def get_invoices(
    company_id: str,
    status: Optional[InvoiceStatus] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(require_company_admin),
    session: AsyncSession = Depends(get_session),
):
    """
    List the company's invoices, newest period first.

    **Query parameters:**
    - `status` (optional): draft, open, paid, void or uncollectible
    - `limit` (optional): Maximum invoices returned (1-200, default 50)
    """
    use_case = GetCompanyInvoices(SqlAlchemyInvoiceRepository(session))
    result = await use_case.execute(company_id, status=status, limit=limit)

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)


@router.get("/{invoice_id}", response_model=SuccessResponse[InvoiceDTO])
async def get_invoice(
    company_id: str,
    invoice_id: str,
    user_id: str = Depends(require_company_admin),
    session: AsyncSession = Depends(get_session),
):
    """One invoice with its line items; 404 if it belongs to another company"""
    use_case = GetInvoice(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
    )
    result = await use_case.execute(invoice_id, company_id=company_id)

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)
