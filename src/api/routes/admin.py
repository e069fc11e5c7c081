"""Admin API Routes

Super-admin views across all companies.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.auth import require_super_admin
from src.api.error import ClientError
from src.api.schemas.billing_request import SuccessResponse, VoidInvoiceRequestSchema
from src.adapter.repositories import SqlAlchemyCompanyRepository, SqlAlchemyInvoiceRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.invoice import (
    GetAllInvoices,
    InvoiceDTO,
    InvoiceListDTO,
    VoidInvoice,
    VoidInvoiceCommandDTO,
)
from src.depends import get_history_logger, get_payment_gateway, get_session
from src.domain.invoice import InvoiceStatus

router = APIRouter(prefix="/billing/admin", tags=["Admin"])


@router.get("/invoices", response_model=SuccessResponse[InvoiceListDTO])
async def get_all_invoices(
    status: Optional[InvoiceStatus] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None, description="Created on or after (ISO 8601)"),
    end_date: Optional[datetime] = Query(default=None, description="Created on or before (ISO 8601)"),
    limit: int = Query(default=100, ge=1, le=500),
    user_id: str = Depends(require_super_admin),
    session: AsyncSession = Depends(get_session),
):
    """Invoices of every company, each with its company name"""
    use_case = GetAllInvoices(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyCompanyRepository(session),
    )
    result = await use_case.execute(
        status=status, start_date=start_date, end_date=end_date, limit=limit
    )

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)


@router.post("/invoices/{invoice_id}/void", response_model=SuccessResponse[InvoiceDTO])
async def void_invoice(
    invoice_id: str,
    request: VoidInvoiceRequestSchema,
    user_id: str = Depends(require_super_admin),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    history: BillingHistoryLogger = Depends(get_history_logger),
):
    """
    Void an open or uncollectible invoice.

    **Returns:**
    - 200: Invoice voided at the gateway and locally
    - 409: Invoice is already paid or void
    """
    use_case = VoidInvoice(
        uow=SqlAlchemyUnitOfWork(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        gateway=gateway,
        history=history,
    )
    result = await use_case.execute(
        VoidInvoiceCommandDTO(invoice_id=invoice_id, reason=request.reason, voided_by=user_id)
    )

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)
