"""Payment API Routes

FastAPI routes for payment methods and payment history.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.auth import require_company_admin
from src.api.error import ClientError
from src.api.schemas.billing_request import AddPaymentMethodRequestSchema, SuccessResponse
from src.adapter.repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyPaymentMethodRepository,
    SqlAlchemyPaymentRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.payment import (
    AddPaymentMethod,
    AddPaymentMethodCommandDTO,
    GetPaymentHistory,
    GetPaymentMethods,
    PaymentListDTO,
    PaymentMethodDTO,
    PaymentMethodListDTO,
    RemovePaymentMethod,
)
from src.depends import get_history_logger, get_payment_gateway, get_session

router = APIRouter(prefix="/billing/companies/{company_id}", tags=["Payments"])


@router.post(
    "/payment-methods",
    response_model=SuccessResponse[PaymentMethodDTO],
    status_code=status.HTTP_201_CREATED,
)
async def add_company_payment_method(
    company_id: str,
    request: AddPaymentMethodRequestSchema,
    user_id: str = Depends(require_company_admin),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    history: BillingHistoryLogger = Depends(get_history_logger),
):
    """
    Attach a payment method to the company's gateway customer.

    Only a redacted summary (brand, last four digits, expiry) is stored.
    """
    use_case = AddPaymentMethod(
        uow=SqlAlchemyUnitOfWork(session),
        payment_method_repo=SqlAlchemyPaymentMethodRepository(session),
        company_repo=SqlAlchemyCompanyRepository(session),
        gateway=gateway,
        history=history,
    )
    result = await use_case.execute(
        AddPaymentMethodCommandDTO(
            company_id=company_id,
            stripe_payment_method_id=request.stripe_payment_method_id,
            set_as_default=request.set_as_default,
            added_by=user_id,
        )
    )

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)


@router.get("/payment-methods", response_model=SuccessResponse[PaymentMethodListDTO])
async def get_company_payment_methods(
    company_id: str,
    user_id: str = Depends(require_company_admin),
    session: AsyncSession = Depends(get_session),
):
    result = await GetPaymentMethods(SqlAlchemyPaymentMethodRepository(session)).execute(company_id)

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)


@router.delete("/payment-methods/{payment_method_id}", response_model=SuccessResponse[PaymentMethodDTO])
async def remove_company_payment_method(
    company_id: str,
    payment_method_id: str,
    user_id: str = Depends(require_company_admin),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    history: BillingHistoryLogger = Depends(get_history_logger),
):
    """Detach a payment method; the default method cannot be removed"""
    use_case = RemovePaymentMethod(
        uow=SqlAlchemyUnitOfWork(session),
        payment_method_repo=SqlAlchemyPaymentMethodRepository(session),
        gateway=gateway,
        history=history,
    )
    result = await use_case.execute(payment_method_id, removed_by=user_id, company_id=company_id)

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)


@router.get("/payments", response_model=SuccessResponse[PaymentListDTO])
async def get_company_payment_history(
    company_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(require_company_admin),
    session: AsyncSession = Depends(get_session),
):
    result = await GetPaymentHistory(SqlAlchemyPaymentRepository(session)).execute(company_id, limit=limit)

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)
