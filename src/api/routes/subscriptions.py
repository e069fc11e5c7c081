"""Subscription API Routes

FastAPI routes for a company's seat subscription.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.auth import require_company_admin
from src.api.error import ClientError
from src.api.schemas.billing_request import (
    CancelSubscriptionRequestSchema,
    CreateSubscriptionRequestSchema,
    SuccessResponse,
)
from src.adapter.repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemySubscriptionRepository,
    SqlAlchemyUserRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.price_cache import PriceCache
from src.app.use_cases.errors import not_found
from src.app.use_cases.subscription import (
    CancelSubscription,
    CancelSubscriptionCommandDTO,
    CancelSubscriptionResponseDTO,
    CreateSubscription,
    CreateSubscriptionCommandDTO,
    CreateSubscriptionResponseDTO,
    GetCompanySubscription,
    ReactivateSubscription,
    ReactivateSubscriptionCommandDTO,
    SubscriptionDTO,
)
from src.depends import (
    get_history_logger,
    get_payment_gateway,
    get_price_cache,
    get_pricing,
    get_session,
)
from src.domain.pricing import PricingPolicy

router = APIRouter(prefix="/billing/companies/{company_id}/subscription", tags=["Subscriptions"])


async def _billable_subscription_id(session: AsyncSession, company_id: str) -> str:
    subscription = await SqlAlchemySubscriptionRepository(session).get_billable_by_company_id(company_id)
    if not subscription:
        raise ClientError(not_found("Subscription", f"for company {company_id}"))
    return subscription.id


@router.post(
    "",
    response_model=SuccessResponse[CreateSubscriptionResponseDTO],
    status_code=status.HTTP_201_CREATED,
)
async def create_company_subscription(
    company_id: str,
    request: CreateSubscriptionRequestSchema,
    user_id: str = Depends(require_company_admin),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    history: BillingHistoryLogger = Depends(get_history_logger),
    price_cache: PriceCache = Depends(get_price_cache),
    pricing: PricingPolicy = Depends(get_pricing),
):
    """
    Subscribe a company to per-seat billing.

    The seat quantity is the company's active-user count at creation.

    **Returns:**
    - 201: Subscription created; `client_secret` confirms the first payment
    - 409: Company already has a live subscription
    - 502: Payment gateway rejected the request
    """
    use_case = CreateSubscription(
        uow=SqlAlchemyUnitOfWork(session),
        subscription_repo=SqlAlchemySubscriptionRepository(session),
        company_repo=SqlAlchemyCompanyRepository(session),
        user_repo=SqlAlchemyUserRepository(session),
        gateway=gateway,
        history=history,
        price_cache=price_cache,
        pricing=pricing,
    )
    result = await use_case.execute(
        CreateSubscriptionCommandDTO(
            company_id=company_id,
            payment_method_id=request.payment_method_id,
            created_by=user_id,
            start_trial=request.start_trial,
        )
    )

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)


@router.get("", response_model=SuccessResponse[Optional[SubscriptionDTO]])
async def get_company_subscription(
    company_id: str,
    user_id: str = Depends(require_company_admin),
    session: AsyncSession = Depends(get_session),
):
    """Current subscription of the company; `data` is null when it has none"""
    result = await GetCompanySubscription(SqlAlchemySubscriptionRepository(session)).execute(company_id)

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)


@router.post("/cancel", response_model=SuccessResponse[CancelSubscriptionResponseDTO])
async def cancel_company_subscription(
    company_id: str,
    request: CancelSubscriptionRequestSchema,
    user_id: str = Depends(require_company_admin),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    history: BillingHistoryLogger = Depends(get_history_logger),
):
    """
    Cancel the company's subscription.

    By default service continues until the end of the paid period.
    """
    subscription_id = await _billable_subscription_id(session, company_id)

    use_case = CancelSubscription(
        uow=SqlAlchemyUnitOfWork(session),
        subscription_repo=SqlAlchemySubscriptionRepository(session),
        company_repo=SqlAlchemyCompanyRepository(session),
        gateway=gateway,
        history=history,
    )
    result = await use_case.execute(
        CancelSubscriptionCommandDTO(
            subscription_id=subscription_id,
            immediate=request.immediate,
            canceled_by=user_id,
            reason=request.reason,
        )
    )

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)


@router.post("/reactivate", response_model=SuccessResponse[SubscriptionDTO])
async def reactivate_company_subscription(
    company_id: str,
    user_id: str = Depends(require_company_admin),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    history: BillingHistoryLogger = Depends(get_history_logger),
):
    """Undo a pending end-of-period cancellation"""
    subscription_id = await _billable_subscription_id(session, company_id)

    use_case = ReactivateSubscription(
        uow=SqlAlchemyUnitOfWork(session),
        subscription_repo=SqlAlchemySubscriptionRepository(session),
        company_repo=SqlAlchemyCompanyRepository(session),
        gateway=gateway,
        history=history,
    )
    result = await use_case.execute(
        ReactivateSubscriptionCommandDTO(subscription_id=subscription_id, reactivated_by=user_id)
    )

    if result.is_err():
        raise ClientError(result.error)

    return SuccessResponse(data=result.value)
