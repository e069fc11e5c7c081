"""Webhook API Routes

Receives payment gateway events. Signature verification happens before
anything is read from the payload.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, Request, status
from sqlmodel.ext.asyncio.session import AsyncSession

from libs.result import Error
from src.api.error import ClientError
from src.api.schemas.billing_request import WebhookAckResponse
from src.adapter.repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemySubscriptionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway, WebhookVerificationError
from src.app.use_cases.errors import ErrorCode
from src.app.use_cases.invoice import MarkInvoiceAsPaid
from src.app.use_cases.payment import ConfirmPaymentSucceeded, HandlePaymentFailure, ProcessPayment
from src.app.use_cases.subscription import FinalizeCancellation
from src.app.use_cases.webhook import HandleGatewayEvent
from src.depends import get_history_logger, get_payment_gateway, get_pricing, get_session
from src.domain.pricing import PricingPolicy

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing/webhooks", tags=["Webhooks"])


def build_gateway_event_handler(
    session: AsyncSession,
    gateway: PaymentGateway,
    history: BillingHistoryLogger,
    pricing: Optional[PricingPolicy] = None,
) -> HandleGatewayEvent:
    uow = SqlAlchemyUnitOfWork(session)
    invoice_repo = SqlAlchemyInvoiceRepository(session)
    payment_repo = SqlAlchemyPaymentRepository(session)
    subscription_repo = SqlAlchemySubscriptionRepository(session)
    company_repo = SqlAlchemyCompanyRepository(session)

    return HandleGatewayEvent(
        invoice_repo=invoice_repo,
        payment_repo=payment_repo,
        subscription_repo=subscription_repo,
        history=history,
        mark_invoice_paid=MarkInvoiceAsPaid(uow, invoice_repo, subscription_repo, company_repo, history),
        process_payment=ProcessPayment(uow, payment_repo, invoice_repo, gateway, history, pricing=pricing),
        handle_payment_failure=HandlePaymentFailure(
            uow, payment_repo, subscription_repo, company_repo, history, pricing=pricing
        ),
        confirm_payment_succeeded=ConfirmPaymentSucceeded(uow, payment_repo, history),
        finalize_cancellation=FinalizeCancellation(uow, subscription_repo, company_repo, history),
    )


@router.post("/stripe", response_model=WebhookAckResponse)
async def receive_stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    history: BillingHistoryLogger = Depends(get_history_logger),
    pricing: PricingPolicy = Depends(get_pricing),
):
    """
    Stripe webhook endpoint.

    **Returns:**
    - 200: `{"received": true}`, also for event types that are ignored
    - 400: Missing or invalid signature
    - 400: Processing failed; Stripe redelivers the event
    """
    payload = await request.body()
    if not stripe_signature:
        raise ClientError(
            Error(code=ErrorCode.INVALID_ARGUMENT.value, message="Missing Stripe-Signature header")
        )

    try:
        event = gateway.construct_event(payload, stripe_signature)
    except WebhookVerificationError as e:
        logger.warning(f"Rejected webhook: {e}")
        raise ClientError(
            Error(code=ErrorCode.INVALID_ARGUMENT.value, message="Webhook signature verification failed", reason=str(e))
        )

    handler = build_gateway_event_handler(session, gateway, history, pricing)
    result = await handler.execute(event)

    if result.is_err():
        logger.error(f"Webhook {event.id} ({event.type}) failed: {result.error.code} {result.error.message}")
        raise ClientError(result.error, status_code=status.HTTP_400_BAD_REQUEST)

    return WebhookAckResponse(received=True)
