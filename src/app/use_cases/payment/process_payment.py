"""ProcessPayment Use Case

Records a payment attempt for an invoice from its gateway payment intent.
"""

import logging
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import error_from_exception, not_found
from src.domain.billing_clock import utc_now, from_minor_units
from src.domain.billing_history import BillingEventType
from src.domain.exceptions import DuplicateEntityError
from src.domain.payment import Payment, PaymentStatus
from src.domain.pricing import PricingPolicy
from .dtos import PaymentDTO

logger = logging.getLogger(__name__)

INTENT_STATUS_MAP = {
    "succeeded": PaymentStatus.SUCCEEDED,
    "canceled": PaymentStatus.CANCELED,
}


class ProcessPayment:
    """
    Use Case: Record the first attempt of an invoice payment

    Business Rules:
    1. One payment per payment intent; repeats return the stored payment,
       including a repeat that loses the insert race
    2. Status follows the intent: succeeded, canceled, anything else pending
    3. Only a redacted payment method summary is stored
    4. max_attempts comes from PricingPolicy.max_payment_retries
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        invoice_repo: InvoiceRepository,
        gateway: PaymentGateway,
        history: BillingHistoryLogger,
        pricing: Optional[PricingPolicy] = None,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.invoice_repo = invoice_repo
        self.gateway = gateway
        self.history = history
        self.pricing = pricing or PricingPolicy()

    async def execute(self, invoice_id: str, payment_intent_id: str) -> Result[PaymentDTO]:
        try:
            existing = await self.payment_repo.get_by_payment_intent_id(payment_intent_id)
            if existing:
                return Return.ok(PaymentDTO.from_entity(existing))

            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if not invoice:
                return Return.err(not_found("Invoice", invoice_id))

            intent = await self.gateway.retrieve_payment_intent(payment_intent_id)

            summary = None
            if intent.payment_method_id:
                method = await self.gateway.retrieve_payment_method(intent.payment_method_id)
                summary = method.summary()

            now = utc_now()
            status = INTENT_STATUS_MAP.get(intent.status, PaymentStatus.PENDING)

            try:
                payment = await self.payment_repo.create(
                    Payment(
                        company_id=invoice.company_id,
                        subscription_id=invoice.subscription_id,
                        invoice_id=invoice.id,
                        stripe_payment_intent_id=intent.id,
                        stripe_charge_id=intent.charge_id,
                        stripe_payment_method_id=intent.payment_method_id,
                        amount=from_minor_units(intent.amount),
                        currency=intent.currency,
                        status=status,
                        payment_method_summary=summary,
                        attempt_number=1,
                        max_attempts=self.pricing.max_payment_retries,
                        attempted_at=now,
                        succeeded_at=now if status == PaymentStatus.SUCCEEDED else None,
                    )
                )
                await self.uow.commit()
            except DuplicateEntityError:
                # Another delivery recorded this intent first
                await self.uow.rollback()
                winner = await self.payment_repo.get_by_payment_intent_id(payment_intent_id)
                logger.info(f"Payment for intent {payment_intent_id} already recorded as {winner.id}")
                return Return.ok(PaymentDTO.from_entity(winner))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to process payment {payment_intent_id} for invoice {invoice_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to process payment"))

        if payment.status == PaymentStatus.SUCCEEDED:
            await self.history.log(
                company_id=payment.company_id,
                event_type=BillingEventType.PAYMENT_SUCCEEDED,
                description=f"Payment of {payment.amount} {payment.currency.upper()} succeeded",
                event_data={"paymentIntentId": payment.stripe_payment_intent_id},
                subscription_id=payment.subscription_id,
                invoice_id=payment.invoice_id,
                payment_id=payment.id,
            )

        logger.info(f"Recorded {payment.status.value} payment {payment.id} for invoice {invoice_id}")
        return Return.ok(PaymentDTO.from_entity(payment))
