"""ConfirmPaymentSucceeded Use Case"""

import logging
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import error_from_exception, not_found
from src.domain.billing_clock import utc_now
from src.domain.billing_history import BillingEventType
from src.domain.payment import PaymentStatus
from .dtos import PaymentDTO

logger = logging.getLogger(__name__)


class ConfirmPaymentSucceeded:
    """
    Use Case: Mark a pending or failed payment as succeeded

    A payment that already succeeded is returned unchanged.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        history: BillingHistoryLogger,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.history = history

    async def execute(
        self, payment_intent_id: str, charge_id: Optional[str] = None
    ) -> Result[PaymentDTO]:
        try:
            payment = await self.payment_repo.get_by_payment_intent_id(payment_intent_id)
            if not payment:
                return Return.err(not_found("Payment", payment_intent_id))

            if payment.status == PaymentStatus.SUCCEEDED:
                return Return.ok(PaymentDTO.from_entity(payment))

            payment.transition_to(PaymentStatus.SUCCEEDED)
            payment.succeeded_at = utc_now()
            payment.next_retry_date = None
            if charge_id:
                payment.stripe_charge_id = charge_id
            await self.payment_repo.update(payment)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to confirm payment {payment_intent_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to confirm payment"))

        await self.history.log(
            company_id=payment.company_id,
            event_type=BillingEventType.PAYMENT_SUCCEEDED,
            description=f"Payment of {payment.amount} {payment.currency.upper()} succeeded",
            event_data={
                "paymentIntentId": payment_intent_id,
                "attemptNumber": payment.attempt_number,
            },
            subscription_id=payment.subscription_id,
            invoice_id=payment.invoice_id,
            payment_id=payment.id,
        )

        return Return.ok(PaymentDTO.from_entity(payment))
