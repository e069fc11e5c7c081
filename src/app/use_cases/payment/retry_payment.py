"""RetryPayment Use Case"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import ErrorCode, error_from_exception, not_found
from src.domain.billing_clock import utc_now
from src.domain.billing_history import BillingEventType
from src.domain.payment import PaymentStatus
from .dtos import PaymentDTO

logger = logging.getLogger(__name__)

RECONFIRMABLE_INTENT_STATUSES = ("requires_payment_method", "requires_confirmation")


class RetryPayment:
    """
    Use Case: Retry a failed payment

    Business Rules:
    1. Exhausted payments (attempt_number >= max_attempts) are rejected
       without any change
    2. succeeded and canceled payments are terminal
    3. The intent is confirmed again only when the gateway still waits
       for a payment method or confirmation
    4. The payment goes back to pending on the next attempt; the outcome
       arrives through gateway events
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        gateway: PaymentGateway,
        history: BillingHistoryLogger,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.gateway = gateway
        self.history = history

    async def execute(self, payment_id: str) -> Result[PaymentDTO]:
        try:
            payment = await self.payment_repo.get_by_id(payment_id)
            if not payment:
                return Return.err(not_found("Payment", payment_id))

            if payment.status in (PaymentStatus.SUCCEEDED, PaymentStatus.CANCELED):
                return Return.err(
                    Error(
                        code=ErrorCode.ALREADY_IN_TERMINAL_STATE.value,
                        message=f"Payment {payment.id} is already {payment.status.value}",
                    )
                )

            if payment.retries_exhausted:
                return Return.err(
                    Error(
                        code=ErrorCode.RETRY_EXHAUSTED.value,
                        message=f"Payment {payment.id} has used all {payment.max_attempts} attempts",
                    )
                )

            intent = await self.gateway.retrieve_payment_intent(payment.stripe_payment_intent_id)
            if intent.status in RECONFIRMABLE_INTENT_STATUSES:
                intent = await self.gateway.confirm_payment_intent(
                    intent.id,
                    idempotency_key=f"retry-{payment.id}-{payment.attempt_number + 1}",
                )

            payment.transition_to(PaymentStatus.PENDING)
            payment.attempt_number += 1
            payment.attempted_at = utc_now()
            payment.next_retry_date = None
            await self.payment_repo.update(payment)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to retry payment {payment_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to retry payment"))

        await self.history.log(
            company_id=payment.company_id,
            event_type=BillingEventType.PAYMENT_RETRY_SCHEDULED,
            description=f"Payment retry attempt {payment.attempt_number} of {payment.max_attempts}",
            event_data={
                "attemptNumber": payment.attempt_number,
                "intentStatus": intent.status,
            },
            subscription_id=payment.subscription_id,
            invoice_id=payment.invoice_id,
            payment_id=payment.id,
        )

        logger.info(f"Retried payment {payment.id}, attempt {payment.attempt_number}")
        return Return.ok(PaymentDTO.from_entity(payment))
