"""HandlePaymentFailure Use Case

Counts failed charges and starts the grace period once retries run out.
"""

import logging
from datetime import timedelta
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import error_from_exception, not_found
from src.app.use_cases.subscription.start_grace_period import StartGracePeriod
from src.domain.billing_clock import utc_now
from src.domain.billing_history import BillingEventType
from src.domain.payment import PaymentStatus
from src.domain.pricing import PricingPolicy
from src.domain.subscription import SubscriptionStatus, SubscriptionPaymentStatus
from .dtos import PaymentFailureCommandDTO, PaymentFailureResultDTO

logger = logging.getLogger(__name__)


class HandlePaymentFailure:
    """
    Use Case: Record a failed payment attempt

    Business Rules:
    1. A pending payment fails on its current attempt
    2. A payment that is already failed counts a further attempt,
       capped at max_attempts
    3. Below max_attempts a retry is scheduled retry_delay_days later
    4. At max_attempts no retry is scheduled and the grace period starts,
       exactly once per payment (guarded by grace_period_triggered)
    5. The subscription's payment_status becomes failed
    6. Late failures for succeeded or canceled payments are ignored

    Flow:
    1. Resolve payment
    2. Record failure and schedule retry
    3. Update subscription (and start grace) in the same transaction
    4. Commit, then log payment_failed (and grace_period_started)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        subscription_repo: SubscriptionRepository,
        company_repo: CompanyRepository,
        history: BillingHistoryLogger,
        pricing: Optional[PricingPolicy] = None,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.subscription_repo = subscription_repo
        self.history = history
        self.pricing = pricing or PricingPolicy()
        self.grace = StartGracePeriod(uow, subscription_repo, company_repo, history)

    async def execute(self, command: PaymentFailureCommandDTO) -> Result[PaymentFailureResultDTO]:
        grace_started = False
        subscription = None
        try:
            # Step 1: Resolve payment
            if command.payment_id:
                payment = await self.payment_repo.get_by_id(command.payment_id)
            else:
                payment = await self.payment_repo.get_by_payment_intent_id(command.payment_intent_id)
            if not payment:
                return Return.err(
                    not_found("Payment", command.payment_id or command.payment_intent_id)
                )

            if payment.status in (PaymentStatus.SUCCEEDED, PaymentStatus.CANCELED):
                logger.warning(
                    f"Ignoring failure for {payment.status.value} payment {payment.id}"
                )
                return Return.ok(
                    PaymentFailureResultDTO(
                        payment_id=payment.id,
                        status=payment.status.value,
                        attempt_number=payment.attempt_number,
                        max_attempts=payment.max_attempts,
                    )
                )

            # Step 2: Record failure
            now = utc_now()
            if payment.status == PaymentStatus.FAILED:
                payment.attempt_number = min(payment.attempt_number + 1, payment.max_attempts)
            payment.transition_to(PaymentStatus.FAILED)
            payment.failure_code = command.failure_code
            payment.failure_message = command.failure_message
            payment.failed_at = now

            start_grace = False
            if payment.attempt_number < payment.max_attempts:
                payment.next_retry_date = now + timedelta(days=self.pricing.payment_retry_delay_days)
            else:
                payment.next_retry_date = None
                if not payment.grace_period_triggered:
                    payment.grace_period_triggered = True
                    start_grace = True

            await self.payment_repo.update(payment)

            # Step 3: Subscription
            subscription = await self.subscription_repo.get_by_id(payment.subscription_id)
            if subscription:
                subscription.payment_status = SubscriptionPaymentStatus.FAILED
                if start_grace and subscription.can_transition_to(SubscriptionStatus.PAST_DUE):
                    subscription = await self.grace.apply(subscription, now)
                    grace_started = True
                else:
                    if start_grace:
                        logger.warning(
                            f"Retries exhausted for payment {payment.id} but subscription "
                            f"{subscription.id} is {subscription.status.value}; grace not started"
                        )
                    subscription = await self.subscription_repo.update(subscription)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to record payment failure {command.payment_intent_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to handle payment failure"))

        await self.history.log(
            company_id=payment.company_id,
            event_type=BillingEventType.PAYMENT_FAILED,
            description=(
                f"Payment failed (attempt {payment.attempt_number} of {payment.max_attempts})"
            ),
            event_data={
                "attemptNumber": payment.attempt_number,
                "maxAttempts": payment.max_attempts,
                "failureCode": payment.failure_code,
                "failureMessage": payment.failure_message,
                "nextRetryDate": payment.next_retry_date.isoformat() if payment.next_retry_date else None,
            },
            subscription_id=payment.subscription_id,
            invoice_id=payment.invoice_id,
            payment_id=payment.id,
        )
        if grace_started:
            await self.grace.record(subscription)

        logger.warning(
            f"Payment {payment.id} failed, attempt {payment.attempt_number}/{payment.max_attempts}"
        )

        return Return.ok(
            PaymentFailureResultDTO(
                payment_id=payment.id,
                status=payment.status.value,
                attempt_number=payment.attempt_number,
                max_attempts=payment.max_attempts,
                next_retry_date=payment.next_retry_date,
                grace_period_started=grace_started,
            )
        )
