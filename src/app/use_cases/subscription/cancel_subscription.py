"""CancelSubscription Use Case

Cancels a subscription immediately or at the end of the current period.
"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import ErrorCode, error_from_exception, not_found
from src.domain.billing_clock import utc_now
from src.domain.billing_history import BillingEventType
from src.domain.subscription import SubscriptionStatus
from .dtos import CancelSubscriptionCommandDTO, CancelSubscriptionResponseDTO

logger = logging.getLogger(__name__)


class CancelSubscription:
    """
    Use Case: Cancel a subscription

    Business Rules:
    1. canceled is terminal; canceling again is an error
    2. Immediate cancellation ends service now and clears any grace period
    3. Deferred cancellation only sets cancel_at_period_end; the
       subscription stays usable until current_period_end
    4. Repeating a deferred cancellation is a no-op

    Flow:
    1. Load and validate subscription
    2. Cancel at gateway (now or at period end)
    3. Update subscription and company mirror
    4. Commit, then log subscription_canceled / subscription_updated
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        company_repo: CompanyRepository,
        gateway: PaymentGateway,
        history: BillingHistoryLogger,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.company_repo = company_repo
        self.gateway = gateway
        self.history = history

    async def execute(
        self, command: CancelSubscriptionCommandDTO
    ) -> Result[CancelSubscriptionResponseDTO]:
        """
        Execute cancellation

        Errors:
            subscription-not-found: Unknown subscription
            already-in-terminal-state: Subscription already canceled
            payment-gateway-error: Gateway rejected the cancellation
        """
        changed = True
        try:
            # Step 1: Load and validate
            subscription = await self.subscription_repo.get_by_id(command.subscription_id)
            if not subscription:
                return Return.err(not_found("Subscription", command.subscription_id))

            if subscription.status == SubscriptionStatus.CANCELED:
                return Return.err(
                    Error(
                        code=ErrorCode.ALREADY_IN_TERMINAL_STATE.value,
                        message=f"Subscription {subscription.id} is already canceled",
                    )
                )

            now = utc_now()

            if command.immediate:
                # Step 2a: Cancel now
                await self.gateway.cancel_subscription(subscription.stripe_subscription_id)

                subscription.transition_to(SubscriptionStatus.CANCELED)
                subscription.cancel_at_period_end = False
                subscription.canceled_at = now
                subscription.grace_period_ends_at = None
                await self.subscription_repo.update(subscription)

                company = await self.company_repo.get_by_id(subscription.company_id)
                if company:
                    company.mirror_subscription(subscription)
                    await self.company_repo.update(company)

            elif subscription.cancel_at_period_end:
                changed = False

            else:
                # Step 2b: Cancel at period end
                await self.gateway.set_cancel_at_period_end(
                    subscription.stripe_subscription_id, True
                )
                subscription.cancel_at_period_end = True
                await self.subscription_repo.update(subscription)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to cancel subscription {command.subscription_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to cancel subscription"))

        if changed:
            if command.immediate:
                event_type = BillingEventType.SUBSCRIPTION_CANCELED
                description = "Subscription canceled immediately"
            else:
                event_type = BillingEventType.SUBSCRIPTION_UPDATED
                description = "Subscription set to cancel at period end"

            await self.history.log(
                company_id=subscription.company_id,
                event_type=event_type,
                description=description,
                event_data={
                    "immediate": command.immediate,
                    "reason": command.reason,
                    "periodEnd": subscription.current_period_end.isoformat(),
                },
                subscription_id=subscription.id,
                performed_by=command.canceled_by,
            )
            logger.info(f"{description}: {subscription.id} by {command.canceled_by}")

        return Return.ok(
            CancelSubscriptionResponseDTO(
                subscription_id=subscription.id,
                status=subscription.status.value,
                cancel_at_period_end=subscription.cancel_at_period_end,
                canceled_at=subscription.canceled_at,
                effective_at=subscription.canceled_at or subscription.current_period_end,
            )
        )
