"""FinalizeCancellation Use Case

Completes a deferred cancellation once the paid period is over.
"""

import logging
from libs.result import Result, Return
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import error_from_exception, not_found
from src.domain.billing_clock import utc_now
from src.domain.billing_history import BillingEventType
from src.domain.subscription import SubscriptionStatus
from .dtos import StatusChangeResultDTO

logger = logging.getLogger(__name__)


class FinalizeCancellation:
    """
    Use Case: Mark a subscription canceled after the gateway ended it

    Business Rules:
    1. Already canceled is a no-op success
    2. With only_if_period_ended, only subscriptions flagged
       cancel_at_period_end whose current_period_end has passed are
       finalized (used by the cancellation sweep)
    3. The gateway deletion webhook finalizes unconditionally
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        company_repo: CompanyRepository,
        history: BillingHistoryLogger,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.company_repo = company_repo
        self.history = history

    async def execute(
        self, subscription_id: str, only_if_period_ended: bool = False
    ) -> Result[StatusChangeResultDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(subscription_id)
            if not subscription:
                return Return.err(not_found("Subscription", subscription_id))

            unchanged = StatusChangeResultDTO(
                subscription_id=subscription.id,
                status=subscription.status.value,
                changed=False,
            )

            if subscription.status == SubscriptionStatus.CANCELED:
                return Return.ok(unchanged)

            now = utc_now()
            if only_if_period_ended and not (
                subscription.cancel_at_period_end and subscription.current_period_end <= now
            ):
                return Return.ok(unchanged)

            subscription.transition_to(SubscriptionStatus.CANCELED)
            subscription.canceled_at = now
            subscription.cancel_at_period_end = False
            subscription.grace_period_ends_at = None
            await self.subscription_repo.update(subscription)

            company = await self.company_repo.get_by_id(subscription.company_id)
            if company:
                company.mirror_subscription(subscription)
                await self.company_repo.update(company)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to finalize cancellation of subscription {subscription_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to finalize cancellation"))

        await self.history.log(
            company_id=subscription.company_id,
            event_type=BillingEventType.SUBSCRIPTION_CANCELED,
            description="Subscription canceled at period end",
            event_data={"periodEnd": subscription.current_period_end.isoformat()},
            subscription_id=subscription.id,
        )

        logger.info(f"Finalized cancellation of subscription {subscription.id}")

        return Return.ok(
            StatusChangeResultDTO(
                subscription_id=subscription.id,
                status=subscription.status.value,
                changed=True,
            )
        )
