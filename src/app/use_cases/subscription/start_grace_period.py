"""StartGracePeriod Use Case

Moves a subscription into past_due with a bounded grace window.
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import error_from_exception, not_found
from src.domain.billing_clock import utc_now, grace_period_end
from src.domain.billing_history import BillingEventType
from src.domain.subscription import Subscription, SubscriptionStatus
from .dtos import StatusChangeResultDTO

logger = logging.getLogger(__name__)


class StartGracePeriod:
    """
    Use Case: Start the grace period after payment retries run out

    Business Rules:
    1. Status becomes past_due
    2. grace_period_ends_at = started_at + grace_period_days
    3. Calling again while past_due refreshes the end date
    4. Company account status follows the subscription

    apply() performs the writes without committing so that payment
    failure handling can start grace in its own transaction.
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

    async def apply(
        self, subscription: Subscription, started_at: Optional[datetime] = None
    ) -> Subscription:
        started_at = started_at or utc_now()

        subscription.transition_to(SubscriptionStatus.PAST_DUE)
        subscription.grace_period_ends_at = grace_period_end(
            started_at, subscription.grace_period_days
        )
        updated = await self.subscription_repo.update(subscription)

        company = await self.company_repo.get_by_id(updated.company_id)
        if company:
            company.mirror_subscription(updated)
            await self.company_repo.update(company)

        return updated

    async def record(self, subscription: Subscription, performed_by: str = "system") -> None:
        await self.history.log(
            company_id=subscription.company_id,
            event_type=BillingEventType.GRACE_PERIOD_STARTED,
            description=f"Grace period started, ends {subscription.grace_period_ends_at.isoformat()}",
            event_data={
                "gracePeriodDays": subscription.grace_period_days,
                "gracePeriodEndsAt": subscription.grace_period_ends_at.isoformat(),
            },
            subscription_id=subscription.id,
            performed_by=performed_by,
        )
        logger.warning(
            f"Subscription {subscription.id} entered grace period until "
            f"{subscription.grace_period_ends_at}"
        )

    async def execute(
        self, subscription_id: str, started_at: Optional[datetime] = None
    ) -> Result[StatusChangeResultDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(subscription_id)
            if not subscription:
                return Return.err(not_found("Subscription", subscription_id))

            subscription = await self.apply(subscription, started_at)
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to start grace period for subscription {subscription_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to start grace period"))

        await self.record(subscription)

        return Return.ok(
            StatusChangeResultDTO(
                subscription_id=subscription.id,
                status=subscription.status.value,
                changed=True,
                grace_period_ends_at=subscription.grace_period_ends_at,
            )
        )
