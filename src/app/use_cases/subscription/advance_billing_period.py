"""AdvanceBillingPeriod Use Case

Rolls a subscription into its next billing period after invoicing.
"""

import logging
from datetime import datetime
from libs.result import Result, Return
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import error_from_exception, not_found
from src.domain.billing_clock import utc_now, add_months, next_billing_date
from src.domain.subscription import SubscriptionStatus
from .dtos import SubscriptionDTO

logger = logging.getLogger(__name__)


class AdvanceBillingPeriod:
    """
    Use Case: Move the billing window forward one month

    Business Rules:
    1. new start = old end, new end = old end + 1 month,
       next_payment_date = new end + 1 month
    2. Only rolls when current_period_end still equals expected_period_end,
       so a re-run after a successful roll is a no-op
    3. A trial whose trial_end has passed becomes active
    4. The write is version-guarded; a concurrent change raises conflict
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        company_repo: CompanyRepository,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.company_repo = company_repo

    async def execute(
        self, subscription_id: str, expected_period_end: datetime
    ) -> Result[SubscriptionDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(subscription_id)
            if not subscription:
                return Return.err(not_found("Subscription", subscription_id))

            if subscription.current_period_end != expected_period_end:
                logger.info(f"Subscription {subscription.id} period already advanced")
                return Return.ok(SubscriptionDTO.from_entity(subscription))

            now = utc_now()
            old_end = subscription.current_period_end
            subscription.current_period_start = old_end
            subscription.current_period_end = add_months(old_end, 1)
            subscription.next_payment_date = next_billing_date(subscription.current_period_end)

            trial_ended = (
                subscription.status == SubscriptionStatus.TRIAL
                and subscription.trial_end is not None
                and subscription.trial_end <= now
            )
            if trial_ended:
                subscription.transition_to(SubscriptionStatus.ACTIVE)

            await self.subscription_repo.update(subscription)

            company = await self.company_repo.get_by_id(subscription.company_id)
            if company:
                company.mirror_subscription(subscription)
                await self.company_repo.update(company)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to advance billing period of subscription {subscription_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to advance billing period"))

        logger.info(
            f"Subscription {subscription.id} period now "
            f"{subscription.current_period_start} - {subscription.current_period_end}"
        )
        return Return.ok(SubscriptionDTO.from_entity(subscription))
