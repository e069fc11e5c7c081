"""SuspendAccount Use Case"""

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


class SuspendAccount:
    """
    Use Case: Suspend a company whose grace period has run out

    Business Rules:
    1. Status becomes suspended and the grace window is cleared
    2. Company is marked suspended with a reason
    3. Already suspended is a no-op success
    4. With only_if_grace_expired, the grace deadline is re-checked on
       the freshly read record so a payment that landed meanwhile wins
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
        self,
        subscription_id: str,
        reason: str = "grace_period_expired",
        only_if_grace_expired: bool = False,
    ) -> Result[StatusChangeResultDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(subscription_id)
            if not subscription:
                return Return.err(not_found("Subscription", subscription_id))

            unchanged = StatusChangeResultDTO(
                subscription_id=subscription.id,
                status=subscription.status.value,
                changed=False,
                grace_period_ends_at=subscription.grace_period_ends_at,
            )

            if subscription.status == SubscriptionStatus.SUSPENDED:
                return Return.ok(unchanged)

            now = utc_now()
            if only_if_grace_expired:
                expired = (
                    subscription.status == SubscriptionStatus.PAST_DUE
                    and subscription.grace_period_ends_at is not None
                    and subscription.grace_period_ends_at <= now
                )
                if not expired:
                    return Return.ok(unchanged)

            subscription.transition_to(SubscriptionStatus.SUSPENDED)
            subscription.grace_period_ends_at = None
            await self.subscription_repo.update(subscription)

            company = await self.company_repo.get_by_id(subscription.company_id)
            if company:
                company.mirror_subscription(subscription)
                company.suspended_at = now
                company.suspension_reason = reason
                await self.company_repo.update(company)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to suspend subscription {subscription_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to suspend account"))

        await self.history.log(
            company_id=subscription.company_id,
            event_type=BillingEventType.ACCOUNT_SUSPENDED,
            description=f"Account suspended: {reason}",
            event_data={"reason": reason, "suspendedAt": now.isoformat()},
            subscription_id=subscription.id,
        )

        logger.warning(f"Suspended company {subscription.company_id} ({reason})")

        return Return.ok(
            StatusChangeResultDTO(
                subscription_id=subscription.id,
                status=subscription.status.value,
                changed=True,
            )
        )
