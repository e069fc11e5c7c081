"""UpdateSubscriptionQuantity Use Case

Reconciles the gateway seat quantity with the company's active users.
"""

import logging
from libs.result import Result, Return
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.user_repository import UserRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import error_from_exception, not_found
from src.domain.billing_history import BillingEventType
from .dtos import QuantitySyncResultDTO

logger = logging.getLogger(__name__)


class UpdateSubscriptionQuantity:
    """
    Use Case: Bring the seat quantity in line with the active-user count

    Business Rules:
    1. Only billable subscriptions (trial/active/past_due) are synced
    2. Unchanged counts are a no-op, so the operation is idempotent
    3. The gateway invoices the proration immediately

    Flow:
    1. Load subscription
    2. Count active users
    3. Update gateway item quantity
    4. Store new count (version-guarded) and commit
    5. Log subscription_updated
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        user_repo: UserRepository,
        gateway: PaymentGateway,
        history: BillingHistoryLogger,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.user_repo = user_repo
        self.gateway = gateway
        self.history = history

    async def execute(self, subscription_id: str) -> Result[QuantitySyncResultDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(subscription_id)
            if not subscription:
                return Return.err(not_found("Subscription", subscription_id))

            previous = subscription.current_user_count
            if not subscription.is_billable:
                return Return.ok(
                    QuantitySyncResultDTO(
                        subscription_id=subscription.id,
                        previous_user_count=previous,
                        current_user_count=previous,
                        changed=False,
                    )
                )

            user_count = await self.user_repo.count_active(subscription.company_id)
            if user_count == previous:
                return Return.ok(
                    QuantitySyncResultDTO(
                        subscription_id=subscription.id,
                        previous_user_count=previous,
                        current_user_count=user_count,
                        changed=False,
                    )
                )

            gateway_subscription = await self.gateway.retrieve_subscription(
                subscription.stripe_subscription_id
            )
            await self.gateway.update_subscription_quantity(
                subscription.stripe_subscription_id,
                gateway_subscription.item_id,
                user_count,
            )

            subscription.current_user_count = user_count
            await self.subscription_repo.update(subscription)
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to sync quantity for subscription {subscription_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to update subscription quantity"))

        await self.history.log(
            company_id=subscription.company_id,
            event_type=BillingEventType.SUBSCRIPTION_UPDATED,
            description=f"Subscription quantity updated from {previous} to {user_count} users",
            event_data={"previousUserCount": previous, "newUserCount": user_count},
            subscription_id=subscription.id,
        )

        logger.info(f"Subscription {subscription.id} quantity {previous} -> {user_count}")

        return Return.ok(
            QuantitySyncResultDTO(
                subscription_id=subscription.id,
                previous_user_count=previous,
                current_user_count=user_count,
                changed=True,
            )
        )
