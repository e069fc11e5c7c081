"""ReactivateSubscription Use Case"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import ErrorCode, error_from_exception, not_found
from src.domain.billing_history import BillingEventType
from src.domain.subscription import SubscriptionStatus
from .dtos import ReactivateSubscriptionCommandDTO, SubscriptionDTO

logger = logging.getLogger(__name__)

REACTIVATABLE_STATUSES = (
    SubscriptionStatus.PAST_DUE,
    SubscriptionStatus.UNPAID,
    SubscriptionStatus.SUSPENDED,
)


class ReactivateSubscription:
    """
    Use Case: Undo a pending cancellation or restore a delinquent subscription

    Business Rules:
    1. Eligible: cancel_at_period_end set, or status past_due/unpaid/suspended
    2. canceled subscriptions cannot be reactivated
    3. Reactivation sets status active, a trial included, and clears
       grace period and company suspension
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
        self, command: ReactivateSubscriptionCommandDTO
    ) -> Result[SubscriptionDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(command.subscription_id)
            if not subscription:
                return Return.err(not_found("Subscription", command.subscription_id))

            if subscription.status == SubscriptionStatus.CANCELED:
                return Return.err(
                    Error(
                        code=ErrorCode.ALREADY_IN_TERMINAL_STATE.value,
                        message=f"Subscription {subscription.id} is canceled and cannot be reactivated",
                        reason="Create a new subscription instead",
                    )
                )

            pending_cancel = subscription.cancel_at_period_end
            if not pending_cancel and subscription.status not in REACTIVATABLE_STATUSES:
                return Return.err(
                    Error(
                        code=ErrorCode.INVALID_STATE.value,
                        message=f"Subscription {subscription.id} is {subscription.status.value} and not pending cancellation",
                    )
                )

            previous_status = subscription.status

            if pending_cancel:
                await self.gateway.set_cancel_at_period_end(
                    subscription.stripe_subscription_id, False
                )
                subscription.cancel_at_period_end = False

            subscription.transition_to(SubscriptionStatus.ACTIVE)
            subscription.grace_period_ends_at = None
            await self.subscription_repo.update(subscription)

            company = await self.company_repo.get_by_id(subscription.company_id)
            if company:
                company.mirror_subscription(subscription)
                company.suspended_at = None
                company.suspension_reason = None
                await self.company_repo.update(company)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to reactivate subscription {command.subscription_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to reactivate subscription"))

        await self.history.log(
            company_id=subscription.company_id,
            event_type=BillingEventType.ACCOUNT_REACTIVATED,
            description="Subscription reactivated",
            event_data={
                "previousStatus": previous_status.value,
                "pendingCancellationCleared": pending_cancel,
            },
            subscription_id=subscription.id,
            performed_by=command.reactivated_by,
        )

        logger.info(f"Reactivated subscription {subscription.id} (was {previous_status.value})")
        return Return.ok(SubscriptionDTO.from_entity(subscription))
