"""Seat Change Use Cases

RecordUserAddition and RecordUserRemoval track seat changes against the
company's billable subscription and price the partial period.
"""

import logging
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.usage_record_repository import UsageRecordRepository
from src.app.repositories.user_repository import UserRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import error_from_exception
from src.domain.billing_clock import utc_now, calculate_proration
from src.domain.billing_history import BillingEventType
from src.domain.usage_record import UsageRecord, UsageEventType
from .dtos import SeatChangeCommandDTO, UsageRecordDTO

logger = logging.getLogger(__name__)


class _RecordSeatChange:
    """
    Shared flow for seat additions and removals

    Business Rules:
    1. Companies without a billable subscription are not tracked (returns None)
    2. user_count_after is the authoritative active-user count
    3. Proration covers the rest of the current period, computed once at `now`
    4. A removal's proration is the exact negation of an addition's

    Flow:
    1. Find billable subscription
    2. Count seats and compute proration
    3. Append usage record, store current_user_count
    4. Flip the user's billing flags
    5. Commit, then log user_added / user_removed
    """

    event_type: UsageEventType
    history_event: BillingEventType
    seat_delta: int

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        usage_repo: UsageRecordRepository,
        user_repo: UserRepository,
        history: BillingHistoryLogger,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.usage_repo = usage_repo
        self.user_repo = user_repo
        self.history = history

    def _apply_user_flags(self, user, now) -> None:
        raise NotImplementedError

    async def execute(self, command: SeatChangeCommandDTO) -> Result[Optional[UsageRecordDTO]]:
        try:
            # Step 1: Billable subscription
            subscription = await self.subscription_repo.get_billable_by_company_id(
                command.company_id
            )
            if not subscription:
                logger.info(
                    f"No billable subscription for company {command.company_id}, "
                    f"skipping {self.event_type.value} of {command.user_id}"
                )
                return Return.ok(None)

            # Step 2: Seats and proration
            now = utc_now()
            user_count_after = await self.user_repo.count_active(command.company_id)
            user_count_before = max(user_count_after - self.seat_delta, 0)

            proration = calculate_proration(
                subscription.price_per_user, now, subscription.current_period_end
            )
            if self.seat_delta < 0:
                proration = -proration

            # Step 3: Usage record and seat count
            record = await self.usage_repo.create(
                UsageRecord(
                    company_id=command.company_id,
                    subscription_id=subscription.id,
                    event_type=self.event_type,
                    user_id=command.user_id,
                    user_name=command.user_name,
                    user_email=command.user_email,
                    user_count_before=user_count_before,
                    user_count_after=user_count_after,
                    proration_amount=proration,
                    billing_period_start=subscription.current_period_start,
                    billing_period_end=subscription.current_period_end,
                    will_affect_next_invoice=True,
                    performed_by=command.performed_by,
                    notes=command.notes,
                    timestamp=now,
                )
            )

            subscription.current_user_count = user_count_after
            await self.subscription_repo.update(subscription)

            # Step 4: User billing flags
            user = await self.user_repo.get_by_id(command.user_id)
            if user:
                self._apply_user_flags(user, now)
                await self.user_repo.update(user)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(
                f"Failed to record {self.event_type.value} of {command.user_id} "
                f"for company {command.company_id}: {e}"
            )
            return Return.err(error_from_exception(e, "Failed to record seat change"))

        await self.history.log(
            company_id=command.company_id,
            event_type=self.history_event,
            description=(
                f"User {command.user_name or command.user_id} "
                f"{'added' if self.seat_delta > 0 else 'removed'}"
            ),
            event_data={
                "userCountBefore": user_count_before,
                "userCountAfter": user_count_after,
                "prorationAmount": str(proration),
            },
            subscription_id=subscription.id,
            user_id=command.user_id,
            performed_by=command.performed_by or "system",
        )

        return Return.ok(UsageRecordDTO.from_entity(record))


class RecordUserAddition(_RecordSeatChange):
    """Use Case: A user became active and now occupies a paid seat"""

    event_type = UsageEventType.USER_ADDED
    history_event = BillingEventType.USER_ADDED
    seat_delta = 1

    def _apply_user_flags(self, user, now) -> None:
        user.billing_added_at = now
        user.billing_active = True
        user.billing_last_billed_at = None


class RecordUserRemoval(_RecordSeatChange):
    """Use Case: A user was deactivated and releases a paid seat"""

    event_type = UsageEventType.USER_REMOVED
    history_event = BillingEventType.USER_REMOVED
    seat_delta = -1

    def _apply_user_flags(self, user, now) -> None:
        user.billing_active = False
