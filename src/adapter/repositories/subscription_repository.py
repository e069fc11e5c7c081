"""SQLAlchemy Subscription Repository Implementation

Implements subscription persistence using SQLAlchemy async session.
"""

from datetime import datetime
from typing import Optional, List
from sqlmodel import select
from src.adapter.repositories.base import SqlAlchemyRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.subscription import Subscription, SubscriptionStatus, BILLABLE_STATUSES

SYNCABLE_STATUSES = (SubscriptionStatus.TRIAL, SubscriptionStatus.ACTIVE)


class SqlAlchemySubscriptionRepository(SqlAlchemyRepository, SubscriptionRepository):
    """
    SQLAlchemy implementation of SubscriptionRepository

    Uses async session for database operations.
    """

    async def create(self, subscription: Subscription) -> Subscription:
        return await self._add(subscription)

    async def get_by_id(self, subscription_id: str) -> Optional[Subscription]:
        statement = select(Subscription).where(Subscription.id == subscription_id)
        result = await self._execute(statement)
        return result.scalar_one_or_none()

    async def get_by_stripe_subscription_id(
        self, stripe_subscription_id: str
    ) -> Optional[Subscription]:
        statement = (
            select(Subscription)
            .where(Subscription.stripe_subscription_id == stripe_subscription_id)
            .order_by(Subscription.created_at.desc())
            .limit(1)
        )
        result = await self._execute(statement)
        return result.scalars().first()

    async def get_billable_by_company_id(self, company_id: str) -> Optional[Subscription]:
        """
        Retrieve the company's billable subscription

        Args:
            company_id: Company identifier

        Returns:
            Most recent trial/active/past_due subscription, None otherwise
        """
        statement = (
            select(Subscription)
            .where(Subscription.company_id == company_id)
            .where(Subscription.status.in_(BILLABLE_STATUSES))
            .order_by(Subscription.created_at.desc())
            .limit(1)
        )
        result = await self._execute(statement)
        return result.scalars().first()

    async def get_latest_by_company_id(self, company_id: str) -> Optional[Subscription]:
        statement = (
            select(Subscription)
            .where(Subscription.company_id == company_id)
            .order_by(Subscription.created_at.desc())
            .limit(1)
        )
        result = await self._execute(statement)
        return result.scalars().first()

    async def update(self, subscription: Subscription) -> Subscription:
        return await self._compare_and_swap(subscription)

    async def get_due_for_billing(self, now: datetime, limit: int = 500) -> List[Subscription]:
        statement = (
            select(Subscription)
            .where(Subscription.status.in_(SYNCABLE_STATUSES))
            .where(Subscription.next_payment_date <= now)
            .where(Subscription.cancel_at_period_end == False)  # noqa: E712
            .order_by(Subscription.next_payment_date)
            .limit(limit)
        )
        result = await self._execute(statement)
        return list(result.scalars().all())

    async def get_grace_period_expired(self, now: datetime, limit: int = 500) -> List[Subscription]:
        statement = (
            select(Subscription)
            .where(Subscription.status == SubscriptionStatus.PAST_DUE)
            .where(Subscription.grace_period_ends_at <= now)
            .limit(limit)
        )
        result = await self._execute(statement)
        return list(result.scalars().all())

    async def get_pending_cancellation(self, now: datetime, limit: int = 500) -> List[Subscription]:
        statement = (
            select(Subscription)
            .where(Subscription.cancel_at_period_end == True)  # noqa: E712
            .where(Subscription.status != SubscriptionStatus.CANCELED)
            .where(Subscription.current_period_end <= now)
            .limit(limit)
        )
        result = await self._execute(statement)
        return list(result.scalars().all())

    async def get_syncable(self, limit: int = 500) -> List[Subscription]:
        statement = (
            select(Subscription)
            .where(Subscription.status.in_(SYNCABLE_STATUSES))
            .order_by(Subscription.created_at)
            .limit(limit)
        )
        result = await self._execute(statement)
        return list(result.scalars().all())
