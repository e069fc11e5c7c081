"""Subscription Repository Interface

Defines the contract for subscription persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from src.domain.subscription import Subscription


class SubscriptionRepository(ABC):
    """
    Repository interface for Subscription persistence

    update() is a compare-and-swap on Subscription.version and raises
    ConcurrentModificationError when the stored version moved.
    """

    @abstractmethod
    async def create(self, subscription: Subscription) -> Subscription:
        """
        Create a new subscription

        Args:
            subscription: Subscription entity to persist

        Returns:
            Created Subscription
        """
        pass

    @abstractmethod
    async def get_by_id(self, subscription_id: str) -> Optional[Subscription]:
        """
        Retrieve subscription by ID

        Args:
            subscription_id: Subscription ID

        Returns:
            Subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_stripe_subscription_id(
        self, stripe_subscription_id: str
    ) -> Optional[Subscription]:
        """Retrieve subscription by its gateway reference"""
        pass

    @abstractmethod
    async def get_billable_by_company_id(self, company_id: str) -> Optional[Subscription]:
        """
        Retrieve the company's billable subscription

        Billable means trial, active or past_due. When several exist the
        most recently created wins.

        Args:
            company_id: Company identifier

        Returns:
            Subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_latest_by_company_id(self, company_id: str) -> Optional[Subscription]:
        """Retrieve the company's most recent subscription in any status"""
        pass

    @abstractmethod
    async def update(self, subscription: Subscription) -> Subscription:
        """
        Persist changes guarded by the subscription's version

        Args:
            subscription: Subscription with modified fields and the version it was read at

        Returns:
            Refreshed Subscription with incremented version

        Raises:
            ConcurrentModificationError: Stored version differs
        """
        pass

    @abstractmethod
    async def get_due_for_billing(self, now: datetime, limit: int = 500) -> List[Subscription]:
        """
        Subscriptions the monthly billing job should invoice

        trial/active, next_payment_date <= now, not pending cancellation.
        """
        pass

    @abstractmethod
    async def get_grace_period_expired(self, now: datetime, limit: int = 500) -> List[Subscription]:
        """past_due subscriptions whose grace_period_ends_at <= now"""
        pass

    @abstractmethod
    async def get_pending_cancellation(self, now: datetime, limit: int = 500) -> List[Subscription]:
        """Non-canceled subscriptions flagged cancel_at_period_end whose period ended"""
        pass

    @abstractmethod
    async def get_syncable(self, limit: int = 500) -> List[Subscription]:
        """trial/active subscriptions, for seat reconciliation"""
        pass
