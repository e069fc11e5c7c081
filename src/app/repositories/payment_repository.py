"""Payment Repository Interface

Defines the contract for payment attempt persistence.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from src.domain.payment import Payment


class PaymentRepository(ABC):
    """
    Repository interface for Payment persistence

    update() is a compare-and-swap on Payment.version.
    """

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def get_by_id(self, payment_id: str) -> Optional[Payment]:
        pass

    @abstractmethod
    async def get_by_payment_intent_id(self, payment_intent_id: str) -> Optional[Payment]:
        """
        Retrieve payment by gateway payment intent

        Args:
            payment_intent_id: Gateway payment intent ID

        Returns:
            Most recent Payment for the intent, None if not found
        """
        pass

    @abstractmethod
    async def get_due_for_retry(self, now: datetime, limit: int = 500) -> List[Payment]:
        """
        Failed payments whose retry is due

        status failed, next_retry_date <= now, attempt_number < max_attempts.
        """
        pass

    @abstractmethod
    async def get_by_company_id(self, company_id: str, limit: int = 50) -> List[Payment]:
        """Company payment history, newest attempt first"""
        pass

    @abstractmethod
    async def update(self, payment: Payment) -> Payment:
        """
        Persist changes guarded by the payment's version

        Raises:
            ConcurrentModificationError: Stored version differs
        """
        pass
