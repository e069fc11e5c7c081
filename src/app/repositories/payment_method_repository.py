"""Payment Method Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional, List
from src.domain.payment_method import PaymentMethod


class PaymentMethodRepository(ABC):
    """Repository interface for stored payment method summaries"""

    @abstractmethod
    async def create(self, payment_method: PaymentMethod) -> PaymentMethod:
        pass

    @abstractmethod
    async def get_by_id(self, payment_method_id: str) -> Optional[PaymentMethod]:
        pass

    @abstractmethod
    async def get_active_by_company_id(self, company_id: str) -> List[PaymentMethod]:
        """
        Active payment methods for a company, newest first

        Args:
            company_id: Company identifier

        Returns:
            List of active payment methods
        """
        pass

    @abstractmethod
    async def clear_default(self, company_id: str) -> int:
        """
        Unset is_default on every active method of the company

        Returns:
            Number of methods changed
        """
        pass

    @abstractmethod
    async def update(self, payment_method: PaymentMethod) -> PaymentMethod:
        pass
