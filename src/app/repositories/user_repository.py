"""User Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.user import User


class UserRepository(ABC):
    """Repository interface for company members"""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def count_active(self, company_id: str) -> int:
        """
        Authoritative seat count

        Args:
            company_id: Company identifier

        Returns:
            Number of users with status active in the company
        """
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        pass
