"""Authorization Service Interface

Role checks for callers of the billing API.
"""

from abc import ABC, abstractmethod


class AuthorizationService(ABC):

    @abstractmethod
    async def is_company_admin(self, user_id: str, company_id: str) -> bool:
        """
        Whether the caller may manage billing for the company

        Company admins of that company and super admins qualify.
        """
        pass

    @abstractmethod
    async def is_super_admin(self, user_id: str) -> bool:
        pass
