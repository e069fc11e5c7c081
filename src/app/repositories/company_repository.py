"""Company Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Dict
from src.domain.company import Company


class CompanyRepository(ABC):
    """
    Repository interface for Company persistence

    Only the billing mirror fields are written by this service.
    """

    @abstractmethod
    async def get_by_id(self, company_id: str) -> Optional[Company]:
        pass

    @abstractmethod
    async def get_names(self, company_ids: List[str]) -> Dict[str, str]:
        """
        Resolve display names for a set of companies

        Args:
            company_ids: Company identifiers

        Returns:
            Mapping of company ID to name (unknown IDs are omitted)
        """
        pass

    @abstractmethod
    async def get_trials_ending_before(self, cutoff: datetime, limit: int = 500) -> List[Company]:
        """Companies in trial whose trial_ends_at <= cutoff"""
        pass

    @abstractmethod
    async def update(self, company: Company) -> Company:
        pass
