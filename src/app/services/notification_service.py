"""Billing notices sent to companies

Only the trial-expiring notice is produced today. Delivery channels
implement send().
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel

from src.domain.company import Company


class BillingNotice(BaseModel):
    kind: str
    company_id: str
    company_name: str
    billing_email: Optional[str] = None
    effective_at: Optional[datetime] = None

    @classmethod
    def trial_expiring(cls, company: Company) -> "BillingNotice":
        return cls(
            kind="trial_expiring",
            company_id=company.id,
            company_name=company.name,
            billing_email=company.billing_email,
            effective_at=company.trial_ends_at,
        )

    def payload(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "company_id": self.company_id,
            "company_name": self.company_name,
            "billing_email": self.billing_email,
            "effective_at": self.effective_at.isoformat() if self.effective_at else None,
        }


class NotificationService(ABC):
    """Delivery channel for billing notices"""

    @abstractmethod
    async def send(self, notice: BillingNotice) -> bool:
        """
        Deliver one notice

        Returns:
            True when the channel accepted the notice
        """
        pass

    async def send_trial_expiring_notice(self, company: Company) -> bool:
        return await self.send(BillingNotice.trial_expiring(company))
