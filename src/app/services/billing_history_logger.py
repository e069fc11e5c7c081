"""Billing History Logger Interface

Best-effort writer for the billing audit trail.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from src.domain.billing_history import BillingEventType


class BillingHistoryLogger(ABC):
    """
    Appends billing history entries outside the caller's transaction

    log() must never raise: a failed write is reported on a secondary
    channel and the primary operation carries on.
    """

    @abstractmethod
    async def log(
        self,
        company_id: str,
        event_type: BillingEventType,
        description: str,
        event_data: Optional[Dict[str, Any]] = None,
        subscription_id: Optional[str] = None,
        invoice_id: Optional[str] = None,
        payment_id: Optional[str] = None,
        user_id: Optional[str] = None,
        performed_by: str = "system",
    ) -> bool:
        """
        Append one entry

        Returns:
            True if the entry was stored, False if it was diverted
        """
        pass
