"""Best-effort Billing History Logger

Writes audit entries in their own session so a failed audit write can
never roll back the operation being audited.
"""

import json
import logging
from typing import Optional, Dict, Any
from src.adapter.repositories.billing_history_repository import SqlAlchemyBillingHistoryRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.domain.billing_history import BillingHistoryEntry, BillingEventType

logger = logging.getLogger(__name__)
fallback_logger = logging.getLogger("billing.audit_fallback")


class SqlAlchemyBillingHistoryLogger(BillingHistoryLogger):
    """
    Billing history logger with a log-based fallback channel

    Args:
        session_factory: Callable returning an AsyncSession context manager
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

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
        entry = BillingHistoryEntry(
            company_id=company_id,
            event_type=event_type,
            description=description,
            event_data=event_data or {},
            subscription_id=subscription_id,
            invoice_id=invoice_id,
            payment_id=payment_id,
            user_id=user_id,
            performed_by=performed_by,
        )

        try:
            async with self.session_factory() as session:
                await SqlAlchemyBillingHistoryRepository(session).create(entry)
                await session.commit()
            logger.debug(f"Billing event {event_type.value} logged for company {company_id}")
            return True
        except Exception as e:
            fallback_logger.error(
                f"Billing history write failed ({e}); entry: "
                + json.dumps(
                    {
                        "company_id": company_id,
                        "event_type": event_type.value,
                        "description": description,
                        "event_data": event_data or {},
                        "subscription_id": subscription_id,
                        "invoice_id": invoice_id,
                        "payment_id": payment_id,
                        "user_id": user_id,
                        "performed_by": performed_by,
                    },
                    default=str,
                )
            )
            return False
