"""Billing History Domain Entity

Append-only audit trail of billing-relevant events.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from sqlmodel import Field, Column, Index
from sqlalchemy import JSON, String
from src.domain.base import BaseModel, UTCDateTime, generate_uuid
from src.domain.billing_clock import utc_now


class BillingEventType(str, Enum):
    """Closed set of auditable billing events"""
    SUBSCRIPTION_CREATED = "subscription_created"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    SUBSCRIPTION_CANCELED = "subscription_canceled"
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_RETRY_SCHEDULED = "payment_retry_scheduled"
    GRACE_PERIOD_STARTED = "grace_period_started"
    GRACE_PERIOD_ENDED = "grace_period_ended"
    ACCOUNT_SUSPENDED = "account_suspended"
    ACCOUNT_REACTIVATED = "account_reactivated"
    INVOICE_CREATED = "invoice_created"
    INVOICE_PAID = "invoice_paid"
    INVOICE_VOIDED = "invoice_voided"
    USER_ADDED = "user_added"
    USER_REMOVED = "user_removed"
    PAYMENT_METHOD_ADDED = "payment_method_added"
    PAYMENT_METHOD_UPDATED = "payment_method_updated"
    PAYMENT_METHOD_REMOVED = "payment_method_removed"


class BillingHistoryEntry(BaseModel, table=True):
    """
    Billing History Entry - Immutable audit row

    Domain Rules:
    - Never updated or deleted
    - Written best-effort, outside the primary transaction
    """

    __tablename__ = "billing_history"
    __table_args__ = (
        Index('ix_billing_history_company_id', 'company_id'),
        Index('ix_billing_history_event_type', 'event_type'),
        Index('ix_billing_history_timestamp', 'timestamp'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    company_id: str = Field(description="Owning company ID")

    event_type: BillingEventType = Field(description="Audited event")

    description: str = Field(
        sa_column=Column(String(500), nullable=False),
    )

    event_data: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    subscription_id: Optional[str] = Field(default=None)
    invoice_id: Optional[str] = Field(default=None)
    payment_id: Optional[str] = Field(default=None)
    user_id: Optional[str] = Field(default=None)

    performed_by: str = Field(default="system")

    timestamp: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)
