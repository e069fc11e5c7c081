"""Usage Record Domain Entity

Append-only log of seat additions and removals.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric
from src.domain.base import BaseModel, UTCDateTime, generate_uuid
from src.domain.billing_clock import utc_now


class UsageEventType(str, Enum):
    """Seat change event types"""
    USER_ADDED = "user_added"
    USER_REMOVED = "user_removed"
    USER_REACTIVATED = "user_reactivated"


class UsageRecord(BaseModel, table=True):
    """
    Usage Record - One seat change within a billing period

    Domain Rules:
    - Immutable once created
    - proration_amount is positive for additions, negative for removals
    - user_count_after comes from the authoritative active-user count
    """

    __tablename__ = "usage_records"
    __table_args__ = (
        Index('ix_usage_records_company_id', 'company_id'),
        Index('ix_usage_records_timestamp', 'timestamp'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    company_id: str = Field(description="Owning company ID")
    subscription_id: str = Field(description="Subscription the seat is billed on")

    event_type: UsageEventType = Field(description="Seat change type")

    user_id: str = Field(description="User whose seat changed")
    user_name: Optional[str] = Field(default=None)
    user_email: Optional[str] = Field(default=None)

    user_count_before: int = Field(default=0)
    user_count_after: int = Field(default=0)

    proration_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Signed prorated charge (+) or credit (-)"
    )

    billing_period_start: datetime = Field(sa_type=UTCDateTime)
    billing_period_end: datetime = Field(sa_type=UTCDateTime)

    will_affect_next_invoice: bool = Field(default=True)

    performed_by: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)

    timestamp: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)
