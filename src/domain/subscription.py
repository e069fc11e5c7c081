"""Subscription Domain Entity

Tracks a company's per-seat subscription and its lifecycle state.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String
from src.domain.base import BaseModel, UTCDateTime, generate_uuid
from src.domain.billing_clock import utc_now
from src.domain.exceptions import InvalidStatusTransition


class SubscriptionStatus(str, Enum):
    """Subscription status types"""
    TRIAL = "trial"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    SUSPENDED = "suspended"


class SubscriptionPaymentStatus(str, Enum):
    """Outcome of the most recent charge for the subscription"""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


SUBSCRIPTION_TRANSITIONS = {
    SubscriptionStatus.TRIAL: {
        SubscriptionStatus.TRIAL,
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.PAST_DUE,
        SubscriptionStatus.UNPAID,
        SubscriptionStatus.CANCELED,
    },
    SubscriptionStatus.ACTIVE: {
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.PAST_DUE,
        SubscriptionStatus.UNPAID,
        SubscriptionStatus.CANCELED,
    },
    SubscriptionStatus.PAST_DUE: {
        SubscriptionStatus.PAST_DUE,
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.UNPAID,
        SubscriptionStatus.SUSPENDED,
        SubscriptionStatus.CANCELED,
    },
    SubscriptionStatus.UNPAID: {
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.PAST_DUE,
        SubscriptionStatus.SUSPENDED,
        SubscriptionStatus.CANCELED,
    },
    SubscriptionStatus.SUSPENDED: {
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.CANCELED,
    },
    SubscriptionStatus.CANCELED: set(),
}

BILLABLE_STATUSES = (
    SubscriptionStatus.TRIAL,
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.PAST_DUE,
)


class Subscription(BaseModel, table=True):
    """
    Subscription - Per-seat subscription of one company

    Domain Rules:
    - One billable subscription per company (enforced at use case layer)
    - grace_period_ends_at is set iff status is past_due
    - canceled is terminal; records are never deleted
    - Every update bumps version (optimistic concurrency)
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        Index('ix_subscriptions_company_id', 'company_id'),
        Index('ix_subscriptions_status', 'status'),
        Index('ix_subscriptions_stripe_subscription_id', 'stripe_subscription_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique subscription identifier"
    )

    company_id: str = Field(
        description="Owning company ID"
    )

    stripe_customer_id: str = Field(
        description="Gateway customer reference"
    )

    stripe_subscription_id: str = Field(
        description="Gateway subscription reference"
    )

    stripe_price_id: Optional[str] = Field(
        default=None,
        description="Gateway price used for the seat item"
    )

    status: SubscriptionStatus = Field(
        default=SubscriptionStatus.TRIAL,
        description="Lifecycle status"
    )

    cancel_at_period_end: bool = Field(
        default=False,
        description="Cancellation deferred to the end of the current period"
    )

    canceled_at: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)

    price_per_user: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Price per seat per billing interval"
    )

    currency: str = Field(
        default="usd",
        sa_column=Column(String(3), nullable=False),
    )

    billing_interval: str = Field(default="month")

    current_period_start: datetime = Field(
        sa_type=UTCDateTime,
        description="Start of the current billing period"
    )

    current_period_end: datetime = Field(
        sa_type=UTCDateTime,
        description="End of the current billing period"
    )

    next_payment_date: datetime = Field(
        sa_type=UTCDateTime,
        description="When the monthly billing job next invoices this subscription"
    )

    trial_start: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)
    trial_end: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)

    current_user_count: int = Field(
        default=0,
        description="Seats as of the last reconciliation"
    )

    last_billed_user_count: int = Field(
        default=0,
        description="Seats billed on the most recent invoice"
    )

    payment_status: SubscriptionPaymentStatus = Field(
        default=SubscriptionPaymentStatus.PENDING
    )

    last_payment_date: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)

    grace_period_ends_at: Optional[datetime] = Field(
        sa_type=UTCDateTime,
        default=None,
        description="End of grace period (only while past_due)"
    )

    grace_period_days: int = Field(default=7)

    version: int = Field(
        default=0,
        description="Optimistic concurrency counter"
    )

    created_by: Optional[str] = Field(default=None)

    created_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utc_now,
        description="Subscription creation timestamp"
    )

    updated_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utc_now,
        description="Last update timestamp"
    )

    def can_transition_to(self, target: SubscriptionStatus) -> bool:
        return target in SUBSCRIPTION_TRANSITIONS[self.status]

    def transition_to(self, target: SubscriptionStatus) -> None:
        """Move to target status or raise InvalidStatusTransition"""
        if not self.can_transition_to(target):
            raise InvalidStatusTransition("Subscription", self.status, target)
        self.status = target

    @property
    def is_billable(self) -> bool:
        return self.status in BILLABLE_STATUSES

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "5f0c6d3e-8a4b-4a57-9a3c-1f3d7c0e2b11",
                "company_id": "acme01",
                "stripe_customer_id": "cus_123",
                "stripe_subscription_id": "sub_123",
                "status": "active",
                "cancel_at_period_end": False,
                "price_per_user": "1.000000",
                "currency": "usd",
                "current_period_start": "2024-09-01T00:00:00",
                "current_period_end": "2024-10-01T00:00:00",
                "next_payment_date": "2024-11-01T00:00:00",
                "current_user_count": 10,
                "last_billed_user_count": 10,
                "payment_status": "paid",
                "grace_period_ends_at": None,
                "version": 3,
            }
        }
