"""Company Domain Entity

Tenant record carrying a denormalized mirror of its billing state.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Index
from src.domain.base import BaseModel, UTCDateTime, generate_uuid
from src.domain.billing_clock import utc_now


class AccountStatus(str, Enum):
    """Account standing shown to the tenant"""
    TRIAL = "trial"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    SUSPENDED = "suspended"
    CANCELED = "canceled"


ACCOUNT_STATUS_BY_SUBSCRIPTION = {
    "trial": AccountStatus.TRIAL,
    "active": AccountStatus.ACTIVE,
    "past_due": AccountStatus.PAST_DUE,
    "unpaid": AccountStatus.PAST_DUE,
    "suspended": AccountStatus.SUSPENDED,
    "canceled": AccountStatus.CANCELED,
}


class Company(BaseModel, table=True):
    """
    Company - Tenant with billing mirror fields

    Domain Rules:
    - Billing fields mirror the current subscription and are written
      by the subscription use cases only
    - suspended_at and suspension_reason are cleared on reactivation
    """

    __tablename__ = "companies"
    __table_args__ = (
        Index('ix_companies_account_status', 'account_status'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    name: str = Field(description="Company display name")
    billing_email: Optional[str] = Field(default=None)

    stripe_customer_id: Optional[str] = Field(default=None)
    subscription_id: Optional[str] = Field(default=None)
    subscription_status: Optional[str] = Field(default=None)

    account_status: AccountStatus = Field(default=AccountStatus.TRIAL)

    trial_started_at: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)
    trial_ends_at: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)

    last_billing_date: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)
    next_billing_date: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)

    suspended_at: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)
    suspension_reason: Optional[str] = Field(default=None)

    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)

    def mirror_subscription(self, subscription) -> None:
        """Copy the subscription's billing state onto the company record"""
        self.subscription_id = subscription.id
        self.subscription_status = subscription.status.value
        self.stripe_customer_id = subscription.stripe_customer_id
        self.next_billing_date = subscription.current_period_end
        self.account_status = ACCOUNT_STATUS_BY_SUBSCRIPTION[subscription.status.value]
