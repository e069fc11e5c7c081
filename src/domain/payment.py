"""Payment Domain Entity

Tracks charge attempts against an invoice.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Dict, Any
from sqlmodel import Field, Column, Index
from sqlalchemy import JSON, Numeric, String
from src.domain.base import BaseModel, UTCDateTime, generate_uuid
from src.domain.billing_clock import utc_now
from src.domain.exceptions import InvalidStatusTransition


class PaymentStatus(str, Enum):
    """Payment status types"""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {
        PaymentStatus.SUCCEEDED,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELED,
    },
    PaymentStatus.FAILED: {
        PaymentStatus.FAILED,
        PaymentStatus.PENDING,
        PaymentStatus.SUCCEEDED,
        PaymentStatus.CANCELED,
    },
    PaymentStatus.SUCCEEDED: set(),
    PaymentStatus.CANCELED: set(),
}


class Payment(BaseModel, table=True):
    """
    Payment - One charge against an invoice, retried in place

    Domain Rules:
    - attempt_number never exceeds max_attempts
    - Retry moves failed -> pending and increments attempt_number
    - Grace period is triggered at most once (grace_period_triggered)
    - succeeded and canceled are terminal
    - payment_method_summary never holds a full card number
    """

    __tablename__ = "payments"
    __table_args__ = (
        Index('ix_payments_company_id', 'company_id'),
        Index('ix_payments_invoice_id', 'invoice_id'),
        Index('ix_payments_status', 'status'),
        Index('ix_payments_stripe_payment_intent_id', 'stripe_payment_intent_id', unique=True),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
    )

    company_id: str = Field(description="Owning company ID")
    subscription_id: str = Field(description="Subscription billed")
    invoice_id: str = Field(description="Invoice being paid")

    stripe_payment_intent_id: str = Field(description="Gateway payment intent")
    stripe_charge_id: Optional[str] = Field(default=None)
    stripe_payment_method_id: Optional[str] = Field(default=None)

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Charged amount in major units"
    )

    currency: str = Field(
        default="usd",
        sa_column=Column(String(3), nullable=False),
    )

    status: PaymentStatus = Field(default=PaymentStatus.PENDING)

    payment_method_summary: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
        description="Redacted payment method (type, brand, last4, expiry)"
    )

    failure_code: Optional[str] = Field(default=None)
    failure_message: Optional[str] = Field(default=None)

    attempt_number: int = Field(default=1)
    max_attempts: int = Field(default=3)
    next_retry_date: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)

    grace_period_triggered: bool = Field(
        default=False,
        description="Set once retries are exhausted and grace period started"
    )

    attempted_at: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)
    succeeded_at: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)
    failed_at: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)

    version: int = Field(default=0)

    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)

    def transition_to(self, target: PaymentStatus) -> None:
        if target not in PAYMENT_TRANSITIONS[self.status]:
            raise InvalidStatusTransition("Payment", self.status, target)
        self.status = target

    @property
    def retries_exhausted(self) -> bool:
        return self.attempt_number >= self.max_attempts
