"""Data Transfer Objects for Subscription Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field
from src.domain.subscription import Subscription


class CreateSubscriptionCommandDTO(BaseModel):
    """
    Command DTO for creating a company subscription

    Used as input to CreateSubscription use case.
    """

    company_id: str = Field(..., min_length=1, description="Company identifier")

    payment_method_id: str = Field(
        ...,
        min_length=1,
        description="Gateway payment method to charge (e.g., pm_card_visa)"
    )

    created_by: str = Field(..., description="User creating the subscription")

    start_trial: bool = Field(
        default=False,
        description="Start with the configured trial period"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "company_id": "acme01",
                "payment_method_id": "pm_1NqXYZ",
                "created_by": "user_admin_1",
                "start_trial": True,
            }
        }


class CreateSubscriptionResponseDTO(BaseModel):
    subscription_id: str
    stripe_subscription_id: str
    client_secret: Optional[str] = Field(
        default=None,
        description="Payment intent secret for confirming the first invoice"
    )
    status: str


class CancelSubscriptionCommandDTO(BaseModel):
    """
    Command DTO for canceling a subscription

    immediate=False defers cancellation to the end of the current period.
    """

    subscription_id: str = Field(..., min_length=1)
    immediate: bool = Field(default=False)
    canceled_by: str = Field(...)
    reason: Optional[str] = Field(default=None, max_length=500)


class CancelSubscriptionResponseDTO(BaseModel):
    subscription_id: str
    status: str
    cancel_at_period_end: bool
    canceled_at: Optional[datetime] = None
    effective_at: datetime = Field(..., description="When service actually stops")


class ReactivateSubscriptionCommandDTO(BaseModel):
    subscription_id: str = Field(..., min_length=1)
    reactivated_by: str = Field(...)


class QuantitySyncResultDTO(BaseModel):
    """Outcome of a seat-count reconciliation"""
    subscription_id: str
    previous_user_count: int
    current_user_count: int
    changed: bool


class StatusChangeResultDTO(BaseModel):
    """Outcome of a lifecycle transition that may be a no-op"""
    subscription_id: str
    status: str
    changed: bool = Field(..., description="False when the subscription was already in the target state")
    grace_period_ends_at: Optional[datetime] = None


class SubscriptionDTO(BaseModel):
    """Read model of a subscription"""

    subscription_id: str
    company_id: str
    status: str
    cancel_at_period_end: bool
    canceled_at: Optional[datetime] = None
    price_per_user: Decimal
    currency: str
    billing_interval: str
    current_period_start: datetime
    current_period_end: datetime
    next_payment_date: datetime
    trial_end: Optional[datetime] = None
    current_user_count: int
    last_billed_user_count: int
    payment_status: str
    last_payment_date: Optional[datetime] = None
    grace_period_ends_at: Optional[datetime] = None
    estimated_next_amount: Decimal = Field(
        ..., description="current_user_count * price_per_user"
    )

    @classmethod
    def from_entity(cls, subscription: Subscription) -> "SubscriptionDTO":
        return cls(
            subscription_id=subscription.id,
            company_id=subscription.company_id,
            status=subscription.status.value,
            cancel_at_period_end=subscription.cancel_at_period_end,
            canceled_at=subscription.canceled_at,
            price_per_user=subscription.price_per_user,
            currency=subscription.currency,
            billing_interval=subscription.billing_interval,
            current_period_start=subscription.current_period_start,
            current_period_end=subscription.current_period_end,
            next_payment_date=subscription.next_payment_date,
            trial_end=subscription.trial_end,
            current_user_count=subscription.current_user_count,
            last_billed_user_count=subscription.last_billed_user_count,
            payment_status=subscription.payment_status.value,
            last_payment_date=subscription.last_payment_date,
            grace_period_ends_at=subscription.grace_period_ends_at,
            estimated_next_amount=Decimal(subscription.current_user_count)
            * Decimal(subscription.price_per_user),
        )
