"""Data Transfer Objects for Payment Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from src.domain.payment import Payment
from src.domain.payment_method import PaymentMethod


class PaymentFailureCommandDTO(BaseModel):
    """
    Command DTO for recording a failed charge

    The payment is resolved by payment_id when given, otherwise by the
    gateway payment intent.
    """

    payment_intent_id: str = Field(..., min_length=1)
    payment_id: Optional[str] = Field(default=None)
    failure_code: Optional[str] = Field(default=None, description="Gateway decline code")
    failure_message: Optional[str] = Field(default=None)

    class Config:
        json_schema_extra = {
            "example": {
                "payment_intent_id": "pi_3NqXYZ",
                "failure_code": "card_declined",
                "failure_message": "Your card was declined.",
            }
        }


class PaymentDTO(BaseModel):
    payment_id: str
    company_id: str
    subscription_id: str
    invoice_id: str
    stripe_payment_intent_id: str
    amount: Decimal
    currency: str
    status: str
    payment_method_summary: Optional[Dict[str, Any]] = None
    failure_code: Optional[str] = None
    failure_message: Optional[str] = None
    attempt_number: int
    max_attempts: int
    next_retry_date: Optional[datetime] = None
    attempted_at: datetime
    succeeded_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, payment: Payment) -> "PaymentDTO":
        return cls(
            payment_id=payment.id,
            company_id=payment.company_id,
            subscription_id=payment.subscription_id,
            invoice_id=payment.invoice_id,
            stripe_payment_intent_id=payment.stripe_payment_intent_id,
            amount=payment.amount,
            currency=payment.currency,
            status=payment.status.value,
            payment_method_summary=payment.payment_method_summary,
            failure_code=payment.failure_code,
            failure_message=payment.failure_message,
            attempt_number=payment.attempt_number,
            max_attempts=payment.max_attempts,
            next_retry_date=payment.next_retry_date,
            attempted_at=payment.attempted_at,
            succeeded_at=payment.succeeded_at,
            failed_at=payment.failed_at,
        )


class PaymentFailureResultDTO(BaseModel):
    payment_id: str
    status: str
    attempt_number: int
    max_attempts: int
    next_retry_date: Optional[datetime] = None
    grace_period_started: bool = Field(
        default=False,
        description="True only for the failure that exhausted the retries"
    )


class PaymentListDTO(BaseModel):
    payments: List[PaymentDTO]
    count: int


class AddPaymentMethodCommandDTO(BaseModel):
    company_id: str = Field(..., min_length=1)
    stripe_payment_method_id: str = Field(..., min_length=1)
    set_as_default: bool = Field(default=False)
    added_by: str = Field(...)


class PaymentMethodDTO(BaseModel):
    payment_method_id: str
    stripe_payment_method_id: str
    type: str
    card_brand: Optional[str] = None
    card_last4: Optional[str] = None
    card_exp_month: Optional[int] = None
    card_exp_year: Optional[int] = None
    bank_name: Optional[str] = None
    bank_last4: Optional[str] = None
    billing_name: Optional[str] = None
    is_default: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, method: PaymentMethod) -> "PaymentMethodDTO":
        return cls(
            payment_method_id=method.id,
            stripe_payment_method_id=method.stripe_payment_method_id,
            type=method.type,
            card_brand=method.card_brand,
            card_last4=method.card_last4,
            card_exp_month=method.card_exp_month,
            card_exp_year=method.card_exp_year,
            bank_name=method.bank_name,
            bank_last4=method.bank_last4,
            billing_name=method.billing_name,
            is_default=method.is_default,
            created_at=method.created_at,
        )


class PaymentMethodListDTO(BaseModel):
    payment_methods: List[PaymentMethodDTO]
    count: int
