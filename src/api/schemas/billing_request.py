"""Request and response schemas for the Billing API

Pydantic models for validating incoming HTTP requests.
"""

from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Envelope of every successful billing response"""

    success: bool = True
    data: Optional[T] = None


class CreateSubscriptionRequestSchema(BaseModel):
    """
    Request schema for subscribing a company

    Used for POST /billing/companies/{company_id}/subscription endpoint.
    """

    payment_method_id: str = Field(
        ...,
        min_length=1,
        description="Gateway payment method collected by the client (e.g., pm_...)"
    )

    start_trial: bool = Field(
        default=False,
        description="Start with the configured trial period"
    )

    @field_validator("payment_method_id")
    @classmethod
    def validate_payment_method_id(cls, v):
        if not v.strip():
            raise ValueError("payment_method_id must not be blank")
        return v.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "payment_method_id": "pm_1NqXYZ",
                "start_trial": True,
            }
        }


class CancelSubscriptionRequestSchema(BaseModel):
    immediate: bool = Field(
        default=False,
        description="Cancel now instead of at the end of the current period"
    )
    reason: Optional[str] = Field(default=None, max_length=500)

    class Config:
        json_schema_extra = {
            "example": {
                "immediate": False,
                "reason": "Moving to another provider",
            }
        }


class AddPaymentMethodRequestSchema(BaseModel):
    stripe_payment_method_id: str = Field(..., min_length=1)
    set_as_default: bool = Field(default=False)

    class Config:
        json_schema_extra = {
            "example": {
                "stripe_payment_method_id": "pm_1NqXYZ",
                "set_as_default": True,
            }
        }


class VoidInvoiceRequestSchema(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class WebhookAckResponse(BaseModel):
    received: bool = True
