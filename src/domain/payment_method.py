"""Payment Method Domain Entity

Redacted record of a card or bank account attached to a company.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Index
from src.domain.base import BaseModel, UTCDateTime, generate_uuid
from src.domain.billing_clock import utc_now


class PaymentMethod(BaseModel, table=True):
    """
    Payment Method - Stored summary of a gateway payment method

    Domain Rules:
    - At most one active default per company
    - The default method cannot be removed
    - Only brand, last4 and expiry are stored for cards
    """

    __tablename__ = "payment_methods"
    __table_args__ = (
        Index('ix_payment_methods_company_id', 'company_id'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    company_id: str = Field(description="Owning company ID")
    stripe_payment_method_id: str = Field(description="Gateway payment method")

    type: str = Field(default="card", description="card or us_bank_account")

    card_brand: Optional[str] = Field(default=None)
    card_last4: Optional[str] = Field(default=None)
    card_exp_month: Optional[int] = Field(default=None)
    card_exp_year: Optional[int] = Field(default=None)
    card_funding: Optional[str] = Field(default=None)

    bank_name: Optional[str] = Field(default=None)
    bank_last4: Optional[str] = Field(default=None)
    bank_account_holder_type: Optional[str] = Field(default=None)

    billing_name: Optional[str] = Field(default=None)
    billing_email: Optional[str] = Field(default=None)

    is_default: bool = Field(default=False)
    is_active: bool = Field(default=True)

    added_by: Optional[str] = Field(default=None)

    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)
