"""Invoice Domain Entity

Tracks per-period invoices and their payment status.
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


class InvoiceStatus(str, Enum):
    """Invoice status types"""
    DRAFT = "draft"
    OPEN = "open"
    PAID = "paid"
    VOID = "void"
    UNCOLLECTIBLE = "uncollectible"


INVOICE_TRANSITIONS = {
    InvoiceStatus.DRAFT: {InvoiceStatus.OPEN, InvoiceStatus.VOID},
    InvoiceStatus.OPEN: {
        InvoiceStatus.PAID,
        InvoiceStatus.VOID,
        InvoiceStatus.UNCOLLECTIBLE,
    },
    InvoiceStatus.UNCOLLECTIBLE: {InvoiceStatus.PAID, InvoiceStatus.VOID},
    InvoiceStatus.PAID: set(),
    InvoiceStatus.VOID: set(),
}


class Invoice(BaseModel, table=True):
    """
    Invoice - One subscription invoice for one billing period

    Domain Rules:
    - One invoice per subscription per period_start
    - invoice_number is derived from company + period month
    - Status transitions: draft -> open -> paid | void | uncollectible
    - Immutable once paid, except amount_paid and paid_at
    - tax is always zero
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index('ix_invoices_company_id', 'company_id'),
        Index('ix_invoices_subscription_id', 'subscription_id'),
        Index('ix_invoices_status', 'status'),
        Index('ix_invoices_invoice_number', 'invoice_number'),
        Index('ix_invoices_stripe_invoice_id', 'stripe_invoice_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique invoice identifier"
    )

    company_id: str = Field(description="Owning company ID")

    subscription_id: str = Field(description="Billed subscription ID")

    stripe_invoice_id: Optional[str] = Field(
        default=None,
        description="Gateway invoice reference"
    )

    stripe_payment_intent_id: Optional[str] = Field(
        default=None,
        description="Gateway payment intent charging this invoice"
    )

    invoice_number: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Human invoice number (e.g., INV-2024-09-ACME01)"
    )

    status: InvoiceStatus = Field(
        default=InvoiceStatus.DRAFT,
        description="Invoice status"
    )

    subtotal: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
    )

    tax: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False),
    )

    total: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
    )

    amount_due: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
    )

    amount_paid: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False),
    )

    currency: str = Field(
        default="usd",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217, lower case)"
    )

    period_start: datetime = Field(sa_type=UTCDateTime, description="Billing period start")
    period_end: datetime = Field(sa_type=UTCDateTime, description="Billing period end")

    user_count: int = Field(default=0, description="Seats billed")

    due_date: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)
    paid_at: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)
    voided_at: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)
    void_reason: Optional[str] = Field(default=None)

    invoice_pdf_url: Optional[str] = Field(default=None)

    version: int = Field(default=0)

    created_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utc_now,
        description="Invoice creation timestamp"
    )

    updated_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utc_now,
        description="Last update timestamp"
    )

    def transition_to(self, target: InvoiceStatus) -> None:
        if target not in INVOICE_TRANSITIONS[self.status]:
            raise InvalidStatusTransition("Invoice", self.status, target)
        self.status = target

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "0b7e4f9c-2d1a-4c3e-8f6b-7a9d5e3c1b20",
                "company_id": "acme01",
                "subscription_id": "5f0c6d3e-8a4b-4a57-9a3c-1f3d7c0e2b11",
                "stripe_invoice_id": "in_123",
                "invoice_number": "INV-2024-09-ACME01",
                "status": "open",
                "subtotal": "10.500000",
                "tax": "0.000000",
                "total": "10.500000",
                "amount_due": "10.500000",
                "amount_paid": "0.000000",
                "currency": "usd",
                "period_start": "2024-09-01T00:00:00",
                "period_end": "2024-10-01T00:00:00",
                "user_count": 10,
            }
        }
