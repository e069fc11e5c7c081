"""Invoice Line Domain Entity

Tracks individual line items within an invoice.
"""

from datetime import datetime
from decimal import Decimal
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Numeric, String
from src.domain.base import BaseModel, UTCDateTime, generate_uuid
from src.domain.billing_clock import utc_now


class InvoiceLine(BaseModel, table=True):
    """
    Invoice Line - Individual line item within an invoice

    Domain Rules:
    - Each line item belongs to exactly one invoice
    - Lines are ordered by position; position 0 is the seat charge
    - amount is signed: proration credits are negative
    - Immutable once created
    """

    __tablename__ = "invoice_lines"
    __table_args__ = (
        Index('ix_invoice_lines_invoice_id', 'invoice_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique invoice line identifier"
    )

    invoice_id: str = Field(
        sa_column=Column(String, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Invoice"
    )

    position: int = Field(default=0, description="Display order within the invoice")

    description: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Line item description (e.g., 'Monthly subscription (10 users)')"
    )

    quantity: int = Field(default=1)

    unit_price: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Line amount (quantity * unit_price for seat lines)"
    )

    proration: bool = Field(default=False)

    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)
