"""Data Transfer Objects for Invoice Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field
from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine


class CreateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for issuing a subscription invoice

    Period bounds default to the subscription's current period.
    """

    subscription_id: str = Field(..., min_length=1)
    period_start: Optional[datetime] = Field(default=None)
    period_end: Optional[datetime] = Field(default=None)

    class Config:
        json_schema_extra = {
            "example": {
                "subscription_id": "5f0c6d3e-8a4b-4a57-9a3c-1f3d7c0e2b11",
                "period_start": "2024-09-01T00:00:00",
                "period_end": "2024-10-01T00:00:00",
            }
        }


class CreateInvoiceResponseDTO(BaseModel):
    invoice_id: str
    stripe_invoice_id: Optional[str] = None
    invoice_number: str
    total: Decimal
    already_existed: bool = Field(
        default=False,
        description="True when the period was already invoiced and nothing was created"
    )


class MarkInvoicePaidResponseDTO(BaseModel):
    invoice_id: str
    status: str
    already_paid: bool
    subscription_status: Optional[str] = None
    reactivated: bool = Field(default=False, description="Subscription returned to active")


class VoidInvoiceCommandDTO(BaseModel):
    invoice_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1, max_length=500)
    voided_by: str = Field(...)


class InvoiceLineDTO(BaseModel):
    position: int
    description: str
    quantity: int
    unit_price: Decimal
    amount: Decimal
    proration: bool

    @classmethod
    def from_entity(cls, line: InvoiceLine) -> "InvoiceLineDTO":
        return cls(
            position=line.position,
            description=line.description,
            quantity=line.quantity,
            unit_price=line.unit_price,
            amount=line.amount,
            proration=line.proration,
        )


class InvoiceDTO(BaseModel):
    """Read model of an invoice"""

    invoice_id: str
    company_id: str
    company_name: Optional[str] = None
    subscription_id: str
    stripe_invoice_id: Optional[str] = None
    invoice_number: str
    status: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    amount_due: Decimal
    amount_paid: Decimal
    currency: str
    period_start: datetime
    period_end: datetime
    user_count: int
    due_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    voided_at: Optional[datetime] = None
    void_reason: Optional[str] = None
    invoice_pdf_url: Optional[str] = None
    created_at: datetime
    lines: Optional[List[InvoiceLineDTO]] = None

    @classmethod
    def from_entity(
        cls,
        invoice: Invoice,
        lines: Optional[List[InvoiceLine]] = None,
        company_name: Optional[str] = None,
    ) -> "InvoiceDTO":
        return cls(
            invoice_id=invoice.id,
            company_id=invoice.company_id,
            company_name=company_name,
            subscription_id=invoice.subscription_id,
            stripe_invoice_id=invoice.stripe_invoice_id,
            invoice_number=invoice.invoice_number,
            status=invoice.status.value,
            subtotal=invoice.subtotal,
            tax=invoice.tax,
            total=invoice.total,
            amount_due=invoice.amount_due,
            amount_paid=invoice.amount_paid,
            currency=invoice.currency,
            period_start=invoice.period_start,
            period_end=invoice.period_end,
            user_count=invoice.user_count,
            due_date=invoice.due_date,
            paid_at=invoice.paid_at,
            voided_at=invoice.voided_at,
            void_reason=invoice.void_reason,
            invoice_pdf_url=invoice.invoice_pdf_url,
            created_at=invoice.created_at,
            lines=[InvoiceLineDTO.from_entity(line) for line in lines] if lines is not None else None,
        )


class InvoiceListDTO(BaseModel):
    invoices: List[InvoiceDTO]
    count: int
