"""Invoice use cases"""
from .create_invoice import CreateInvoice
from .mark_invoice_paid import MarkInvoiceAsPaid
from .void_invoice import VoidInvoice
from .get_invoices import GetInvoice, GetInvoiceByStripeId, GetCompanyInvoices, GetAllInvoices
from .dtos import (
    CreateInvoiceCommandDTO,
    CreateInvoiceResponseDTO,
    MarkInvoicePaidResponseDTO,
    VoidInvoiceCommandDTO,
    InvoiceLineDTO,
    InvoiceDTO,
    InvoiceListDTO,
)

__all__ = [
    "CreateInvoice",
    "MarkInvoiceAsPaid",
    "VoidInvoice",
    "GetInvoice",
    "GetInvoiceByStripeId",
    "GetCompanyInvoices",
    "GetAllInvoices",
    "CreateInvoiceCommandDTO",
    "CreateInvoiceResponseDTO",
    "MarkInvoicePaidResponseDTO",
    "VoidInvoiceCommandDTO",
    "InvoiceLineDTO",
    "InvoiceDTO",
    "InvoiceListDTO",
]
