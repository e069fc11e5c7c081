from .base import BaseModel, generate_uuid
from .exceptions import (
    BillingDomainError,
    InvalidStatusTransition,
    ConcurrentModificationError,
    StoreUnavailableError,
)
from .subscription import Subscription, SubscriptionStatus, SubscriptionPaymentStatus
from .invoice import Invoice, InvoiceStatus
from .invoice_line import InvoiceLine
from .payment import Payment, PaymentStatus
from .usage_record import UsageRecord, UsageEventType
from .billing_history import BillingHistoryEntry, BillingEventType
from .company import Company, AccountStatus
from .user import User, UserRole, UserStatus
from .payment_method import PaymentMethod
from .pricing import PricingPolicy

__all__ = [
    "BaseModel",
    "generate_uuid",
    "BillingDomainError",
    "InvalidStatusTransition",
    "ConcurrentModificationError",
    "StoreUnavailableError",
    "Subscription",
    "SubscriptionStatus",
    "SubscriptionPaymentStatus",
    "Invoice",
    "InvoiceStatus",
    "InvoiceLine",
    "Payment",
    "PaymentStatus",
    "UsageRecord",
    "UsageEventType",
    "BillingHistoryEntry",
    "BillingEventType",
    "Company",
    "AccountStatus",
    "User",
    "UserRole",
    "UserStatus",
    "PaymentMethod",
    "PricingPolicy",
]
