from .subscription_repository import SubscriptionRepository
from .invoice_repository import InvoiceRepository
from .invoice_line_repository import InvoiceLineRepository
from .payment_repository import PaymentRepository
from .usage_record_repository import UsageRecordRepository
from .billing_history_repository import BillingHistoryRepository
from .company_repository import CompanyRepository
from .user_repository import UserRepository
from .payment_method_repository import PaymentMethodRepository

__all__ = [
    "SubscriptionRepository",
    "InvoiceRepository",
    "InvoiceLineRepository",
    "PaymentRepository",
    "UsageRecordRepository",
    "BillingHistoryRepository",
    "CompanyRepository",
    "UserRepository",
    "PaymentMethodRepository",
]
