from .subscription_repository import SqlAlchemySubscriptionRepository
from .invoice_repository import SqlAlchemyInvoiceRepository
from .invoice_line_repository import SqlAlchemyInvoiceLineRepository
from .payment_repository import SqlAlchemyPaymentRepository
from .usage_record_repository import SqlAlchemyUsageRecordRepository
from .billing_history_repository import SqlAlchemyBillingHistoryRepository
from .company_repository import SqlAlchemyCompanyRepository
from .user_repository import SqlAlchemyUserRepository
from .payment_method_repository import SqlAlchemyPaymentMethodRepository

__all__ = [
    "SqlAlchemySubscriptionRepository",
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyInvoiceLineRepository",
    "SqlAlchemyPaymentRepository",
    "SqlAlchemyUsageRecordRepository",
    "SqlAlchemyBillingHistoryRepository",
    "SqlAlchemyCompanyRepository",
    "SqlAlchemyUserRepository",
    "SqlAlchemyPaymentMethodRepository",
]
