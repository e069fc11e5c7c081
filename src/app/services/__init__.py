from .unit_of_work import UnitOfWork
from .notification_service import BillingNotice, NotificationService
from .authorization_service import AuthorizationService
from .billing_history_logger import BillingHistoryLogger
from .payment_gateway import PaymentGateway, PaymentGatewayError, WebhookVerificationError
from .price_cache import PriceCache

__all__ = [
    "UnitOfWork",
    "BillingNotice",
    "NotificationService",
    "AuthorizationService",
    "BillingHistoryLogger",
    "PaymentGateway",
    "PaymentGatewayError",
    "WebhookVerificationError",
    "PriceCache",
]
