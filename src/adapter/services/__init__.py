from .unit_of_work import SqlAlchemyUnitOfWork
from .notification_service import (
    LoggingNotificationService,
    WebhookNotificationService,
    create_notification_service,
)
from .billing_history_logger import SqlAlchemyBillingHistoryLogger
from .authorization_service import UserRoleAuthorizationService
from .retry_policy import RetryPolicy
from .stripe_gateway import StripePaymentGateway

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingNotificationService",
    "WebhookNotificationService",
    "create_notification_service",
    "SqlAlchemyBillingHistoryLogger",
    "UserRoleAuthorizationService",
    "RetryPolicy",
    "StripePaymentGateway",
]
