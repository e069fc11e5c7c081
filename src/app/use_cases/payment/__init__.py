"""Payment processing use cases"""
from .process_payment import ProcessPayment
from .handle_payment_failure import HandlePaymentFailure
from .retry_payment import RetryPayment
from .confirm_payment_succeeded import ConfirmPaymentSucceeded
from .payment_methods import AddPaymentMethod, GetPaymentMethods, RemovePaymentMethod
from .get_payment_history import GetPaymentHistory
from .dtos import (
    PaymentFailureCommandDTO,
    PaymentFailureResultDTO,
    PaymentDTO,
    PaymentListDTO,
    AddPaymentMethodCommandDTO,
    PaymentMethodDTO,
    PaymentMethodListDTO,
)

__all__ = [
    "ProcessPayment",
    "HandlePaymentFailure",
    "RetryPayment",
    "ConfirmPaymentSucceeded",
    "AddPaymentMethod",
    "GetPaymentMethods",
    "RemovePaymentMethod",
    "GetPaymentHistory",
    "PaymentFailureCommandDTO",
    "PaymentFailureResultDTO",
    "PaymentDTO",
    "PaymentListDTO",
    "AddPaymentMethodCommandDTO",
    "PaymentMethodDTO",
    "PaymentMethodListDTO",
]
