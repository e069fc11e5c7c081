"""Subscription lifecycle use cases"""
from .create_subscription import CreateSubscription
from .update_subscription_quantity import UpdateSubscriptionQuantity
from .cancel_subscription import CancelSubscription
from .reactivate_subscription import ReactivateSubscription
from .start_grace_period import StartGracePeriod
from .suspend_account import SuspendAccount
from .finalize_cancellation import FinalizeCancellation
from .get_company_subscription import GetCompanySubscription
from .advance_billing_period import AdvanceBillingPeriod
from .dtos import (
    CreateSubscriptionCommandDTO,
    CreateSubscriptionResponseDTO,
    CancelSubscriptionCommandDTO,
    CancelSubscriptionResponseDTO,
    ReactivateSubscriptionCommandDTO,
    QuantitySyncResultDTO,
    StatusChangeResultDTO,
    SubscriptionDTO,
)

__all__ = [
    "CreateSubscription",
    "UpdateSubscriptionQuantity",
    "CancelSubscription",
    "ReactivateSubscription",
    "StartGracePeriod",
    "SuspendAccount",
    "FinalizeCancellation",
    "GetCompanySubscription",
    "AdvanceBillingPeriod",
    "CreateSubscriptionCommandDTO",
    "CreateSubscriptionResponseDTO",
    "CancelSubscriptionCommandDTO",
    "CancelSubscriptionResponseDTO",
    "ReactivateSubscriptionCommandDTO",
    "QuantitySyncResultDTO",
    "StatusChangeResultDTO",
    "SubscriptionDTO",
]
