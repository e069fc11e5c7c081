"""Background workers for billing service"""
from .monthly_billing import MonthlyBillingWorker
from .grace_period_sweep import GracePeriodSweepWorker
from .payment_retry_sweep import PaymentRetrySweepWorker
from .trial_expiration_sweep import TrialExpirationSweepWorker
from .usage_sync import UsageSyncWorker
from .cancellation_sweep import CancellationSweepWorker

__all__ = [
    "MonthlyBillingWorker",
    "GracePeriodSweepWorker",
    "PaymentRetrySweepWorker",
    "TrialExpirationSweepWorker",
    "UsageSyncWorker",
    "CancellationSweepWorker",
]
