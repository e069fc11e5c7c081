"""Pricing Policy

Billing constants applied to every subscription.
"""

from decimal import Decimal
from pydantic import BaseModel, Field


class PricingPolicy(BaseModel):
    """
    Per-seat pricing and dunning parameters

    Loaded once from ApplicationConfig and passed to use cases.
    """

    price_per_user: Decimal = Field(default=Decimal("1.00"), gt=0)
    currency: str = Field(default="usd")
    billing_interval: str = Field(default="month")
    price_lookup_key: str = Field(default="standard_monthly_per_user")
    product_name: str = Field(default="Per-seat subscription")
    grace_period_days: int = Field(default=7, ge=0)
    max_payment_retries: int = Field(default=3, ge=1)
    trial_period_days: int = Field(default=14, ge=0)
    invoice_due_days: int = Field(default=7, ge=0)
    payment_retry_delay_days: int = Field(default=1, ge=0)

    @classmethod
    def from_config(cls, config) -> "PricingPolicy":
        return cls(
            price_per_user=Decimal(str(config.PRICE_PER_USER)),
            currency=config.CURRENCY,
            billing_interval=config.BILLING_INTERVAL,
            price_lookup_key=config.PRICE_LOOKUP_KEY,
            product_name=config.PRODUCT_NAME,
            grace_period_days=config.GRACE_PERIOD_DAYS,
            max_payment_retries=config.MAX_PAYMENT_RETRIES,
            trial_period_days=config.TRIAL_PERIOD_DAYS,
            invoice_due_days=config.INVOICE_DUE_DAYS,
            payment_retry_delay_days=config.PAYMENT_RETRY_DELAY_DAYS,
        )
