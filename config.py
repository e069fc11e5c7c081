import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./billing.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    API_RELOAD = bool(data.get("API_RELOAD", False))
    API_WORKERS = data.get("API_WORKERS", 1)
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    AUTH_DISABLED = bool(data.get("AUTH_DISABLED", False))
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Stripe
    STRIPE_SECRET_KEY = data.get("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = data.get("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_API_VERSION = data.get("STRIPE_API_VERSION", "2024-10-28.acacia")

    # Per-seat pricing
    PRICE_PER_USER = data.get("PRICE_PER_USER", "1.00")  # Per user per month
    CURRENCY = data.get("CURRENCY", "usd")
    BILLING_INTERVAL = data.get("BILLING_INTERVAL", "month")
    PRICE_LOOKUP_KEY = data.get("PRICE_LOOKUP_KEY", "standard_monthly_per_user")
    PRODUCT_NAME = data.get("PRODUCT_NAME", "Per-seat subscription")

    # Billing policy
    GRACE_PERIOD_DAYS = data.get("GRACE_PERIOD_DAYS", 7)
    MAX_PAYMENT_RETRIES = data.get("MAX_PAYMENT_RETRIES", 3)
    TRIAL_PERIOD_DAYS = data.get("TRIAL_PERIOD_DAYS", 14)
    INVOICE_DUE_DAYS = data.get("INVOICE_DUE_DAYS", 7)
    PAYMENT_RETRY_DELAY_DAYS = data.get("PAYMENT_RETRY_DELAY_DAYS", 1)

    # Gateway retry (connection and rate-limit errors only)
    GATEWAY_RETRY_MAX_ATTEMPTS = data.get("GATEWAY_RETRY_MAX_ATTEMPTS", 3)
    GATEWAY_RETRY_BASE_DELAY = data.get("GATEWAY_RETRY_BASE_DELAY", 1.0)  # Seconds
    GATEWAY_RETRY_MAX_DELAY = data.get("GATEWAY_RETRY_MAX_DELAY", 10.0)  # Seconds
    GATEWAY_RETRY_JITTER = data.get("GATEWAY_RETRY_JITTER", 1.0)  # Seconds

    # Scheduled sweeps
    SWEEP_CONCURRENCY = data.get("SWEEP_CONCURRENCY", 5)
    TRIAL_NOTIFICATION_WEBHOOK = data.get("TRIAL_NOTIFICATION_WEBHOOK", None)
