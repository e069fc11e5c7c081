import pytest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.services.payment_gateway import (
    GatewayInvoice,
    GatewayPaymentIntent,
    GatewayPaymentMethod,
    GatewaySubscription,
)
from src.domain.company import AccountStatus, Company
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.payment import Payment, PaymentStatus
from src.domain.subscription import Subscription, SubscriptionStatus


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_history():
    """Mock billing history logger"""
    history = MagicMock()
    history.log = AsyncMock()
    return history


@pytest.fixture
def mock_gateway():
    """Mock payment gateway with happy-path defaults"""
    gateway = MagicMock()
    gateway.create_customer = AsyncMock(return_value="cus_new")
    gateway.attach_payment_method = AsyncMock()
    gateway.set_default_payment_method = AsyncMock()
    gateway.detach_payment_method = AsyncMock()
    gateway.retrieve_payment_method = AsyncMock(
        return_value=GatewayPaymentMethod(
            id="pm_123",
            type="card",
            card_brand="visa",
            card_last4="4242",
            card_exp_month=12,
            card_exp_year=2030,
        )
    )
    gateway.find_price = AsyncMock(return_value="price_existing")
    gateway.create_price = AsyncMock(return_value="price_created")
    gateway.create_subscription = AsyncMock(
        return_value=GatewaySubscription(
            id="sub_123",
            status="active",
            current_period_start=datetime(2024, 9, 1, tzinfo=timezone.utc),
            current_period_end=datetime(2024, 10, 1, tzinfo=timezone.utc),
            item_id="si_123",
            quantity=10,
            client_secret="pi_secret_123",
        )
    )
    gateway.retrieve_subscription = AsyncMock(
        return_value=GatewaySubscription(
            id="sub_123",
            status="active",
            current_period_start=datetime(2024, 9, 1, tzinfo=timezone.utc),
            current_period_end=datetime(2024, 10, 1, tzinfo=timezone.utc),
            item_id="si_123",
            quantity=10,
        )
    )
    gateway.update_subscription_quantity = AsyncMock()
    gateway.set_cancel_at_period_end = AsyncMock()
    gateway.cancel_subscription = AsyncMock()
    gateway.create_invoice = AsyncMock(return_value=GatewayInvoice(id="in_123", status="draft"))
    gateway.add_invoice_item = AsyncMock()
    gateway.finalize_invoice = AsyncMock(
        return_value=GatewayInvoice(
            id="in_123",
            status="open",
            payment_intent_id="pi_123",
            invoice_pdf="https://stripe.test/in_123.pdf",
        )
    )
    gateway.void_invoice = AsyncMock(return_value=GatewayInvoice(id="in_123", status="void"))
    gateway.retrieve_payment_intent = AsyncMock(
        return_value=GatewayPaymentIntent(
            id="pi_123",
            status="requires_payment_method",
            amount=1000,
            currency="usd",
            payment_method_id="pm_123",
        )
    )
    gateway.confirm_payment_intent = AsyncMock(
        return_value=GatewayPaymentIntent(id="pi_123", status="succeeded", amount=1000)
    )
    return gateway


@pytest.fixture
def sample_company():
    return Company(
        id="acme01",
        name="Acme Inc",
        billing_email="billing@acme.test",
        stripe_customer_id="cus_123",
        account_status=AccountStatus.ACTIVE,
    )


@pytest.fixture
def sample_subscription():
    """Active subscription for September 2024 with 10 seats"""
    return Subscription(
        id="sub-local-1",
        company_id="acme01",
        stripe_customer_id="cus_123",
        stripe_subscription_id="sub_123",
        stripe_price_id="price_existing",
        status=SubscriptionStatus.ACTIVE,
        price_per_user=Decimal("1.00"),
        currency="usd",
        current_period_start=datetime(2024, 9, 1, tzinfo=timezone.utc),
        current_period_end=datetime(2024, 10, 1, tzinfo=timezone.utc),
        next_payment_date=datetime(2024, 11, 1, tzinfo=timezone.utc),
        current_user_count=10,
        last_billed_user_count=10,
        grace_period_days=7,
        version=1,
    )


@pytest.fixture
def sample_invoice():
    return Invoice(
        id="inv-1",
        company_id="acme01",
        subscription_id="sub-local-1",
        stripe_invoice_id="in_123",
        stripe_payment_intent_id="pi_123",
        invoice_number="INV-2024-09-ACME01",
        status=InvoiceStatus.OPEN,
        subtotal=Decimal("10.00"),
        tax=Decimal("0.00"),
        total=Decimal("10.00"),
        amount_due=Decimal("10.00"),
        amount_paid=Decimal("0.00"),
        currency="usd",
        period_start=datetime(2024, 9, 1, tzinfo=timezone.utc),
        period_end=datetime(2024, 10, 1, tzinfo=timezone.utc),
        user_count=10,
        version=1,
    )


@pytest.fixture
def sample_payment():
    return Payment(
        id="pay-1",
        company_id="acme01",
        subscription_id="sub-local-1",
        invoice_id="inv-1",
        stripe_payment_intent_id="pi_123",
        amount=Decimal("10.00"),
        currency="usd",
        status=PaymentStatus.PENDING,
        attempt_number=1,
        max_attempts=3,
        version=1,
    )
