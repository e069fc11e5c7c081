"""Unit tests for CreateSubscription use case

Tests cover:
- Subscription creation with seat count from active users
- Trial subscriptions
- Price resolution through cache, lookup and creation
- Duplicate subscription prevention
- Gateway failure rollback
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.services.payment_gateway import PaymentGatewayError
from src.app.services.price_cache import PriceCache
from src.app.use_cases.subscription import CreateSubscription, CreateSubscriptionCommandDTO
from src.domain.billing_history import BillingEventType
from src.domain.company import AccountStatus, Company
from src.domain.pricing import PricingPolicy
from src.domain.subscription import SubscriptionStatus


@pytest.fixture
def mock_subscription_repo():
    repo = MagicMock()
    repo.get_billable_by_company_id = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda s: s)
    return repo


@pytest.fixture
def mock_company_repo(sample_company):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=sample_company)
    repo.update = AsyncMock(side_effect=lambda c: c)
    return repo


@pytest.fixture
def mock_user_repo():
    repo = MagicMock()
    repo.count_active = AsyncMock(return_value=10)
    return repo


@pytest.fixture
def price_cache():
    return PriceCache()


@pytest.fixture
def use_case(mock_uow, mock_subscription_repo, mock_company_repo, mock_user_repo, mock_gateway, mock_history, price_cache):
    return CreateSubscription(
        uow=mock_uow,
        subscription_repo=mock_subscription_repo,
        company_repo=mock_company_repo,
        user_repo=mock_user_repo,
        gateway=mock_gateway,
        history=mock_history,
        price_cache=price_cache,
        pricing=PricingPolicy(trial_period_days=14),
    )


@pytest.fixture
def command():
    return CreateSubscriptionCommandDTO(
        company_id="acme01",
        payment_method_id="pm_card_visa",
        created_by="admin-1",
    )


@pytest.mark.asyncio
class TestCreateSubscriptionSuccess:

    async def test_creates_active_subscription_with_seat_count(
        self, use_case, command, mock_gateway, mock_subscription_repo, mock_uow, mock_history
    ):
        """
        Given: A company with 10 active users and no subscription
        When: CreateSubscription is executed
        Then: Gateway subscription is created with quantity 10 and persisted as active
        """
        # Act
        result = await use_case.execute(command)

        # Assert
        assert result.is_ok()
        assert result.value.stripe_subscription_id == "sub_123"
        assert result.value.client_secret == "pi_secret_123"
        assert result.value.status == "active"

        kwargs = mock_gateway.create_subscription.call_args.kwargs
        assert kwargs["quantity"] == 10
        assert kwargs["price_id"] == "price_existing"
        assert kwargs["trial_period_days"] is None

        created = mock_subscription_repo.create.call_args.args[0]
        assert created.status == SubscriptionStatus.ACTIVE
        assert created.current_user_count == 10
        assert created.price_per_user == Decimal("1.00")
        assert created.current_period_end == datetime(2024, 10, 1, tzinfo=timezone.utc)
        assert created.next_payment_date == datetime(2024, 11, 1, tzinfo=timezone.utc)

        mock_uow.commit.assert_called_once()
        assert mock_history.log.call_args.kwargs["event_type"] == BillingEventType.SUBSCRIPTION_CREATED

    async def test_attaches_payment_method_to_existing_customer(self, use_case, command, mock_gateway):
        # Act
        await use_case.execute(command)

        # Assert
        mock_gateway.create_customer.assert_not_called()
        mock_gateway.attach_payment_method.assert_called_once_with("pm_card_visa", "cus_123")
        mock_gateway.set_default_payment_method.assert_called_once_with("cus_123", "pm_card_visa")

    async def test_creates_customer_when_company_has_none(
        self, use_case, command, mock_gateway, mock_company_repo
    ):
        # Arrange
        mock_company_repo.get_by_id = AsyncMock(
            return_value=Company(id="acme01", name="Acme Inc", billing_email="b@acme.test")
        )

        # Act
        result = await use_case.execute(command)

        # Assert
        assert result.is_ok()
        mock_gateway.create_customer.assert_called_once()
        assert mock_gateway.create_customer.call_args.kwargs["metadata"]["companyId"] == "acme01"
        mock_gateway.attach_payment_method.assert_called_once_with("pm_card_visa", "cus_new")

    async def test_trial_subscription(self, use_case, mock_gateway, mock_subscription_repo, mock_company_repo):
        """
        Given: start_trial requested
        When: CreateSubscription is executed
        Then: Subscription starts in trial and company trial dates are set
        """
        # Arrange
        command = CreateSubscriptionCommandDTO(
            company_id="acme01",
            payment_method_id="pm_card_visa",
            created_by="admin-1",
            start_trial=True,
        )

        # Act
        result = await use_case.execute(command)

        # Assert
        assert result.is_ok()
        assert result.value.status == "trial"
        assert mock_gateway.create_subscription.call_args.kwargs["trial_period_days"] == 14

        created = mock_subscription_repo.create.call_args.args[0]
        assert created.status == SubscriptionStatus.TRIAL
        assert created.trial_end is not None

        company = mock_company_repo.update.call_args.args[0]
        assert company.account_status == AccountStatus.TRIAL
        assert company.trial_ends_at == created.trial_end


@pytest.mark.asyncio
class TestPriceResolution:

    async def test_cached_price_skips_gateway_lookup(self, use_case, command, mock_gateway, price_cache):
        # Arrange
        price_cache.put("standard_monthly_per_user", "price_cached")

        # Act
        await use_case.execute(command)

        # Assert
        mock_gateway.find_price.assert_not_called()
        assert mock_gateway.create_subscription.call_args.kwargs["price_id"] == "price_cached"

    async def test_creates_price_when_lookup_misses(self, use_case, command, mock_gateway, price_cache):
        # Arrange
        mock_gateway.find_price = AsyncMock(return_value=None)

        # Act
        await use_case.execute(command)

        # Assert
        kwargs = mock_gateway.create_price.call_args.kwargs
        assert kwargs["unit_amount"] == 100
        assert kwargs["currency"] == "usd"
        assert kwargs["interval"] == "month"
        assert kwargs["lookup_key"] == "standard_monthly_per_user"
        assert price_cache.get("standard_monthly_per_user") == "price_created"


@pytest.mark.asyncio
class TestCreateSubscriptionErrors:

    async def test_existing_billable_subscription(
        self, use_case, command, mock_subscription_repo, mock_gateway, sample_subscription
    ):
        # Arrange
        mock_subscription_repo.get_billable_by_company_id = AsyncMock(return_value=sample_subscription)

        # Act
        result = await use_case.execute(command)

        # Assert
        assert result.is_err()
        assert result.error.code == "invalid-state"
        mock_gateway.create_subscription.assert_not_called()

    async def test_company_not_found(self, use_case, command, mock_company_repo):
        # Arrange
        mock_company_repo.get_by_id = AsyncMock(return_value=None)

        # Act
        result = await use_case.execute(command)

        # Assert
        assert result.is_err()
        assert result.error.code == "invalid-state"

    async def test_gateway_failure_rolls_back(
        self, use_case, command, mock_gateway, mock_subscription_repo, mock_uow, mock_history
    ):
        """
        Given: The gateway rejects the subscription
        When: CreateSubscription is executed
        Then: Nothing is persisted and payment-gateway-error is returned
        """
        # Arrange
        mock_gateway.create_subscription = AsyncMock(
            side_effect=PaymentGatewayError("Your card was declined", code="card_declined")
        )

        # Act
        result = await use_case.execute(command)

        # Assert
        assert result.is_err()
        assert result.error.code == "payment-gateway-error"
        mock_subscription_repo.create.assert_not_called()
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()
        mock_history.log.assert_not_called()
