"""Unit tests for invoice use cases

Tests cover:
- Invoice amounts with and without proration
- Per-period idempotency and gateway idempotency keys
- Marking invoices paid and restoring delinquent subscriptions
- Voiding rules
- Company scoping on reads
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.services.payment_gateway import PaymentGatewayError
from src.app.use_cases.invoice import (
    CreateInvoice,
    CreateInvoiceCommandDTO,
    GetInvoice,
    MarkInvoiceAsPaid,
    VoidInvoice,
    VoidInvoiceCommandDTO,
)
from src.domain.billing_history import BillingEventType
from src.domain.company import AccountStatus
from src.domain.invoice import InvoiceStatus
from src.domain.subscription import SubscriptionPaymentStatus, SubscriptionStatus


@pytest.fixture
def mock_subscription_repo(sample_subscription):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=sample_subscription)
    repo.update = AsyncMock(side_effect=lambda s: s)
    return repo


@pytest.fixture
def mock_invoice_repo(sample_invoice):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=sample_invoice)
    repo.get_for_period = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda i: i)
    repo.update = AsyncMock(side_effect=lambda i: i)
    return repo


@pytest.fixture
def mock_invoice_line_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=lambda line: line)
    repo.get_by_invoice_id = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_usage_repo():
    repo = MagicMock()
    repo.sum_proration = AsyncMock(return_value=Decimal("0"))
    return repo


@pytest.fixture
def mock_company_repo(sample_company):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=sample_company)
    repo.update = AsyncMock(side_effect=lambda c: c)
    return repo


@pytest.fixture
def create_invoice(
    mock_uow, mock_subscription_repo, mock_invoice_repo, mock_invoice_line_repo,
    mock_usage_repo, mock_gateway, mock_history,
):
    return CreateInvoice(
        uow=mock_uow,
        subscription_repo=mock_subscription_repo,
        invoice_repo=mock_invoice_repo,
        invoice_line_repo=mock_invoice_line_repo,
        usage_repo=mock_usage_repo,
        gateway=mock_gateway,
        history=mock_history,
    )


@pytest.mark.asyncio
class TestCreateInvoice:

    async def test_base_amount_only(
        self, create_invoice, mock_invoice_repo, mock_invoice_line_repo, mock_gateway,
        mock_uow, mock_history, sample_subscription,
    ):
        """
        Given: 10 seats at $1.00 and no seat changes in the period
        When: CreateInvoice is executed
        Then: One $10.00 line is invoiced and the invoice is open
        """
        # Act
        result = await create_invoice.execute(CreateInvoiceCommandDTO(subscription_id=sample_subscription.id))

        # Assert
        assert result.is_ok()
        assert result.value.total == Decimal("10.00")
        assert result.value.invoice_number == "INV-2024-09-ACME01"
        assert result.value.already_existed is False

        invoice = mock_invoice_repo.create.call_args.args[0]
        assert invoice.status == InvoiceStatus.OPEN
        assert invoice.tax == Decimal("0")
        assert invoice.amount_due == Decimal("10.00")
        assert invoice.stripe_invoice_id == "in_123"
        assert invoice.stripe_payment_intent_id == "pi_123"
        assert invoice.user_count == 10

        assert mock_invoice_line_repo.create.call_count == 1
        mock_gateway.add_invoice_item.assert_called_once()
        assert mock_gateway.add_invoice_item.call_args.kwargs["amount"] == 1000
        mock_uow.commit.assert_called_once()
        assert mock_history.log.call_args.kwargs["event_type"] == BillingEventType.INVOICE_CREATED

    async def test_includes_net_proration_line(
        self, create_invoice, mock_usage_repo, mock_invoice_line_repo, mock_gateway, sample_subscription
    ):
        # Arrange
        mock_usage_repo.sum_proration = AsyncMock(return_value=Decimal("0.52"))

        # Act
        result = await create_invoice.execute(CreateInvoiceCommandDTO(subscription_id=sample_subscription.id))

        # Assert
        assert result.is_ok()
        assert result.value.total == Decimal("10.52")
        assert mock_invoice_line_repo.create.call_count == 2
        proration_line = mock_invoice_line_repo.create.call_args_list[1].args[0]
        assert proration_line.proration is True
        assert proration_line.amount == Decimal("0.52")
        assert mock_gateway.add_invoice_item.call_args_list[1].kwargs["amount"] == 52

    async def test_uses_deterministic_idempotency_keys(self, create_invoice, mock_gateway, sample_subscription):
        # Act
        await create_invoice.execute(CreateInvoiceCommandDTO(subscription_id=sample_subscription.id))

        # Assert
        assert mock_gateway.create_invoice.call_args.kwargs["idempotency_key"] == "invoice-INV-2024-09-ACME01"
        assert (
            mock_gateway.add_invoice_item.call_args.kwargs["idempotency_key"]
            == "invoice-INV-2024-09-ACME01-item-0"
        )

    async def test_existing_invoice_for_period_is_returned(
        self, create_invoice, mock_invoice_repo, mock_gateway, sample_invoice, sample_subscription
    ):
        """
        Given: An invoice already exists for the period
        When: CreateInvoice runs again
        Then: The existing invoice is returned and the gateway is not called
        """
        # Arrange
        mock_invoice_repo.get_for_period = AsyncMock(return_value=sample_invoice)

        # Act
        result = await create_invoice.execute(CreateInvoiceCommandDTO(subscription_id=sample_subscription.id))

        # Assert
        assert result.is_ok()
        assert result.value.already_existed is True
        assert result.value.invoice_id == sample_invoice.id
        mock_gateway.create_invoice.assert_not_called()
        mock_invoice_repo.create.assert_not_called()

    async def test_gateway_failure(self, create_invoice, mock_gateway, mock_invoice_repo, mock_uow, sample_subscription):
        # Arrange
        mock_gateway.finalize_invoice = AsyncMock(side_effect=PaymentGatewayError("finalize failed"))

        # Act
        result = await create_invoice.execute(CreateInvoiceCommandDTO(subscription_id=sample_subscription.id))

        # Assert
        assert result.is_err()
        assert result.error.code == "payment-gateway-error"
        mock_invoice_repo.create.assert_not_called()
        mock_uow.rollback.assert_called_once()

    async def test_unknown_subscription(self, create_invoice, mock_subscription_repo):
        # Arrange
        mock_subscription_repo.get_by_id = AsyncMock(return_value=None)

        # Act
        result = await create_invoice.execute(CreateInvoiceCommandDTO(subscription_id="missing"))

        # Assert
        assert result.is_err()
        assert result.error.code == "subscription-not-found"


@pytest.mark.asyncio
class TestMarkInvoiceAsPaid:

    @pytest.fixture
    def use_case(self, mock_uow, mock_invoice_repo, mock_subscription_repo, mock_company_repo, mock_history):
        return MarkInvoiceAsPaid(mock_uow, mock_invoice_repo, mock_subscription_repo, mock_company_repo, mock_history)

    async def test_marks_paid(self, use_case, sample_invoice, sample_subscription, mock_uow):
        # Act
        result = await use_case.execute(sample_invoice.id, payment_intent_id="pi_123")

        # Assert
        assert result.is_ok()
        assert result.value.status == "paid"
        assert result.value.already_paid is False
        assert sample_invoice.amount_paid == Decimal("10.00")
        assert sample_invoice.amount_due == Decimal("0")
        assert sample_invoice.paid_at is not None
        assert sample_subscription.payment_status == SubscriptionPaymentStatus.PAID
        mock_uow.commit.assert_called_once()

    async def test_second_call_is_noop(self, use_case, sample_invoice, mock_invoice_repo, mock_history):
        """
        Given: The invoice is already paid
        When: The payment confirmation is delivered again
        Then: Nothing changes and no history is written
        """
        # Arrange
        sample_invoice.status = InvoiceStatus.PAID

        # Act
        result = await use_case.execute(sample_invoice.id)

        # Assert
        assert result.is_ok()
        assert result.value.already_paid is True
        mock_invoice_repo.update.assert_not_called()
        mock_history.log.assert_not_called()

    async def test_restores_past_due_subscription(
        self, use_case, sample_invoice, sample_subscription, sample_company, mock_history
    ):
        # Arrange
        sample_subscription.status = SubscriptionStatus.PAST_DUE
        sample_subscription.grace_period_ends_at = datetime(2024, 9, 12, tzinfo=timezone.utc)
        sample_company.account_status = AccountStatus.PAST_DUE

        # Act
        result = await use_case.execute(sample_invoice.id)

        # Assert
        assert result.is_ok()
        assert result.value.reactivated is True
        assert result.value.subscription_status == "active"
        assert sample_subscription.grace_period_ends_at is None
        assert sample_company.account_status == AccountStatus.ACTIVE
        logged = [c.kwargs["event_type"] for c in mock_history.log.call_args_list]
        assert logged == [BillingEventType.INVOICE_PAID, BillingEventType.GRACE_PERIOD_ENDED]

    async def test_unknown_invoice(self, use_case, mock_invoice_repo):
        # Arrange
        mock_invoice_repo.get_by_id = AsyncMock(return_value=None)

        # Act
        result = await use_case.execute("missing")

        # Assert
        assert result.is_err()
        assert result.error.code == "not-found"


@pytest.mark.asyncio
class TestVoidInvoice:

    @pytest.fixture
    def use_case(self, mock_uow, mock_invoice_repo, mock_gateway, mock_history):
        return VoidInvoice(mock_uow, mock_invoice_repo, mock_gateway, mock_history)

    async def test_voids_open_invoice(self, use_case, sample_invoice, mock_gateway, mock_history):
        # Act
        result = await use_case.execute(
            VoidInvoiceCommandDTO(invoice_id=sample_invoice.id, reason="Duplicate", voided_by="root")
        )

        # Assert
        assert result.is_ok()
        assert result.value.status == "void"
        assert result.value.void_reason == "Duplicate"
        mock_gateway.void_invoice.assert_called_once_with("in_123")
        assert mock_history.log.call_args.kwargs["performed_by"] == "root"

    @pytest.mark.parametrize("status", [InvoiceStatus.PAID, InvoiceStatus.VOID])
    async def test_terminal_invoice(self, use_case, sample_invoice, mock_gateway, status):
        # Arrange
        sample_invoice.status = status

        # Act
        result = await use_case.execute(
            VoidInvoiceCommandDTO(invoice_id=sample_invoice.id, reason="Duplicate", voided_by="root")
        )

        # Assert
        assert result.is_err()
        assert result.error.code == "already-in-terminal-state"
        mock_gateway.void_invoice.assert_not_called()

    async def test_draft_invoice_is_invalid(self, use_case, sample_invoice):
        # Arrange
        sample_invoice.status = InvoiceStatus.DRAFT

        # Act
        result = await use_case.execute(
            VoidInvoiceCommandDTO(invoice_id=sample_invoice.id, reason="Duplicate", voided_by="root")
        )

        # Assert
        assert result.is_err()
        assert result.error.code == "invalid-state"


@pytest.mark.asyncio
class TestGetInvoice:

    async def test_other_company_invoice_is_not_found(self, mock_invoice_repo, mock_invoice_line_repo, sample_invoice):
        # Arrange
        use_case = GetInvoice(mock_invoice_repo, mock_invoice_line_repo)

        # Act
        result = await use_case.execute(sample_invoice.id, company_id="other")

        # Assert
        assert result.is_err()
        assert result.error.code == "not-found"

    async def test_includes_lines(self, mock_invoice_repo, mock_invoice_line_repo, sample_invoice):
        # Arrange
        use_case = GetInvoice(mock_invoice_repo, mock_invoice_line_repo)

        # Act
        result = await use_case.execute(sample_invoice.id, company_id="acme01")

        # Assert
        assert result.is_ok()
        assert result.value.invoice_number == "INV-2024-09-ACME01"
        assert result.value.lines == []
