"""Unit tests for HandleGatewayEvent use case

Tests cover:
- Event routing to the billing use cases
- Events for unknown local records
- Double counting of invoice intent declines
- Error propagation for redelivery
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from libs.result import Error, Return
from src.app.services.payment_gateway import GatewayEvent
from src.app.use_cases.payment import PaymentFailureResultDTO
from src.app.use_cases.webhook import HandleGatewayEvent
from src.domain.billing_history import BillingEventType


@pytest.fixture
def repos(sample_invoice, sample_payment, sample_subscription):
    invoice_repo = MagicMock()
    invoice_repo.get_by_stripe_invoice_id = AsyncMock(return_value=sample_invoice)
    payment_repo = MagicMock()
    payment_repo.get_by_payment_intent_id = AsyncMock(return_value=sample_payment)
    subscription_repo = MagicMock()
    subscription_repo.get_by_stripe_subscription_id = AsyncMock(return_value=sample_subscription)
    return invoice_repo, payment_repo, subscription_repo


@pytest.fixture
def steps():
    """Downstream use cases, each succeeding by default"""
    failure_result = PaymentFailureResultDTO(
        payment_id="pay-1", status="failed", attempt_number=2, max_attempts=3
    )
    return {
        "mark_invoice_paid": MagicMock(execute=AsyncMock(return_value=Return.ok(None))),
        "process_payment": MagicMock(execute=AsyncMock(return_value=Return.ok(None))),
        "handle_payment_failure": MagicMock(execute=AsyncMock(return_value=Return.ok(failure_result))),
        "confirm_payment_succeeded": MagicMock(execute=AsyncMock(return_value=Return.ok(None))),
        "finalize_cancellation": MagicMock(execute=AsyncMock(return_value=Return.ok(None))),
    }


@pytest.fixture
def handler(repos, steps, mock_history):
    invoice_repo, payment_repo, subscription_repo = repos
    return HandleGatewayEvent(
        invoice_repo=invoice_repo,
        payment_repo=payment_repo,
        subscription_repo=subscription_repo,
        history=mock_history,
        **steps,
    )


def event(event_type, **data):
    return GatewayEvent(id="evt_1", type=event_type, data=data)


@pytest.mark.asyncio
class TestInvoiceEvents:

    async def test_payment_succeeded_marks_invoice_paid(self, handler, steps):
        # Act
        result = await handler.execute(
            event("invoice.payment_succeeded", id="in_123", payment_intent="pi_123")
        )

        # Assert
        assert result.is_ok()
        assert result.value.handled is True
        steps["mark_invoice_paid"].execute.assert_called_once_with("inv-1", payment_intent_id="pi_123")

    async def test_expanded_payment_intent_reference(self, handler, steps):
        # Act
        await handler.execute(
            event("invoice.payment_succeeded", id="in_123", payment_intent={"id": "pi_123", "object": "payment_intent"})
        )

        # Assert
        steps["mark_invoice_paid"].execute.assert_called_once_with("inv-1", payment_intent_id="pi_123")

    async def test_unknown_invoice_is_acknowledged(self, handler, repos, steps):
        # Arrange
        invoice_repo, _, _ = repos
        invoice_repo.get_by_stripe_invoice_id = AsyncMock(return_value=None)

        # Act
        result = await handler.execute(event("invoice.payment_succeeded", id="in_unknown"))

        # Assert
        assert result.is_ok()
        assert result.value.handled is False
        steps["mark_invoice_paid"].execute.assert_not_called()

    async def test_first_decline_records_payment_then_failure(self, handler, repos, steps):
        """
        Given: No payment recorded yet for the invoice's intent
        When: invoice.payment_failed arrives
        Then: The payment is recorded first and the failure counted against it
        """
        # Arrange
        _, payment_repo, _ = repos
        payment_repo.get_by_payment_intent_id = AsyncMock(return_value=None)

        # Act
        result = await handler.execute(
            event(
                "invoice.payment_failed",
                id="in_123",
                payment_intent="pi_123",
                last_finalization_error={"code": "card_declined", "message": "Declined"},
            )
        )

        # Assert
        assert result.is_ok()
        steps["process_payment"].execute.assert_called_once_with("inv-1", "pi_123")
        command = steps["handle_payment_failure"].execute.call_args.args[0]
        assert command.payment_intent_id == "pi_123"
        assert command.failure_code == "card_declined"
        assert command.failure_message == "Declined"
        assert result.value.detail == "Payment attempt 2 failed"

    async def test_known_payment_skips_recording(self, handler, steps):
        # Act
        await handler.execute(event("invoice.payment_failed", id="in_123", payment_intent="pi_123"))

        # Assert
        steps["process_payment"].execute.assert_not_called()
        steps["handle_payment_failure"].execute.assert_called_once()


@pytest.mark.asyncio
class TestPaymentIntentEvents:

    async def test_succeeded_confirms_payment(self, handler, steps):
        # Act
        result = await handler.execute(
            event("payment_intent.succeeded", id="pi_123", latest_charge="ch_9")
        )

        # Assert
        assert result.value.handled is True
        steps["confirm_payment_succeeded"].execute.assert_called_once_with("pi_123", charge_id="ch_9")

    async def test_invoice_intent_failure_is_not_counted_twice(self, handler, steps):
        # Act
        result = await handler.execute(
            event("payment_intent.payment_failed", id="pi_123", invoice="in_123")
        )

        # Assert
        assert result.value.handled is False
        steps["handle_payment_failure"].execute.assert_not_called()

    async def test_standalone_intent_failure_is_counted(self, handler, steps):
        # Act
        await handler.execute(
            event(
                "payment_intent.payment_failed",
                id="pi_123",
                last_payment_error={"decline_code": "insufficient_funds", "message": "No funds"},
            )
        )

        # Assert
        command = steps["handle_payment_failure"].execute.call_args.args[0]
        assert command.payment_id == "pay-1"
        assert command.failure_code == "insufficient_funds"


@pytest.mark.asyncio
class TestSubscriptionEvents:

    async def test_deleted_finalizes_cancellation(self, handler, steps):
        # Act
        result = await handler.execute(event("customer.subscription.deleted", id="sub_123"))

        # Assert
        assert result.is_ok()
        steps["finalize_cancellation"].execute.assert_called_once_with("sub-local-1")

    async def test_updated_is_recorded_in_history(self, handler, mock_history):
        # Act
        await handler.execute(
            event("customer.subscription.updated", id="sub_123", status="active", cancel_at_period_end=True)
        )

        # Assert
        kwargs = mock_history.log.call_args.kwargs
        assert kwargs["event_type"] == BillingEventType.SUBSCRIPTION_UPDATED
        assert kwargs["event_data"]["cancelAtPeriodEnd"] is True


@pytest.mark.asyncio
class TestDispatch:

    async def test_unhandled_event_type_is_acknowledged(self, handler):
        # Act
        result = await handler.execute(event("customer.created", id="cus_1"))

        # Assert
        assert result.is_ok()
        assert result.value.handled is False

    async def test_downstream_error_is_returned(self, handler, steps):
        # Arrange
        steps["mark_invoice_paid"].execute = AsyncMock(
            return_value=Return.err(Error(code="store-unavailable", message="Database down"))
        )

        # Act
        result = await handler.execute(event("invoice.payment_succeeded", id="in_123"))

        # Assert
        assert result.is_err()
        assert result.error.code == "store-unavailable"

    async def test_unexpected_exception_becomes_error(self, handler, repos):
        # Arrange
        invoice_repo, _, _ = repos
        invoice_repo.get_by_stripe_invoice_id = AsyncMock(side_effect=RuntimeError("boom"))

        # Act
        result = await handler.execute(event("invoice.payment_succeeded", id="in_123"))

        # Assert
        assert result.is_err()
        assert result.error.code == "internal"
