"""HandleGatewayEvent Use Case

Routes verified payment gateway events to the billing use cases.
"""

import logging
from typing import Optional, Dict, Any
from libs.result import Result, Return
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import GatewayEvent
from src.app.use_cases.errors import error_from_exception
from src.app.use_cases.invoice.mark_invoice_paid import MarkInvoiceAsPaid
from src.app.use_cases.payment.confirm_payment_succeeded import ConfirmPaymentSucceeded
from src.app.use_cases.payment.dtos import PaymentFailureCommandDTO
from src.app.use_cases.payment.handle_payment_failure import HandlePaymentFailure
from src.app.use_cases.payment.process_payment import ProcessPayment
from src.app.use_cases.subscription.finalize_cancellation import FinalizeCancellation
from src.domain.billing_history import BillingEventType
from .dtos import WebhookResultDTO

logger = logging.getLogger(__name__)


def _reference(value) -> Optional[str]:
    """Expandable references arrive as an ID or as the expanded object"""
    if value is None or isinstance(value, str):
        return value
    return value.get("id")


def _error_fields(error: Optional[Dict[str, Any]]):
    error = error or {}
    return error.get("code") or error.get("decline_code"), error.get("message")


class HandleGatewayEvent:
    """
    Use Case: Apply a verified gateway event

    Business Rules:
    1. Every handler is idempotent; gateways deliver at least once
    2. Events about unknown records are logged and acknowledged
    3. Errors from the underlying use cases are returned so the gateway
       redelivers the event

    Event mapping:
    - invoice.payment_succeeded       -> MarkInvoiceAsPaid
    - invoice.payment_failed          -> ProcessPayment (if new) + HandlePaymentFailure
    - payment_intent.succeeded        -> ConfirmPaymentSucceeded
    - payment_intent.payment_failed   -> HandlePaymentFailure (non-invoice intents)
    - customer.subscription.updated   -> history entry
    - customer.subscription.deleted   -> FinalizeCancellation
    - payment_method.attached         -> log only
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
        subscription_repo: SubscriptionRepository,
        history: BillingHistoryLogger,
        mark_invoice_paid: MarkInvoiceAsPaid,
        process_payment: ProcessPayment,
        handle_payment_failure: HandlePaymentFailure,
        confirm_payment_succeeded: ConfirmPaymentSucceeded,
        finalize_cancellation: FinalizeCancellation,
    ):
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo
        self.subscription_repo = subscription_repo
        self.history = history
        self.mark_invoice_paid = mark_invoice_paid
        self.process_payment = process_payment
        self.handle_payment_failure = handle_payment_failure
        self.confirm_payment_succeeded = confirm_payment_succeeded
        self.finalize_cancellation = finalize_cancellation

        self._handlers = {
            "invoice.payment_succeeded": self._invoice_payment_succeeded,
            "invoice.payment_failed": self._invoice_payment_failed,
            "payment_intent.succeeded": self._payment_intent_succeeded,
            "payment_intent.payment_failed": self._payment_intent_failed,
            "customer.subscription.updated": self._subscription_updated,
            "customer.subscription.deleted": self._subscription_deleted,
            "payment_method.attached": self._payment_method_attached,
        }

    async def execute(self, event: GatewayEvent) -> Result[WebhookResultDTO]:
        handler = self._handlers.get(event.type)
        if handler is None:
            logger.info(f"Unhandled gateway event type {event.type} ({event.id})")
            return Return.ok(
                WebhookResultDTO(event_id=event.id, event_type=event.type, handled=False)
            )

        try:
            result = await handler(event.data)
        except Exception as e:
            logger.error(f"Error handling gateway event {event.type} ({event.id}): {e}")
            return Return.err(error_from_exception(e, f"Failed to handle {event.type}"))

        if result.is_err():
            logger.error(
                f"Gateway event {event.type} ({event.id}) failed: "
                f"{result.error.code} {result.error.message}"
            )
            return result

        handled, detail = result.value
        return Return.ok(
            WebhookResultDTO(
                event_id=event.id, event_type=event.type, handled=handled, detail=detail
            )
        )

    @staticmethod
    def _skipped(detail: str):
        logger.info(detail)
        return Return.ok((False, detail))

    async def _invoice_payment_succeeded(self, data: Dict[str, Any]):
        invoice = await self.invoice_repo.get_by_stripe_invoice_id(data["id"])
        if not invoice:
            return self._skipped(f"Invoice {data['id']} not found locally")

        result = await self.mark_invoice_paid.execute(
            invoice.id, payment_intent_id=_reference(data.get("payment_intent"))
        )
        if result.is_err():
            return result
        return Return.ok((True, f"Invoice {invoice.invoice_number} marked paid"))

    async def _invoice_payment_failed(self, data: Dict[str, Any]):
        payment_intent_id = _reference(data.get("payment_intent"))
        if not payment_intent_id:
            return self._skipped(f"Invoice {data['id']} failure has no payment intent")

        payment = await self.payment_repo.get_by_payment_intent_id(payment_intent_id)
        if not payment:
            invoice = await self.invoice_repo.get_by_stripe_invoice_id(data["id"])
            if not invoice:
                return self._skipped(f"Invoice {data['id']} not found locally")
            created = await self.process_payment.execute(invoice.id, payment_intent_id)
            if created.is_err():
                return created

        failure_code, failure_message = _error_fields(data.get("last_finalization_error"))
        result = await self.handle_payment_failure.execute(
            PaymentFailureCommandDTO(
                payment_intent_id=payment_intent_id,
                failure_code=failure_code,
                failure_message=failure_message,
            )
        )
        if result.is_err():
            return result
        return Return.ok((True, f"Payment attempt {result.value.attempt_number} failed"))

    async def _payment_intent_succeeded(self, data: Dict[str, Any]):
        payment = await self.payment_repo.get_by_payment_intent_id(data["id"])
        if not payment:
            return self._skipped(f"No payment recorded for intent {data['id']}")

        result = await self.confirm_payment_succeeded.execute(
            data["id"], charge_id=_reference(data.get("latest_charge"))
        )
        if result.is_err():
            return result
        return Return.ok((True, f"Payment {payment.id} succeeded"))

    async def _payment_intent_failed(self, data: Dict[str, Any]):
        # Invoice intents also emit invoice.payment_failed for the same decline
        if _reference(data.get("invoice")):
            return self._skipped(f"Intent {data['id']} failure is counted via its invoice")

        payment = await self.payment_repo.get_by_payment_intent_id(data["id"])
        if not payment:
            return self._skipped(f"No payment recorded for intent {data['id']}")

        failure_code, failure_message = _error_fields(data.get("last_payment_error"))
        result = await self.handle_payment_failure.execute(
            PaymentFailureCommandDTO(
                payment_intent_id=data["id"],
                payment_id=payment.id,
                failure_code=failure_code,
                failure_message=failure_message,
            )
        )
        if result.is_err():
            return result
        return Return.ok((True, f"Payment attempt {result.value.attempt_number} failed"))

    async def _subscription_updated(self, data: Dict[str, Any]):
        subscription = await self.subscription_repo.get_by_stripe_subscription_id(data["id"])
        if not subscription:
            return self._skipped(f"Subscription {data['id']} not found locally")

        await self.history.log(
            company_id=subscription.company_id,
            event_type=BillingEventType.SUBSCRIPTION_UPDATED,
            description=f"Gateway subscription updated ({data.get('status')})",
            event_data={
                "gatewayStatus": data.get("status"),
                "cancelAtPeriodEnd": data.get("cancel_at_period_end"),
            },
            subscription_id=subscription.id,
        )
        return Return.ok((True, "Subscription update recorded"))

    async def _subscription_deleted(self, data: Dict[str, Any]):
        subscription = await self.subscription_repo.get_by_stripe_subscription_id(data["id"])
        if not subscription:
            return self._skipped(f"Subscription {data['id']} not found locally")

        result = await self.finalize_cancellation.execute(subscription.id)
        if result.is_err():
            return result
        return Return.ok((True, f"Subscription {subscription.id} canceled"))

    async def _payment_method_attached(self, data: Dict[str, Any]):
        logger.info(f"Payment method {data.get('id')} attached to {data.get('customer')}")
        return Return.ok((True, None))
