"""Stripe Payment Gateway

PaymentGateway implementation backed by the stripe SDK.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import stripe

from src.adapter.services.retry_policy import RetryPolicy
from src.app.services.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    WebhookVerificationError,
    GatewayEvent,
    GatewayInvoice,
    GatewayPaymentIntent,
    GatewayPaymentMethod,
    GatewaySubscription,
)

logger = logging.getLogger(__name__)

TRANSIENT_STRIPE_ERRORS = (stripe.APIConnectionError, stripe.RateLimitError)


def _from_timestamp(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _as_dict(obj) -> Optional[Dict[str, Any]]:
    """SDK responses as plain nested dicts"""
    if obj is None or isinstance(obj, dict):
        return obj
    to_dict = getattr(obj, "to_dict_recursive", None) or obj.to_dict
    return to_dict()


def _object_id(value) -> Optional[str]:
    """Expandable fields are either an ID string or the expanded object"""
    if value is None or isinstance(value, str):
        return value
    return value.get("id")


def _to_subscription(obj: Dict[str, Any]) -> GatewaySubscription:
    items = (obj.get("items") or {}).get("data") or []
    first_item = items[0] if items else {}

    # Newer API versions moved the period onto the subscription item
    period_start = obj.get("current_period_start") or first_item.get("current_period_start")
    period_end = obj.get("current_period_end") or first_item.get("current_period_end")

    client_secret = None
    latest_invoice = obj.get("latest_invoice")
    if isinstance(latest_invoice, dict):
        payment_intent = latest_invoice.get("payment_intent")
        if isinstance(payment_intent, dict):
            client_secret = payment_intent.get("client_secret")

    return GatewaySubscription(
        id=obj["id"],
        status=obj.get("status", "incomplete"),
        current_period_start=_from_timestamp(period_start),
        current_period_end=_from_timestamp(period_end),
        item_id=first_item.get("id"),
        quantity=first_item.get("quantity"),
        cancel_at_period_end=bool(obj.get("cancel_at_period_end", False)),
        trial_start=_from_timestamp(obj.get("trial_start")),
        trial_end=_from_timestamp(obj.get("trial_end")),
        client_secret=client_secret,
    )


def _to_invoice(obj: Dict[str, Any]) -> GatewayInvoice:
    return GatewayInvoice(
        id=obj["id"],
        status=obj.get("status"),
        payment_intent_id=_object_id(obj.get("payment_intent")),
        invoice_pdf=obj.get("invoice_pdf"),
        hosted_invoice_url=obj.get("hosted_invoice_url"),
    )


def _to_payment_intent(obj: Dict[str, Any]) -> GatewayPaymentIntent:
    return GatewayPaymentIntent(
        id=obj["id"],
        status=obj["status"],
        amount=obj.get("amount", 0),
        currency=obj.get("currency", "usd"),
        payment_method_id=_object_id(obj.get("payment_method")),
        charge_id=_object_id(obj.get("latest_charge")),
        metadata=dict(obj.get("metadata") or {}),
    )


def _to_payment_method(obj: Dict[str, Any]) -> GatewayPaymentMethod:
    card = obj.get("card") or {}
    bank = obj.get("us_bank_account") or {}
    billing = obj.get("billing_details") or {}
    return GatewayPaymentMethod(
        id=obj["id"],
        type=obj.get("type", "card"),
        card_brand=card.get("brand"),
        card_last4=card.get("last4"),
        card_exp_month=card.get("exp_month"),
        card_exp_year=card.get("exp_year"),
        card_funding=card.get("funding"),
        bank_name=bank.get("bank_name"),
        bank_last4=bank.get("last4"),
        bank_account_holder_type=bank.get("account_holder_type"),
        billing_name=billing.get("name"),
        billing_email=billing.get("email"),
    )


class StripePaymentGateway(PaymentGateway):
    """
    Stripe-backed payment gateway

    SDK calls are blocking and run in a worker thread. Connection and
    rate-limit errors are retried by the injected RetryPolicy; every
    other StripeError surfaces as PaymentGatewayError.
    """

    def __init__(
        self,
        api_key: str,
        webhook_secret: Optional[str] = None,
        api_version: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.api_version = api_version
        self.retry_policy = retry_policy or RetryPolicy(retry_on=TRANSIENT_STRIPE_ERRORS)

    @classmethod
    def from_config(cls, config) -> "StripePaymentGateway":
        return cls(
            api_key=config.STRIPE_SECRET_KEY,
            webhook_secret=config.STRIPE_WEBHOOK_SECRET or None,
            api_version=config.STRIPE_API_VERSION,
            retry_policy=RetryPolicy.from_config(config, retry_on=TRANSIENT_STRIPE_ERRORS),
        )

    async def _request(self, operation: str, fn, *args, **params):
        params["api_key"] = self.api_key
        if self.api_version:
            params["stripe_version"] = self.api_version
        try:
            result = await self.retry_policy.call(asyncio.to_thread, fn, *args, **params)
        except stripe.StripeError as e:
            logger.error(f"Stripe {operation} failed: {e.user_message or e}")
            raise PaymentGatewayError(
                message=str(e.user_message or e),
                code=e.code,
                operation=operation,
            ) from e
        return _as_dict(result)

    async def create_customer(
        self, email: Optional[str], name: str, metadata: Dict[str, str]
    ) -> str:
        customer = await self._request(
            "customer.create",
            stripe.Customer.create,
            email=email,
            name=name,
            metadata=metadata,
        )
        logger.info(f"Created Stripe customer {customer['id']} for {metadata}")
        return customer["id"]

    async def attach_payment_method(self, payment_method_id: str, customer_id: str) -> None:
        await self._request(
            "payment_method.attach",
            stripe.PaymentMethod.attach,
            payment_method_id,
            customer=customer_id,
        )

    async def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> None:
        await self._request(
            "customer.modify",
            stripe.Customer.modify,
            customer_id,
            invoice_settings={"default_payment_method": payment_method_id},
        )

    async def detach_payment_method(self, payment_method_id: str) -> None:
        await self._request(
            "payment_method.detach",
            stripe.PaymentMethod.detach,
            payment_method_id,
        )

    async def retrieve_payment_method(self, payment_method_id: str) -> GatewayPaymentMethod:
        payment_method = await self._request(
            "payment_method.retrieve",
            stripe.PaymentMethod.retrieve,
            payment_method_id,
        )
        return _to_payment_method(payment_method)

    async def find_price(self, lookup_key: str) -> Optional[str]:
        prices = await self._request(
            "price.list",
            stripe.Price.list,
            lookup_keys=[lookup_key],
            active=True,
            limit=1,
        )
        data = prices.get("data") or []
        return data[0]["id"] if data else None

    async def create_price(
        self,
        unit_amount: int,
        currency: str,
        interval: str,
        product_name: str,
        lookup_key: str,
    ) -> str:
        price = await self._request(
            "price.create",
            stripe.Price.create,
            unit_amount=unit_amount,
            currency=currency,
            recurring={"interval": interval},
            product_data={"name": product_name},
            lookup_key=lookup_key,
        )
        logger.info(f"Created Stripe price {price['id']} ({lookup_key})")
        return price["id"]

    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        quantity: int,
        metadata: Dict[str, str],
        trial_period_days: Optional[int] = None,
    ) -> GatewaySubscription:
        params = {
            "customer": customer_id,
            "items": [{"price": price_id, "quantity": quantity}],
            "payment_behavior": "default_incomplete",
            "payment_settings": {"save_default_payment_method": "on_subscription"},
            "expand": ["latest_invoice.payment_intent"],
            "metadata": metadata,
        }
        if trial_period_days:
            params["trial_period_days"] = trial_period_days

        subscription = await self._request(
            "subscription.create", stripe.Subscription.create, **params
        )
        return _to_subscription(subscription)

    async def retrieve_subscription(self, subscription_id: str) -> GatewaySubscription:
        subscription = await self._request(
            "subscription.retrieve", stripe.Subscription.retrieve, subscription_id
        )
        return _to_subscription(subscription)

    async def update_subscription_quantity(
        self, subscription_id: str, item_id: str, quantity: int
    ) -> GatewaySubscription:
        subscription = await self._request(
            "subscription.modify",
            stripe.Subscription.modify,
            subscription_id,
            items=[{"id": item_id, "quantity": quantity}],
            proration_behavior="always_invoice",
        )
        return _to_subscription(subscription)

    async def set_cancel_at_period_end(
        self, subscription_id: str, cancel_at_period_end: bool
    ) -> GatewaySubscription:
        subscription = await self._request(
            "subscription.modify",
            stripe.Subscription.modify,
            subscription_id,
            cancel_at_period_end=cancel_at_period_end,
        )
        return _to_subscription(subscription)

    async def cancel_subscription(self, subscription_id: str) -> GatewaySubscription:
        subscription = await self._request(
            "subscription.cancel", stripe.Subscription.cancel, subscription_id
        )
        return _to_subscription(subscription)

    async def create_invoice(
        self, customer_id: str, metadata: Dict[str, str], idempotency_key: str
    ) -> GatewayInvoice:
        invoice = await self._request(
            "invoice.create",
            stripe.Invoice.create,
            customer=customer_id,
            collection_method="charge_automatically",
            auto_advance=True,
            metadata=metadata,
            idempotency_key=idempotency_key,
        )
        return _to_invoice(invoice)

    async def add_invoice_item(
        self,
        customer_id: str,
        invoice_id: str,
        amount: int,
        currency: str,
        description: str,
        idempotency_key: str,
    ) -> None:
        await self._request(
            "invoice_item.create",
            stripe.InvoiceItem.create,
            customer=customer_id,
            invoice=invoice_id,
            amount=amount,
            currency=currency,
            description=description,
            idempotency_key=idempotency_key,
        )

    async def finalize_invoice(self, invoice_id: str) -> GatewayInvoice:
        invoice = await self._request(
            "invoice.finalize", stripe.Invoice.finalize_invoice, invoice_id
        )
        return _to_invoice(invoice)

    async def void_invoice(self, invoice_id: str) -> GatewayInvoice:
        invoice = await self._request(
            "invoice.void", stripe.Invoice.void_invoice, invoice_id
        )
        return _to_invoice(invoice)

    async def retrieve_payment_intent(self, payment_intent_id: str) -> GatewayPaymentIntent:
        payment_intent = await self._request(
            "payment_intent.retrieve", stripe.PaymentIntent.retrieve, payment_intent_id
        )
        return _to_payment_intent(payment_intent)

    async def confirm_payment_intent(
        self, payment_intent_id: str, idempotency_key: Optional[str] = None
    ) -> GatewayPaymentIntent:
        params = {"idempotency_key": idempotency_key} if idempotency_key else {}
        payment_intent = await self._request(
            "payment_intent.confirm", stripe.PaymentIntent.confirm, payment_intent_id, **params
        )
        return _to_payment_intent(payment_intent)

    def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
        if not self.webhook_secret:
            raise WebhookVerificationError("Webhook signing secret is not configured")
        try:
            event = _as_dict(stripe.Webhook.construct_event(payload, signature, self.webhook_secret))
        except ValueError as e:
            raise WebhookVerificationError(f"Invalid payload: {e}") from e
        except stripe.SignatureVerificationError as e:
            raise WebhookVerificationError(f"Invalid signature: {e}") from e

        return GatewayEvent(
            id=event["id"],
            type=event["type"],
            data=dict(event["data"]["object"]),
        )
