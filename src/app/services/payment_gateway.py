"""Payment Gateway Interface

Narrow contract over the external payment processor, plus the
value objects the billing use cases read from it.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class PaymentGatewayError(Exception):
    """Raised when the payment gateway rejects or fails a request"""

    def __init__(self, message: str, code: Optional[str] = None, operation: Optional[str] = None):
        self.message = message
        self.code = code
        self.operation = operation
        super().__init__(message)


class WebhookVerificationError(PaymentGatewayError):
    """Raised when a webhook payload or signature cannot be verified"""
    pass


class GatewaySubscription(BaseModel):
    id: str
    status: str
    current_period_start: datetime
    current_period_end: datetime
    item_id: Optional[str] = None
    quantity: Optional[int] = None
    cancel_at_period_end: bool = False
    trial_start: Optional[datetime] = None
    trial_end: Optional[datetime] = None
    client_secret: Optional[str] = Field(
        default=None,
        description="Secret of the first invoice's payment intent, for client-side confirmation"
    )


class GatewayInvoice(BaseModel):
    id: str
    status: Optional[str] = None
    payment_intent_id: Optional[str] = None
    invoice_pdf: Optional[str] = None
    hosted_invoice_url: Optional[str] = None


class GatewayPaymentIntent(BaseModel):
    id: str
    status: str
    amount: int = Field(..., description="Amount in minor units (cents)")
    currency: str = "usd"
    payment_method_id: Optional[str] = None
    charge_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class GatewayPaymentMethod(BaseModel):
    id: str
    type: str = "card"
    card_brand: Optional[str] = None
    card_last4: Optional[str] = None
    card_exp_month: Optional[int] = None
    card_exp_year: Optional[int] = None
    card_funding: Optional[str] = None
    bank_name: Optional[str] = None
    bank_last4: Optional[str] = None
    bank_account_holder_type: Optional[str] = None
    billing_name: Optional[str] = None
    billing_email: Optional[str] = None

    def summary(self) -> Dict[str, Any]:
        """Redacted description safe to persist and display"""
        if self.type == "card":
            return {
                "type": "card",
                "brand": self.card_brand,
                "last4": self.card_last4,
                "exp_month": self.card_exp_month,
                "exp_year": self.card_exp_year,
            }
        return {
            "type": self.type,
            "bank_name": self.bank_name,
            "last4": self.bank_last4,
        }


class GatewayEvent(BaseModel):
    id: str
    type: str
    data: Dict[str, Any] = Field(default_factory=dict, description="The event's data.object")


class PaymentGateway(ABC):
    """
    Abstract payment gateway

    Every method raises PaymentGatewayError on failure. Amounts are in
    minor units (cents).
    """

    @abstractmethod
    async def create_customer(
        self, email: Optional[str], name: str, metadata: Dict[str, str]
    ) -> str:
        """Create a customer and return its ID"""
        pass

    @abstractmethod
    async def attach_payment_method(self, payment_method_id: str, customer_id: str) -> None:
        pass

    @abstractmethod
    async def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> None:
        pass

    @abstractmethod
    async def detach_payment_method(self, payment_method_id: str) -> None:
        pass

    @abstractmethod
    async def retrieve_payment_method(self, payment_method_id: str) -> GatewayPaymentMethod:
        pass

    @abstractmethod
    async def find_price(self, lookup_key: str) -> Optional[str]:
        """Return the ID of the price with this lookup key, None if absent"""
        pass

    @abstractmethod
    async def create_price(
        self,
        unit_amount: int,
        currency: str,
        interval: str,
        product_name: str,
        lookup_key: str,
    ) -> str:
        pass

    @abstractmethod
    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        quantity: int,
        metadata: Dict[str, str],
        trial_period_days: Optional[int] = None,
    ) -> GatewaySubscription:
        """
        Create a seat subscription

        The first invoice is left incomplete so the client can confirm
        its payment intent with the returned client_secret.
        """
        pass

    @abstractmethod
    async def retrieve_subscription(self, subscription_id: str) -> GatewaySubscription:
        pass

    @abstractmethod
    async def update_subscription_quantity(
        self, subscription_id: str, item_id: str, quantity: int
    ) -> GatewaySubscription:
        """Change seat quantity; the gateway invoices the proration immediately"""
        pass

    @abstractmethod
    async def set_cancel_at_period_end(
        self, subscription_id: str, cancel_at_period_end: bool
    ) -> GatewaySubscription:
        pass

    @abstractmethod
    async def cancel_subscription(self, subscription_id: str) -> GatewaySubscription:
        pass

    @abstractmethod
    async def create_invoice(
        self, customer_id: str, metadata: Dict[str, str], idempotency_key: str
    ) -> GatewayInvoice:
        pass

    @abstractmethod
    async def add_invoice_item(
        self,
        customer_id: str,
        invoice_id: str,
        amount: int,
        currency: str,
        description: str,
        idempotency_key: str,
    ) -> None:
        pass

    @abstractmethod
    async def finalize_invoice(self, invoice_id: str) -> GatewayInvoice:
        pass

    @abstractmethod
    async def void_invoice(self, invoice_id: str) -> GatewayInvoice:
        pass

    @abstractmethod
    async def retrieve_payment_intent(self, payment_intent_id: str) -> GatewayPaymentIntent:
        pass

    @abstractmethod
    async def confirm_payment_intent(
        self, payment_intent_id: str, idempotency_key: Optional[str] = None
    ) -> GatewayPaymentIntent:
        """Confirm again; a repeated idempotency_key replays the first confirmation"""
        pass

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
        """
        Verify a webhook delivery and parse it

        Raises:
            WebhookVerificationError: Bad payload or signature
        """
        pass
