"""MarkInvoiceAsPaid Use Case"""

import logging
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import error_from_exception, not_found
from src.domain.billing_clock import utc_now
from src.domain.billing_history import BillingEventType
from src.domain.invoice import InvoiceStatus
from src.domain.subscription import SubscriptionStatus, SubscriptionPaymentStatus
from .dtos import MarkInvoicePaidResponseDTO

logger = logging.getLogger(__name__)

RESTORABLE_STATUSES = (
    SubscriptionStatus.PAST_DUE,
    SubscriptionStatus.UNPAID,
    SubscriptionStatus.SUSPENDED,
)


class MarkInvoiceAsPaid:
    """
    Use Case: Record that an invoice was paid

    Business Rules:
    1. Already paid is a no-op success (gateway events may repeat)
    2. amount_paid = total, amount_due = 0
    3. A paid invoice ends any grace period and marks the subscription paid
    4. past_due/unpaid/suspended subscriptions return to active and the
       company suspension is lifted

    Flow:
    1. Load invoice, short-circuit if paid
    2. Mark invoice paid
    3. Update subscription and company
    4. Commit, then log invoice_paid (and grace_period_ended)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        subscription_repo: SubscriptionRepository,
        company_repo: CompanyRepository,
        history: BillingHistoryLogger,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.subscription_repo = subscription_repo
        self.company_repo = company_repo
        self.history = history

    async def execute(
        self, invoice_id: str, payment_intent_id: Optional[str] = None
    ) -> Result[MarkInvoicePaidResponseDTO]:
        reactivated = False
        grace_was_active = False
        subscription = None
        try:
            # Step 1: Load invoice
            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if not invoice:
                return Return.err(not_found("Invoice", invoice_id))

            if invoice.status == InvoiceStatus.PAID:
                return Return.ok(
                    MarkInvoicePaidResponseDTO(
                        invoice_id=invoice.id,
                        status=invoice.status.value,
                        already_paid=True,
                    )
                )

            # Step 2: Mark paid
            now = utc_now()
            invoice.transition_to(InvoiceStatus.PAID)
            invoice.amount_paid = invoice.total
            invoice.amount_due = Decimal("0")
            invoice.paid_at = now
            if payment_intent_id:
                invoice.stripe_payment_intent_id = payment_intent_id
            await self.invoice_repo.update(invoice)

            # Step 3: Subscription and company
            subscription = await self.subscription_repo.get_by_id(invoice.subscription_id)
            if subscription and subscription.status != SubscriptionStatus.CANCELED:
                grace_was_active = subscription.grace_period_ends_at is not None
                subscription.grace_period_ends_at = None
                subscription.payment_status = SubscriptionPaymentStatus.PAID
                subscription.last_payment_date = now
                if subscription.status in RESTORABLE_STATUSES:
                    subscription.transition_to(SubscriptionStatus.ACTIVE)
                    reactivated = True
                await self.subscription_repo.update(subscription)

                company = await self.company_repo.get_by_id(subscription.company_id)
                if company:
                    company.mirror_subscription(subscription)
                    company.last_billing_date = now
                    if reactivated:
                        company.suspended_at = None
                        company.suspension_reason = None
                    await self.company_repo.update(company)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to mark invoice {invoice_id} as paid: {e}")
            return Return.err(error_from_exception(e, "Failed to mark invoice as paid"))

        await self.history.log(
            company_id=invoice.company_id,
            event_type=BillingEventType.INVOICE_PAID,
            description=f"Invoice {invoice.invoice_number} paid",
            event_data={
                "amountPaid": str(invoice.amount_paid),
                "paymentIntentId": payment_intent_id,
            },
            subscription_id=invoice.subscription_id,
            invoice_id=invoice.id,
        )
        if grace_was_active:
            await self.history.log(
                company_id=invoice.company_id,
                event_type=BillingEventType.GRACE_PERIOD_ENDED,
                description="Grace period ended by payment",
                subscription_id=invoice.subscription_id,
                invoice_id=invoice.id,
            )

        logger.info(f"Invoice {invoice.invoice_number} paid (reactivated={reactivated})")

        return Return.ok(
            MarkInvoicePaidResponseDTO(
                invoice_id=invoice.id,
                status=invoice.status.value,
                already_paid=False,
                subscription_status=subscription.status.value if subscription else None,
                reactivated=reactivated,
            )
        )
