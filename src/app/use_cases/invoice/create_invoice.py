"""CreateInvoice Use Case

Issues the invoice for one billing period of a subscription.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.usage_record_repository import UsageRecordRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import error_from_exception, not_found
from src.app.use_cases.usage.calculate_period_proration import CalculatePeriodProration
from src.domain.billing_clock import (
    utc_now,
    quantize_money,
    generate_invoice_number,
    to_minor_units,
)
from src.domain.billing_history import BillingEventType
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_line import InvoiceLine
from src.domain.pricing import PricingPolicy
from .dtos import CreateInvoiceCommandDTO, CreateInvoiceResponseDTO

logger = logging.getLogger(__name__)


class CreateInvoice:
    """
    Use Case: Create the invoice of a billing period

    Business Rules:
    1. base = current_user_count * price_per_user
    2. subtotal = base + net proration of the period; tax is always 0
    3. One invoice per (subscription, period_start): repeats return the
       existing invoice with already_existed=True
    4. Gateway requests carry idempotency keys derived from the
       invoice number, so a retried run reuses the same gateway invoice
    5. Invoices are due PricingPolicy.invoice_due_days after issue

    Flow:
    1. Load subscription, check for existing invoice
    2. Compute amounts and line items
    3. Create gateway invoice, add items, finalize
    4. Persist invoice and lines, store last_billed_user_count
    5. Commit, then log invoice_created
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
        usage_repo: UsageRecordRepository,
        gateway: PaymentGateway,
        history: BillingHistoryLogger,
        pricing: Optional[PricingPolicy] = None,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo
        self.gateway = gateway
        self.history = history
        self.pricing = pricing or PricingPolicy()
        self.calculate_proration = CalculatePeriodProration(usage_repo)

    async def execute(self, command: CreateInvoiceCommandDTO) -> Result[CreateInvoiceResponseDTO]:
        """
        Execute invoice creation

        Args:
            command: CreateInvoiceCommandDTO

        Returns:
            Result[CreateInvoiceResponseDTO]: Invoice references or error

        Errors:
            subscription-not-found: Unknown subscription
            payment-gateway-error: Gateway rejected a request
        """
        try:
            # Step 1: Load subscription and check idempotency
            subscription = await self.subscription_repo.get_by_id(command.subscription_id)
            if not subscription:
                return Return.err(not_found("Subscription", command.subscription_id))

            period_start = command.period_start or subscription.current_period_start
            period_end = command.period_end or subscription.current_period_end

            existing = await self.invoice_repo.get_for_period(subscription.id, period_start)
            if existing:
                logger.info(
                    f"Invoice {existing.invoice_number} already exists for subscription "
                    f"{subscription.id} period {period_start}"
                )
                return Return.ok(
                    CreateInvoiceResponseDTO(
                        invoice_id=existing.id,
                        stripe_invoice_id=existing.stripe_invoice_id,
                        invoice_number=existing.invoice_number,
                        total=existing.total,
                        already_existed=True,
                    )
                )

            # Step 2: Amounts and lines
            user_count = subscription.current_user_count
            price_per_user = Decimal(subscription.price_per_user)
            base_amount = quantize_money(price_per_user * user_count)

            proration_result = await self.calculate_proration.execute(
                subscription.company_id, period_start, period_end
            )
            if proration_result.is_err():
                return Return.err(proration_result.error)
            proration = proration_result.value

            subtotal = base_amount + proration
            tax = Decimal("0")
            total = subtotal

            lines = [
                InvoiceLine(
                    invoice_id="",
                    position=0,
                    description=f"Monthly subscription ({user_count} users)",
                    quantity=user_count,
                    unit_price=price_per_user,
                    amount=base_amount,
                    proration=False,
                )
            ]
            if proration != 0:
                lines.append(
                    InvoiceLine(
                        invoice_id="",
                        position=1,
                        description=(
                            "User additions (prorated)"
                            if proration > 0
                            else "User removals (prorated credit)"
                        ),
                        quantity=1,
                        unit_price=proration,
                        amount=proration,
                        proration=True,
                    )
                )

            invoice_number = generate_invoice_number(subscription.company_id, period_start)

            # Step 3: Gateway invoice
            gateway_invoice = await self.gateway.create_invoice(
                customer_id=subscription.stripe_customer_id,
                metadata={
                    "companyId": subscription.company_id,
                    "subscriptionId": subscription.id,
                    "invoiceNumber": invoice_number,
                },
                idempotency_key=f"invoice-{invoice_number}",
            )
            for index, line in enumerate(lines):
                await self.gateway.add_invoice_item(
                    customer_id=subscription.stripe_customer_id,
                    invoice_id=gateway_invoice.id,
                    amount=to_minor_units(line.amount),
                    currency=subscription.currency,
                    description=line.description,
                    idempotency_key=f"invoice-{invoice_number}-item-{index}",
                )
            finalized = await self.gateway.finalize_invoice(gateway_invoice.id)

            # Step 4: Persist
            now = utc_now()
            invoice = await self.invoice_repo.create(
                Invoice(
                    company_id=subscription.company_id,
                    subscription_id=subscription.id,
                    stripe_invoice_id=finalized.id,
                    stripe_payment_intent_id=finalized.payment_intent_id,
                    invoice_number=invoice_number,
                    status=InvoiceStatus.OPEN,
                    subtotal=subtotal,
                    tax=tax,
                    total=total,
                    amount_due=total,
                    amount_paid=Decimal("0"),
                    currency=subscription.currency,
                    period_start=period_start,
                    period_end=period_end,
                    user_count=user_count,
                    due_date=now + timedelta(days=self.pricing.invoice_due_days),
                    invoice_pdf_url=finalized.invoice_pdf,
                )
            )
            for line in lines:
                line.invoice_id = invoice.id
                await self.invoice_line_repo.create(line)

            subscription.last_billed_user_count = user_count
            await self.subscription_repo.update(subscription)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to create invoice for subscription {command.subscription_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to create invoice"))

        await self.history.log(
            company_id=invoice.company_id,
            event_type=BillingEventType.INVOICE_CREATED,
            description=f"Invoice {invoice_number} created for {total} {invoice.currency.upper()}",
            event_data={
                "invoiceNumber": invoice_number,
                "userCount": user_count,
                "baseAmount": str(base_amount),
                "prorationAmount": str(proration),
                "total": str(total),
            },
            subscription_id=subscription.id,
            invoice_id=invoice.id,
        )

        logger.info(f"Created invoice {invoice_number} ({total}) for subscription {subscription.id}")

        return Return.ok(
            CreateInvoiceResponseDTO(
                invoice_id=invoice.id,
                stripe_invoice_id=invoice.stripe_invoice_id,
                invoice_number=invoice_number,
                total=total,
                already_existed=False,
            )
        )
