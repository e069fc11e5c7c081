"""VoidInvoice Use Case"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import ErrorCode, error_from_exception, not_found
from src.domain.billing_clock import utc_now
from src.domain.billing_history import BillingEventType
from src.domain.invoice import InvoiceStatus
from .dtos import VoidInvoiceCommandDTO, InvoiceDTO

logger = logging.getLogger(__name__)

VOIDABLE_STATUSES = (InvoiceStatus.OPEN, InvoiceStatus.UNCOLLECTIBLE)


class VoidInvoice:
    """
    Use Case: Void an unpaid invoice (super-admin operation)

    Business Rules:
    1. Only open or uncollectible invoices can be voided
    2. paid and void are terminal
    3. The gateway invoice is voided first
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        gateway: PaymentGateway,
        history: BillingHistoryLogger,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.gateway = gateway
        self.history = history

    async def execute(self, command: VoidInvoiceCommandDTO) -> Result[InvoiceDTO]:
        try:
            invoice = await self.invoice_repo.get_by_id(command.invoice_id)
            if not invoice:
                return Return.err(not_found("Invoice", command.invoice_id))

            if invoice.status in (InvoiceStatus.PAID, InvoiceStatus.VOID):
                return Return.err(
                    Error(
                        code=ErrorCode.ALREADY_IN_TERMINAL_STATE.value,
                        message=f"Invoice {invoice.invoice_number} is already {invoice.status.value}",
                    )
                )
            if invoice.status not in VOIDABLE_STATUSES:
                return Return.err(
                    Error(
                        code=ErrorCode.INVALID_STATE.value,
                        message=f"Invoice {invoice.invoice_number} is {invoice.status.value} and cannot be voided",
                    )
                )

            if invoice.stripe_invoice_id:
                await self.gateway.void_invoice(invoice.stripe_invoice_id)

            invoice.transition_to(InvoiceStatus.VOID)
            invoice.voided_at = utc_now()
            invoice.void_reason = command.reason
            await self.invoice_repo.update(invoice)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to void invoice {command.invoice_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to void invoice"))

        await self.history.log(
            company_id=invoice.company_id,
            event_type=BillingEventType.INVOICE_VOIDED,
            description=f"Invoice {invoice.invoice_number} voided: {command.reason}",
            event_data={"reason": command.reason},
            subscription_id=invoice.subscription_id,
            invoice_id=invoice.id,
            performed_by=command.voided_by,
        )

        logger.info(f"Voided invoice {invoice.invoice_number} by {command.voided_by}")
        return Return.ok(InvoiceDTO.from_entity(invoice))
