"""Payment method use cases

Stored card and bank account summaries of a company.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.payment_method_repository import PaymentMethodRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import ErrorCode, error_from_exception, not_found
from src.domain.billing_history import BillingEventType
from src.domain.payment_method import PaymentMethod
from .dtos import AddPaymentMethodCommandDTO, PaymentMethodDTO, PaymentMethodListDTO

logger = logging.getLogger(__name__)


class AddPaymentMethod:
    """
    Use Case: Store a payment method for a company

    Business Rules:
    1. Details come from the gateway; only the display summary is stored
    2. The method is attached to the company's gateway customer if it has one
    3. set_as_default clears every other default, locally and at the gateway
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_method_repo: PaymentMethodRepository,
        company_repo: CompanyRepository,
        gateway: PaymentGateway,
        history: BillingHistoryLogger,
    ):
        self.uow = uow
        self.payment_method_repo = payment_method_repo
        self.company_repo = company_repo
        self.gateway = gateway
        self.history = history

    async def execute(self, command: AddPaymentMethodCommandDTO) -> Result[PaymentMethodDTO]:
        try:
            company = await self.company_repo.get_by_id(command.company_id)
            if not company:
                return Return.err(not_found("Company", command.company_id))

            details = await self.gateway.retrieve_payment_method(command.stripe_payment_method_id)

            customer_id = company.stripe_customer_id
            if customer_id:
                await self.gateway.attach_payment_method(details.id, customer_id)

            if command.set_as_default:
                await self.payment_method_repo.clear_default(company.id)
                if customer_id:
                    await self.gateway.set_default_payment_method(customer_id, details.id)

            method = await self.payment_method_repo.create(
                PaymentMethod(
                    company_id=company.id,
                    stripe_payment_method_id=details.id,
                    type=details.type,
                    card_brand=details.card_brand,
                    card_last4=details.card_last4,
                    card_exp_month=details.card_exp_month,
                    card_exp_year=details.card_exp_year,
                    card_funding=details.card_funding,
                    bank_name=details.bank_name,
                    bank_last4=details.bank_last4,
                    bank_account_holder_type=details.bank_account_holder_type,
                    billing_name=details.billing_name,
                    billing_email=details.billing_email,
                    is_default=command.set_as_default,
                    is_active=True,
                    added_by=command.added_by,
                )
            )

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to add payment method for company {command.company_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to add payment method"))

        await self.history.log(
            company_id=company.id,
            event_type=BillingEventType.PAYMENT_METHOD_ADDED,
            description=f"Payment method added ({details.type})",
            event_data=dict(details.summary(), isDefault=command.set_as_default),
            performed_by=command.added_by,
        )

        return Return.ok(PaymentMethodDTO.from_entity(method))


class GetPaymentMethods:
    def __init__(self, payment_method_repo: PaymentMethodRepository):
        self.payment_method_repo = payment_method_repo

    async def execute(self, company_id: str) -> Result[PaymentMethodListDTO]:
        try:
            methods = await self.payment_method_repo.get_active_by_company_id(company_id)
        except Exception as e:
            logger.error(f"Failed to list payment methods for company {company_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to list payment methods"))

        items = [PaymentMethodDTO.from_entity(m) for m in methods]
        return Return.ok(PaymentMethodListDTO(payment_methods=items, count=len(items)))


class RemovePaymentMethod:
    """
    Use Case: Detach and deactivate a stored payment method

    The default method cannot be removed; set another default first.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_method_repo: PaymentMethodRepository,
        gateway: PaymentGateway,
        history: BillingHistoryLogger,
    ):
        self.uow = uow
        self.payment_method_repo = payment_method_repo
        self.gateway = gateway
        self.history = history

    async def execute(
        self,
        payment_method_id: str,
        removed_by: str,
        company_id: Optional[str] = None,
    ) -> Result[PaymentMethodDTO]:
        try:
            method = await self.payment_method_repo.get_by_id(payment_method_id)
            if (
                not method
                or not method.is_active
                or (company_id and method.company_id != company_id)
            ):
                return Return.err(not_found("PaymentMethod", payment_method_id))

            if method.is_default:
                return Return.err(
                    Error(
                        code=ErrorCode.INVALID_STATE.value,
                        message="Cannot remove the default payment method",
                        reason="Set another payment method as default first",
                    )
                )

            await self.gateway.detach_payment_method(method.stripe_payment_method_id)

            method.is_active = False
            await self.payment_method_repo.update(method)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to remove payment method {payment_method_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to remove payment method"))

        await self.history.log(
            company_id=method.company_id,
            event_type=BillingEventType.PAYMENT_METHOD_REMOVED,
            description="Payment method removed",
            event_data={"type": method.type, "last4": method.card_last4 or method.bank_last4},
            performed_by=removed_by,
        )

        return Return.ok(PaymentMethodDTO.from_entity(method))
