"""CreateSubscription Use Case

Signs a company up for per-seat billing.
"""

import logging
from datetime import timedelta
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.company_repository import CompanyRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.user_repository import UserRepository
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.price_cache import PriceCache
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import ErrorCode, error_from_exception
from src.domain.billing_clock import utc_now, next_billing_date, to_minor_units
from src.domain.billing_history import BillingEventType
from src.domain.pricing import PricingPolicy
from src.domain.subscription import (
    Subscription,
    SubscriptionStatus,
    SubscriptionPaymentStatus,
)
from .dtos import CreateSubscriptionCommandDTO, CreateSubscriptionResponseDTO

logger = logging.getLogger(__name__)


class CreateSubscription:
    """
    Use Case: Create a per-seat subscription for a company

    Business Rules:
    1. Company must exist and have no billable subscription
    2. Seat quantity is the company's active-user count
    3. Trial subscriptions get PricingPolicy.trial_period_days
    4. next_payment_date is one billing cycle after the period end

    Flow:
    1. Validate company
    2. Ensure gateway customer and default payment method
    3. Count seats and resolve the gateway price
    4. Create gateway subscription
    5. Persist subscription and mirror onto company
    6. Commit, then log subscription_created
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        company_repo: CompanyRepository,
        user_repo: UserRepository,
        gateway: PaymentGateway,
        history: BillingHistoryLogger,
        price_cache: Optional[PriceCache] = None,
        pricing: Optional[PricingPolicy] = None,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.company_repo = company_repo
        self.user_repo = user_repo
        self.gateway = gateway
        self.history = history
        self.price_cache = price_cache or PriceCache()
        self.pricing = pricing or PricingPolicy()

    async def _resolve_price(self) -> str:
        lookup_key = self.pricing.price_lookup_key

        price_id = self.price_cache.get(lookup_key)
        if price_id:
            return price_id

        price_id = await self.gateway.find_price(lookup_key)
        if not price_id:
            price_id = await self.gateway.create_price(
                unit_amount=to_minor_units(self.pricing.price_per_user),
                currency=self.pricing.currency,
                interval=self.pricing.billing_interval,
                product_name=self.pricing.product_name,
                lookup_key=lookup_key,
            )

        self.price_cache.put(lookup_key, price_id)
        return price_id

    async def execute(
        self, command: CreateSubscriptionCommandDTO
    ) -> Result[CreateSubscriptionResponseDTO]:
        """
        Execute subscription creation

        Args:
            command: CreateSubscriptionCommandDTO

        Returns:
            Result[CreateSubscriptionResponseDTO]: Subscription references or error

        Errors:
            invalid-state: Company missing or already subscribed
            payment-gateway-error: Gateway rejected a request
        """
        try:
            # Step 1: Validate company
            company = await self.company_repo.get_by_id(command.company_id)
            if not company:
                return Return.err(
                    Error(
                        code=ErrorCode.INVALID_STATE.value,
                        message=f"Company {command.company_id} not found",
                        reason="A subscription requires an existing company",
                    )
                )

            existing = await self.subscription_repo.get_billable_by_company_id(company.id)
            if existing:
                return Return.err(
                    Error(
                        code=ErrorCode.INVALID_STATE.value,
                        message=f"Company {company.id} already has a {existing.status.value} subscription",
                        reason=f"Existing subscription {existing.id}",
                    )
                )

            # Step 2: Ensure gateway customer with default payment method
            customer_id = company.stripe_customer_id
            if not customer_id:
                customer_id = await self.gateway.create_customer(
                    email=company.billing_email,
                    name=company.name,
                    metadata={"companyId": company.id, "companyName": company.name},
                )

            await self.gateway.attach_payment_method(command.payment_method_id, customer_id)
            await self.gateway.set_default_payment_method(customer_id, command.payment_method_id)

            # Step 3: Seats and price
            user_count = await self.user_repo.count_active(company.id)
            price_id = await self._resolve_price()

            # Step 4: Gateway subscription
            trial_days = self.pricing.trial_period_days if command.start_trial else None
            gateway_subscription = await self.gateway.create_subscription(
                customer_id=customer_id,
                price_id=price_id,
                quantity=user_count,
                metadata={"companyId": company.id},
                trial_period_days=trial_days,
            )

            # Step 5: Persist
            now = utc_now()
            status = SubscriptionStatus.TRIAL if command.start_trial else SubscriptionStatus.ACTIVE
            trial_start = None
            trial_end = None
            if command.start_trial:
                trial_start = gateway_subscription.trial_start or now
                trial_end = gateway_subscription.trial_end or now + timedelta(days=trial_days)

            subscription = Subscription(
                company_id=company.id,
                stripe_customer_id=customer_id,
                stripe_subscription_id=gateway_subscription.id,
                stripe_price_id=price_id,
                status=status,
                price_per_user=self.pricing.price_per_user,
                currency=self.pricing.currency,
                billing_interval=self.pricing.billing_interval,
                current_period_start=gateway_subscription.current_period_start,
                current_period_end=gateway_subscription.current_period_end,
                next_payment_date=next_billing_date(gateway_subscription.current_period_end),
                trial_start=trial_start,
                trial_end=trial_end,
                current_user_count=user_count,
                last_billed_user_count=user_count,
                payment_status=SubscriptionPaymentStatus.PENDING,
                grace_period_days=self.pricing.grace_period_days,
                created_by=command.created_by,
            )
            created = await self.subscription_repo.create(subscription)

            company.mirror_subscription(created)
            company.trial_started_at = trial_start
            company.trial_ends_at = trial_end
            company.last_billing_date = now
            company.suspended_at = None
            company.suspension_reason = None
            await self.company_repo.update(company)

            # Step 6: Commit
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to create subscription for company {command.company_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to create subscription"))

        await self.history.log(
            company_id=created.company_id,
            event_type=BillingEventType.SUBSCRIPTION_CREATED,
            description=f"Subscription created with {user_count} users",
            event_data={
                "userCount": user_count,
                "pricePerUser": str(created.price_per_user),
                "trial": command.start_trial,
                "stripeSubscriptionId": created.stripe_subscription_id,
            },
            subscription_id=created.id,
            performed_by=command.created_by,
        )

        logger.info(
            f"Created {created.status.value} subscription {created.id} for company "
            f"{created.company_id} with {user_count} seats"
        )

        return Return.ok(
            CreateSubscriptionResponseDTO(
                subscription_id=created.id,
                stripe_subscription_id=created.stripe_subscription_id,
                client_secret=gateway_subscription.client_secret,
                status=created.status.value,
            )
        )
