"""GetCompanySubscription Use Case"""

import logging
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.use_cases.errors import error_from_exception
from .dtos import SubscriptionDTO

logger = logging.getLogger(__name__)


class GetCompanySubscription:
    """Return the company's most recent subscription, or None if it never subscribed"""

    def __init__(self, subscription_repo: SubscriptionRepository):
        self.subscription_repo = subscription_repo

    async def execute(self, company_id: str) -> Result[Optional[SubscriptionDTO]]:
        try:
            subscription = await self.subscription_repo.get_latest_by_company_id(company_id)
        except Exception as e:
            logger.error(f"Failed to load subscription for company {company_id}: {e}")
            return Return.err(error_from_exception(e, "Failed to load subscription"))

        if not subscription:
            return Return.ok(None)

        return Return.ok(SubscriptionDTO.from_entity(subscription))
