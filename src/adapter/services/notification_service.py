"""Notice delivery over the log and an HTTP webhook"""

import logging
from typing import Optional
import httpx
from src.app.services.notification_service import BillingNotice, NotificationService

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """Writes notices to the log; the default when no webhook is configured"""

    async def send(self, notice: BillingNotice) -> bool:
        logger.warning(
            f"[{notice.kind.upper()}] Company {notice.company_id} ({notice.company_name}), "
            f"effective {notice.effective_at.isoformat() if notice.effective_at else 'unknown'}"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    POSTs each notice as JSON to a webhook

    Every notice is logged first, so a webhook outage loses no record of it.
    A non-2xx answer or transport error counts as undelivered.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.client = client
        self.log = LoggingNotificationService()

    async def _post(self, client: httpx.AsyncClient, notice: BillingNotice) -> None:
        response = await client.post(self.webhook_url, json=notice.payload())
        response.raise_for_status()

    async def send(self, notice: BillingNotice) -> bool:
        await self.log.send(notice)
        try:
            if self.client is not None:
                await self._post(self.client, notice)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    await self._post(client, notice)
        except httpx.HTTPError as e:
            logger.error(f"Webhook delivery of {notice.kind} for company {notice.company_id} failed: {e}")
            return False

        logger.info(f"Delivered {notice.kind} for company {notice.company_id} to {self.webhook_url}")
        return True


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    if webhook_url:
        return WebhookNotificationService(webhook_url)
    return LoggingNotificationService()
