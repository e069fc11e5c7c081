"""Data Transfer Objects for Webhook Use Cases"""

from typing import Optional
from pydantic import BaseModel, Field


class WebhookResultDTO(BaseModel):
    event_id: str
    event_type: str
    handled: bool = Field(..., description="False when the event was only logged")
    detail: Optional[str] = None
