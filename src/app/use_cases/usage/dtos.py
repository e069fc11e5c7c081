"""Data Transfer Objects for Usage Use Cases"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field
from src.domain.usage_record import UsageRecord


class SeatChangeCommandDTO(BaseModel):
    """
    Command DTO for recording a seat being added or removed

    Used as input to RecordUserAddition and RecordUserRemoval.
    """

    company_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    user_name: Optional[str] = Field(default=None)
    user_email: Optional[str] = Field(default=None)
    performed_by: Optional[str] = Field(default=None, description="Admin who changed the seat")
    notes: Optional[str] = Field(default=None, max_length=500)

    class Config:
        json_schema_extra = {
            "example": {
                "company_id": "acme01",
                "user_id": "user_42",
                "user_name": "Ada Lovelace",
                "user_email": "ada@acme.test",
                "performed_by": "user_admin_1",
            }
        }


class UsageRecordDTO(BaseModel):
    usage_record_id: str
    company_id: str
    subscription_id: str
    event_type: str
    user_id: str
    user_name: Optional[str] = None
    user_count_before: int
    user_count_after: int
    proration_amount: Decimal = Field(..., description="Positive for additions, negative credit for removals")
    billing_period_start: datetime
    billing_period_end: datetime
    timestamp: datetime

    @classmethod
    def from_entity(cls, record: UsageRecord) -> "UsageRecordDTO":
        return cls(
            usage_record_id=record.id,
            company_id=record.company_id,
            subscription_id=record.subscription_id,
            event_type=record.event_type.value,
            user_id=record.user_id,
            user_name=record.user_name,
            user_count_before=record.user_count_before,
            user_count_after=record.user_count_after,
            proration_amount=record.proration_amount,
            billing_period_start=record.billing_period_start,
            billing_period_end=record.billing_period_end,
            timestamp=record.timestamp,
        )


class UsageRecordListDTO(BaseModel):
    records: List[UsageRecordDTO]
    count: int


class UsageSummaryDTO(BaseModel):
    """Seat activity of the company's current billing period"""

    company_id: str
    subscription_id: str
    period_start: datetime
    period_end: datetime
    current_user_count: int
    users_added: int
    users_removed: int
    total_proration: Decimal
    records: List[UsageRecordDTO]
