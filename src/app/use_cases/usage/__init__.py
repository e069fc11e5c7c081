"""Seat usage tracking use cases"""
from .record_seat_change import RecordUserAddition, RecordUserRemoval
from .calculate_period_proration import CalculatePeriodProration
from .get_usage import GetUsageRecords, GetUsageSummary
from .dtos import (
    SeatChangeCommandDTO,
    UsageRecordDTO,
    UsageRecordListDTO,
    UsageSummaryDTO,
)

__all__ = [
    "RecordUserAddition",
    "RecordUserRemoval",
    "CalculatePeriodProration",
    "GetUsageRecords",
    "GetUsageSummary",
    "SeatChangeCommandDTO",
    "UsageRecordDTO",
    "UsageRecordListDTO",
    "UsageSummaryDTO",
]
