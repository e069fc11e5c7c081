"""Billing Clock

Pure date and money helpers shared by the billing use cases.
All datetimes are timezone-aware UTC.
"""

import math
from calendar import monthrange
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

CENT = Decimal("0.01")
SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    """Current time as aware UTC"""
    return datetime.now(timezone.utc)


def quantize_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def days_in_month(value: datetime) -> int:
    return monthrange(value.year, value.month)[1]


def add_months(value: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping the day to the target month's length

    Jan 31 + 1 month -> Feb 28 (or 29)
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_billing_date(value: datetime) -> datetime:
    return add_months(value, 1)


def calculate_proration(
    price_per_user: Decimal, start: datetime, end: datetime
) -> Decimal:
    """
    Prorated charge for one seat between start and end

    price / days in end's month * whole days remaining (rounded up),
    rounded half-up to cents. Zero if end is not after start.
    """
    if end <= start:
        return Decimal("0.00")

    remaining_days = math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)
    daily_rate = Decimal(price_per_user) / Decimal(days_in_month(end))
    return quantize_money(daily_rate * remaining_days)


def generate_invoice_number(company_id: str, value: datetime) -> str:
    """
    Deterministic invoice number for a company and billing month

    Format: INV-YYYY-MM-XXXXXX where XXXXXX is the upper-cased
    company id prefix.
    """
    return f"INV-{value.year:04d}-{value.month:02d}-{company_id[:6].upper()}"


def grace_period_end(start: datetime, days: int = 7) -> datetime:
    return start + timedelta(days=days)


def is_in_grace_period(ends_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if ends_at is None:
        return False
    return (now or utc_now()) <= ends_at


def to_minor_units(amount: Decimal) -> int:
    """Dollars to cents"""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(cents: int) -> Decimal:
    """Cents to dollars"""
    return quantize_money(Decimal(cents) / 100)
