"""Date manipulation utilities"""

import calendar
from datetime import datetime, timedelta, timezone

from donation_gateway.domain.exceptions import InvalidBillingIntervalError

BILLING_INTERVALS = ("weekly", "monthly", "yearly")


def utc_now() -> datetime:
    """Timezone-aware current time in UTC"""
    return datetime.now(timezone.utc)


def add_months(from_date: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return from_date.replace(year=year, month=month, day=day)


def add_interval(from_date: datetime, interval: str) -> datetime:
    """
    Next billing instant for a subscription interval.

    weekly adds 7 days, monthly one calendar month, yearly one calendar year
    (Feb 29 maps to Feb 28).

    Raises:
        InvalidBillingIntervalError: interval is not weekly, monthly or yearly
    """
    if interval == "weekly":
        return from_date + timedelta(days=7)
    if interval == "monthly":
        return add_months(from_date, 1)
    if interval == "yearly":
        return add_months(from_date, 12)
    raise InvalidBillingIntervalError(f"Invalid interval: {interval}")
