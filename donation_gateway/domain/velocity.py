"""Velocity tracking - recent charges per email inside a sliding window"""

from datetime import datetime, timedelta
from typing import Iterable

from donation_gateway.domain.models import Transaction
from donation_gateway.utils.date_utils import utc_now

VELOCITY_WINDOW = timedelta(hours=1)


def count_recent_charges(
    email: str,
    transactions: Iterable[Transaction],
    window: timedelta = VELOCITY_WINDOW,
    now: datetime | None = None,
) -> int:
    """
    Count ledger entries for an email with timestamp in [now - window, now].

    Exact scan over the whole ledger, no bucketing or sampling.
    """
    if now is None:
        now = utc_now()
    window_start = now - window

    return sum(
        1 for txn in transactions
        if txn.email == email and window_start <= txn.timestamp <= now
    )
