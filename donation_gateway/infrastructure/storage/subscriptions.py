"""Subscription store - sole owner of subscription records"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from donation_gateway.domain.exceptions import (
    SubscriptionAlreadyCancelledError,
    SubscriptionAlreadyExistsError,
    SubscriptionNotFoundError,
)
from donation_gateway.domain.models import Subscription
from donation_gateway.utils.date_utils import add_interval, utc_now

logger = logging.getLogger(__name__)


class SubscriptionStore:
    """
    Keyed collection of subscriptions in insertion order.

    All mutation goes through the methods below; readers receive copies so a
    caller never holds a live record across an await.
    """

    def __init__(self) -> None:
        self._records: Dict[str, Subscription] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, donor_id: str) -> bool:
        return donor_id in self._records

    def _require(self, donor_id: str) -> Subscription:
        record = self._records.get(donor_id)
        if record is None:
            raise SubscriptionNotFoundError(donor_id)
        return record

    def create(self, subscription: Subscription) -> Subscription:
        """Register a new subscription; duplicates are rejected, never merged"""
        if subscription.donor_id in self._records:
            raise SubscriptionAlreadyExistsError(subscription.donor_id)
        self._records[subscription.donor_id] = replace(subscription)
        return replace(subscription)

    def cancel(self, donor_id: str) -> Subscription:
        record = self._require(donor_id)
        if record.status == "cancelled":
            raise SubscriptionAlreadyCancelledError(donor_id)
        record.status = "cancelled"
        return replace(record)

    def get(self, donor_id: str) -> Optional[Subscription]:
        record = self._records.get(donor_id)
        return replace(record) if record is not None else None

    def list_all(self) -> List[Subscription]:
        return [replace(r) for r in self._records.values()]

    def list_active(self) -> List[Subscription]:
        return [replace(r) for r in self._records.values() if r.status == "active"]

    def list_due(self, now: Optional[datetime] = None) -> List[Subscription]:
        """Active subscriptions whose next billing instant has passed"""
        if now is None:
            now = utc_now()
        due = [
            replace(r) for r in self._records.values()
            if r.status == "active" and r.next_billing_at <= now
        ]
        logger.debug(f"Found {len(due)} subscriptions due for billing")
        return due

    def record_charge_outcome(self, donor_id: str, succeeded: bool) -> Subscription:
        record = self._require(donor_id)
        if succeeded:
            record.successful_charges += 1
        else:
            record.failed_charges += 1
        return replace(record)

    def update_schedule(self, donor_id: str, billed_at: datetime | None = None) -> Subscription:
        """Set last_billed_at and recompute next_billing_at from the interval"""
        record = self._require(donor_id)
        if billed_at is None:
            billed_at = utc_now()
        record.last_billed_at = billed_at
        record.next_billing_at = add_interval(billed_at, record.interval)
        logger.debug(
            f"Updated billing schedule for {donor_id}",
            extra={
                "last_billed_at": billed_at.isoformat(),
                "next_billing_at": record.next_billing_at.isoformat(),
            },
        )
        return replace(record)
