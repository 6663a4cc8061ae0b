"""Recurring donation lifecycle, billing simulation and statistics"""

import asyncio
import logging
import random
import uuid
from typing import List, Optional

from donation_gateway.domain.campaigns import CampaignAnalysisCache
from donation_gateway.domain.exceptions import SubscriptionAlreadyExistsError, SubscriptionNotFoundError
from donation_gateway.domain.models import (
    DonationTransaction,
    Subscription,
    SubscriptionDetails,
    SubscriptionStatistics,
)
from donation_gateway.domain.scoring import PROVIDERS
from donation_gateway.infrastructure.observability.logging import log_billing_outcome
from donation_gateway.infrastructure.observability.metrics import billing_attempt_counter
from donation_gateway.infrastructure.storage.ledger import DonationLedger
from donation_gateway.infrastructure.storage.subscriptions import SubscriptionStore
from donation_gateway.utils.date_utils import add_interval, utc_now

logger = logging.getLogger(__name__)

UNKNOWN_PROVIDER = "unknown"
DECLINED_MESSAGE = "Payment processing failed"
INTERNAL_ERROR_MESSAGE = "Internal processing error"


class SubscriptionService:
    """Creates, cancels and bills recurring donations"""

    def __init__(
        self,
        store: SubscriptionStore,
        donations: DonationLedger,
        campaigns: CampaignAnalysisCache,
        success_rate: float = 0.9,
        billing_delay_seconds: float = 0.0,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.donations = donations
        self.campaigns = campaigns
        self.success_rate = success_rate
        self.billing_delay_seconds = billing_delay_seconds
        self.rng = rng or random.Random()

    async def create_subscription(self, details: SubscriptionDetails) -> Subscription:
        """
        Register a recurring donation with generated campaign tags and summary.

        Raises:
            SubscriptionAlreadyExistsError: donor already has a subscription
            InvalidBillingIntervalError: interval is not weekly, monthly or yearly
        """
        logger.info(
            f"Creating subscription for donor: {details.donor_id}",
            extra={"amount": details.amount, "currency": details.currency, "interval": details.interval},
        )
        if details.donor_id in self.store:
            raise SubscriptionAlreadyExistsError(details.donor_id)

        now = utc_now()
        next_billing_at = add_interval(now, details.interval)
        analysis = await self.campaigns.analyze(details.campaign_description)

        subscription = self.store.create(
            Subscription(
                donor_id=details.donor_id,
                amount=details.amount,
                currency=details.currency,
                source=details.source,
                email=details.email,
                interval=details.interval,  # type: ignore[arg-type]
                campaign_description=details.campaign_description,
                tags=analysis.tags,
                summary=analysis.summary,
                created_at=now,
                next_billing_at=next_billing_at,
            )
        )
        logger.info(
            f"Subscription created successfully: {subscription.donor_id}",
            extra={
                "tags": list(subscription.tags),
                "next_billing_at": subscription.next_billing_at.isoformat(),
                "total_subscriptions": len(self.store),
            },
        )
        return subscription

    def cancel_subscription(self, donor_id: str) -> Subscription:
        logger.info(f"Cancelling subscription for donor: {donor_id}")
        subscription = self.store.cancel(donor_id)
        logger.info(
            f"Subscription cancelled successfully: {donor_id}",
            extra={
                "successful_charges": subscription.successful_charges,
                "failed_charges": subscription.failed_charges,
            },
        )
        return subscription

    def get_subscription(self, donor_id: str) -> Subscription:
        subscription = self.store.get(donor_id)
        if subscription is None:
            raise SubscriptionNotFoundError(donor_id)
        return subscription

    def active_subscription(self, donor_id: str) -> Optional[Subscription]:
        subscription = self.store.get(donor_id)
        if subscription is None or subscription.status != "active":
            return None
        return subscription

    def list_subscriptions(self) -> List[Subscription]:
        return self.store.list_all()

    def list_active_subscriptions(self) -> List[Subscription]:
        return self.store.list_active()

    def due_subscriptions(self) -> List[Subscription]:
        return self.store.list_due(utc_now())

    def donation_history(self) -> List[DonationTransaction]:
        """Billing attempts, newest first"""
        return self.donations.newest_first()

    def statistics(self) -> SubscriptionStatistics:
        subscriptions = self.store.list_all()
        active = [s for s in subscriptions if s.status == "active"]
        succeeded = sum(s.successful_charges for s in subscriptions)
        failed = sum(s.failed_charges for s in subscriptions)
        attempts = succeeded + failed

        return SubscriptionStatistics(
            total_subscriptions=len(subscriptions),
            active_subscriptions=len(active),
            cancelled_subscriptions=len(subscriptions) - len(active),
            total_active_amount=sum(s.amount for s in active),
            total_successful_charges=succeeded,
            total_failed_charges=failed,
            success_rate=f"{succeeded / attempts * 100:.2f}%" if attempts else "0%",
        )

    async def process_billing(self, subscription: Subscription) -> DonationTransaction:
        """
        Simulate one billing attempt and record its outcome.

        A declined charge is a normal result, not an exception. The schedule
        is not advanced here; the caller does that regardless of outcome.
        """
        transaction_id = "don_" + uuid.uuid4().hex[:8]
        logger.debug(f"Processing billing for subscription: {subscription.donor_id}")

        await asyncio.sleep(self.billing_delay_seconds)
        succeeded = self.rng.random() < self.success_rate
        provider = self.rng.choice(PROVIDERS)

        donation = self._record(
            subscription,
            transaction_id,
            status="success" if succeeded else "failed",
            provider=provider,
            error_message=None if succeeded else DECLINED_MESSAGE,
        )
        billing_attempt_counter.labels(outcome=donation.status).inc()
        return donation

    def record_billing_fault(self, subscription: Subscription, error: Exception) -> DonationTransaction:
        """Convert an unexpected billing fault into a failed donation record"""
        logger.error(f"Billing processing error for {subscription.donor_id}: {error}")
        donation = self._record(
            subscription,
            "don_" + uuid.uuid4().hex[:8],
            status="failed",
            provider=UNKNOWN_PROVIDER,
            error_message=INTERNAL_ERROR_MESSAGE,
        )
        billing_attempt_counter.labels(outcome="error").inc()
        return donation

    def advance_schedule(self, donor_id: str) -> Subscription:
        return self.store.update_schedule(donor_id, utc_now())

    def _record(
        self,
        subscription: Subscription,
        transaction_id: str,
        status: str,
        provider: str,
        error_message: Optional[str],
    ) -> DonationTransaction:
        self.store.record_charge_outcome(subscription.donor_id, status == "success")
        donation = self.donations.append(
            DonationTransaction(
                transaction_id=transaction_id,
                donor_id=subscription.donor_id,
                amount=subscription.amount,
                currency=subscription.currency,
                status=status,  # type: ignore[arg-type]
                provider=provider,
                timestamp=utc_now(),
                campaign_description=subscription.campaign_description,
                tags=tuple(subscription.tags),
                summary=subscription.summary,
                error_message=error_message,
            )
        )
        log_billing_outcome(subscription.donor_id, transaction_id, status, provider, subscription.amount)
        return donation
