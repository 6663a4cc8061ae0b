"""Periodic billing scheduler for recurring donations"""

import asyncio
import logging
import time
from datetime import timezone
from typing import List, Optional, Set, TypeVar

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from donation_gateway.domain.models import BillingRunSummary, Subscription
from donation_gateway.infrastructure.observability.metrics import billing_run_histogram
from donation_gateway.services.subscriptions import SubscriptionService
from donation_gateway.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

BILLING_JOB_ID = "recurring_billing"

T = TypeVar("T")


def chunk(items: List[T], size: int) -> List[List[T]]:
    """Split a list into consecutive batches of at most size items"""
    return [items[i:i + size] for i in range(0, len(items), size)]


class BillingScheduler:
    """
    Stopped/running state machine around a periodic billing job.

    start() registers an interval job on an AsyncIOScheduler that fires right
    away and then every interval; stop() removes the job and leaves a tick
    that is already billing to finish. Shutting the AsyncIOScheduler down
    cancels running coroutine jobs, so aclose() removes the job, waits for
    in-flight ticks, and only then shuts it down.
    """

    def __init__(
        self,
        subscriptions: SubscriptionService,
        interval_seconds: float = 60.0,
        batch_size: int = 5,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.subscriptions = subscriptions
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._ticks: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self.scheduler is not None and self.scheduler.get_job(BILLING_JOB_ID) is not None

    def start(self) -> None:
        """Arm the billing job; must be called from the running event loop"""
        if self.is_running:
            return
        if self.scheduler is None:
            # Created here so it binds to the loop that is running now
            self.scheduler = AsyncIOScheduler(timezone=timezone.utc)
            self.scheduler.start()

        logger.info(f"Starting billing scheduler with {self.interval_seconds}s interval")
        self.scheduler.add_job(
            self._tick,
            IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc),
            id=BILLING_JOB_ID,
            next_run_time=utc_now(),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

    def stop(self) -> None:
        if not self.is_running:
            return
        self.scheduler.remove_job(BILLING_JOB_ID)
        logger.info("Billing scheduler stopped")

    async def aclose(self) -> None:
        self.stop()
        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.scheduler = None

    async def _tick(self) -> None:
        task = asyncio.current_task()
        self._ticks.add(task)
        try:
            await self.run_due_check()
        except Exception as e:
            logger.error(f"Error processing due subscriptions: {e}")
        finally:
            self._ticks.discard(task)

    async def trigger(self) -> BillingRunSummary:
        """Run one due-check now, outside the timer"""
        logger.info("Manually triggering billing processing")
        return await self.run_due_check()

    async def run_due_check(self) -> BillingRunSummary:
        """
        Bill every due subscription.

        Batches of batch_size run one after another; members of a batch are
        billed concurrently.
        """
        due = self.subscriptions.due_subscriptions()
        summary = BillingRunSummary(due=len(due))
        if not due:
            logger.debug("No subscriptions due for billing")
            return summary

        logger.info(f"Processing {len(due)} subscriptions due for billing")
        start_time = time.time()

        for batch in chunk(due, self.batch_size):
            outcomes = await asyncio.gather(*(self._bill(s) for s in batch))
            for subscription, outcome in zip(batch, outcomes):
                if outcome is None:
                    continue
                summary.donor_ids.append(subscription.donor_id)
                if outcome == "success":
                    summary.succeeded += 1
                else:
                    summary.failed += 1

        billing_run_histogram.observe(time.time() - start_time)
        logger.info(
            f"Completed processing {len(due)} subscriptions",
            extra={"succeeded": summary.succeeded, "failed": summary.failed},
        )
        return summary

    async def _bill(self, subscription: Subscription) -> Optional[str]:
        """Bill one subscription; returns the donation status, None if skipped"""
        current = self.subscriptions.active_subscription(subscription.donor_id)
        if current is None:
            logger.info(f"Skipping billing for {subscription.donor_id}: no longer active")
            return None

        try:
            donation = await self.subscriptions.process_billing(current)
        except Exception as e:
            donation = self.subscriptions.record_billing_fault(current, e)

        self.subscriptions.advance_schedule(current.donor_id)
        return donation.status

    def status(self) -> dict:
        job = self.scheduler.get_job(BILLING_JOB_ID) if self.scheduler is not None else None
        return {
            "is_running": job is not None,
            "interval_ms": int(self.interval_seconds * 1000),
            "next_run": job.next_run_time if job is not None else None,
        }
