"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional, Tuple

TransactionStatus = Literal["success", "blocked"]
DonationStatus = Literal["success", "failed"]
SubscriptionStatus = Literal["active", "cancelled"]
BillingInterval = Literal["weekly", "monthly", "yearly"]


@dataclass(frozen=True)
class ChargeDetails:
    """Validated charge request"""

    amount: float
    currency: str
    source: str
    email: str
    ip_country: Optional[str]
    billing_country: Optional[str]


@dataclass(frozen=True)
class RiskAssessment:
    """Output of the rule-based risk engine"""

    score: float
    reasons: Tuple[str, ...]
    recent_charge_count: int = 0


@dataclass(frozen=True)
class Transaction:
    """Processed charge, immutable once appended to the ledger"""

    transaction_id: str
    provider: Optional[str]  # None when blocked
    status: TransactionStatus
    risk_score: float
    explanation: str
    timestamp: datetime
    amount: float
    currency: str
    email: str


@dataclass(frozen=True)
class CampaignAnalysis:
    """Tags and one-sentence summary for a donation campaign"""

    tags: Tuple[str, ...]
    summary: str


@dataclass(frozen=True)
class SubscriptionDetails:
    """Validated subscription creation request"""

    donor_id: str
    amount: float
    currency: str
    source: str
    email: str
    interval: str
    campaign_description: str


@dataclass
class Subscription:
    """Recurring donation owned by the subscription store"""

    donor_id: str
    amount: float
    currency: str
    source: str
    email: str
    interval: BillingInterval
    campaign_description: str
    tags: Tuple[str, ...]
    summary: str
    created_at: datetime
    next_billing_at: datetime
    status: SubscriptionStatus = "active"
    last_billed_at: Optional[datetime] = None
    successful_charges: int = 0
    failed_charges: int = 0


@dataclass(frozen=True)
class DonationTransaction:
    """Outcome of one billing cycle for a subscription"""

    transaction_id: str
    donor_id: str
    amount: float
    currency: str
    status: DonationStatus
    provider: str  # "unknown" on internal processing error
    timestamp: datetime
    campaign_description: str
    tags: Tuple[str, ...]
    summary: str
    error_message: Optional[str] = None


@dataclass(frozen=True)
class SubscriptionStatistics:
    """Aggregate view over all subscriptions"""

    total_subscriptions: int
    active_subscriptions: int
    cancelled_subscriptions: int
    total_active_amount: float
    total_successful_charges: int
    total_failed_charges: int
    success_rate: str


@dataclass
class BillingRunSummary:
    """Counts for one due-check run of the billing scheduler"""

    due: int = 0
    succeeded: int = 0
    failed: int = 0
    donor_ids: list = field(default_factory=list)
