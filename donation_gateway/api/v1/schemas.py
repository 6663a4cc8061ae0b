"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChargeRequest(CamelModel):
    """Request body for POST /api/v1/payments/charge"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    amount: float = Field(..., gt=0, description="Charge amount")
    currency: str = Field(..., min_length=1, description="ISO currency code")
    source: str = Field(..., min_length=1, description="Payment source token")
    email: EmailStr
    ip_country: str = Field(..., min_length=1, description="Country derived from the client IP")
    billing_country: str = Field(..., min_length=1, description="Country of the billing address")


class TransactionResponse(CamelModel):
    """Processed charge"""

    transaction_id: str
    provider: Optional[str] = None
    status: Literal["success", "blocked"]
    risk_score: float
    explanation: str
    timestamp: datetime
    amount: float
    currency: str
    email: str


class BlockedChargeDetail(CamelModel):
    """Error detail for a charge blocked by fraud screening"""

    status: int = 403
    message: str
    risk_score: float
    transaction_id: str


class CreateSubscriptionRequest(CamelModel):
    """Request body for POST /api/v1/subscriptions"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    donor_id: str = Field(..., min_length=1, description="Donor identifier")
    amount: float = Field(..., gt=0, description="Amount billed every interval")
    currency: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1, description="Payment source token")
    email: EmailStr
    interval: Literal["weekly", "monthly", "yearly"]
    campaign_description: str = Field(..., min_length=1)


class SubscriptionResponse(CamelModel):
    """Recurring donation"""

    donor_id: str
    amount: float
    currency: str
    source: str
    email: str
    interval: str
    campaign_description: str
    tags: List[str]
    summary: str
    status: Literal["active", "cancelled"]
    created_at: datetime
    last_billed_at: Optional[datetime] = None
    next_billing_at: datetime
    successful_charges: int
    failed_charges: int


class DonationTransactionResponse(CamelModel):
    """One recurring billing attempt"""

    transaction_id: str
    donor_id: str
    amount: float
    currency: str
    status: Literal["success", "failed"]
    provider: str
    error_message: Optional[str] = None
    timestamp: datetime
    campaign_description: str
    tags: List[str]
    summary: str


class StatisticsResponse(CamelModel):
    """Response for GET /api/v1/subscriptions/statistics/overview"""

    total_subscriptions: int
    active_subscriptions: int
    cancelled_subscriptions: int
    total_active_amount: float
    total_successful_charges: int
    total_failed_charges: int
    success_rate: str


class BillingRunResponse(CamelModel):
    """Response for POST /api/v1/subscriptions/billing/trigger"""

    message: str
    due: int
    succeeded: int
    failed: int


class BillingStatusResponse(CamelModel):
    """Response for GET /api/v1/subscriptions/billing/status"""

    is_running: bool
    interval_ms: int
    next_run: Optional[datetime] = None
