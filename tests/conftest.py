"""Pytest fixtures for testing"""

import asyncio
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from donation_gateway.api.main import create_app
from donation_gateway.config import Settings
from donation_gateway.domain.campaigns import CampaignAnalysisCache
from donation_gateway.domain.exceptions import TextGenerationError
from donation_gateway.domain.explanations import ExplanationCache
from donation_gateway.domain.models import ChargeDetails, SubscriptionDetails
from donation_gateway.fraud_config import FraudConfig
from donation_gateway.infrastructure.storage.ledger import DonationLedger, TransactionLedger
from donation_gateway.infrastructure.storage.subscriptions import SubscriptionStore
from donation_gateway.services.billing import BillingScheduler
from donation_gateway.services.payments import PaymentService
from donation_gateway.services.subscriptions import SubscriptionService


class UnavailableTextGenerator:
    """Text generator that is always down"""

    def __init__(self) -> None:
        self.calls = 0

    async def generate(self, prompt: str, max_tokens: int, temperature: float, stop: Optional[List[str]] = None) -> str:
        self.calls += 1
        raise TextGenerationError("connection refused")


class StubTextGenerator:
    """Text generator returning a canned reply and recording prompts"""

    def __init__(self, reply: str = "Payment looks fine. Extra text", delay: float = 0.0) -> None:
        self.reply = reply
        self.delay = delay
        self.prompts: List[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str, max_tokens: int, temperature: float, stop: Optional[List[str]] = None) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.reply


class FixedRandom:
    """Deterministic stand-in for random.Random in billing simulation"""

    def __init__(self, value: float = 0.0) -> None:
        self.value = value

    def random(self) -> float:
        return self.value

    def choice(self, seq):
        return seq[0]


def first_provider(providers):
    return providers[0]


def make_charge(**overrides) -> ChargeDetails:
    """Low-risk charge with sensible defaults"""
    base: Dict[str, Any] = {
        "amount": 100.0,
        "currency": "USD",
        "source": "tok_visa",
        "email": "user@example.com",
        "ip_country": "US",
        "billing_country": "US",
    }
    base.update(overrides)
    return ChargeDetails(**base)


def make_subscription_details(**overrides) -> SubscriptionDetails:
    base: Dict[str, Any] = {
        "donor_id": "donor_001",
        "amount": 25.0,
        "currency": "USD",
        "source": "tok_visa",
        "email": "donor@example.com",
        "interval": "monthly",
        "campaign_description": "Clean water for schools in Nepal",
    }
    base.update(overrides)
    return SubscriptionDetails(**base)


def charge_payload(**overrides) -> Dict[str, Any]:
    """JSON body for POST /api/v1/payments/charge"""
    base: Dict[str, Any] = {
        "amount": 100,
        "currency": "USD",
        "source": "tok_visa",
        "email": "user@example.com",
        "ipCountry": "US",
        "billingCountry": "US",
    }
    base.update(overrides)
    return base


def subscription_payload(**overrides) -> Dict[str, Any]:
    """JSON body for POST /api/v1/subscriptions"""
    base: Dict[str, Any] = {
        "donorId": "donor_001",
        "amount": 25,
        "currency": "USD",
        "source": "tok_visa",
        "email": "donor@example.com",
        "interval": "monthly",
        "campaignDescription": "Emergency food relief after the floods",
    }
    base.update(overrides)
    return base


@pytest.fixture
def fraud_config() -> FraudConfig:
    return FraudConfig()


@pytest.fixture
def payment_service(fraud_config: FraudConfig) -> PaymentService:
    return PaymentService(
        fraud_config=fraud_config,
        ledger=TransactionLedger(),
        explanations=ExplanationCache(UnavailableTextGenerator(), timeout=1.0),
        choose_provider=first_provider,
    )


@pytest.fixture
def subscription_service() -> SubscriptionService:
    return SubscriptionService(
        store=SubscriptionStore(),
        donations=DonationLedger(),
        campaigns=CampaignAnalysisCache(UnavailableTextGenerator(), timeout=1.0),
        success_rate=0.9,
        billing_delay_seconds=0.0,
        rng=FixedRandom(0.0),
    )


@pytest.fixture
def scheduler(subscription_service: SubscriptionService) -> BillingScheduler:
    return BillingScheduler(subscription_service, interval_seconds=60.0, batch_size=5)


async def make_due(service: SubscriptionService, **overrides):
    """Create a subscription whose next billing instant is already in the past"""
    subscription = await service.create_subscription(make_subscription_details(**overrides))
    past = subscription.created_at - timedelta(days=400)
    return service.store.update_schedule(subscription.donor_id, past)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        billing_scheduler_autostart=False,
        billing_delay_seconds=0.0,
        llm_timeout_seconds=1.0,
        fraud_config_path=str(Path(__file__).resolve().parents[1] / "fraud-config.json"),
    )


@pytest.fixture
def client(test_settings: Settings) -> TestClient:
    """FastAPI test client with an offline text generator and deterministic routing"""
    app = create_app(
        config=test_settings,
        text_generator=UnavailableTextGenerator(),
        rng=FixedRandom(0.0),
        choose_provider=first_provider,
    )
    return TestClient(app)
