"""
E2E tests against a live Ollama-compatible text generation server.

These tests require the mock server to be running, e.g.:
    uvicorn mock.llm_server.main:app --port 11434

Skipped when nothing answers at LLM_API_URL.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from donation_gateway.api.main import create_app
from donation_gateway.config import Settings
from tests.conftest import FixedRandom, charge_payload, first_provider, subscription_payload

pytestmark = pytest.mark.integration


@pytest.fixture
def live_client(test_settings: Settings) -> TestClient:
    try:
        httpx.get(f"{test_settings.llm_api_url}/health", timeout=1.0)
    except httpx.HTTPError:
        pytest.skip(f"text generation server not reachable at {test_settings.llm_api_url}")

    app = create_app(config=test_settings, rng=FixedRandom(0.0), choose_provider=first_provider)
    return TestClient(app)


def test_generated_explanation_is_one_sentence(live_client: TestClient):
    """
    Clean charge
    Expected: routed, explanation generated by the server and trimmed to a sentence
    """
    response = live_client.post("/api/v1/payments/charge", json=charge_payload())

    assert response.status_code == 200
    explanation = response.json()["explanation"]
    assert explanation.endswith(".")
    assert explanation.count(".") == 1


def test_blocked_charge_explanation(live_client: TestClient):
    """
    Large charge from a high-risk country
    Expected: blocked with a non-empty explanation
    """
    response = live_client.post(
        "/api/v1/payments/charge",
        json=charge_payload(amount=5000, ipCountry="RU", billingCountry="US"),
    )

    assert response.status_code == 403
    assert response.json()["message"]


def test_campaign_analysis_from_server(live_client: TestClient):
    """
    New recurring donation
    Expected: 2-5 tags and a summary, whatever the server answers
    """
    response = live_client.post("/api/v1/subscriptions", json=subscription_payload())

    assert response.status_code == 201
    data = response.json()
    assert 2 <= len(data["tags"]) <= 5
    assert all(tag == tag.strip() for tag in data["tags"])
    assert data["summary"]
