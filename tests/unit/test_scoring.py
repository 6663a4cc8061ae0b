"""Unit tests for risk scoring logic"""

import pytest

from donation_gateway.domain.scoring import (
    BASE_RISK_SCORE,
    REASON_GEO_MISMATCH,
    REASON_HIGH_RISK_COUNTRY,
    REASON_LARGE_AMOUNT,
    REASON_SUSPICIOUS_DOMAIN,
    REASON_VELOCITY,
    calculate_risk_score,
    is_suspicious_domain,
    route_transaction,
)
from donation_gateway.fraud_config import FraudConfig
from tests.conftest import make_charge


def test_clean_charge_scores_base_only(fraud_config: FraudConfig):
    """amount=100, user@example.com, US/US: nothing triggers"""
    assessment = calculate_risk_score(make_charge(), fraud_config, recent_charge_count=0)

    assert assessment.score == BASE_RISK_SCORE
    assert assessment.reasons == ()


def test_amount_exactly_at_threshold_does_not_trigger(fraud_config: FraudConfig):
    at_threshold = calculate_risk_score(make_charge(amount=1000), fraud_config, 0)
    one_cent_above = calculate_risk_score(make_charge(amount=1000.01), fraud_config, 0)

    assert REASON_LARGE_AMOUNT not in at_threshold.reasons
    assert one_cent_above.reasons == (REASON_LARGE_AMOUNT,)
    assert one_cent_above.score == pytest.approx(0.4)


def test_velocity_threshold_is_inclusive(fraud_config: FraudConfig):
    below = calculate_risk_score(make_charge(), fraud_config, recent_charge_count=2)
    at = calculate_risk_score(make_charge(), fraud_config, recent_charge_count=3)

    assert REASON_VELOCITY not in below.reasons
    assert at.reasons == (REASON_VELOCITY,)
    assert at.score == pytest.approx(0.35)


def test_geolocation_mismatch(fraud_config: FraudConfig):
    assessment = calculate_risk_score(make_charge(ip_country="CA", billing_country="US"), fraud_config, 0)

    assert assessment.reasons == (REASON_GEO_MISMATCH,)
    assert assessment.score == pytest.approx(0.3)


def test_geolocation_needs_both_countries(fraud_config: FraudConfig):
    assessment = calculate_risk_score(make_charge(ip_country="CA", billing_country=None), fraud_config, 0)

    assert REASON_GEO_MISMATCH not in assessment.reasons


def test_high_risk_country_stacks_on_geolocation_mismatch(fraud_config: FraudConfig):
    assessment = calculate_risk_score(make_charge(ip_country="RU", billing_country="US"), fraud_config, 0)

    assert assessment.reasons == (REASON_GEO_MISMATCH, REASON_HIGH_RISK_COUNTRY)
    assert assessment.score == pytest.approx(0.7)


def test_high_risk_country_without_mismatch(fraud_config: FraudConfig):
    assessment = calculate_risk_score(make_charge(ip_country="RU", billing_country="RU"), fraud_config, 0)

    assert assessment.reasons == (REASON_HIGH_RISK_COUNTRY,)
    assert assessment.score == pytest.approx(0.5)


def test_all_rules_fire_in_fixed_order_and_score_is_capped(fraud_config: FraudConfig):
    """amount=2000, fraud@test.com, RU vs US, 3 prior charges"""
    charge = make_charge(amount=2000, email="fraud@test.com", ip_country="RU", billing_country="US")

    assessment = calculate_risk_score(charge, fraud_config, recent_charge_count=3)

    assert assessment.reasons == (
        REASON_LARGE_AMOUNT,
        REASON_SUSPICIOUS_DOMAIN,
        REASON_VELOCITY,
        REASON_GEO_MISMATCH,
        REASON_HIGH_RISK_COUNTRY,
    )
    assert assessment.score == 1.0


def test_score_never_decreases_as_heuristics_are_added(fraud_config: FraudConfig):
    charges = [
        (make_charge(), 0),
        (make_charge(amount=5000), 0),
        (make_charge(amount=5000, email="a@test.com"), 0),
        (make_charge(amount=5000, email="a@test.com"), 5),
        (make_charge(amount=5000, email="a@test.com", ip_country="CA"), 5),
        (make_charge(amount=5000, email="a@test.com", ip_country="RU"), 5),
    ]

    scores = [calculate_risk_score(c, fraud_config, n).score for c, n in charges]

    assert scores == sorted(scores)
    assert all(0.0 <= s <= 1.0 for s in scores)


def test_negative_increments_are_clamped_at_zero():
    config = FraudConfig(amount_risk=-5.0)

    assessment = calculate_risk_score(make_charge(amount=5000), config, 0)

    assert assessment.score == 0.0


@pytest.mark.parametrize(
    "email,expected",
    [
        ("fraud@test.com", True),
        ("fraud@TEST.COM", True),
        ("fraud@mail.test.com", True),
        ("fraud@latest.com", False),
        ("someone@yandex.ru", True),
        ("someone@ru.example.com", False),
        ("user@example.com", False),
        ("not-an-email", False),
    ],
)
def test_suspicious_domain_matching(email: str, expected: bool):
    assert is_suspicious_domain(email, ["test.com", ".ru"]) is expected


def test_blacklist_entries_are_case_insensitive():
    assert is_suspicious_domain("a@tempmail.com", ["TempMail.COM"]) is True


def test_route_transaction_accepts_below_threshold():
    status, provider = route_transaction(0.49, 0.5, choose_provider=lambda providers: providers[-1])

    assert status == "success"
    assert provider == "paypal"


def test_route_transaction_blocks_at_threshold():
    status, provider = route_transaction(0.5, 0.5)

    assert status == "blocked"
    assert provider is None


def test_route_transaction_default_chooser_picks_known_provider():
    _, provider = route_transaction(0.1, 0.5)

    assert provider in ("stripe", "paypal")
