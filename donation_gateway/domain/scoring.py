"""Risk scoring engine - rule-based fraud heuristics for charge routing"""

import random
from typing import Callable, List, Optional, Sequence, Tuple

from donation_gateway.domain.models import ChargeDetails, RiskAssessment, TransactionStatus
from donation_gateway.fraud_config import FraudConfig

BASE_RISK_SCORE = 0.1
PROVIDERS = ("stripe", "paypal")

REASON_LARGE_AMOUNT = "large amount"
REASON_SUSPICIOUS_DOMAIN = "suspicious email domain"
REASON_VELOCITY = "multiple charges in short time"
REASON_GEO_MISMATCH = "geolocation mismatch"
REASON_HIGH_RISK_COUNTRY = "high-risk country IP"

ProviderChooser = Callable[[Sequence[str]], str]


def email_domain(email: str) -> str:
    """Lower-cased part after the @, empty when missing"""
    _, _, domain = email.partition("@")
    return domain.lower()


def is_suspicious_domain(email: str, suspicious_domains: Sequence[str]) -> bool:
    """
    Match the email domain against the blacklist, case-insensitively.

    Plain entries match exactly or as a parent domain ("test.com" flags
    "mail.test.com"); leading-dot entries (".ru") match any domain ending
    with them.
    """
    domain = email_domain(email)
    if not domain:
        return False

    for entry in suspicious_domains:
        entry = entry.lower()
        if entry.startswith("."):
            if domain.endswith(entry):
                return True
        elif domain == entry or domain.endswith("." + entry):
            return True
    return False


def calculate_risk_score(
    charge: ChargeDetails,
    config: FraudConfig,
    recent_charge_count: int,
    high_risk_country: str = "RU",
    high_risk_country_risk: float = 0.4,
) -> RiskAssessment:
    """
    Score a charge from 0.0 (safe) to 1.0 (fraudulent).

    Rules are evaluated in a fixed order and each one that fires adds its
    increment and a reason label:
    - large amount: amount strictly above amount_threshold
    - suspicious email domain: see is_suspicious_domain
    - velocity: recent_charge_count >= velocity_threshold
    - geolocation mismatch: IP and billing countries both known and different
    - high-risk country: IP country equals high_risk_country, stacked on top
      of the mismatch rule

    The sum starting from BASE_RISK_SCORE is clamped to [0, 1].
    """
    score = BASE_RISK_SCORE
    reasons: List[str] = []

    if charge.amount > config.amount_threshold:
        score += config.amount_risk
        reasons.append(REASON_LARGE_AMOUNT)

    if is_suspicious_domain(charge.email, config.suspicious_domains):
        score += config.domain_risk
        reasons.append(REASON_SUSPICIOUS_DOMAIN)

    if recent_charge_count >= config.velocity_threshold:
        score += config.velocity_risk
        reasons.append(REASON_VELOCITY)

    if charge.ip_country and charge.billing_country and charge.ip_country != charge.billing_country:
        score += config.geo_mismatch_risk
        reasons.append(REASON_GEO_MISMATCH)

    # Not one of the published heuristics, kept for parity with production scoring
    if charge.ip_country == high_risk_country:
        score += high_risk_country_risk
        reasons.append(REASON_HIGH_RISK_COUNTRY)

    score = min(max(score, 0.0), 1.0)

    return RiskAssessment(
        score=score,
        reasons=tuple(reasons),
        recent_charge_count=recent_charge_count,
    )


def route_transaction(
    score: float,
    block_threshold: float,
    choose_provider: Optional[ProviderChooser] = None,
) -> Tuple[TransactionStatus, Optional[str]]:
    """
    Map a risk score to a routing outcome.

    Returns: (status, provider) - provider is None for blocked charges
    """
    if score >= block_threshold:
        return "blocked", None

    chooser = choose_provider or random.choice
    return "success", chooser(PROVIDERS)
