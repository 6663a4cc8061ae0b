"""Explanation cache - human-readable text for routing decisions"""

import asyncio
import logging
from typing import Dict, List, Optional, Protocol, Sequence

from donation_gateway.domain.exceptions import TextGenerationError
from donation_gateway.domain.models import ChargeDetails
from donation_gateway.domain.scoring import (
    REASON_GEO_MISMATCH,
    REASON_HIGH_RISK_COUNTRY,
    REASON_LARGE_AMOUNT,
    REASON_SUSPICIOUS_DOMAIN,
    REASON_VELOCITY,
    email_domain,
)
from donation_gateway.fraud_config import FraudConfig
from donation_gateway.infrastructure.observability.metrics import explanation_cache_counter

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
    ) -> str: ...


def decision_fingerprint(provider: Optional[str], score: float, reasons: Sequence[str]) -> str:
    """Cache key: provider, score to two decimals, reasons sorted and joined"""
    return f"{provider or 'none'}|{score:.2f}|{','.join(sorted(reasons))}"


def fallback_explanation(provider: Optional[str], score: float, reasons: Sequence[str]) -> str:
    """Deterministic sentence built only from the decision itself"""
    action = f"routed to {provider}" if provider else "blocked"
    reason_text = f" due to {', '.join(reasons)}" if reasons else ""
    return f"Payment {action}{reason_text}. Risk score: {score:.2f}."


def first_sentence(text: str) -> str:
    """Collapse newlines and keep the first sentence, ending with a period"""
    text = " ".join(text.split())
    if not text:
        return ""
    sentence = text.split(". ")[0].rstrip(".")
    return f"{sentence}." if sentence else ""


def build_explanation_prompt(
    provider: Optional[str],
    score: float,
    reasons: Sequence[str],
    charge: Optional[ChargeDetails] = None,
    config: Optional[FraudConfig] = None,
    recent_charge_count: int = 0,
) -> str:
    """Prompt with context details for the triggered reasons only"""
    details = ""
    if charge is not None and config is not None:
        if REASON_LARGE_AMOUNT in reasons:
            details += f" Amount: ${charge.amount} (threshold: ${config.amount_threshold})."
        if REASON_SUSPICIOUS_DOMAIN in reasons:
            details += (
                f" Email domain: {email_domain(charge.email)}"
                f" (suspicious domains: {', '.join(config.suspicious_domains)})."
            )
        if REASON_VELOCITY in reasons:
            details += (
                f" Recent charges: {recent_charge_count} from same email in last hour"
                f" (threshold: {config.velocity_threshold})."
            )
        if REASON_GEO_MISMATCH in reasons:
            details += f" IP country: {charge.ip_country}, Billing country: {charge.billing_country}."
        if REASON_HIGH_RISK_COUNTRY in reasons:
            details += f" IP country {charge.ip_country} is on the high-risk list."

    outcome = f"Payment routed to {provider}" if provider else "Payment blocked"
    reason_text = ", ".join(reasons) if reasons else "none"
    return (
        f"{outcome}. Risk score: {score:.2f}. Reasons: {reason_text}.{details}"
        " Provide a clear, specific explanation in one sentence."
    )


class ExplanationCache:
    """
    Memoizes decision explanations by fingerprint.

    A miss calls the text generator once with a strict timeout; any failure
    or empty output is replaced by fallback_explanation. Whatever text is
    produced is stored, so a failed decision is not retried during this run.
    """

    def __init__(
        self,
        generator: TextGenerator,
        max_tokens: int = 50,
        temperature: float = 0.7,
        timeout: float = 5.0,
    ):
        self.generator = generator
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._entries: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def explain(
        self,
        provider: Optional[str],
        score: float,
        reasons: Sequence[str],
        prompt: Optional[str] = None,
    ) -> str:
        key = decision_fingerprint(provider, score, reasons)
        cached = self._entries.get(key)
        if cached is not None:
            explanation_cache_counter.labels(cache="decision", result="hit").inc()
            logger.debug("Using cached explanation", extra={"fingerprint": key})
            return cached

        explanation_cache_counter.labels(cache="decision", result="miss").inc()
        if prompt is None:
            prompt = build_explanation_prompt(provider, score, reasons)

        try:
            raw = await asyncio.wait_for(
                self.generator.generate(
                    prompt,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                    stop=["."],
                ),
                timeout=self.timeout,
            )
            text = first_sentence(raw)
            if not text:
                raise TextGenerationError("Empty explanation from text generation")
        except (TextGenerationError, asyncio.TimeoutError) as e:
            logger.warning(f"Explanation unavailable, using fallback: {e}", extra={"fingerprint": key})
            text = fallback_explanation(provider, score, reasons)
        except Exception as e:
            logger.error(f"Unexpected text generation error: {e}", extra={"fingerprint": key})
            text = fallback_explanation(provider, score, reasons)

        self._entries[key] = text
        return text
