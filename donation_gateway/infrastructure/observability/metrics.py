"""Prometheus metrics for charge decisions, explanation caching and recurring billing"""

from prometheus_client import Counter, Histogram

# Charge metrics
charge_decision_counter = Counter(
    "donation_charge_total",
    "Total charges processed",
    ["status"],  # success | blocked
)

risk_score_histogram = Histogram(
    "donation_charge_risk_score",
    "Risk score distribution of processed charges",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)

heuristic_trigger_counter = Counter(
    "donation_heuristic_triggered_total",
    "Fraud heuristics triggered",
    ["reason"],
)

# Text generation metrics
explanation_cache_counter = Counter(
    "donation_text_cache_total",
    "Text cache lookups",
    ["cache", "result"],  # decision | campaign, hit | miss
)

text_generation_failures_counter = Counter(
    "donation_text_generation_failures_total",
    "Failed text generation calls",
    ["reason"],
)

# Billing metrics
billing_attempt_counter = Counter(
    "donation_billing_attempts_total",
    "Recurring billing attempts",
    ["outcome"],  # success | failed | error
)

billing_run_histogram = Histogram(
    "donation_billing_run_seconds",
    "Duration of one billing due-check run",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_charge(status: str, risk_score: float, reasons) -> None:
    """Record charge metrics for monitoring block rates and heuristic hits"""
    charge_decision_counter.labels(status=status).inc()
    risk_score_histogram.observe(risk_score)
    for reason in reasons:
        heuristic_trigger_counter.labels(reason=reason).inc()
