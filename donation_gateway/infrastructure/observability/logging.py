"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from donation_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_charge(
    request_id: str,
    transaction_id: str,
    status: str,
    risk_score: float,
    duration_ms: float,
) -> None:
    """Log structured charge outcome for fraud analysis"""
    logging.info(
        "Charge completed",
        extra={
            "request_id": request_id,
            "transaction_id": transaction_id,
            "step": "charge_complete",
            "charge_outcome": status,
            "risk_score": risk_score,
            "duration_ms": duration_ms,
        },
    )


def log_billing_outcome(
    donor_id: str,
    transaction_id: str,
    status: str,
    provider: str,
    amount: float,
) -> None:
    """Log structured recurring billing outcome"""
    level = logging.INFO if status == "success" else logging.WARNING
    logging.log(
        level,
        "Billing processed",
        extra={
            "donor_id": donor_id,
            "transaction_id": transaction_id,
            "step": "billing_complete",
            "billing_outcome": status,
            "provider": provider,
            "amount": amount,
        },
    )
