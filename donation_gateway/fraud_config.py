"""Static fraud heuristics configuration, loaded once at startup"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

DEFAULT_SUSPICIOUS_DOMAINS = [
    "test.com",
    "tempmail.com",
    "mailinator.com",
    "guerrillamail.com",
    "yopmail.com",
    ".ru",
]


class FraudConfig(BaseModel):
    """Thresholds and risk increments for the charge heuristics.

    Accepts both snake_case and the camelCase keys used by fraud-config.json.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    amount_threshold: float = 1000
    amount_risk: float = 0.3
    suspicious_domains: List[str] = Field(default_factory=lambda: list(DEFAULT_SUSPICIOUS_DOMAINS))
    domain_risk: float = 0.3
    velocity_threshold: int = 3
    velocity_risk: float = 0.25
    geo_mismatch_risk: float = 0.2


def load_fraud_config(path: Optional[str] = None) -> FraudConfig:
    """
    Read fraud config from a JSON file, or fall back to built-in defaults.

    A missing file falls back with a warning; a malformed one raises.
    """
    if path is None:
        logger.info("Using default fraud configuration")
        return FraudConfig()

    config_file = Path(path)
    if not config_file.is_file():
        logger.warning(f"Fraud config not found at {path}, using defaults")
        return FraudConfig()

    config = FraudConfig.model_validate(json.loads(config_file.read_text(encoding="utf-8")))
    logger.info(
        "Fraud configuration loaded",
        extra={"path": path, "suspicious_domains": len(config.suspicious_domains)},
    )
    return config
