"""Configuration management using Pydantic Settings"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "donation-gateway"
    log_level: str = "INFO"

    # Text generation collaborator (Ollama-compatible)
    llm_api_url: str = "http://localhost:11434"
    llm_model: str = "tinyllama"
    llm_max_tokens: int = 50
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 5.0

    # Fraud scoring
    fraud_config_path: Optional[str] = "fraud-config.json"  # relative to the working directory
    risk_block_threshold: float = 0.5
    high_risk_country: str = "RU"
    high_risk_country_risk: float = 0.4
    velocity_window_seconds: int = 3600

    # Recurring billing
    billing_interval_seconds: float = 60.0
    billing_batch_size: int = 5
    billing_success_rate: float = 0.9
    billing_delay_seconds: float = 0.05  # Simulated processor latency
    billing_scheduler_autostart: bool = True


settings = Settings()
