"""FastAPI application factory"""

import random
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from donation_gateway.api.middleware import MetricsMiddleware, RequestIDMiddleware
from donation_gateway.api.v1 import payments, subscriptions
from donation_gateway.config import Settings, settings
from donation_gateway.domain.campaigns import CampaignAnalysisCache
from donation_gateway.domain.explanations import ExplanationCache, TextGenerator
from donation_gateway.domain.scoring import ProviderChooser
from donation_gateway.fraud_config import load_fraud_config
from donation_gateway.infrastructure.clients.text_generation import TextGenerationClient
from donation_gateway.infrastructure.observability.logging import setup_logging
from donation_gateway.infrastructure.storage.ledger import DonationLedger, TransactionLedger
from donation_gateway.infrastructure.storage.subscriptions import SubscriptionStore
from donation_gateway.services.billing import BillingScheduler
from donation_gateway.services.payments import PaymentService
from donation_gateway.services.subscriptions import SubscriptionService

# Setup structured logging
setup_logging(settings.log_level)


def build_services(
    app: FastAPI,
    config: Settings,
    text_generator: Optional[TextGenerator] = None,
    rng: Optional[random.Random] = None,
    choose_provider: Optional[ProviderChooser] = None,
) -> None:
    """Wire the single process-wide instance of every service onto app.state"""
    generator = text_generator or TextGenerationClient(
        base_url=config.llm_api_url,
        model=config.llm_model,
        timeout=config.llm_timeout_seconds,
    )
    text_options = {
        "max_tokens": config.llm_max_tokens,
        "temperature": config.llm_temperature,
        "timeout": config.llm_timeout_seconds,
    }

    app.state.payments = PaymentService(
        fraud_config=load_fraud_config(config.fraud_config_path),
        ledger=TransactionLedger(),
        explanations=ExplanationCache(generator, **text_options),
        block_threshold=config.risk_block_threshold,
        high_risk_country=config.high_risk_country,
        high_risk_country_risk=config.high_risk_country_risk,
        velocity_window=timedelta(seconds=config.velocity_window_seconds),
        choose_provider=choose_provider,
    )
    app.state.subscriptions = SubscriptionService(
        store=SubscriptionStore(),
        donations=DonationLedger(),
        campaigns=CampaignAnalysisCache(generator, **text_options),
        success_rate=config.billing_success_rate,
        billing_delay_seconds=config.billing_delay_seconds,
        rng=rng,
    )
    app.state.billing_scheduler = BillingScheduler(
        app.state.subscriptions,
        interval_seconds=config.billing_interval_seconds,
        batch_size=config.billing_batch_size,
    )


def create_app(
    config: Optional[Settings] = None,
    text_generator: Optional[TextGenerator] = None,
    rng: Optional[random.Random] = None,
    choose_provider: Optional[ProviderChooser] = None,
) -> FastAPI:
    """Create and configure FastAPI application"""
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler: BillingScheduler = app.state.billing_scheduler
        if config.billing_scheduler_autostart:
            scheduler.start()
        yield
        await scheduler.aclose()

    app = FastAPI(
        title="Donation Gateway",
        description="Fraud-screened charges and recurring donation billing",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    build_services(app, config, text_generator, rng, choose_provider)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": config.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(payments.router, prefix="/api/v1", tags=["payments"])
    app.include_router(subscriptions.router, prefix="/api/v1", tags=["subscriptions"])

    return app


app = create_app()
