"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from donation_gateway.services.billing import BillingScheduler
from donation_gateway.services.payments import PaymentService
from donation_gateway.services.subscriptions import SubscriptionService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_payment_service(request: Request) -> PaymentService:
    """Provide the process-wide payment service"""
    return request.app.state.payments


def get_subscription_service(request: Request) -> SubscriptionService:
    """Provide the process-wide subscription service"""
    return request.app.state.subscriptions


def get_billing_scheduler(request: Request) -> BillingScheduler:
    """Provide the process-wide billing scheduler"""
    return request.app.state.billing_scheduler
