"""Recurring donation endpoints under /api/v1/subscriptions"""

import logging
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from donation_gateway.api.dependencies import get_billing_scheduler, get_request_id, get_subscription_service
from donation_gateway.api.v1.schemas import (
    BillingRunResponse,
    BillingStatusResponse,
    CreateSubscriptionRequest,
    DonationTransactionResponse,
    StatisticsResponse,
    SubscriptionResponse,
)
from donation_gateway.domain.exceptions import (
    InvalidBillingIntervalError,
    SubscriptionAlreadyCancelledError,
    SubscriptionAlreadyExistsError,
    SubscriptionNotFoundError,
)
from donation_gateway.domain.models import Subscription, SubscriptionDetails
from donation_gateway.services.billing import BillingScheduler
from donation_gateway.services.subscriptions import SubscriptionService

router = APIRouter()


def _to_response(subscription: Subscription) -> SubscriptionResponse:
    return SubscriptionResponse(**asdict(subscription))


@router.post("/subscriptions", response_model=SubscriptionResponse, status_code=201)
async def create_subscription(
    request_body: CreateSubscriptionRequest,
    request: Request,
    subscriptions: SubscriptionService = Depends(get_subscription_service),
):
    """Register a recurring donation; campaign tags and summary are generated once"""
    request_id = get_request_id(request)
    try:
        subscription = await subscriptions.create_subscription(
            SubscriptionDetails(
                donor_id=request_body.donor_id,
                amount=request_body.amount,
                currency=request_body.currency,
                source=request_body.source,
                email=request_body.email,
                interval=request_body.interval,
                campaign_description=request_body.campaign_description,
            )
        )
    except SubscriptionAlreadyExistsError as e:
        logging.warning(str(e), extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidBillingIntervalError as e:
        logging.error(str(e), extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    return _to_response(subscription)


@router.delete("/subscriptions/{donor_id}", response_model=SubscriptionResponse)
def cancel_subscription(
    donor_id: str,
    subscriptions: SubscriptionService = Depends(get_subscription_service),
):
    """Cancel a recurring donation; it will not be billed again"""
    try:
        return _to_response(subscriptions.cancel_subscription(donor_id))
    except SubscriptionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SubscriptionAlreadyCancelledError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/subscriptions", response_model=List[SubscriptionResponse])
def list_subscriptions(subscriptions: SubscriptionService = Depends(get_subscription_service)):
    return [_to_response(s) for s in subscriptions.list_subscriptions()]


@router.get("/subscriptions/active", response_model=List[SubscriptionResponse])
def list_active_subscriptions(subscriptions: SubscriptionService = Depends(get_subscription_service)):
    return [_to_response(s) for s in subscriptions.list_active_subscriptions()]


@router.get("/subscriptions/transactions/history", response_model=List[DonationTransactionResponse])
def donation_history(subscriptions: SubscriptionService = Depends(get_subscription_service)):
    """Recurring billing attempts, newest first"""
    return [DonationTransactionResponse(**asdict(d)) for d in subscriptions.donation_history()]


@router.get("/subscriptions/statistics/overview", response_model=StatisticsResponse)
def statistics(subscriptions: SubscriptionService = Depends(get_subscription_service)):
    return StatisticsResponse(**asdict(subscriptions.statistics()))


@router.post("/subscriptions/billing/trigger", response_model=BillingRunResponse)
async def trigger_billing(scheduler: BillingScheduler = Depends(get_billing_scheduler)):
    """Run one billing due-check immediately, bypassing the timer"""
    summary = await scheduler.trigger()
    return BillingRunResponse(
        message="Billing processing completed",
        due=summary.due,
        succeeded=summary.succeeded,
        failed=summary.failed,
    )


@router.get("/subscriptions/billing/status", response_model=BillingStatusResponse)
def billing_status(scheduler: BillingScheduler = Depends(get_billing_scheduler)):
    return BillingStatusResponse(**scheduler.status())


@router.get("/subscriptions/{donor_id}", response_model=SubscriptionResponse)
def get_subscription(
    donor_id: str,
    subscriptions: SubscriptionService = Depends(get_subscription_service),
):
    try:
        return _to_response(subscriptions.get_subscription(donor_id))
    except SubscriptionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
