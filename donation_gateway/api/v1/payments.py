"""POST /api/v1/payments/charge and GET /api/v1/payments/transactions"""

import logging
import time
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from donation_gateway.api.dependencies import get_payment_service, get_request_id
from donation_gateway.api.v1.schemas import BlockedChargeDetail, ChargeRequest, TransactionResponse
from donation_gateway.domain.models import ChargeDetails
from donation_gateway.infrastructure.observability.logging import log_charge
from donation_gateway.services.payments import PaymentService

router = APIRouter()


@router.post(
    "/payments/charge",
    response_model=TransactionResponse,
    responses={403: {"model": BlockedChargeDetail, "description": "Charge blocked by fraud screening"}},
)
async def charge(
    request_body: ChargeRequest,
    request: Request,
    payments: PaymentService = Depends(get_payment_service),
):
    """
    Screen a charge for fraud and route it to a payment provider.

    Blocked charges answer 403 with the risk score and explanation.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    transaction = await payments.charge(
        ChargeDetails(
            amount=request_body.amount,
            currency=request_body.currency,
            source=request_body.source,
            email=request_body.email,
            ip_country=request_body.ip_country,
            billing_country=request_body.billing_country,
        )
    )

    duration_ms = (time.time() - start_time) * 1000
    log_charge(request_id, transaction.transaction_id, transaction.status, transaction.risk_score, duration_ms)

    if transaction.status == "blocked":
        logging.warning(
            "Payment blocked due to high risk",
            extra={"request_id": request_id, "transaction_id": transaction.transaction_id},
        )
        detail = BlockedChargeDetail(
            message=transaction.explanation,
            risk_score=transaction.risk_score,
            transaction_id=transaction.transaction_id,
        )
        return JSONResponse(status_code=403, content=detail.model_dump(by_alias=True))

    return TransactionResponse(**asdict(transaction))


@router.get("/payments/transactions", response_model=List[TransactionResponse])
def list_transactions(payments: PaymentService = Depends(get_payment_service)):
    """Audit trail of every processed charge, in processing order"""
    return [TransactionResponse(**asdict(t)) for t in payments.list_transactions()]
