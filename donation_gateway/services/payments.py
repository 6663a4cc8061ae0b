"""Charge processing - scoring, routing, explanation and ledger append"""

import logging
import uuid
from datetime import timedelta
from typing import List, Optional

from donation_gateway.domain.explanations import ExplanationCache, build_explanation_prompt
from donation_gateway.domain.models import ChargeDetails, Transaction
from donation_gateway.domain.scoring import ProviderChooser, calculate_risk_score, route_transaction
from donation_gateway.domain.velocity import VELOCITY_WINDOW, count_recent_charges
from donation_gateway.fraud_config import FraudConfig
from donation_gateway.infrastructure.observability.metrics import record_charge
from donation_gateway.infrastructure.storage.ledger import TransactionLedger
from donation_gateway.utils.date_utils import utc_now

logger = logging.getLogger(__name__)


class PaymentService:
    """Simulated payment gateway with rule-based fraud screening"""

    def __init__(
        self,
        fraud_config: FraudConfig,
        ledger: TransactionLedger,
        explanations: ExplanationCache,
        block_threshold: float = 0.5,
        high_risk_country: str = "RU",
        high_risk_country_risk: float = 0.4,
        velocity_window: timedelta = VELOCITY_WINDOW,
        choose_provider: Optional[ProviderChooser] = None,
    ):
        self.fraud_config = fraud_config
        self.ledger = ledger
        self.explanations = explanations
        self.block_threshold = block_threshold
        self.high_risk_country = high_risk_country
        self.high_risk_country_risk = high_risk_country_risk
        self.velocity_window = velocity_window
        self.choose_provider = choose_provider

    async def charge(self, charge: ChargeDetails) -> Transaction:
        """
        Screen and route one charge.

        Flow:
        1. Count charges for the email inside the velocity window
        2. Score the charge against the fraud heuristics
        3. Route to a provider, or block
        4. Explain the decision (cached by fingerprint)
        5. Append to the ledger
        """
        transaction_id = "txn_" + uuid.uuid4().hex[:8]
        logger.info(
            f"Processing charge request: {transaction_id}",
            extra={
                "amount": charge.amount,
                "currency": charge.currency,
                "ip_country": charge.ip_country,
                "billing_country": charge.billing_country,
            },
        )

        recent_charges = count_recent_charges(
            charge.email, self.ledger.snapshot(), self.velocity_window, utc_now()
        )
        assessment = calculate_risk_score(
            charge,
            self.fraud_config,
            recent_charges,
            high_risk_country=self.high_risk_country,
            high_risk_country_risk=self.high_risk_country_risk,
        )
        status, provider = route_transaction(assessment.score, self.block_threshold, self.choose_provider)

        if status == "blocked":
            logger.warning(
                f"Transaction {transaction_id} blocked due to high risk: {assessment.score:.2f}",
                extra={"reasons": list(assessment.reasons)},
            )
        else:
            logger.info(f"Transaction {transaction_id} routed to {provider} (risk: {assessment.score:.2f})")

        prompt = build_explanation_prompt(
            provider,
            assessment.score,
            assessment.reasons,
            charge=charge,
            config=self.fraud_config,
            recent_charge_count=recent_charges,
        )
        explanation = await self.explanations.explain(provider, assessment.score, assessment.reasons, prompt)

        transaction = self.ledger.append(
            Transaction(
                transaction_id=transaction_id,
                provider=provider,
                status=status,
                risk_score=round(assessment.score, 2),
                explanation=explanation,
                timestamp=utc_now(),
                amount=charge.amount,
                currency=charge.currency,
                email=charge.email,
            )
        )
        record_charge(status, transaction.risk_score, assessment.reasons)
        return transaction

    def list_transactions(self) -> List[Transaction]:
        """All processed charges in insertion order"""
        transactions = self.ledger.snapshot()
        logger.debug(f"Retrieving {len(transactions)} transactions from memory")
        return transactions
