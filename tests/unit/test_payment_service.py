"""Unit tests for charge processing"""

import asyncio

from donation_gateway.domain.explanations import ExplanationCache
from donation_gateway.domain.scoring import REASON_HIGH_RISK_COUNTRY, REASON_VELOCITY
from donation_gateway.infrastructure.storage.ledger import TransactionLedger
from donation_gateway.services.payments import PaymentService
from tests.conftest import StubTextGenerator, first_provider, make_charge


async def test_clean_charge_scores_base_only(payment_service):
    txn = await payment_service.charge(make_charge())

    assert txn.status == "success"
    assert txn.risk_score == 0.1
    assert txn.provider == "stripe"
    assert txn.transaction_id.startswith("txn_")
    assert txn.explanation == "Payment routed to stripe. Risk score: 0.10."


async def test_repeat_fraudulent_charge_is_blocked_at_full_score(payment_service):
    fraud = make_charge(amount=2000, email="fraud@test.com", ip_country="RU", billing_country="US")
    for _ in range(3):
        await payment_service.charge(fraud)

    txn = await payment_service.charge(fraud)

    assert txn.status == "blocked"
    assert txn.risk_score == 1.0
    assert txn.provider is None
    assert "Payment blocked due to" in txn.explanation
    assert REASON_VELOCITY in txn.explanation
    assert REASON_HIGH_RISK_COUNTRY in txn.explanation


async def test_velocity_counts_blocked_and_successful_charges(payment_service):
    for _ in range(3):
        await payment_service.charge(make_charge(email="repeat@example.com"))

    txn = await payment_service.charge(make_charge(email="repeat@example.com"))

    # base 0.1 + velocity 0.25 stays below the block threshold
    assert txn.status == "success"
    assert txn.risk_score == 0.35


async def test_ledger_keeps_insertion_order(payment_service):
    first = await payment_service.charge(make_charge(amount=10))
    second = await payment_service.charge(make_charge(amount=5000, ip_country="RU"))
    third = await payment_service.charge(make_charge(amount=20))

    ids = [t.transaction_id for t in payment_service.list_transactions()]

    assert ids == [first.transaction_id, second.transaction_id, third.transaction_id]
    assert len(set(ids)) == 3


class BlockedIsSlowGenerator:
    """Answers blocked-decision prompts slowly and routed ones immediately"""

    async def generate(self, prompt, max_tokens, temperature, stop=None):
        if prompt.startswith("Payment blocked"):
            await asyncio.sleep(0.05)
            return "Blocked after review."
        return "Routed normally."


async def test_ledger_follows_completion_order_of_concurrent_charges(fraud_config):
    service = PaymentService(
        fraud_config=fraud_config,
        ledger=TransactionLedger(),
        explanations=ExplanationCache(BlockedIsSlowGenerator(), timeout=1.0),
        choose_provider=first_provider,
    )

    slow, fast = await asyncio.gather(
        service.charge(make_charge(amount=5000, email="slow@example.com", ip_country="RU")),
        service.charge(make_charge(email="fast@example.com")),
    )

    assert slow.status == "blocked"
    assert fast.status == "success"
    assert [t.transaction_id for t in service.list_transactions()] == [
        fast.transaction_id,
        slow.transaction_id,
    ]


async def test_identical_decisions_share_generated_explanation(fraud_config):
    generator = StubTextGenerator("Low risk donation routed normally. Extra")
    service = PaymentService(
        fraud_config=fraud_config,
        ledger=TransactionLedger(),
        explanations=ExplanationCache(generator, timeout=1.0),
        choose_provider=first_provider,
    )

    a = await service.charge(make_charge(email="a@example.com"))
    b = await service.charge(make_charge(email="b@example.com", amount=55))

    assert a.explanation == b.explanation == "Low risk donation routed normally."
    assert generator.calls == 1


async def test_custom_block_threshold(fraud_config):
    service = PaymentService(
        fraud_config=fraud_config,
        ledger=TransactionLedger(),
        explanations=ExplanationCache(StubTextGenerator("Fine."), timeout=1.0),
        block_threshold=0.9,
        choose_provider=first_provider,
    )

    txn = await service.charge(make_charge(amount=5000, ip_country="CA"))

    # 0.1 + 0.3 + 0.2 would block at the default threshold
    assert txn.status == "success"
    assert txn.risk_score == 0.6
