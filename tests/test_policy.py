from decimal import Decimal

import pytest

from settlement.models import OrderStatus
from settlement.paystack_client import VerificationResult
from settlement.policy import (
    AMOUNT_MISMATCH_MESSAGE,
    Action,
    AmountRule,
    decide,
    to_major_units,
    to_minor_units,
)


def paid(amount, succeeded=True, message="Verification successful"):
    return VerificationResult(succeeded=succeeded, amount_paid_minor_units=amount, message=message)


def test_full_payment_completes():
    decision = decide(Decimal("500.00"), OrderStatus.PENDING, paid(50000))
    assert decision.action is Action.COMPLETE
    assert decision.message == "Verification successful"
    assert decision.target_status is OrderStatus.COMPLETED


def test_short_payment_is_mismatch():
    decision = decide(Decimal("500.00"), OrderStatus.PENDING, paid(40000))
    assert decision.action is Action.AMOUNT_MISMATCH
    assert decision.message == AMOUNT_MISMATCH_MESSAGE
    assert decision.target_status is OrderStatus.CANCELLED


def test_overpayment_depends_on_rule():
    assert decide(Decimal("500.00"), OrderStatus.PENDING, paid(50001)).action is Action.COMPLETE
    assert decide(
        Decimal("500.00"), OrderStatus.PENDING, paid(50001), AmountRule.EXACT
    ).action is Action.AMOUNT_MISMATCH


def test_declined_transaction_fails():
    decision = decide(Decimal("500.00"), OrderStatus.PENDING, paid(50000, succeeded=False, message="declined"))
    assert decision.action is Action.FAIL
    assert decision.message == "declined"
    assert decision.target_status is OrderStatus.FAILED


@pytest.mark.parametrize("verification", [None, paid(50000), paid(0, succeeded=False)])
def test_completed_order_is_never_touched(verification):
    decision = decide(Decimal("500.00"), OrderStatus.COMPLETED, verification)
    assert decision.action is Action.NO_ACTION
    assert decision.target_status is None


def test_unavailable_verification_takes_no_action():
    assert decide(Decimal("500.00"), OrderStatus.PENDING, None).action is Action.NO_ACTION


@pytest.mark.parametrize("total,expected", [
    ("500.00", 50000),
    ("19.99", 1999),
    ("0.105", 11),
    (Decimal("1234.56"), 123456),
])
def test_to_minor_units_rounds_half_up(total, expected):
    assert to_minor_units(total) == expected


def test_to_major_units_keeps_two_places():
    assert to_major_units(1999) == Decimal("19.99")
    assert to_major_units(50000) == Decimal("500.00")


@pytest.mark.parametrize("total", ["19.99", "0.29", "1000.10", "333.33"])
def test_amount_sent_at_checkout_settles_exactly(total):
    minor = to_minor_units(total)
    for rule in AmountRule:
        assert decide(Decimal(total), OrderStatus.PENDING, paid(minor), rule).action is Action.COMPLETE
