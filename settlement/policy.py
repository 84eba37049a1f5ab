"""
Settlement decisions.

Pure functions: given what Paystack reported and what the order expects,
decide the order's next state. All amount math is ``Decimal``.
"""
import enum
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from settlement.models import OrderStatus
from settlement.paystack_client import VerificationResult

MINOR_UNIT_FACTOR = 100
CENTS = Decimal("0.01")

AMOUNT_MISMATCH_MESSAGE = "Amount paid does not match order amount, this requires investigation"


class AmountRule(enum.Enum):
    AT_LEAST = "at_least"   # webhook: paid >= total
    EXACT = "exact"         # buyer return: paid == total

    def accepts(self, paid: Decimal, total: Decimal) -> bool:
        if self is AmountRule.EXACT:
            return paid == total
        return paid >= total


class Action(enum.Enum):
    NO_ACTION = "no_action"
    COMPLETE = "complete"
    AMOUNT_MISMATCH = "amount_mismatch"
    FAIL = "fail"


@dataclass(frozen=True)
class Decision:
    action: Action
    message: str = ""

    @property
    def target_status(self) -> Optional[OrderStatus]:
        return {
            Action.COMPLETE: OrderStatus.COMPLETED,
            Action.AMOUNT_MISMATCH: OrderStatus.CANCELLED,
            Action.FAIL: OrderStatus.FAILED,
        }.get(self.action)


def to_minor_units(total) -> int:
    """Convert a major-unit amount (naira) to Paystack's minor unit (kobo)."""
    amount = Decimal(str(total)) * MINOR_UNIT_FACTOR
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_major_units(amount_minor_units: int) -> Decimal:
    return (Decimal(amount_minor_units) / MINOR_UNIT_FACTOR).quantize(CENTS)


def decide(
    total,
    current_status: OrderStatus,
    verification: Optional[VerificationResult],
    rule: AmountRule = AmountRule.AT_LEAST,
) -> Decision:
    """
    Decide how an order settles.

    ``verification`` is None when Paystack could not be asked; that, like an
    order that already completed, yields NO_ACTION.
    """
    if current_status is OrderStatus.COMPLETED or verification is None:
        return Decision(Action.NO_ACTION)

    if not verification.succeeded:
        return Decision(Action.FAIL, verification.message)

    paid = to_major_units(verification.amount_paid_minor_units)
    expected = Decimal(str(total)).quantize(CENTS)
    if rule.accepts(paid, expected):
        return Decision(Action.COMPLETE, verification.message)
    return Decision(Action.AMOUNT_MISMATCH, AMOUNT_MISMATCH_MESSAGE)
