"""
Reconciliation of Paystack payments onto orders.

Two entry points converge on the same order: the Paystack webhook and the
buyer returning from the hosted payment page. Both re-verify with Paystack
and settle through ``SqlOrderGateway.transition_status``; whichever reaches
the store first wins and the other observes a settled order.
"""
import enum
import logging
from dataclasses import dataclass

from settlement.errors import VerificationUnavailable
from settlement.models import OrderStatus
from settlement.policy import Action, AmountRule, decide

logger = logging.getLogger(__name__)


class WebhookOutcome(enum.Enum):
    SETTLED = "settled"
    ALREADY_COMPLETED = "already_completed"
    ALREADY_SETTLED = "already_settled"
    AMOUNT_MISMATCH = "amount_mismatch"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class WebhookResult:
    outcome: WebhookOutcome
    status_code: int
    body: str


ACKNOWLEDGED = "OK"


def _acknowledge(outcome: WebhookOutcome) -> WebhookResult:
    return WebhookResult(outcome, 200, ACKNOWLEDGED)


class ReconciliationService:

    def __init__(self, client, gateway):
        self.client = client
        self.gateway = gateway

    def on_webhook_notified(self, reference: str) -> WebhookResult:
        """Settle the order whose id is ``reference`` after a Paystack notification."""
        order_id = int(reference)
        order = self.gateway.load(order_id)
        if order.status is OrderStatus.COMPLETED:
            logger.info("Webhook for completed order %s ignored", order_id)
            return _acknowledge(WebhookOutcome.ALREADY_COMPLETED)

        try:
            verification = self.client.verify_transaction(str(order_id))
        except VerificationUnavailable as exc:
            logger.warning("Couldn't verify payment for order %s: %s", order_id, exc)
            return WebhookResult(WebhookOutcome.UNAVAILABLE, 503, "Couldn't verify payment")

        decision = decide(order.total, order.status, verification, AmountRule.AT_LEAST)
        if decision.action is Action.NO_ACTION:
            return _acknowledge(WebhookOutcome.ALREADY_COMPLETED)

        reference = str(order_id)
        if not self.gateway.transition_status(order_id, decision.target_status, decision.message, reference):
            return self._lost_race(order_id)

        if decision.action is Action.COMPLETE:
            self.gateway.mark_payment_complete(order_id, reference)
            return _acknowledge(WebhookOutcome.SETTLED)

        if decision.action is Action.AMOUNT_MISMATCH:
            logger.error(
                "Order %s cancelled: paid %s kobo against total %s, needs investigation",
                order_id, verification.amount_paid_minor_units, order.total,
            )
            return WebhookResult(WebhookOutcome.AMOUNT_MISMATCH, 200, "Total amount mis-match")

        logger.warning("Paystack declared order %s failed: %s", order_id, decision.message)
        return WebhookResult(WebhookOutcome.FAILED, 400, f"API returned error: {decision.message}")

    def _lost_race(self, order_id: int) -> WebhookResult:
        status = self.gateway.load(order_id).status
        if status is OrderStatus.COMPLETED:
            return _acknowledge(WebhookOutcome.ALREADY_COMPLETED)
        logger.warning("Webhook for order %s arrived after it settled as %s", order_id, status.value)
        return _acknowledge(WebhookOutcome.ALREADY_SETTLED)

    def on_buyer_returned(self, order_id: int) -> bool:
        """
        Confirm a pending order when the buyer lands back on the site.

        Returns True only if this call completed the order. Anything else
        leaves the order as it is for the webhook to settle.
        """
        order = self.gateway.load(order_id)
        if order.status is not OrderStatus.PENDING:
            return False

        try:
            verification = self.client.verify_transaction(str(order_id))
        except VerificationUnavailable as exc:
            logger.warning("Couldn't verify payment for returning buyer on order %s: %s", order_id, exc)
            return False

        decision = decide(order.total, order.status, verification, AmountRule.EXACT)
        if decision.action is not Action.COMPLETE:
            logger.info("Order %s left %s on buyer return (%s)", order_id, order.status.value, decision.action.value)
            return False

        reference = str(order_id)
        if not self.gateway.transition_status(order_id, OrderStatus.COMPLETED, decision.message, reference):
            return False

        self.gateway.mark_payment_complete(order_id, reference)
        return True
