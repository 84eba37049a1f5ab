import logging
from typing import Optional

from settlement.errors import BuyerUnavailable, PaymentError
from settlement.policy import to_minor_units

logger = logging.getLogger(__name__)


class PaymentInitiator:
    """Sends the buyer to Paystack's hosted payment page for an order."""

    def __init__(self, client, gateway, site_url: str):
        self.client = client
        self.gateway = gateway
        self.site_url = site_url.rstrip("/")

    def callback_url(self, order_id: int) -> str:
        return f"{self.site_url}/orders/{order_id}/received"

    def build_checkout_redirect(self, order_id: int, email: Optional[str] = None) -> str:
        order = self.gateway.load(order_id)
        email = (email or order.buyer_email or "").strip()
        if not email:
            raise BuyerUnavailable(f"No buyer email for order {order_id}")

        return self.client.initialize_transaction(
            email=email,
            amount_minor_units=to_minor_units(order.total),
            callback_url=self.callback_url(order_id),
            reference=str(order_id),
        )

    def process_payment(self, order_id: int, email: Optional[str] = None) -> dict:
        try:
            redirect = self.build_checkout_redirect(order_id, email)
        except PaymentError as exc:
            logger.warning("Checkout for order %s failed: %s", order_id, exc)
            redirect = None

        return {
            "result": "success" if redirect else "fail",
            "redirect": redirect,
        }
