"""
Error taxonomy for payment settlement.

Nothing here is retried inside the service: recovery is left to the
external trigger (Paystack webhook redelivery, the buyer retrying checkout).
"""


class PaymentError(Exception):
    """Base class for settlement errors."""
    pass


class GatewayUnavailable(PaymentError):
    """Raised when the gateway is disabled or its secret key is missing."""
    pass


class TransportError(PaymentError):
    """Raised when Paystack could not be reached or answered unusably."""
    pass


class VerificationUnavailable(TransportError):
    """Raised when a transaction could not be verified with Paystack."""
    pass


class InitializationError(TransportError):
    """Raised when Paystack refused or failed to initialize a transaction."""
    pass


class OrderNotFound(PaymentError):
    """Raised when an order id does not resolve in the order store."""

    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class BuyerUnavailable(PaymentError):
    """Raised when no buyer email is known for a checkout."""
    pass
