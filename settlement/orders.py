import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import update

from settlement.errors import OrderNotFound
from settlement.models import Order, OrderStatus

logger = logging.getLogger(__name__)

# SQLite and PostgreSQL integer keys are signed 64-bit
MAX_ORDER_ID = 2 ** 63 - 1


@dataclass(frozen=True)
class OrderSnapshot:
    id: int
    status: OrderStatus
    total: Decimal
    buyer_email: Optional[str] = None
    payment_message: Optional[str] = None


class SqlOrderGateway:
    """
    Order store access for settlement.

    ``transition_status`` is the only place an order's status changes. It is
    a single conditional UPDATE guarded on ``status = 'pending'``, so of any
    number of concurrent callers (threads or processes) at most one moves an
    order out of pending, and a terminal status is never overwritten.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _check_id(self, order_id: int):
        if not 0 <= order_id <= MAX_ORDER_ID:
            raise OrderNotFound(order_id)

    def load(self, order_id: int) -> OrderSnapshot:
        self._check_id(order_id)
        db = self.session_factory()
        try:
            order = db.get(Order, order_id)
            if order is None:
                raise OrderNotFound(order_id)
            return OrderSnapshot(
                id=order.id,
                status=OrderStatus(order.status),
                total=Decimal(order.total),
                buyer_email=order.buyer_email,
                payment_message=order.payment_message,
            )
        finally:
            db.close()

    def transition_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        message: str,
        reference: Optional[str] = None,
    ) -> bool:
        """
        Move a pending order to ``new_status``.

        A completing transition given a ``reference`` records the payment in
        the same UPDATE, so a completed order never lacks its payment details.
        """
        if new_status is OrderStatus.PENDING:
            raise ValueError("Orders cannot be moved back to pending")
        self._check_id(order_id)

        values = {"status": new_status, "payment_message": message}
        if new_status is OrderStatus.COMPLETED and reference is not None:
            values.update(transaction_reference=reference, paid_at=datetime.now(timezone.utc))

        db = self.session_factory()
        try:
            result = db.execute(
                update(Order)
                .where(Order.id == order_id, Order.status == OrderStatus.PENDING)
                .values(**values)
            )
            db.commit()
            if result.rowcount == 1:
                logger.info("Order %s transitioned to %s", order_id, new_status.value)
                return True
            if db.get(Order, order_id) is None:
                raise OrderNotFound(order_id)
            logger.info("Order %s not pending, %s transition skipped", order_id, new_status.value)
            return False
        finally:
            db.close()

    def mark_payment_complete(self, order_id: int, reference: str) -> bool:
        self._check_id(order_id)
        db = self.session_factory()
        try:
            result = db.execute(
                update(Order)
                .where(Order.id == order_id, Order.paid_at.is_(None))
                .values(transaction_reference=reference, paid_at=datetime.now(timezone.utc))
            )
            db.commit()
            return result.rowcount == 1
        finally:
            db.close()
