from decimal import Decimal

import pytest

from settlement.errors import OrderNotFound
from settlement.models import OrderStatus


def test_load_order(gateway, make_order):
    make_order(order_id=10, total="19.99")

    order = gateway.load(10)

    assert order.id == 10
    assert order.status is OrderStatus.PENDING
    assert order.total == Decimal("19.99")
    assert order.buyer_email == "buyer@example.com"


def test_load_unknown_order(gateway):
    with pytest.raises(OrderNotFound):
        gateway.load(404)


def test_transition_from_pending(gateway, make_order, fetch_order):
    make_order(order_id=1)

    assert gateway.transition_status(1, OrderStatus.COMPLETED, "Verification successful") is True

    order = fetch_order(1)
    assert order.status == OrderStatus.COMPLETED
    assert order.payment_message == "Verification successful"


@pytest.mark.parametrize("terminal", [OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.FAILED])
def test_terminal_status_is_never_overwritten(gateway, make_order, fetch_order, terminal):
    make_order(order_id=1, status=terminal)

    for new_status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.FAILED):
        assert gateway.transition_status(1, new_status, "late") is False

    order = fetch_order(1)
    assert order.status == terminal
    assert order.payment_message is None


def test_second_transition_loses(gateway, make_order, fetch_order):
    make_order(order_id=1)

    assert gateway.transition_status(1, OrderStatus.COMPLETED, "first") is True
    assert gateway.transition_status(1, OrderStatus.FAILED, "second") is False

    order = fetch_order(1)
    assert order.status == OrderStatus.COMPLETED
    assert order.payment_message == "first"


def test_transition_unknown_order(gateway):
    with pytest.raises(OrderNotFound):
        gateway.transition_status(404, OrderStatus.COMPLETED, "x")


def test_cannot_transition_back_to_pending(gateway, make_order):
    make_order(order_id=1)
    with pytest.raises(ValueError):
        gateway.transition_status(1, OrderStatus.PENDING, "x")


def test_mark_payment_complete_is_idempotent(gateway, make_order, fetch_order):
    make_order(order_id=3)

    assert gateway.mark_payment_complete(3, "3") is True
    first = fetch_order(3)
    assert gateway.mark_payment_complete(3, "3") is False
    second = fetch_order(3)

    assert first.transaction_reference == "3"
    assert first.paid_at is not None
    assert second.paid_at == first.paid_at


def test_completing_transition_records_payment(gateway, make_order, fetch_order):
    make_order(order_id=4)

    assert gateway.transition_status(4, OrderStatus.COMPLETED, "ok", reference="4") is True
    assert gateway.mark_payment_complete(4, "4") is False

    order = fetch_order(4)
    assert order.transaction_reference == "4"
    assert order.paid_at is not None


def test_failing_transition_records_no_payment(gateway, make_order, fetch_order):
    make_order(order_id=4)

    gateway.transition_status(4, OrderStatus.FAILED, "declined", reference="4")

    order = fetch_order(4)
    assert order.transaction_reference is None
    assert order.paid_at is None


@pytest.mark.parametrize("order_id", [2 ** 63, 99999999999999999999999, -1])
def test_out_of_range_order_id_is_unknown(gateway, order_id):
    with pytest.raises(OrderNotFound):
        gateway.load(order_id)
    with pytest.raises(OrderNotFound):
        gateway.transition_status(order_id, OrderStatus.COMPLETED, "x")
    with pytest.raises(OrderNotFound):
        gateway.mark_payment_complete(order_id, "x")
