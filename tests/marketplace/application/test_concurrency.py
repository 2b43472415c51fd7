"""Concurrent transitions on shared products and orders.

Each worker thread runs in its own domain context, the way each request does
in the API, so every transition gets its own unit of work.
"""

import threading

import pytest
from marketplace.domain import marketplace
from marketplace.errors import InsufficientStock, InvalidTransition
from marketplace.order.order import Order, OrderStatus
from marketplace.stock.product import Product, ProductStatus
from protean import current_domain


def _run_concurrently(lifecycle, calls):
    """Run ``(method, order_id)`` calls in parallel; return one outcome per call."""
    outcomes = [None] * len(calls)
    start = threading.Barrier(len(calls))

    def worker(index, method, order_id):
        with marketplace.domain_context():
            start.wait(5)
            try:
                outcomes[index] = getattr(lifecycle, method)(order_id).status
            except (InsufficientStock, InvalidTransition) as exc:
                outcomes[index] = exc

    threads = [
        threading.Thread(target=worker, args=(index, method, order_id))
        for index, (method, order_id) in enumerate(calls)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(30)
    return outcomes


class TestConcurrentAcceptance:
    def test_two_accepts_cannot_oversell(self, lifecycle, product, place_order):
        first = place_order(product, quantity=3)
        second = place_order(product, quantity=3)

        outcomes = _run_concurrently(lifecycle, [("accept", first), ("accept", second)])

        accepted = [outcome for outcome in outcomes if outcome == OrderStatus.ACCEPTED.value]
        refused = [outcome for outcome in outcomes if isinstance(outcome, InsufficientStock)]
        assert len(accepted) == 1
        assert len(refused) == 1
        assert current_domain.repository_for(Product).get(product.id).quantity == 2

        statuses = sorted(current_domain.repository_for(Order).get(oid).status for oid in (first, second))
        assert statuses == [OrderStatus.ACCEPTED.value, OrderStatus.PENDING.value]

    @pytest.mark.slow
    def test_accepted_quantity_never_exceeds_stock(self, lifecycle, make_product, place_order):
        product = make_product(quantity=7)
        orders = [place_order(product, quantity=2) for _ in range(6)]

        outcomes = _run_concurrently(lifecycle, [("accept", order_id) for order_id in orders])

        accepted = sum(1 for outcome in outcomes if outcome == OrderStatus.ACCEPTED.value)
        assert accepted == 3
        stock = current_domain.repository_for(Product).get(product.id)
        assert stock.quantity == 7 - 2 * accepted
        assert stock.quantity >= 0
        assert stock.status == ProductStatus.ACTIVE.value

    def test_same_order_is_accepted_once(self, lifecycle, product, place_order):
        order_id = place_order(product, quantity=2)

        outcomes = _run_concurrently(lifecycle, [("accept", order_id), ("accept", order_id)])

        assert outcomes.count(OrderStatus.ACCEPTED.value) == 1
        assert sum(1 for outcome in outcomes if isinstance(outcome, InvalidTransition)) == 1
        assert current_domain.repository_for(Product).get(product.id).quantity == 3

    def test_accept_racing_cancel_keeps_stock_consistent(self, lifecycle, product, place_order):
        order_id = place_order(product, quantity=2)
        lifecycle.accept(order_id)
        other = place_order(product, quantity=3)

        _run_concurrently(lifecycle, [("cancel", order_id), ("accept", other)])

        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.CANCELLED.value
        assert current_domain.repository_for(Order).get(other).status == OrderStatus.ACCEPTED.value
        assert current_domain.repository_for(Product).get(product.id).quantity == 2
