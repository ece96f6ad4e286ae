"""Concurrent checkouts racing through create_order for the last unit of stock."""

import threading

import pytest
from ordering.order.creation import create_order
from ordering.order.order import Order
from protean import current_domain
from shared.errors import InsufficientStock

pytestmark = pytest.mark.concurrency

ADDRESS = "221B Baker Street, London"


def _race(ordering_bed, attempts):
    """Run create_order for each (user_id, payment_reference) pair from parallel threads."""
    barrier = threading.Barrier(len(attempts))
    outcomes = {}

    def attempt(user_id, payment_reference):
        with ordering_bed.domain.domain_context():
            barrier.wait()
            try:
                create_order(
                    user_id,
                    [{"product_id": "P3", "quantity": 1}],
                    ADDRESS,
                    payment_reference=payment_reference,
                )
                outcomes[user_id] = "ok"
            except InsufficientStock:
                outcomes[user_id] = "insufficient"

    threads = [threading.Thread(target=attempt, args=pair) for pair in attempts]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


class TestLastTeapotRace:
    def test_exactly_one_order_gets_the_last_unit(self, ordering_bed, ledger):
        outcomes = _race(ordering_bed, [("user-1", "pay_a"), ("user-2", "pay_b")])

        assert sorted(outcomes.values()) == ["insufficient", "ok"]
        assert ledger.get_product("P3").stock == 0

        orders = current_domain.repository_for(Order)._dao.query.all().items
        assert len(orders) == 1
        winner = next(user for user, outcome in outcomes.items() if outcome == "ok")
        assert str(orders[0].user_id) == winner

    def test_unpaid_orders_race_the_same_way(self, ordering_bed, ledger):
        outcomes = _race(ordering_bed, [("user-1", None), ("user-2", None), ("user-3", None)])

        assert list(outcomes.values()).count("ok") == 1
        assert ledger.get_product("P3").stock == 0
