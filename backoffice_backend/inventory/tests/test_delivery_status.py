# inventory/tests/test_delivery_status.py

from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from inventory.services.delivery_status import (
    PARTIALLY_RECEIVED,
    PENDING,
    RECEIVED,
    resolve_delivery_status,
    summarize,
)


def line(ordered, received):
    return {"quantity": Decimal(ordered), "received_quantity": Decimal(received)}


@override_settings(MONEY_EPSILON="0.01")
class DeliveryStatusTests(SimpleTestCase):
    def test_nothing_received_is_pending(self):
        self.assertEqual(resolve_delivery_status([line("5", "0"), line("2", "0")]), PENDING)

    def test_some_received_is_partial(self):
        self.assertEqual(
            resolve_delivery_status([line("5", "5"), line("2", "0")]), PARTIALLY_RECEIVED
        )

    def test_everything_received(self):
        summary = summarize([line("5", "5"), line("2", "2")])

        self.assertTrue(summary.all_received)
        self.assertTrue(summary.any_received)
        self.assertEqual(summary.status, RECEIVED)

    def test_within_epsilon_counts_as_received(self):
        self.assertEqual(resolve_delivery_status([line("10", "9.995")]), RECEIVED)

    def test_any_received_quantity_leaves_pending(self):
        summary = summarize([line("10", "0.005")])

        self.assertTrue(summary.any_received)
        self.assertEqual(summary.status, PARTIALLY_RECEIVED)

    def test_no_lines_is_pending(self):
        self.assertEqual(resolve_delivery_status([]), PENDING)

    def test_accepts_objects(self):
        class Line:
            quantity = Decimal("3")
            received_quantity = Decimal("1")

        self.assertEqual(resolve_delivery_status([Line()]), PARTIALLY_RECEIVED)
