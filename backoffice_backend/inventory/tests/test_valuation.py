# inventory/tests/test_valuation.py

from decimal import Decimal

from django.test import TestCase

from core.models import Tenant
from core.services.exceptions import InvalidQuantityError, NotFoundError
from inventory.models import InventoryItem, InventoryStock
from inventory.services.valuation import apply_receipt, apply_return, stock_snapshot


class WeightedAverageCostTests(TestCase):
    """
    Weighted-average valuation.

    GUARANTEES:
    - first receipt sets cost to the incoming price
    - later receipts blend by quantity
    - returns floor quantity at zero and leave cost untouched
    """

    def setUp(self):
        self.tenant = Tenant.objects.create(name="Acme")
        self.item = InventoryItem.objects.create(tenant=self.tenant, name="Widget", sku="W-1")

    def _receive(self, qty, price, item=None):
        return apply_receipt(
            tenant_id=self.tenant.id,
            inventory_item_id=(item or self.item).id,
            delta=qty,
            price=price,
        )

    def test_first_receipt_sets_average_to_price(self):
        stock = self._receive("10", "5")

        self.assertEqual(stock.current_quantity, Decimal("10"))
        self.assertEqual(stock.average_cost, Decimal("5"))
        self.assertEqual(stock.last_purchase_price, Decimal("5"))

    def test_second_receipt_blends_by_quantity(self):
        self._receive("10", "5")
        stock = self._receive("10", "7")

        self.assertEqual(stock.current_quantity, Decimal("20"))
        self.assertEqual(stock.average_cost, Decimal("6"))

    def test_receipt_order_does_not_change_result(self):
        other = InventoryItem.objects.create(tenant=self.tenant, name="Gadget")

        self._receive("3", "5")
        a = self._receive("4", "6")

        self._receive("4", "6", item=other)
        b = self._receive("3", "5", item=other)

        self.assertEqual(a.current_quantity, b.current_quantity)
        self.assertEqual(a.average_cost, b.average_cost)
        self.assertEqual(a.average_cost, Decimal("5.571429"))

    def test_one_stock_row_per_item(self):
        self._receive("1", "2")
        self._receive("1", "4")

        self.assertEqual(
            InventoryStock.objects.filter(tenant=self.tenant, inventory_item=self.item).count(),
            1,
        )

    def test_return_reduces_quantity_and_keeps_cost(self):
        self._receive("10", "5")

        stock = apply_return(
            tenant_id=self.tenant.id, inventory_item_id=self.item.id, delta="-4"
        )

        self.assertEqual(stock.current_quantity, Decimal("6"))
        self.assertEqual(stock.average_cost, Decimal("5"))

    def test_return_floors_at_zero(self):
        self._receive("10", "5")

        stock = apply_return(
            tenant_id=self.tenant.id, inventory_item_id=self.item.id, delta="-15"
        )

        self.assertEqual(stock.current_quantity, Decimal("0"))
        self.assertEqual(stock.average_cost, Decimal("5"))

    def test_receipt_after_empty_uses_incoming_price(self):
        self._receive("10", "5")
        apply_return(tenant_id=self.tenant.id, inventory_item_id=self.item.id, delta="-10")

        stock = self._receive("2", "9")

        self.assertEqual(stock.current_quantity, Decimal("2"))
        self.assertEqual(stock.average_cost, Decimal("9"))

    def test_non_positive_receipt_rejected(self):
        with self.assertRaises(InvalidQuantityError):
            self._receive("0", "5")

    def test_unknown_item_rejected(self):
        stranger = Tenant.objects.create(name="Other")
        foreign = InventoryItem.objects.create(tenant=stranger, name="Foreign")

        with self.assertRaises(NotFoundError):
            self._receive("1", "1", item=foreign)

    def test_snapshot_for_never_received_item(self):
        snap = stock_snapshot(tenant_id=self.tenant.id, inventory_item_id=self.item.id)

        self.assertEqual(snap["current_quantity"], "0.0000")
        self.assertEqual(snap["average_cost"], "0.000000")
        self.assertIsNone(snap["last_purchase_price"])
