# purchases/tests/test_receiving.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models import Account, Contact
from accounting.models.status import STATUS_PAID, STATUS_PARTIALLY_PAID
from core.models import AuditLog, Tenant
from core.services.exceptions import (
    BusinessRuleError,
    ImmutableRecordError,
    InvalidQuantityError,
    NotFoundError,
    OverpaymentError,
)
from inventory.models import InventoryItem, InventoryStock
from inventory.services.delivery_status import PARTIALLY_RECEIVED, PENDING, RECEIVED
from purchases.models import PurchaseBill, PurchaseBillPayment
from purchases.services.bill_service import (
    delete_purchase_bill,
    save_bill_item,
    save_purchase_bill,
)
from purchases.services.payment_service import pay_purchase_bill
from purchases.services.receiving_service import receive_items

User = get_user_model()


class PurchaseBillFixtureMixin:
    def setUp(self):
        self.tenant = Tenant.objects.create(name="Acme")
        self.vendor = Contact.objects.create(
            tenant=self.tenant, name="Supplier Ltd", contact_type=Contact.TYPE_VENDOR
        )
        self.account = Account.objects.create(
            tenant=self.tenant, name="Bank", balance=Decimal("1000.00")
        )
        self.bolts = InventoryItem.objects.create(tenant=self.tenant, name="Bolts", sku="B-1")
        self.nuts = InventoryItem.objects.create(tenant=self.tenant, name="Nuts", sku="N-1")

        self.bill = save_purchase_bill(
            tenant_id=self.tenant.id,
            data={"bill_number": "PB-001", "vendor_id": self.vendor.id},
        )
        self.bolt_line, _ = save_bill_item(
            tenant_id=self.tenant.id,
            bill_id=self.bill.id,
            data={"inventory_item_id": self.bolts.id, "quantity": "10", "price_per_unit": "5"},
        )
        self.nut_line, self.bill = save_bill_item(
            tenant_id=self.tenant.id,
            bill_id=self.bill.id,
            data={"inventory_item_id": self.nuts.id, "quantity": "4", "price_per_unit": "2.5"},
        )

    def _pay_in_full(self):
        return pay_purchase_bill(
            tenant_id=self.tenant.id,
            bill_id=self.bill.id,
            amount=self.bill.total_amount,
            account_id=self.account.id,
        )

    def _receive(self, *pairs):
        return receive_items(
            tenant_id=self.tenant.id,
            bill_id=self.bill.id,
            items=[{"item_id": line.id, "received_quantity": qty} for line, qty in pairs],
        )

    def _stock(self, item):
        return InventoryStock.objects.filter(tenant=self.tenant, inventory_item=item).first()


class PurchaseBillTotalsTests(PurchaseBillFixtureMixin, TestCase):
    def test_total_is_sum_of_lines(self):
        self.assertEqual(self.bill.total_amount, Decimal("60.00"))

    def test_line_edit_recomputes_total(self):
        _, bill = save_bill_item(
            tenant_id=self.tenant.id,
            bill_id=self.bill.id,
            item_id=self.nut_line.id,
            data={"inventory_item_id": self.nuts.id, "quantity": "2", "price_per_unit": "2.5"},
        )
        self.assertEqual(bill.total_amount, Decimal("55.00"))

    def test_paid_bill_lines_are_immutable(self):
        self._pay_in_full()

        with self.assertRaises(ImmutableRecordError):
            save_bill_item(
                tenant_id=self.tenant.id,
                bill_id=self.bill.id,
                data={"inventory_item_id": self.bolts.id, "quantity": "1", "price_per_unit": "1"},
            )

    def test_bill_with_payments_cannot_be_deleted(self):
        pay_purchase_bill(
            tenant_id=self.tenant.id,
            bill_id=self.bill.id,
            amount="10.00",
            account_id=self.account.id,
        )

        with self.assertRaises(BusinessRuleError) as ctx:
            delete_purchase_bill(tenant_id=self.tenant.id, bill_id=self.bill.id)
        self.assertEqual(ctx.exception.code, "HAS_PAYMENTS")


class PurchaseBillPaymentTests(PurchaseBillFixtureMixin, TestCase):
    def test_partial_then_full_payment(self):
        first = pay_purchase_bill(
            tenant_id=self.tenant.id,
            bill_id=self.bill.id,
            amount="20.00",
            account_id=self.account.id,
        )
        self.assertEqual(first["bill"].status, STATUS_PARTIALLY_PAID)

        second = pay_purchase_bill(
            tenant_id=self.tenant.id,
            bill_id=self.bill.id,
            amount="40.00",
            account_id=self.account.id,
        )
        self.assertEqual(second["bill"].status, STATUS_PAID)
        self.assertEqual(second["bill"].paid_amount, Decimal("60.00"))
        self.assertEqual(PurchaseBillPayment.objects.filter(bill=self.bill).count(), 2)

        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal("940.00"))

    def test_overpayment_rejected(self):
        with self.assertRaises(OverpaymentError) as ctx:
            pay_purchase_bill(
                tenant_id=self.tenant.id,
                bill_id=self.bill.id,
                amount="60.02",
                account_id=self.account.id,
            )
        self.assertEqual(ctx.exception.remaining_balance, Decimal("60.00"))
        self.assertFalse(PurchaseBillPayment.objects.exists())

    def test_paid_bill_takes_no_further_payment(self):
        self._pay_in_full()

        with self.assertRaises(OverpaymentError) as ctx:
            pay_purchase_bill(
                tenant_id=self.tenant.id,
                bill_id=self.bill.id,
                amount="0.01",
                account_id=self.account.id,
            )
        self.assertEqual(ctx.exception.remaining_balance, Decimal("0"))
        self.assertEqual(PurchaseBillPayment.objects.filter(bill=self.bill).count(), 1)


class ReceiveItemsTests(PurchaseBillFixtureMixin, TestCase):
    """
    Goods receipt.

    GUARANTEES:
    - only Paid bills can receive
    - stock moves by the delta against the previous received quantity
    - one bad line aborts the whole call
    """

    def test_unpaid_bill_cannot_receive(self):
        with self.assertRaises(BusinessRuleError) as ctx:
            self._receive((self.bolt_line, "1"))
        self.assertEqual(ctx.exception.code, "BILL_NOT_PAID")

    def test_partial_then_full_receipt(self):
        self._pay_in_full()

        result = self._receive((self.bolt_line, "4"))
        self.assertEqual(result["delivery_status"], PARTIALLY_RECEIVED)
        self.assertFalse(result["all_received"])
        self.assertEqual(self._stock(self.bolts).current_quantity, Decimal("4"))

        result = self._receive((self.bolt_line, "10"), (self.nut_line, "4"))
        self.assertEqual(result["delivery_status"], RECEIVED)
        self.assertTrue(result["all_received"])

        bolts = self._stock(self.bolts)
        self.assertEqual(bolts.current_quantity, Decimal("10"))
        self.assertEqual(bolts.average_cost, Decimal("5"))
        self.assertEqual(bolts.last_purchase_bill_id, self.bill.id)
        self.assertEqual(self._stock(self.nuts).average_cost, Decimal("2.5"))

        bill = PurchaseBill.objects.get(pk=self.bill.pk)
        self.assertTrue(bill.items_received)
        self.assertIsNotNone(bill.items_received_date)

    def test_lowering_received_quantity_returns_stock(self):
        self._pay_in_full()
        self._receive((self.bolt_line, "10"))

        result = self._receive((self.bolt_line, "6"))

        self.assertEqual(self._stock(self.bolts).current_quantity, Decimal("6"))
        self.assertEqual(result["delivery_status"], PARTIALLY_RECEIVED)

    def test_resubmitting_same_quantity_moves_nothing(self):
        self._pay_in_full()
        self._receive((self.bolt_line, "3"))
        self._receive((self.bolt_line, "3"))

        self.assertEqual(self._stock(self.bolts).current_quantity, Decimal("3"))

    def test_over_receipt_aborts_whole_call(self):
        self._pay_in_full()

        with self.assertRaises(InvalidQuantityError):
            self._receive((self.bolt_line, "5"), (self.nut_line, "5"))

        self.assertIsNone(self._stock(self.bolts))
        self.bolt_line.refresh_from_db()
        self.assertEqual(self.bolt_line.received_quantity, Decimal("0"))

    def test_negative_quantity_rejected(self):
        self._pay_in_full()

        with self.assertRaises(InvalidQuantityError):
            self._receive((self.bolt_line, "-1"))

    def test_unknown_line_rejected(self):
        self._pay_in_full()
        other = save_purchase_bill(tenant_id=self.tenant.id, data={"bill_number": "PB-002"})
        foreign_line, _ = save_bill_item(
            tenant_id=self.tenant.id,
            bill_id=other.id,
            data={"inventory_item_id": self.bolts.id, "quantity": "1", "price_per_unit": "1"},
        )

        with self.assertRaises(NotFoundError):
            self._receive((foreign_line, "1"))

    def test_receipt_writes_audit_row(self):
        self._pay_in_full()
        self._receive((self.bolt_line, "2"))

        row = AuditLog.objects.get(
            entity_id=self.bill.id, action=AuditLog.ACTION_RECEIPT
        )
        self.assertEqual(row.from_status, PENDING)
        self.assertEqual(row.to_status, PARTIALLY_RECEIVED)


class ReceiveItemsApiTests(PurchaseBillFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.storekeeper = User.objects.create_user(
            email="store@example.com", password="pass", tenant=self.tenant, role="storekeeper"
        )
        self.clerk = User.objects.create_user(
            email="clerk@example.com", password="pass", tenant=self.tenant, role="clerk"
        )
        self.url = f"/api/purchases/bills/{self.bill.id}/receive/"

    def test_storekeeper_can_receive(self):
        self._pay_in_full()
        self.client.force_authenticate(self.storekeeper)

        res = self.client.post(
            self.url,
            {"items": [{"item_id": str(self.bolt_line.id), "received_quantity": "10"}]},
            format="json",
        )

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["delivery_status"], PARTIALLY_RECEIVED)

    def test_unpaid_bill_returns_error_body(self):
        self.client.force_authenticate(self.storekeeper)

        res = self.client.post(
            self.url,
            {"items": [{"item_id": str(self.bolt_line.id), "received_quantity": "1"}]},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "BILL_NOT_PAID")

    def test_clerk_cannot_receive(self):
        self.client.force_authenticate(self.clerk)

        res = self.client.post(self.url, {"items": []}, format="json")

        self.assertEqual(res.status_code, 403)
