# accounting/tests/test_posting.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase, override_settings

from accounting.models import Account, Bill, Contact, Invoice, Payslip, Project, Transaction
from accounting.models.status import STATUS_PAID, STATUS_PARTIALLY_PAID, STATUS_UNPAID
from accounting.services.bill_service import delete_bill, save_bill
from accounting.services.posting import (
    check_overpayment,
    derive_payment_status,
    pay_bill,
    pay_payslip,
    receive_invoice_payment,
    split_by_allocations,
)
from core.models import AuditLog, Tenant
from core.services.events import tenant_event
from core.services.exceptions import (
    BusinessRuleError,
    ImmutableRecordError,
    NotFoundError,
    OverpaymentError,
    RequestValidationError,
    VersionConflictError,
)


@override_settings(MONEY_EPSILON="0.01")
class PaymentRulesTests(SimpleTestCase):
    def test_status_derivation(self):
        self.assertEqual(derive_payment_status(total="100", paid="0"), STATUS_UNPAID)
        self.assertEqual(derive_payment_status(total="100", paid="40"), STATUS_PARTIALLY_PAID)
        self.assertEqual(derive_payment_status(total="100", paid="99.99"), STATUS_PAID)
        self.assertEqual(derive_payment_status(total="100", paid="100"), STATUS_PAID)

    def test_nothing_paid_on_zero_total_is_unpaid(self):
        self.assertEqual(derive_payment_status(total="0", paid="0"), STATUS_UNPAID)

    def test_settled_document_rejects_any_further_amount(self):
        with self.assertRaises(OverpaymentError) as ctx:
            check_overpayment(total="100", current_paid="99.99", amount="0.01")

        self.assertEqual(ctx.exception.remaining_balance, Decimal("0.00"))

    def test_overpayment_within_tolerance_allowed(self):
        check_overpayment(total="100", current_paid="60", amount="40.01")

    def test_overpayment_reports_remaining_balance(self):
        with self.assertRaises(OverpaymentError) as ctx:
            check_overpayment(total="100", current_paid="60", amount="40.02")

        self.assertEqual(ctx.exception.remaining_balance, Decimal("40.00"))
        self.assertEqual(ctx.exception.overpayment, Decimal("0.02"))
        self.assertEqual(ctx.exception.as_dict()["remaining_balance"], "40.00")

    def test_split_last_share_absorbs_rounding(self):
        shares = split_by_allocations("100.01", [("a", 50), ("b", 50)])

        self.assertEqual(shares, [("a", Decimal("50.01")), ("b", Decimal("50.00"))])

    def test_split_sums_to_amount(self):
        shares = split_by_allocations(
            "1000", [("a", "33.33"), ("b", "33.33"), ("c", "33.34")]
        )

        self.assertEqual(sum(share for _, share in shares), Decimal("1000.00"))


class PostingFixtureMixin:
    def setUp(self):
        self.tenant = Tenant.objects.create(name="Acme")
        self.vendor = Contact.objects.create(
            tenant=self.tenant, name="Paper Co", contact_type=Contact.TYPE_VENDOR
        )
        self.account = Account.objects.create(
            tenant=self.tenant, name="Bank", balance=Decimal("500.00")
        )
        self.bill = save_bill(
            tenant_id=self.tenant.id,
            data={"bill_number": "B-001", "contact_id": self.vendor.id, "amount": "100.00"},
        )

    def _pay(self, amount, **kwargs):
        return pay_bill(
            tenant_id=self.tenant.id,
            bill_id=self.bill.id,
            amount=amount,
            account_id=self.account.id,
            **kwargs,
        )


class PayBillTests(PostingFixtureMixin, TestCase):
    """
    Bill payments.

    GUARANTEES:
    - paid_amount == SUM(transactions) after every payment
    - status follows paid_amount
    - overpayment rejected before any write
    """

    def test_new_bill_is_unpaid(self):
        self.assertEqual(self.bill.status, STATUS_UNPAID)
        self.assertEqual(self.bill.version, 1)

    def test_partial_then_full_payment(self):
        first = self._pay("40.00")
        self.assertEqual(first["bill"].status, STATUS_PARTIALLY_PAID)
        self.assertEqual(first["bill"].paid_amount, Decimal("40.00"))

        second = self._pay("60.00")
        bill = second["bill"]
        self.assertEqual(bill.status, STATUS_PAID)
        self.assertEqual(bill.paid_amount, Decimal("100.00"))
        self.assertEqual(bill.version, 3)

        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal("400.00"))
        self.assertEqual(
            Transaction.objects.filter(bill=self.bill, transaction_type=Transaction.TYPE_EXPENSE).count(),
            2,
        )

    def test_paid_amount_rederived_from_transactions(self):
        self._pay("30.00")
        Bill.all_objects.filter(pk=self.bill.pk).update(paid_amount=Decimal("0.00"))

        result = self._pay("10.00")

        self.assertEqual(result["bill"].paid_amount, Decimal("40.00"))

    def test_overpayment_rejected_without_writes(self):
        self._pay("60.00")

        with self.assertRaises(OverpaymentError) as ctx:
            self._pay("40.02")

        self.assertEqual(ctx.exception.remaining_balance, Decimal("40.00"))
        self.assertEqual(Transaction.objects.filter(bill=self.bill).count(), 1)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal("440.00"))

    def test_cent_after_full_payment_rejected(self):
        bill = save_bill(
            tenant_id=self.tenant.id,
            data={"bill_number": "B-1000", "contact_id": self.vendor.id, "amount": "1000.00"},
        )

        def pay(amount):
            return pay_bill(
                tenant_id=self.tenant.id,
                bill_id=bill.id,
                amount=amount,
                account_id=self.account.id,
            )

        pay("600.00")
        self.assertEqual(pay("400.00")["bill"].status, STATUS_PAID)

        with self.assertRaises(OverpaymentError) as ctx:
            pay("0.01")

        self.assertEqual(ctx.exception.remaining_balance, Decimal("0"))
        bill.refresh_from_db()
        self.assertEqual(bill.paid_amount, Decimal("1000.00"))
        self.assertEqual(bill.status, STATUS_PAID)
        self.assertEqual(Transaction.objects.filter(bill=bill).count(), 2)

    def test_payment_within_epsilon_settles_bill(self):
        result = self._pay("100.01")
        self.assertEqual(result["bill"].status, STATUS_PAID)

    def test_non_positive_amount_rejected(self):
        with self.assertRaises(RequestValidationError):
            self._pay("0")

    def test_unknown_account_rejected(self):
        other = Tenant.objects.create(name="Other")
        foreign = Account.objects.create(tenant=other, name="Theirs")

        with self.assertRaises(NotFoundError):
            pay_bill(
                tenant_id=self.tenant.id,
                bill_id=self.bill.id,
                amount="10",
                account_id=foreign.id,
            )

    def test_other_tenant_cannot_pay(self):
        other = Tenant.objects.create(name="Other")
        account = Account.objects.create(tenant=other, name="Theirs")

        with self.assertRaises(NotFoundError):
            pay_bill(tenant_id=other.id, bill_id=self.bill.id, amount="10", account_id=account.id)

    def test_payment_writes_audit_row(self):
        self._pay("100.00")

        row = AuditLog.objects.get(entity_id=self.bill.id, action=AuditLog.ACTION_PAYMENT)
        self.assertEqual(row.from_status, STATUS_UNPAID)
        self.assertEqual(row.to_status, STATUS_PAID)

    def test_events_emitted_after_commit(self):
        seen = []

        def receiver(sender, event_type, **kwargs):
            seen.append(event_type)

        tenant_event.connect(receiver)
        self.addCleanup(tenant_event.disconnect, receiver)

        with self.captureOnCommitCallbacks(execute=True):
            self._pay("25.00")

        self.assertEqual(seen, ["transaction.created", "bill.updated"])

    def test_transactions_are_immutable(self):
        txn = self._pay("25.00")["transaction"]

        txn.description = "edited"
        with self.assertRaises(ValidationError):
            txn.save()
        with self.assertRaises(ValidationError):
            txn.delete()


class BillWriteTests(PostingFixtureMixin, TestCase):
    def test_stale_version_conflicts(self):
        save_bill(tenant_id=self.tenant.id, bill_id=self.bill.id, data={"description": "v2"})

        with self.assertRaises(VersionConflictError) as ctx:
            save_bill(
                tenant_id=self.tenant.id,
                bill_id=self.bill.id,
                data={"description": "stale"},
                expected_version=1,
            )
        self.assertEqual(ctx.exception.server_version, 2)

    def test_duplicate_number_rejected(self):
        with self.assertRaises(BusinessRuleError) as ctx:
            save_bill(tenant_id=self.tenant.id, data={"bill_number": "B-001", "amount": "5"})
        self.assertEqual(ctx.exception.code, "DUPLICATE_NUMBER")

    def test_amount_cannot_drop_below_paid(self):
        self._pay("60.00")

        with self.assertRaises(BusinessRuleError) as ctx:
            save_bill(tenant_id=self.tenant.id, bill_id=self.bill.id, data={"amount": "50"})
        self.assertEqual(ctx.exception.code, "AMOUNT_BELOW_PAID")

    def test_lowering_amount_to_paid_settles_bill(self):
        self._pay("60.00")

        bill = save_bill(tenant_id=self.tenant.id, bill_id=self.bill.id, data={"amount": "60"})

        self.assertEqual(bill.status, STATUS_PAID)
        self.assertEqual(bill.paid_amount, Decimal("60.00"))

        with self.assertRaises(OverpaymentError):
            self._pay("0.01")

    def test_rederived_status_is_persisted(self):
        self._pay("40.00")

        bill = save_bill(tenant_id=self.tenant.id, bill_id=self.bill.id, data={"amount": "40"})
        self.assertEqual(bill.status, STATUS_PAID)

        self.bill.refresh_from_db()
        self.assertEqual(self.bill.amount, Decimal("40.00"))
        self.assertEqual(self.bill.status, STATUS_PAID)

    def test_paid_bill_is_immutable(self):
        self._pay("100.00")

        with self.assertRaises(ImmutableRecordError):
            save_bill(tenant_id=self.tenant.id, bill_id=self.bill.id, data={"description": "x"})
        with self.assertRaises(ImmutableRecordError):
            delete_bill(tenant_id=self.tenant.id, bill_id=self.bill.id)

    def test_client_cannot_set_paid_amount(self):
        bill = save_bill(
            tenant_id=self.tenant.id,
            data={"bill_number": "B-002", "amount": "10", "paid_amount": "10", "status": "Paid"},
        )

        self.assertEqual(bill.paid_amount, Decimal("0.00"))
        self.assertEqual(bill.status, STATUS_UNPAID)


class ReceivablePaymentTests(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(name="Acme")
        self.customer = Contact.objects.create(
            tenant=self.tenant, name="Client", contact_type=Contact.TYPE_CUSTOMER
        )
        self.account = Account.objects.create(tenant=self.tenant, name="Bank")
        self.invoice = Invoice.objects.create(
            tenant=self.tenant,
            invoice_number="INV-1",
            contact=self.customer,
            amount=Decimal("200.00"),
        )

    def test_receipt_increments_account(self):
        result = receive_invoice_payment(
            tenant_id=self.tenant.id,
            invoice_id=self.invoice.id,
            amount="200.00",
            account_id=self.account.id,
        )

        self.assertEqual(result["invoice"].status, STATUS_PAID)
        self.assertEqual(result["transaction"].transaction_type, Transaction.TYPE_INCOME)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal("200.00"))

    def test_settled_invoice_rejects_further_receipts(self):
        receive_invoice_payment(
            tenant_id=self.tenant.id,
            invoice_id=self.invoice.id,
            amount="200.00",
            account_id=self.account.id,
        )

        with self.assertRaises(OverpaymentError):
            receive_invoice_payment(
                tenant_id=self.tenant.id,
                invoice_id=self.invoice.id,
                amount="0.01",
                account_id=self.account.id,
            )
        self.assertEqual(Transaction.objects.filter(invoice=self.invoice).count(), 1)

    def test_receipt_overpayment_rejected(self):
        with self.assertRaises(OverpaymentError):
            receive_invoice_payment(
                tenant_id=self.tenant.id,
                invoice_id=self.invoice.id,
                amount="250.00",
                account_id=self.account.id,
            )


class PayslipPaymentTests(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(name="Acme")
        self.employee = Contact.objects.create(
            tenant=self.tenant, name="Sam Lee", contact_type=Contact.TYPE_EMPLOYEE
        )
        self.account = Account.objects.create(
            tenant=self.tenant, name="Payroll", balance=Decimal("5000.00")
        )
        self.site_a = Project.objects.create(tenant=self.tenant, name="Site A")
        self.site_b = Project.objects.create(tenant=self.tenant, name="Site B")

    def _payslip(self, allocations=None):
        return Payslip.objects.create(
            tenant=self.tenant,
            employee=self.employee,
            month="2026-09",
            net_salary=Decimal("1000.01"),
            cost_allocations=allocations or [],
            payment_account=self.account,
        )

    def test_allocations_split_into_project_transactions(self):
        payslip = self._payslip(
            [
                {"project_id": str(self.site_a.id), "percentage": 50},
                {"project_id": str(self.site_b.id), "percentage": 50},
            ]
        )

        result = pay_payslip(tenant_id=self.tenant.id, payslip_id=payslip.id)

        legs = sorted(result["transactions"], key=lambda t: t.amount, reverse=True)
        self.assertEqual([t.amount for t in legs], [Decimal("500.01"), Decimal("500.00")])
        self.assertEqual({t.project_id for t in legs}, {self.site_a.id, self.site_b.id})
        self.assertEqual(result["payslip"].status, STATUS_PAID)
        self.assertEqual(result["payslip"].paid_amount, Decimal("1000.01"))

    def test_without_allocations_single_transaction(self):
        payslip = self._payslip()

        result = pay_payslip(tenant_id=self.tenant.id, payslip_id=payslip.id, amount="400")

        self.assertEqual(len(result["transactions"]), 1)
        self.assertEqual(result["payslip"].status, STATUS_PARTIALLY_PAID)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal("4600.00"))

    def test_allocations_must_sum_to_hundred(self):
        payslip = self._payslip([{"project_id": str(self.site_a.id), "percentage": 60}])

        with self.assertRaises(RequestValidationError):
            pay_payslip(tenant_id=self.tenant.id, payslip_id=payslip.id)
        self.assertFalse(Transaction.objects.exists())

    def test_fully_paid_payslip_rejected(self):
        payslip = self._payslip()
        pay_payslip(tenant_id=self.tenant.id, payslip_id=payslip.id)

        with self.assertRaises(BusinessRuleError):
            pay_payslip(tenant_id=self.tenant.id, payslip_id=payslip.id)

    def test_explicit_amount_on_paid_payslip_rejected(self):
        payslip = self._payslip()
        pay_payslip(tenant_id=self.tenant.id, payslip_id=payslip.id)

        with self.assertRaises(OverpaymentError):
            pay_payslip(tenant_id=self.tenant.id, payslip_id=payslip.id, amount="0.01")
