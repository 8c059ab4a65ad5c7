# accounting/tests/test_bills_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models import Account, Bill
from core.models import Tenant

User = get_user_model()


class BillsApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.tenant = Tenant.objects.create(name="Acme")
        self.account = Account.objects.create(
            tenant=self.tenant, name="Bank", balance=Decimal("1000.00")
        )
        self.accountant = User.objects.create_user(
            email="books@acme.example", password="pass", tenant=self.tenant, role="accountant"
        )
        self.clerk = User.objects.create_user(
            email="clerk@acme.example", password="pass", tenant=self.tenant, role="clerk"
        )
        self.client.force_authenticate(self.accountant)

    def _create(self, number="B-100", amount="100.00"):
        return self.client.post(
            "/api/accounting/bills/",
            {"bill_number": number, "amount": amount},
            format="json",
        )

    def test_create_returns_version_one(self):
        res = self._create()

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["version"], 1)
        self.assertEqual(res.data["status"], "Unpaid")

    def test_stale_version_header_conflicts(self):
        bill_id = self._create().data["id"]
        self.client.post(
            "/api/accounting/bills/", {"id": bill_id, "description": "v2"}, format="json"
        )

        res = self.client.post(
            "/api/accounting/bills/",
            {"id": bill_id, "description": "stale"},
            format="json",
            HTTP_X_ENTITY_VERSION="1",
        )

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "VERSION_CONFLICT")
        self.assertEqual(res.data["error"]["server_version"], 2)

    def test_overpayment_body_carries_remaining_balance(self):
        bill_id = self._create().data["id"]

        res = self.client.post(
            f"/api/accounting/bills/{bill_id}/pay/",
            {"amount": "150.00", "account_id": str(self.account.id)},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "PAYMENT_OVERPAYMENT")
        self.assertEqual(res.data["error"]["remaining_balance"], "100.00")

    def test_paid_bill_cannot_be_deleted(self):
        bill_id = self._create().data["id"]
        res = self.client.post(
            f"/api/accounting/bills/{bill_id}/pay/",
            {"amount": "100.00", "account_id": str(self.account.id)},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["bill"]["status"], "Paid")

        res = self.client.delete(f"/api/accounting/bills/{bill_id}/")

        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.data["error"]["code"], "BILL_PAID_IMMUTABLE")

    def test_deleted_bill_hidden_from_list(self):
        bill_id = self._create().data["id"]
        self.assertEqual(self.client.delete(f"/api/accounting/bills/{bill_id}/").status_code, 200)

        res = self.client.get("/api/accounting/bills/")

        rows = res.data["results"] if isinstance(res.data, dict) else res.data
        self.assertEqual(rows, [])
        self.assertTrue(Bill.all_objects.filter(pk=bill_id).exists())

    def test_clerk_cannot_pay(self):
        bill_id = self._create().data["id"]
        self.client.force_authenticate(self.clerk)

        res = self.client.post(
            f"/api/accounting/bills/{bill_id}/pay/",
            {"amount": "10.00", "account_id": str(self.account.id)},
            format="json",
        )

        self.assertEqual(res.status_code, 403)

    def test_other_tenant_sees_not_found(self):
        bill_id = self._create().data["id"]
        other = Tenant.objects.create(name="Other")
        outsider = User.objects.create_user(
            email="x@other.example", password="pass", tenant=other, role="accountant"
        )
        other_account = Account.objects.create(tenant=other, name="Theirs")
        self.client.force_authenticate(outsider)

        res = self.client.post(
            f"/api/accounting/bills/{bill_id}/pay/",
            {"amount": "10.00", "account_id": str(other_account.id)},
            format="json",
        )

        self.assertEqual(res.status_code, 404)
