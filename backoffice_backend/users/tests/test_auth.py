# users/tests/test_auth.py

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient

from core.models import Tenant
from permissions.roles import CAP_BILLS_PAY, CAP_INVENTORY_RECEIVE

User = get_user_model()


class LoginTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.tenant = Tenant.objects.create(name="Acme")
        self.user = User.objects.create_user(
            email="books@acme.example",
            password="s3cret-pass",
            tenant=self.tenant,
            role="accountant",
        )

    def test_login_returns_tokens_and_tenant(self):
        res = self.client.post(
            "/api/auth/login/",
            {"email": "BOOKS@acme.example", "password": "s3cret-pass"},
            format="json",
        )

        self.assertEqual(res.status_code, 200)
        self.assertIn("access", res.data)
        self.assertIn("refresh", res.data)
        self.assertEqual(str(res.data["user"]["tenant_id"]), str(self.tenant.id))

    def test_wrong_password_rejected(self):
        res = self.client.post(
            "/api/auth/login/",
            {"email": "books@acme.example", "password": "nope"},
            format="json",
        )

        self.assertEqual(res.status_code, 400)

    def test_me_lists_role_capabilities(self):
        self.client.force_authenticate(self.user)

        res = self.client.get("/api/auth/me/")

        self.assertEqual(res.status_code, 200)
        self.assertIn(CAP_BILLS_PAY, res.data["capabilities"])
        self.assertNotIn(CAP_INVENTORY_RECEIVE, res.data["capabilities"])

    def test_user_without_tenant_cannot_call_tenant_endpoints(self):
        platform = User.objects.create_user(email="ops@example.com", password="x", role="admin")
        self.client.force_authenticate(platform)

        res = self.client.get("/api/accounting/bills/")

        self.assertEqual(res.status_code, 403)
