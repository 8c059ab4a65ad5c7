# core/tests/test_versioned_store.py

import uuid

from django.test import SimpleTestCase, TestCase

from accounting.models import Account
from core.models import Tenant
from core.services.exceptions import (
    RequestValidationError,
    TenantAccessError,
    VersionConflictError,
)
from core.services.versioned_store import (
    parse_expected_version,
    soft_delete_entity,
    upsert_entity,
)


class ParseExpectedVersionTests(SimpleTestCase):
    def test_blank_means_blind_write(self):
        self.assertIsNone(parse_expected_version(None))
        self.assertIsNone(parse_expected_version(""))

    def test_numeric_header(self):
        self.assertEqual(parse_expected_version("3"), 3)
        self.assertEqual(parse_expected_version(4), 4)

    def test_garbage_rejected(self):
        for raw in ("abc", "0", "-2"):
            with self.assertRaises(RequestValidationError):
                parse_expected_version(raw)


class UpsertEntityTests(TestCase):
    """
    Optimistic concurrency on tenant-scoped rows.

    GUARANTEES:
    - inserts start at version 1
    - every accepted write bumps the version by exactly one
    - a stale expected version changes nothing
    """

    def setUp(self):
        self.tenant = Tenant.objects.create(name="Acme")

    def _save(self, entity_id=None, **kwargs):
        values = kwargs.pop("values", {"name": "Operating"})
        return upsert_entity(
            Account, tenant_id=self.tenant.id, entity_id=entity_id, values=values, **kwargs
        )

    def test_insert_starts_at_version_one(self):
        account = self._save()

        self.assertEqual(account.version, 1)
        self.assertEqual(account.tenant_id, self.tenant.id)

    def test_client_supplied_id_is_kept(self):
        entity_id = uuid.uuid4()

        account = self._save(entity_id=entity_id)

        self.assertEqual(account.id, entity_id)

    def test_insert_returns_the_stored_row(self):
        entity_id = str(uuid.uuid4())

        account = self._save(entity_id=entity_id, values={"name": "Cash", "balance": "12.5"})

        self.assertIsInstance(account.id, uuid.UUID)
        self.assertEqual(str(account.balance), "12.50")

    def test_guard_can_add_derived_fields(self):
        account = self._save()

        updated = self._save(
            entity_id=account.id,
            values={"name": "Payroll"},
            guard=lambda current: {"description": f"was {current.name}"},
        )

        self.assertEqual(updated.description, "was Operating")
        self.assertEqual(updated.version, 2)

    def test_blind_write_bumps_version(self):
        account = self._save()

        updated = self._save(entity_id=account.id, values={"name": "Payroll"})

        self.assertEqual(updated.version, 2)
        self.assertEqual(updated.name, "Payroll")

    def test_matching_expected_version_applies(self):
        account = self._save()

        updated = self._save(
            entity_id=account.id, values={"name": "Payroll"}, expected_version=1
        )

        self.assertEqual(updated.version, 2)

    def test_stale_expected_version_conflicts_without_writing(self):
        account = self._save()
        self._save(entity_id=account.id, values={"name": "Second"})

        with self.assertRaises(VersionConflictError) as ctx:
            self._save(entity_id=account.id, values={"name": "Stale"}, expected_version=1)

        self.assertEqual(ctx.exception.server_version, 2)
        account.refresh_from_db()
        self.assertEqual(account.name, "Second")
        self.assertEqual(account.version, 2)

    def test_null_version_matches_any_expected_version(self):
        account = self._save()
        Account.all_objects.filter(pk=account.pk).update(version=None)

        updated = self._save(
            entity_id=account.id, values={"name": "Legacy"}, expected_version=7
        )

        self.assertEqual(updated.version, 2)
        self.assertEqual(updated.name, "Legacy")

    def test_soft_deleted_row_is_not_resurrected(self):
        account = self._save()
        deleted = soft_delete_entity(Account, tenant_id=self.tenant.id, entity_id=account.id)
        self.assertTrue(deleted.is_deleted)

        result = self._save(entity_id=account.id, values={"name": "Back again"})

        self.assertTrue(result.is_deleted)
        self.assertEqual(result.name, "Operating")
        self.assertFalse(Account.objects.filter(pk=account.pk).exists())

    def test_recreate_clears_soft_delete(self):
        account = self._save()
        soft_delete_entity(Account, tenant_id=self.tenant.id, entity_id=account.id)

        result = self._save(entity_id=account.id, values={"name": "Restored"}, recreate=True)

        self.assertFalse(result.is_deleted)
        self.assertEqual(result.name, "Restored")
        self.assertTrue(Account.objects.filter(pk=account.pk).exists())

    def test_soft_delete_with_stale_version_conflicts(self):
        account = self._save()
        self._save(entity_id=account.id, values={"name": "Second"})

        with self.assertRaises(VersionConflictError):
            soft_delete_entity(
                Account, tenant_id=self.tenant.id, entity_id=account.id, expected_version=1
            )

    def test_other_tenants_id_is_refused(self):
        other = Tenant.objects.create(name="Other")
        foreign = upsert_entity(Account, tenant_id=other.id, values={"name": "Theirs"})

        with self.assertRaises(TenantAccessError):
            self._save(entity_id=foreign.id, values={"name": "Mine"})

        foreign.refresh_from_db()
        self.assertEqual(foreign.name, "Theirs")
