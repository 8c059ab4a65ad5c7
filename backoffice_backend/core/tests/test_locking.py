# core/tests/test_locking.py

import uuid
from unittest import mock

from django.db.utils import OperationalError
from django.test import TestCase, override_settings

from accounting.models import Account
from core.models import Tenant
from core.services.exceptions import (
    LockTimeoutError,
    NotFoundError,
    VersionConflictError,
)
from core.services.locking import lock_row


def _contended_queryset():
    qs = mock.MagicMock()
    qs.model = Account
    qs.select_for_update.return_value.get.side_effect = OperationalError(
        "could not obtain lock on row"
    )
    return qs


class LockRowTests(TestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(name="Acme")
        self.account = Account.objects.create(tenant=self.tenant, name="Bank")

    def test_returns_locked_row(self):
        row = lock_row(Account.objects.filter(tenant=self.tenant), pk=self.account.pk)
        self.assertEqual(row.pk, self.account.pk)

    def test_missing_row_is_not_found(self):
        with self.assertRaises(NotFoundError):
            lock_row(Account.objects.filter(tenant=self.tenant), label="Account", pk=uuid.uuid4())

    def test_lock_failure_becomes_retriable_timeout(self):
        with self.assertRaises(LockTimeoutError) as ctx:
            lock_row(_contended_queryset(), label="Bill", pk=uuid.uuid4())

        self.assertTrue(ctx.exception.retriable)
        self.assertEqual(ctx.exception.code, "LOCK_TIMEOUT")
        self.assertNotIsInstance(ctx.exception, VersionConflictError)

    @override_settings(LOCK_NOWAIT=False)
    def test_nowait_can_be_disabled(self):
        qs = mock.MagicMock()
        qs.model = Account

        lock_row(qs, pk=self.account.pk)

        qs.select_for_update.assert_called_once_with(nowait=False)
