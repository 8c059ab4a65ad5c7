# accounting/tests/test_lock_contention.py

import threading
from decimal import Decimal
from unittest import skipUnless

from django.db import connection, connections, transaction
from django.test import TransactionTestCase

from accounting.models import Account, Bill, Transaction
from accounting.services.bill_service import save_bill
from accounting.services.posting import pay_bill
from core.models import Tenant
from core.services.exceptions import LockTimeoutError


@skipUnless(
    connection.features.has_select_for_update_nowait,
    "requires SELECT ... FOR UPDATE NOWAIT",
)
class PayBillLockContentionTests(TransactionTestCase):
    def setUp(self):
        self.tenant = Tenant.objects.create(name="Acme")
        self.account = Account.objects.create(
            tenant=self.tenant, name="Bank", balance=Decimal("100.00")
        )
        self.bill = save_bill(
            tenant_id=self.tenant.id, data={"bill_number": "B-1", "amount": "100.00"}
        )

    def test_second_payer_fails_fast_and_writes_nothing(self):
        locked = threading.Event()
        release = threading.Event()

        def hold_lock():
            try:
                with transaction.atomic():
                    Bill.objects.select_for_update().get(pk=self.bill.pk)
                    locked.set()
                    release.wait(timeout=10)
            finally:
                connections.close_all()

        holder = threading.Thread(target=hold_lock)
        holder.start()
        try:
            self.assertTrue(locked.wait(timeout=10))
            with self.assertRaises(LockTimeoutError):
                pay_bill(
                    tenant_id=self.tenant.id,
                    bill_id=self.bill.id,
                    amount="10.00",
                    account_id=self.account.id,
                )
        finally:
            release.set()
            holder.join()

        self.bill.refresh_from_db()
        self.assertEqual(self.bill.paid_amount, Decimal("0.00"))
        self.assertFalse(Transaction.objects.filter(bill=self.bill).exists())
