# purchases/services/payment_service.py

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from accounting.models import Transaction
from accounting.services.posting import (
    adjust_account_balance,
    check_overpayment,
    require_amount,
    resolve_account,
    settle_document,
    transaction_payload,
)
from core.models import AuditLog
from core.services import audit
from core.services.audit import actor
from core.services.events import emit_to_tenant
from core.services.locking import lock_row
from purchases.models import PurchaseBill, PurchaseBillItem, PurchaseBillPayment
from purchases.services.bill_service import bill_payload

logger = logging.getLogger("payments")


def _expense_category_id(bill: PurchaseBill):
    """Expense category of the first stocked line that declares one."""
    return (
        PurchaseBillItem.objects.filter(
            bill=bill, inventory_item__expense_category__isnull=False
        )
        .order_by("created_at")
        .values_list("inventory_item__expense_category_id", flat=True)
        .first()
    )


@transaction.atomic
def pay_purchase_bill(
    *,
    tenant_id,
    bill_id,
    amount,
    account_id,
    payment_date=None,
    description: str = "",
    user=None,
):
    """
    PAY PURCHASE BILL (atomic, row-locked)

    Same recipe as accounting.services.posting.pay_bill; the paid amount is
    re-summed from the bill's payment records.
    """
    amt = require_amount(amount)

    logger.info(
        "Initiating purchase bill payment",
        extra={"tenant_id": str(tenant_id), "bill_id": str(bill_id), "amount": str(amt)},
    )

    bill = lock_row(
        PurchaseBill.objects.filter(tenant_id=tenant_id), label="Purchase bill", pk=bill_id
    )
    account = resolve_account(tenant_id=tenant_id, account_id=account_id)

    previous_status = bill.status
    check_overpayment(total=bill.total_amount, current_paid=bill.paid_amount, amount=amt)

    pay_date = payment_date or timezone.localdate()
    text = (description or "").strip() or f"Purchase Bill Payment: #{bill.bill_number}"

    txn = Transaction.objects.create(
        tenant_id=tenant_id,
        transaction_type=Transaction.TYPE_EXPENSE,
        amount=amt,
        date=pay_date,
        description=text,
        account=account,
        category_id=_expense_category_id(bill),
        contact_id=bill.vendor_id,
        project_id=bill.project_id,
        purchase_bill=bill,
        user=actor(user),
    )

    payment = PurchaseBillPayment.objects.create(
        tenant_id=tenant_id,
        bill=bill,
        amount=amt,
        payment_date=pay_date,
        payment_account=account,
        description=description or "",
        transaction=txn,
        created_by=actor(user),
    )

    bill = settle_document(
        PurchaseBill,
        bill,
        total=bill.total_amount,
        paid_qs=PurchaseBillPayment.objects.filter(bill=bill),
    )
    adjust_account_balance(account=account, delta=-amt)

    audit.record(
        AuditLog.ENTITY_PURCHASE_BILL,
        bill.id,
        AuditLog.ACTION_PAYMENT,
        tenant_id=tenant_id,
        from_status=previous_status,
        to_status=bill.status,
        user=user,
        payload={"payment_id": str(payment.id), "transaction_id": str(txn.id), "amount": str(amt)},
    )

    emit_to_tenant(tenant_id, "transaction.created", transaction_payload(txn), user=user)
    emit_to_tenant(
        tenant_id,
        "purchase_bill.payment_created",
        {"bill_id": str(bill.id), "payment_id": str(payment.id), "amount": str(amt)},
        user=user,
    )
    emit_to_tenant(tenant_id, "purchase_bill.updated", bill_payload(bill), user=user)

    logger.info(
        "Purchase bill payment completed",
        extra={
            "bill_id": str(bill.id),
            "payment_id": str(payment.id),
            "paid_amount": str(bill.paid_amount),
            "status": bill.status,
        },
    )

    return {"payment": payment, "transaction": txn, "bill": bill}
