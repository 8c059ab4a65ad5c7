# accounting/services/posting.py

"""
======================================================
PATH: accounting/services/posting.py
======================================================
LEDGER POSTING SERVICE

Moves money against payable / receivable documents.

Every payment runs as ONE atomic unit:
  1) Lock the document row (SELECT ... FOR UPDATE NOWAIT)
  2) Read total + paid amount from the LOCKED row (never from the request)
  3) Overpayment check with epsilon tolerance
  4) Insert immutable Transaction row(s)
  5) Re-derive paid amount as SUM(transactions) for the document
  6) Derive status (Unpaid / Partially Paid / Paid)
  7) Write paid_amount + status, bump version, adjust account balance
  8) Audit row; events emitted after commit

Lock contention -> LockTimeoutError (retriable), never a business error.

Not a general ledger: no chart-of-accounts posting rules, only a simple
balance increment on the paying / receiving account.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Sum, Value
from django.utils import timezone

from accounting.models import (
    Account,
    Bill,
    Category,
    Invoice,
    Payslip,
    Project,
    Transaction,
)
from accounting.models.status import (
    STATUS_PAID,
    STATUS_PARTIALLY_PAID,
    STATUS_UNPAID,
)
from core.models import AuditLog
from core.services import audit
from core.services.audit import actor
from core.services.events import emit_to_tenant
from core.services.exceptions import (
    BusinessRuleError,
    NotFoundError,
    OverpaymentError,
    RequestValidationError,
)
from core.services.locking import lock_row
from core.services.money import ZERO, epsilon, money
from core.services.versioned_store import bump_version

logger = logging.getLogger("ledger")

HUNDRED = Decimal("100")


# ============================================================
# DOMAIN RULES (pure)
# ============================================================


def derive_payment_status(*, total, paid) -> str:
    total = money(total)
    paid = money(paid)
    eps = epsilon()

    if paid <= ZERO:
        return STATUS_UNPAID
    if paid >= total - eps:
        return STATUS_PAID
    if paid > eps:
        return STATUS_PARTIALLY_PAID
    return STATUS_UNPAID


def check_overpayment(*, total, current_paid, amount) -> None:
    total = money(total)
    current_paid = money(current_paid)
    amount = money(amount)
    eps = epsilon()
    remaining = max(total - current_paid, ZERO)

    # A settled document takes no further payments, however small.
    if remaining <= eps and current_paid > ZERO:
        raise OverpaymentError(
            "This document is already fully paid.",
            remaining_balance=ZERO,
            overpayment=amount,
        )

    if current_paid + amount > total + eps:
        raise OverpaymentError(
            f"Payment of {amount} exceeds remaining balance of {remaining}.",
            remaining_balance=money(remaining),
            overpayment=money(current_paid + amount - total),
        )


def split_by_allocations(amount, allocations) -> list[tuple[object, Decimal]]:
    """
    Split `amount` across [(project_id, percentage), ...].

    Each share is rounded to cents; the last share absorbs the rounding
    remainder so the shares always sum to exactly `amount`.
    """
    amount = money(amount)
    shares = []
    allocated = ZERO
    for index, (project_id, percentage) in enumerate(allocations):
        if index == len(allocations) - 1:
            share = amount - allocated
        else:
            share = money(amount * Decimal(str(percentage)) / HUNDRED)
        allocated += share
        shares.append((project_id, share))
    return shares


# ============================================================
# HELPERS
# ============================================================


def require_amount(amount) -> Decimal:
    try:
        amt = money(amount)
    except ValueError as exc:
        raise RequestValidationError("Amount must be a number") from exc
    if amt <= ZERO:
        raise RequestValidationError("Amount must be > 0")
    return amt


def resolve_account(*, tenant_id, account_id) -> Account:
    if not account_id:
        raise RequestValidationError("account_id is required")
    try:
        return Account.objects.get(tenant_id=tenant_id, pk=account_id)
    except Account.DoesNotExist as exc:
        raise NotFoundError("Account not found") from exc


def require_category(*, tenant_id, category_id):
    if category_id and not Category.objects.filter(
        tenant_id=tenant_id, pk=category_id
    ).exists():
        raise NotFoundError("Category not found")
    return category_id


def adjust_account_balance(*, account: Account, delta: Decimal) -> None:
    bump_version(Account, account.pk, balance=F("balance") + Value(delta))


def _sum_paid(queryset) -> Decimal:
    return money(queryset.aggregate(total=Sum("amount"))["total"])


def settle_document(model, document, *, total, paid_qs, extra=None):
    """
    Re-derive paid amount from the document's transactions and write it back
    together with the derived status. The caller holds the row lock.
    """
    total_paid = _sum_paid(paid_qs)
    status = derive_payment_status(total=total, paid=total_paid)

    bump_version(model, document.pk, paid_amount=total_paid, status=status, **(extra or {}))

    document.refresh_from_db()
    return document


def transaction_payload(txn: Transaction) -> dict:
    return {
        "id": str(txn.id),
        "type": txn.transaction_type,
        "amount": str(txn.amount),
        "date": str(txn.date),
        "account_id": str(txn.account_id),
        "project_id": str(txn.project_id) if txn.project_id else None,
        "bill_id": str(txn.bill_id) if txn.bill_id else None,
        "invoice_id": str(txn.invoice_id) if txn.invoice_id else None,
        "payslip_id": str(txn.payslip_id) if txn.payslip_id else None,
        "purchase_bill_id": str(txn.purchase_bill_id) if txn.purchase_bill_id else None,
    }


def document_payload(document, *, number_field: str, total_field: str = "amount") -> dict:
    return {
        "id": str(document.id),
        "number": getattr(document, number_field, ""),
        "total": str(getattr(document, total_field)),
        "paid_amount": str(document.paid_amount),
        "status": document.status,
        "version": document.version,
    }


# ============================================================
# BILLS (payables)
# ============================================================


@transaction.atomic
def pay_bill(
    *,
    tenant_id,
    bill_id,
    amount,
    account_id,
    payment_date=None,
    description: str = "",
    category_id=None,
    reference: str = "",
    user=None,
):
    """
    PAY BILL (atomic, row-locked)

    Returns {"transaction": Transaction, "bill": Bill}
    """
    amt = require_amount(amount)

    logger.info(
        "Initiating bill payment",
        extra={"tenant_id": str(tenant_id), "bill_id": str(bill_id), "amount": str(amt)},
    )

    bill = lock_row(Bill.objects.filter(tenant_id=tenant_id), label="Bill", pk=bill_id)
    account = resolve_account(tenant_id=tenant_id, account_id=account_id)
    require_category(tenant_id=tenant_id, category_id=category_id)

    previous_status = bill.status
    check_overpayment(total=bill.amount, current_paid=bill.paid_amount, amount=amt)

    txn = Transaction.objects.create(
        tenant_id=tenant_id,
        transaction_type=Transaction.TYPE_EXPENSE,
        amount=amt,
        date=payment_date or timezone.localdate(),
        description=description or f"Payment for bill {bill.bill_number}",
        reference=reference or "",
        account=account,
        category_id=category_id or bill.category_id,
        contact_id=bill.contact_id,
        project_id=bill.project_id,
        bill=bill,
        user=actor(user),
    )

    bill = settle_document(
        Bill,
        bill,
        total=bill.amount,
        paid_qs=Transaction.objects.filter(bill=bill),
    )
    adjust_account_balance(account=account, delta=-amt)

    audit.record(
        AuditLog.ENTITY_BILL,
        bill.id,
        AuditLog.ACTION_PAYMENT,
        tenant_id=tenant_id,
        from_status=previous_status,
        to_status=bill.status,
        user=user,
        payload={"transaction_id": str(txn.id), "amount": str(amt)},
    )

    emit_to_tenant(tenant_id, "transaction.created", transaction_payload(txn), user=user)
    emit_to_tenant(
        tenant_id, "bill.updated", document_payload(bill, number_field="bill_number"), user=user
    )

    logger.info(
        "Bill payment completed",
        extra={
            "bill_id": str(bill.id),
            "transaction_id": str(txn.id),
            "paid_amount": str(bill.paid_amount),
            "status": bill.status,
        },
    )

    return {"transaction": txn, "bill": bill}


# ============================================================
# INVOICES (receivables)
# ============================================================


@transaction.atomic
def receive_invoice_payment(
    *,
    tenant_id,
    invoice_id,
    amount,
    account_id,
    payment_date=None,
    description: str = "",
    category_id=None,
    reference: str = "",
    user=None,
):
    """
    RECEIVE INVOICE PAYMENT (atomic, row-locked)

    Same recipe as pay_bill with money flowing in:
    Income transaction, account balance incremented.
    """
    amt = require_amount(amount)

    logger.info(
        "Initiating invoice payment",
        extra={
            "tenant_id": str(tenant_id),
            "invoice_id": str(invoice_id),
            "amount": str(amt),
        },
    )

    invoice = lock_row(
        Invoice.objects.filter(tenant_id=tenant_id), label="Invoice", pk=invoice_id
    )
    account = resolve_account(tenant_id=tenant_id, account_id=account_id)
    require_category(tenant_id=tenant_id, category_id=category_id)

    previous_status = invoice.status
    check_overpayment(total=invoice.amount, current_paid=invoice.paid_amount, amount=amt)

    txn = Transaction.objects.create(
        tenant_id=tenant_id,
        transaction_type=Transaction.TYPE_INCOME,
        amount=amt,
        date=payment_date or timezone.localdate(),
        description=description or f"Payment for invoice {invoice.invoice_number}",
        reference=reference or "",
        account=account,
        category_id=category_id or invoice.category_id,
        contact_id=invoice.contact_id,
        project_id=invoice.project_id,
        invoice=invoice,
        user=actor(user),
    )

    invoice = settle_document(
        Invoice,
        invoice,
        total=invoice.amount,
        paid_qs=Transaction.objects.filter(invoice=invoice),
    )
    adjust_account_balance(account=account, delta=amt)

    audit.record(
        AuditLog.ENTITY_RECEIVABLE,
        invoice.id,
        AuditLog.ACTION_PAYMENT,
        tenant_id=tenant_id,
        from_status=previous_status,
        to_status=invoice.status,
        user=user,
        payload={"transaction_id": str(txn.id), "amount": str(amt)},
    )

    emit_to_tenant(tenant_id, "transaction.created", transaction_payload(txn), user=user)
    emit_to_tenant(
        tenant_id,
        "invoice.updated",
        document_payload(invoice, number_field="invoice_number"),
        user=user,
    )

    return {"transaction": txn, "invoice": invoice}


# ============================================================
# PAYSLIPS (salary, split by project)
# ============================================================


def _parse_allocations(*, tenant_id, allocations) -> list[tuple[object, Decimal]]:
    if not allocations:
        return []
    if not isinstance(allocations, list):
        raise RequestValidationError("cost_allocations must be a list")

    parsed = []
    for entry in allocations:
        project_id = (entry or {}).get("project_id")
        try:
            percentage = Decimal(str(entry.get("percentage")))
        except (ArithmeticError, ValueError, TypeError) as exc:
            raise RequestValidationError("Allocation percentage must be a number") from exc
        if not project_id or percentage <= 0:
            raise RequestValidationError(
                "Each allocation needs a project_id and a positive percentage"
            )
        parsed.append((project_id, percentage))

    total_pct = sum((p for _, p in parsed), Decimal("0"))
    if abs(total_pct - HUNDRED) > epsilon():
        raise RequestValidationError(
            f"Cost allocation percentages must sum to 100 (got {total_pct})"
        )

    project_ids = {str(pid) for pid, _ in parsed}
    found = {
        str(pid)
        for pid in Project.objects.filter(
            tenant_id=tenant_id, pk__in=project_ids
        ).values_list("id", flat=True)
    }
    missing = project_ids - found
    if missing:
        raise NotFoundError(f"Project not found: {sorted(missing)[0]}")

    return parsed


@transaction.atomic
def pay_payslip(
    *,
    tenant_id,
    payslip_id,
    account_id=None,
    amount=None,
    payment_date=None,
    category_id=None,
    user=None,
):
    """
    PAY PAYSLIP (atomic, row-locked)

    - amount defaults to the outstanding net salary
    - account defaults to the payslip's payment account
    - cost_allocations present: one Expense transaction per project split
    - otherwise: a single Expense transaction
    """
    payslip = lock_row(
        Payslip.objects.filter(tenant_id=tenant_id),
        label="Payslip",
        pk=payslip_id,
    )

    outstanding = money(payslip.net_salary) - money(payslip.paid_amount)
    if amount in (None, ""):
        if outstanding <= ZERO:
            raise BusinessRuleError("Payslip is already paid", code="ALREADY_PAID")
        amount = outstanding
    amt = require_amount(amount)

    account = resolve_account(
        tenant_id=tenant_id, account_id=account_id or payslip.payment_account_id
    )
    require_category(tenant_id=tenant_id, category_id=category_id)

    previous_status = payslip.status
    check_overpayment(total=payslip.net_salary, current_paid=payslip.paid_amount, amount=amt)

    allocations = _parse_allocations(
        tenant_id=tenant_id, allocations=payslip.cost_allocations
    )
    legs = split_by_allocations(amt, allocations) if allocations else [(None, amt)]

    pay_date = payment_date or timezone.localdate()
    employee_name = payslip.employee.name
    created = []
    for project_id, share in legs:
        if share <= ZERO:
            continue
        created.append(
            Transaction.objects.create(
                tenant_id=tenant_id,
                transaction_type=Transaction.TYPE_EXPENSE,
                amount=share,
                date=pay_date,
                description=f"Salary {payslip.month} - {employee_name}",
                account=account,
                category_id=category_id,
                contact_id=payslip.employee_id,
                project_id=project_id,
                payslip=payslip,
                user=actor(user),
            )
        )

    payslip = settle_document(
        Payslip,
        payslip,
        total=payslip.net_salary,
        paid_qs=Transaction.objects.filter(payslip=payslip),
        extra={"payment_date": pay_date, "payment_account": account},
    )
    adjust_account_balance(account=account, delta=-amt)

    audit.record(
        AuditLog.ENTITY_PAYSLIP,
        payslip.id,
        AuditLog.ACTION_PAYMENT,
        tenant_id=tenant_id,
        from_status=previous_status,
        to_status=payslip.status,
        user=user,
        payload={
            "amount": str(amt),
            "transaction_ids": [str(t.id) for t in created],
        },
    )

    for txn in created:
        emit_to_tenant(tenant_id, "transaction.created", transaction_payload(txn), user=user)
    emit_to_tenant(
        tenant_id,
        "payslip.updated",
        document_payload(payslip, number_field="month", total_field="net_salary"),
        user=user,
    )

    logger.info(
        "Payslip payment completed",
        extra={
            "payslip_id": str(payslip.id),
            "legs": len(created),
            "status": payslip.status,
        },
    )

    return {"transactions": created, "payslip": payslip}
