# procurement/services/invoice_service.py

"""
======================================================
PATH: procurement/services/invoice_service.py
======================================================
PROCURE-TO-PAY STATE MACHINE

flip_purchase_order()   supplier turns SENT/RECEIVED PO into a PENDING invoice
approve_invoice()       buyer approves; a payable Bill is then synthesised
reject_invoice()        buyer rejects with a mandatory reason

Approval is TWO-PHASE:
    phase 1  status change + audit row, committed on its own
    phase 2  bill synthesis, committed on its own
A phase-2 failure leaves the invoice APPROVED and records an OPEN
BillReconciliation for `manage.py reconcile_p2p_bills`.

Every status change is a conditional UPDATE on the status read under the
row lock, so two concurrent approvals cannot both succeed.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from django.db import transaction
from django.utils import timezone

from accounting.models import Bill
from core.models import AuditLog
from core.services import audit
from core.services.audit import actor
from core.services.events import emit_to_tenant
from core.services.exceptions import (
    BusinessRuleError,
    InvalidTransitionError,
    RequestValidationError,
    TenantAccessError,
)
from core.services.locking import lock_row
from procurement.models import BillReconciliation, P2PInvoice, PurchaseOrder
from procurement.services.bill_synthesis import synthesize_bill
from procurement.services.lifecycle import (
    validate_invoice_transition,
    validate_po_transition,
)
from procurement.services.reconciliation import record_failure

logger = logging.getLogger("p2p")


@dataclass
class ApprovalOutcome:
    invoice: P2PInvoice
    approved: bool
    bill_created: bool
    bill: Optional[Bill] = None
    reconciliation: Optional[BillReconciliation] = None


# ============================================================
# PAYLOADS / EVENTS
# ============================================================


def invoice_payload(invoice: P2PInvoice) -> dict:
    return {
        "id": str(invoice.id),
        "invoice_number": invoice.invoice_number,
        "po_id": str(invoice.po_id),
        "buyer_tenant_id": str(invoice.buyer_tenant_id),
        "supplier_tenant_id": str(invoice.supplier_tenant_id),
        "amount": str(invoice.amount),
        "status": invoice.status,
    }


def purchase_order_payload(po: PurchaseOrder) -> dict:
    return {
        "id": str(po.id),
        "po_number": po.po_number,
        "status": po.status,
        "total_amount": str(po.total_amount),
    }


def _emit_to_parties(record, event_type: str, payload: dict, *, user=None) -> None:
    emit_to_tenant(record.buyer_tenant_id, event_type, payload, user=user)
    if record.supplier_tenant_id != record.buyer_tenant_id:
        emit_to_tenant(record.supplier_tenant_id, event_type, payload, user=user)


def generate_invoice_number() -> str:
    stamp = timezone.now().strftime("%Y%m%d%H%M%S%f")[:-3]
    return f"INV-{stamp}-{secrets.token_hex(3).upper()}"


# ============================================================
# FLIP (PO -> INVOICE)
# ============================================================


@transaction.atomic
def flip_purchase_order(*, tenant_id, po_id, user=None) -> P2PInvoice:
    po = lock_row(PurchaseOrder.objects.all(), label="Purchase order", pk=po_id)

    if str(po.supplier_tenant_id) != str(tenant_id):
        raise TenantAccessError(
            "Only the supplier on this purchase order can invoice it."
        )

    try:
        validate_po_transition(po.status, PurchaseOrder.STATUS_INVOICED)
    except InvalidTransitionError as exc:
        raise BusinessRuleError(
            f"Purchase order in status '{po.status}' cannot be invoiced",
            code="PO_NOT_INVOICEABLE",
        ) from exc

    if P2PInvoice.objects.filter(po=po).exists():
        raise BusinessRuleError(
            "This purchase order has already been invoiced",
            code="PO_NOT_INVOICEABLE",
        )

    previous_status = po.status

    invoice = P2PInvoice.objects.create(
        invoice_number=generate_invoice_number(),
        po=po,
        buyer_tenant_id=po.buyer_tenant_id,
        supplier_tenant_id=po.supplier_tenant_id,
        amount=po.total_amount,
        items=po.items or [],
        status=P2PInvoice.STATUS_PENDING,
        issue_date=timezone.localdate(),
        created_by=actor(user),
    )

    updated = PurchaseOrder.objects.filter(pk=po.pk, status=previous_status).update(
        status=PurchaseOrder.STATUS_INVOICED,
        updated_at=timezone.now(),
    )
    if updated != 1:
        raise BusinessRuleError(
            "Purchase order changed while it was being invoiced",
            code="PO_NOT_INVOICEABLE",
        )
    po.refresh_from_db()

    audit.record(
        AuditLog.ENTITY_INVOICE,
        invoice.id,
        AuditLog.ACTION_CREATED,
        tenant_id=po.supplier_tenant_id,
        to_status=invoice.status,
        user=user,
        payload={"po_id": str(po.id), "amount": str(invoice.amount)},
    )
    audit.record(
        AuditLog.ENTITY_PO,
        po.id,
        AuditLog.ACTION_STATUS_CHANGE,
        tenant_id=po.buyer_tenant_id,
        from_status=previous_status,
        to_status=po.status,
        user=user,
        payload={"invoice_id": str(invoice.id)},
    )

    _emit_to_parties(invoice, "p2p_invoice.created", invoice_payload(invoice), user=user)
    _emit_to_parties(po, "purchase_order.updated", purchase_order_payload(po), user=user)

    logger.info(
        "Purchase order invoiced",
        extra={
            "po_id": str(po.id),
            "invoice_id": str(invoice.id),
            "invoice_number": invoice.invoice_number,
        },
    )
    return invoice


# ============================================================
# REVIEW (APPROVE / REJECT)
# ============================================================


def _lock_invoice_for_buyer(*, tenant_id, invoice_id) -> P2PInvoice:
    invoice = lock_row(P2PInvoice.objects.all(), label="Invoice", pk=invoice_id)
    if str(invoice.buyer_tenant_id) != str(tenant_id):
        raise TenantAccessError("Only the buyer can review this invoice.")
    return invoice


def _transition(invoice: P2PInvoice, to_status: str, *, user=None, **fields) -> P2PInvoice:
    validate_invoice_transition(invoice.status, to_status)

    updated = P2PInvoice.objects.filter(pk=invoice.pk, status=invoice.status).update(
        status=to_status,
        reviewed_by=actor(user),
        reviewed_at=timezone.now(),
        updated_at=timezone.now(),
        **fields,
    )
    if updated != 1:
        current = P2PInvoice.objects.filter(pk=invoice.pk).values_list("status", flat=True).first()
        raise InvalidTransitionError(from_status=current, to_status=to_status)

    invoice.refresh_from_db()
    return invoice


@transaction.atomic
def _approve(*, tenant_id, invoice_id, reason=None, user=None) -> P2PInvoice:
    invoice = _lock_invoice_for_buyer(tenant_id=tenant_id, invoice_id=invoice_id)
    previous_status = invoice.status

    invoice = _transition(invoice, P2PInvoice.STATUS_APPROVED, user=user)

    audit.record(
        AuditLog.ENTITY_INVOICE,
        invoice.id,
        AuditLog.ACTION_APPROVED,
        tenant_id=invoice.buyer_tenant_id,
        from_status=previous_status,
        to_status=invoice.status,
        user=user,
        reason=reason,
    )
    _emit_to_parties(invoice, "p2p_invoice.updated", invoice_payload(invoice), user=user)
    return invoice


def approve_invoice(*, tenant_id, invoice_id, reason=None, user=None) -> ApprovalOutcome:
    """
    Approve, then synthesise the bill.

    The caller always learns whether the approval stuck and, separately,
    whether the bill exists.
    """
    invoice = _approve(tenant_id=tenant_id, invoice_id=invoice_id, reason=reason, user=user)

    logger.info(
        "Invoice approved",
        extra={"invoice_id": str(invoice.id), "buyer_tenant_id": str(invoice.buyer_tenant_id)},
    )

    try:
        bill = synthesize_bill(invoice, user=user)
    except Exception as exc:
        logger.exception(
            "Bill synthesis failed after approval",
            extra={"invoice_id": str(invoice.id)},
        )
        try:
            reconciliation = record_failure(invoice, exc)
        except Exception:
            # The approval is committed; report it even if the ledger entry is lost.
            logger.exception(
                "Could not record bill reconciliation",
                extra={"invoice_id": str(invoice.id)},
            )
            reconciliation = None
        return ApprovalOutcome(
            invoice=invoice,
            approved=True,
            bill_created=False,
            reconciliation=reconciliation,
        )

    return ApprovalOutcome(invoice=invoice, approved=True, bill_created=True, bill=bill)


@transaction.atomic
def reject_invoice(*, tenant_id, invoice_id, reason, user=None) -> P2PInvoice:
    reason = (reason or "").strip()
    if not reason:
        raise RequestValidationError("A rejection reason is required")

    invoice = _lock_invoice_for_buyer(tenant_id=tenant_id, invoice_id=invoice_id)
    previous_status = invoice.status

    invoice = _transition(
        invoice, P2PInvoice.STATUS_REJECTED, user=user, rejected_reason=reason
    )

    audit.record(
        AuditLog.ENTITY_INVOICE,
        invoice.id,
        AuditLog.ACTION_REJECTED,
        tenant_id=invoice.buyer_tenant_id,
        from_status=previous_status,
        to_status=invoice.status,
        user=user,
        reason=reason,
    )
    _emit_to_parties(invoice, "p2p_invoice.updated", invoice_payload(invoice), user=user)

    logger.info(
        "Invoice rejected",
        extra={"invoice_id": str(invoice.id), "reason": reason},
    )
    return invoice
