# procurement/services/reconciliation.py

"""
BILL RECONCILIATION

An approved invoice whose bill could not be created gets one OPEN
BillReconciliation row. Retrying re-runs bill synthesis only; the approval
itself is never repeated.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from procurement.models import BillReconciliation, P2PInvoice
from procurement.services.bill_synthesis import synthesize_bill

logger = logging.getLogger("p2p")


def record_failure(invoice: P2PInvoice, error: Exception) -> BillReconciliation:
    message = f"{error.__class__.__name__}: {error}"
    with transaction.atomic():
        reconciliation, created = BillReconciliation.objects.get_or_create(
            invoice=invoice,
            defaults={"tenant_id": invoice.buyer_tenant_id, "last_error": message},
        )
        if not created:
            BillReconciliation.objects.filter(pk=reconciliation.pk).update(
                status=BillReconciliation.STATUS_OPEN,
                attempts=F("attempts") + 1,
                last_error=message,
                updated_at=timezone.now(),
            )
            reconciliation.refresh_from_db()
    return reconciliation


def retry_bill_synthesis(reconciliation: BillReconciliation, *, user=None) -> BillReconciliation:
    invoice = reconciliation.invoice
    if invoice.status != P2PInvoice.STATUS_APPROVED:
        logger.warning(
            "Skipping reconciliation for invoice that is not approved",
            extra={"invoice_id": str(invoice.id), "status": invoice.status},
        )
        return reconciliation

    try:
        bill = synthesize_bill(invoice, user=user)
    except Exception as exc:
        logger.exception(
            "Bill synthesis retry failed",
            extra={"invoice_id": str(invoice.id), "attempts": reconciliation.attempts + 1},
        )
        return record_failure(invoice, exc)

    BillReconciliation.objects.filter(pk=reconciliation.pk).update(
        status=BillReconciliation.STATUS_RESOLVED,
        bill=bill,
        resolved_at=timezone.now(),
        updated_at=timezone.now(),
    )
    reconciliation.refresh_from_db()
    logger.info(
        "Bill reconciliation resolved",
        extra={"invoice_id": str(invoice.id), "bill_id": str(bill.id)},
    )
    return reconciliation


def retry_open_reconciliations(*, tenant_id=None, limit: int | None = None) -> dict:
    qs = BillReconciliation.objects.filter(
        status=BillReconciliation.STATUS_OPEN
    ).select_related("invoice", "invoice__po", "invoice__supplier_tenant")
    if tenant_id:
        qs = qs.filter(tenant_id=tenant_id)
    if limit:
        qs = qs[:limit]

    counts = {"resolved": 0, "failed": 0, "skipped": 0}
    for reconciliation in list(qs):
        result = retry_bill_synthesis(reconciliation)
        if result.status == BillReconciliation.STATUS_RESOLVED:
            counts["resolved"] += 1
        elif result.invoice.status != P2PInvoice.STATUS_APPROVED:
            counts["skipped"] += 1
        else:
            counts["failed"] += 1
    return counts
