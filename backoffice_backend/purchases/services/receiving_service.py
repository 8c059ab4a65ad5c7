# purchases/services/receiving_service.py

"""
======================================================
PATH: purchases/services/receiving_service.py
======================================================
PURCHASE RECEIVING SERVICE

Record goods received against a PAID purchase bill and move stock.

Canonical flow (one atomic unit):
1) Lock the bill (NOWAIT) and require status Paid
2) For each submitted line:
   - the line must belong to the bill
   - 0 <= received_quantity <= ordered quantity (no clamping)
   - delta = new received - previously received
   - delta > 0: apply_receipt (weighted-average cost at the line price)
   - delta < 0: apply_return (floors at zero, cost unchanged)
   - persist the line's received_quantity
3) Resolve the delivery status over ALL lines of the bill and write it with
   items_received / items_received_date
4) Audit row; purchase_bill.updated emitted after commit

Any failure aborts the whole call: no line and no stock row changes.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from accounting.models.status import STATUS_PAID
from core.models import AuditLog
from core.services import audit
from core.services.events import emit_to_tenant
from core.services.exceptions import (
    BusinessRuleError,
    InvalidQuantityError,
    NotFoundError,
    RequestValidationError,
)
from core.services.locking import lock_row
from core.services.money import quantity
from inventory.services.delivery_status import summarize
from inventory.services.valuation import apply_receipt, apply_return
from purchases.models import PurchaseBill, PurchaseBillItem
from purchases.services.bill_service import bill_payload

logger = logging.getLogger("purchases")


def _parse_received(raw):
    try:
        return quantity(raw)
    except ValueError as exc:
        raise InvalidQuantityError(f"Received quantity must be a number (got {raw!r})") from exc


@transaction.atomic
def receive_items(*, tenant_id, bill_id, items, user=None):
    """
    RECEIVE ITEMS (atomic, row-locked)

    items: [{"item_id": <line id>, "received_quantity": <absolute quantity>}, ...]

    Returns {"items": [PurchaseBillItem], "all_received": bool, "delivery_status": str}
    """
    if not items or not isinstance(items, (list, tuple)):
        raise RequestValidationError("Items array is required and must contain at least one item")

    bill = lock_row(
        PurchaseBill.objects.filter(tenant_id=tenant_id), label="Purchase bill", pk=bill_id
    )

    if bill.status != STATUS_PAID:
        raise BusinessRuleError(
            "Items can only be received after the bill is paid",
            code="BILL_NOT_PAID",
        )

    previous_delivery = bill.delivery_status
    received_on = bill.bill_date or timezone.localdate()

    updated = []
    movements = []
    for entry in items:
        item_id = (entry or {}).get("item_id")
        line = PurchaseBillItem.objects.filter(bill=bill, pk=item_id).first() if item_id else None
        if line is None:
            raise NotFoundError(
                f"Item with ID {item_id} not found in this bill",
                code="ITEM_NOT_FOUND",
            )

        new_received = _parse_received(entry.get("received_quantity"))
        if new_received < 0:
            raise InvalidQuantityError("Received quantity cannot be negative")
        if new_received > line.quantity:
            raise InvalidQuantityError(
                f"Received quantity ({new_received}) cannot exceed ordered quantity ({line.quantity})"
            )

        delta = new_received - line.received_quantity

        if delta > 0:
            apply_receipt(
                tenant_id=tenant_id,
                inventory_item_id=line.inventory_item_id,
                delta=delta,
                price=line.price_per_unit,
                purchase_date=received_on,
                purchase_bill_id=bill.id,
            )
        elif delta < 0:
            apply_return(
                tenant_id=tenant_id,
                inventory_item_id=line.inventory_item_id,
                delta=delta,
            )

        if delta != 0:
            line.received_quantity = new_received
            line.save()
            movements.append({"item_id": str(line.id), "delta": str(delta)})

        updated.append(line)

    summary = summarize(PurchaseBillItem.objects.filter(bill=bill))

    bill_updates = {
        "delivery_status": summary.status,
        "items_received": summary.all_received,
        "updated_at": timezone.now(),
    }
    if summary.all_received:
        bill_updates["items_received_date"] = timezone.now()
    PurchaseBill.all_objects.filter(pk=bill.pk).update(**bill_updates)
    bill.refresh_from_db()

    audit.record(
        AuditLog.ENTITY_PURCHASE_BILL,
        bill.id,
        AuditLog.ACTION_RECEIPT,
        tenant_id=tenant_id,
        from_status=previous_delivery,
        to_status=summary.status,
        user=user,
        payload={"movements": movements},
    )

    emit_to_tenant(tenant_id, "purchase_bill.updated", bill_payload(bill), user=user)

    logger.info(
        "Purchase bill items received",
        extra={
            "bill_id": str(bill.id),
            "lines": len(updated),
            "delivery_status": summary.status,
        },
    )

    return {
        "items": updated,
        "all_received": summary.all_received,
        "delivery_status": summary.status,
    }
