# purchases/services/bill_service.py

"""
======================================================
PATH: purchases/services/bill_service.py
======================================================
PURCHASE BILL WRITES

Header writes are versioned (core.services.versioned_store).
Line writes lock the parent bill and recompute its total from line totals.

Rules:
- total_amount = SUM(line totals), never accepted from the client
- paid_amount / status are owned by payment_service
- lines cannot change once the bill is Paid
- a bill with payments cannot be deleted
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Sum

from accounting.models import Contact, Project
from accounting.models.status import STATUS_PAID
from accounting.services.posting import derive_payment_status, document_payload
from core.services.events import emit_to_tenant
from core.services.exceptions import (
    BusinessRuleError,
    ImmutableRecordError,
    InvalidQuantityError,
    NotFoundError,
    RequestValidationError,
)
from core.services.locking import lock_row
from core.services.money import ZERO, epsilon, money, quantity, unit_cost
from core.services.versioned_store import bump_version, soft_delete_entity, upsert_entity
from inventory.models import InventoryItem
from purchases.models import PurchaseBill, PurchaseBillItem

logger = logging.getLogger("purchases")

HEADER_FIELDS = (
    "bill_number",
    "vendor_id",
    "bill_date",
    "due_date",
    "description",
    "project_id",
)


def bill_payload(bill: PurchaseBill) -> dict:
    body = document_payload(bill, number_field="bill_number", total_field="total_amount")
    body["delivery_status"] = bill.delivery_status
    body["items_received"] = bill.items_received
    return body


def _assert_lines_mutable(bill: PurchaseBill) -> None:
    if bill.status == STATUS_PAID:
        raise ImmutableRecordError(
            "Paid purchase bills cannot be modified.",
            bill_id=str(bill.id),
        )


def _assert_deletable(bill: PurchaseBill) -> None:
    if money(bill.paid_amount) > ZERO:
        raise BusinessRuleError(
            "This bill has recorded payments and cannot be deleted.",
            code="HAS_PAYMENTS",
        )


def save_purchase_bill(
    *,
    tenant_id,
    data: dict,
    bill_id=None,
    expected_version=None,
    recreate: bool = False,
    user=None,
) -> PurchaseBill:
    values = {k: data[k] for k in HEADER_FIELDS if k in data}

    number = (values.get("bill_number") or "").strip()
    if "bill_number" in values:
        if not number:
            raise RequestValidationError("bill_number is required")
        values["bill_number"] = number

    vendor_id = values.get("vendor_id")
    if vendor_id and not Contact.objects.filter(tenant_id=tenant_id, pk=vendor_id).exists():
        raise NotFoundError("Vendor not found")
    project_id = values.get("project_id")
    if project_id and not Project.objects.filter(tenant_id=tenant_id, pk=project_id).exists():
        raise NotFoundError("Project not found")

    if number:
        duplicate = PurchaseBill.objects.filter(tenant_id=tenant_id, bill_number=number)
        if bill_id:
            duplicate = duplicate.exclude(pk=bill_id)
        if duplicate.exists():
            raise BusinessRuleError(
                f"Purchase bill number {number} already exists", code="DUPLICATE_NUMBER"
            )

    exists = bill_id and PurchaseBill.all_objects.filter(tenant_id=tenant_id, pk=bill_id).exists()
    if not exists and not number:
        raise RequestValidationError("bill_number is required")

    bill = upsert_entity(
        PurchaseBill,
        tenant_id=tenant_id,
        entity_id=bill_id,
        values=values,
        expected_version=expected_version,
        recreate=recreate,
        guard=_assert_lines_mutable,
        user=user,
    )

    if not bill.is_deleted:
        event = "purchase_bill.created" if bill.version == 1 else "purchase_bill.updated"
        emit_to_tenant(tenant_id, event, bill_payload(bill), user=user)

    return bill


def delete_purchase_bill(*, tenant_id, bill_id, expected_version=None, user=None) -> PurchaseBill:
    bill = soft_delete_entity(
        PurchaseBill,
        tenant_id=tenant_id,
        entity_id=bill_id,
        expected_version=expected_version,
        guard=_assert_deletable,
        user=user,
    )
    logger.info("Purchase bill soft-deleted", extra={"bill_id": str(bill.id)})
    emit_to_tenant(tenant_id, "purchase_bill.deleted", {"id": str(bill.id)}, user=user)
    return bill


# ============================================================
# LINES
# ============================================================


def _recompute_total(bill: PurchaseBill) -> PurchaseBill:
    """
    total_amount = SUM(line totals). The caller holds the bill lock.
    """
    total = money(
        PurchaseBillItem.objects.filter(bill=bill).aggregate(total=Sum("total_amount"))["total"]
    )
    paid = money(bill.paid_amount)
    if total < paid - epsilon():
        raise BusinessRuleError(
            "Bill total cannot drop below the amount already paid",
            code="AMOUNT_BELOW_PAID",
        )

    bump_version(
        PurchaseBill,
        bill.pk,
        total_amount=total,
        status=derive_payment_status(total=total, paid=paid),
    )
    bill.refresh_from_db()
    return bill


@transaction.atomic
def save_bill_item(*, tenant_id, bill_id, data: dict, item_id=None, user=None):
    """
    Create or update one line and recompute the bill total.

    Returns (line, bill).
    """
    bill = lock_row(
        PurchaseBill.objects.filter(tenant_id=tenant_id), label="Purchase bill", pk=bill_id
    )
    _assert_lines_mutable(bill)

    inventory_item_id = data.get("inventory_item_id")
    if not inventory_item_id or data.get("quantity") in (None, "") or data.get(
        "price_per_unit"
    ) in (None, ""):
        raise RequestValidationError("Inventory item, quantity and price are required")

    inventory_item = InventoryItem.objects.filter(
        tenant_id=tenant_id, pk=inventory_item_id
    ).first()
    if inventory_item is None:
        raise NotFoundError(
            f"Inventory item {inventory_item_id} not found",
            code="INVENTORY_ITEM_NOT_FOUND",
        )

    try:
        qty = quantity(data["quantity"])
        price = unit_cost(data["price_per_unit"])
    except ValueError as exc:
        raise RequestValidationError(str(exc)) from exc
    if qty <= 0:
        raise InvalidQuantityError("Quantity must be > 0")
    if price < 0:
        raise InvalidQuantityError("Price cannot be negative")

    line = None
    if item_id:
        line = PurchaseBillItem.objects.filter(bill=bill, pk=item_id).first()
        if line is None and PurchaseBillItem.objects.filter(pk=item_id).exists():
            raise NotFoundError("Purchase bill item not found on this bill")

    if line is None:
        line = PurchaseBillItem(tenant_id=tenant_id, bill=bill)
        if item_id:
            line.id = item_id

    if qty < line.received_quantity:
        raise InvalidQuantityError(
            f"Quantity ({qty}) cannot be below the received quantity ({line.received_quantity})"
        )

    line.inventory_item = inventory_item
    line.item_name = (data.get("item_name") or "").strip() or inventory_item.name
    line.description = data.get("description") or ""
    line.quantity = qty
    line.price_per_unit = price
    line.save()

    bill = _recompute_total(bill)

    emit_to_tenant(
        tenant_id,
        "purchase_bill_item.updated",
        {"bill_id": str(bill.id), "item_id": str(line.id), "total_amount": str(line.total_amount)},
        user=user,
    )
    emit_to_tenant(tenant_id, "purchase_bill.updated", bill_payload(bill), user=user)

    return line, bill


@transaction.atomic
def delete_bill_item(*, tenant_id, bill_id, item_id, user=None) -> PurchaseBill:
    bill = lock_row(
        PurchaseBill.objects.filter(tenant_id=tenant_id), label="Purchase bill", pk=bill_id
    )
    _assert_lines_mutable(bill)

    deleted, _ = PurchaseBillItem.objects.filter(bill=bill, pk=item_id).delete()
    if not deleted:
        raise NotFoundError("Purchase bill item not found")

    bill = _recompute_total(bill)

    emit_to_tenant(
        tenant_id,
        "purchase_bill_item.deleted",
        {"bill_id": str(bill.id), "item_id": str(item_id)},
        user=user,
    )
    emit_to_tenant(tenant_id, "purchase_bill.updated", bill_payload(bill), user=user)
    return bill
