# inventory/services/valuation.py

"""
======================================================
PATH: inventory/services/valuation.py
======================================================
INVENTORY VALUATION (weighted-average cost)

apply_receipt(delta > 0):
    new_qty = qty + delta
    new_avg = price                                  if qty <= 0
            = (qty * avg + delta * price) / new_qty  otherwise

apply_return(delta < 0):
    new_qty = max(qty - |delta|, 0)      (floors at zero, never negative)
    average cost unchanged

Rules:
- The stock row is created lazily (get-or-create under a savepoint so two
  first receipts of the same item cannot both insert).
- Every mutation is ONE arithmetic UPDATE evaluated against the row's
  current values, so concurrent receipts of the same item on different
  bills never lose an update.
- The division runs in floating point: sqlite stores integral NUMERIC values
  as integers and would truncate the quotient otherwise. The result is cast
  back to the 6dp cost column.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import Case, DecimalField, F, FloatField, Value, When
from django.db.models.functions import Cast, Greatest
from django.utils import timezone

from core.services.exceptions import InvalidQuantityError, NotFoundError
from core.services.money import quantity, unit_cost
from inventory.models import InventoryItem, InventoryStock

logger = logging.getLogger("inventory")

COST_FIELD = DecimalField(max_digits=18, decimal_places=6)
QTY_FIELD = DecimalField(max_digits=18, decimal_places=4)
ZERO_QTY = Decimal("0.0000")


def _require_item(*, tenant_id, inventory_item_id) -> None:
    if not InventoryItem.objects.filter(tenant_id=tenant_id, pk=inventory_item_id).exists():
        raise NotFoundError(
            f"Inventory item {inventory_item_id} not found",
            code="INVENTORY_ITEM_NOT_FOUND",
        )


def _ensure_stock_row(*, tenant_id, inventory_item_id) -> InventoryStock:
    stock = InventoryStock.objects.filter(
        tenant_id=tenant_id, inventory_item_id=inventory_item_id
    ).first()
    if stock is not None:
        return stock

    try:
        with transaction.atomic():
            return InventoryStock.objects.create(
                tenant_id=tenant_id, inventory_item_id=inventory_item_id
            )
    except IntegrityError:
        # Lost the race to create the row: use the winner's.
        return InventoryStock.objects.get(
            tenant_id=tenant_id, inventory_item_id=inventory_item_id
        )


def _weighted_average(delta: Decimal, price: Decimal):
    qty = Cast(F("current_quantity"), FloatField())
    avg = Cast(F("average_cost"), FloatField())
    numerator = qty * avg + Value(float(delta * price))
    denominator = qty + Value(float(delta))
    return Cast(numerator / denominator, output_field=COST_FIELD)


@transaction.atomic
def apply_receipt(
    *,
    tenant_id,
    inventory_item_id,
    delta,
    price,
    purchase_date=None,
    purchase_bill_id=None,
) -> InventoryStock:
    delta = quantity(delta)
    price = unit_cost(price)
    if delta <= ZERO_QTY:
        raise InvalidQuantityError("Receipt quantity must be > 0")
    if price < 0:
        raise InvalidQuantityError("Unit price cannot be negative")

    _require_item(tenant_id=tenant_id, inventory_item_id=inventory_item_id)
    stock = _ensure_stock_row(tenant_id=tenant_id, inventory_item_id=inventory_item_id)

    InventoryStock.objects.filter(pk=stock.pk).update(
        average_cost=Case(
            When(current_quantity__lte=0, then=Value(price)),
            default=_weighted_average(delta, price),
            output_field=COST_FIELD,
        ),
        current_quantity=F("current_quantity") + Value(delta),
        last_purchase_date=purchase_date or timezone.localdate(),
        last_purchase_price=price,
        last_purchase_bill_id=purchase_bill_id,
        updated_at=timezone.now(),
    )

    stock.refresh_from_db()
    logger.info(
        "Stock received",
        extra={
            "inventory_item_id": str(inventory_item_id),
            "delta": str(delta),
            "price": str(price),
            "current_quantity": str(stock.current_quantity),
            "average_cost": str(stock.average_cost),
        },
    )
    return stock


@transaction.atomic
def apply_return(*, tenant_id, inventory_item_id, delta) -> InventoryStock:
    """
    Reduce stock by |delta| (a received quantity was corrected downwards).
    Floors at zero; average cost is left as is.
    """
    removed = abs(quantity(delta))
    if removed == ZERO_QTY:
        raise InvalidQuantityError("Return quantity must be non-zero")

    _require_item(tenant_id=tenant_id, inventory_item_id=inventory_item_id)
    stock = _ensure_stock_row(tenant_id=tenant_id, inventory_item_id=inventory_item_id)

    InventoryStock.objects.filter(pk=stock.pk).update(
        current_quantity=Greatest(
            F("current_quantity") - Value(removed),
            Value(ZERO_QTY),
            output_field=QTY_FIELD,
        ),
        updated_at=timezone.now(),
    )

    stock.refresh_from_db()
    logger.info(
        "Stock returned",
        extra={
            "inventory_item_id": str(inventory_item_id),
            "removed": str(removed),
            "current_quantity": str(stock.current_quantity),
        },
    )
    return stock


def stock_snapshot(*, tenant_id, inventory_item_id) -> dict:
    """
    Read model for one item; items never received report 0 / 0.
    """
    stock = InventoryStock.objects.filter(
        tenant_id=tenant_id, inventory_item_id=inventory_item_id
    ).first()
    if stock is None:
        return {
            "inventory_item_id": str(inventory_item_id),
            "current_quantity": "0.0000",
            "average_cost": "0.000000",
            "last_purchase_date": None,
            "last_purchase_price": None,
        }
    return {
        "inventory_item_id": str(stock.inventory_item_id),
        "current_quantity": str(stock.current_quantity),
        "average_cost": str(stock.average_cost),
        "last_purchase_date": str(stock.last_purchase_date) if stock.last_purchase_date else None,
        "last_purchase_price": (
            str(stock.last_purchase_price) if stock.last_purchase_price is not None else None
        ),
    }
