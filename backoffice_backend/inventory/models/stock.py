# inventory/models/stock.py

"""
INVENTORY STOCK (per tenant + item)

Guarantees:
- exactly one row per (tenant, inventory_item); created lazily on first receipt
- current_quantity >= 0
- average_cost >= 0, the quantity-weighted mean of all receipts to date
- rows are only mutated by single arithmetic UPDATE statements
  (inventory.services.valuation), never read-modify-save
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q


class InventoryStock(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.PROTECT,
        related_name="+",
    )
    inventory_item = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.PROTECT,
        related_name="stock_rows",
    )

    current_quantity = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.0000")
    )
    average_cost = models.DecimalField(
        max_digits=18, decimal_places=6, default=Decimal("0.000000")
    )

    last_purchase_date = models.DateField(null=True, blank=True)
    last_purchase_price = models.DecimalField(
        max_digits=18, decimal_places=6, null=True, blank=True
    )
    last_purchase_bill = models.ForeignKey(
        "purchases.PurchaseBill",
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["inventory_item__name"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "inventory_item"],
                name="uniq_inventory_stock_per_item",
            ),
            models.CheckConstraint(
                condition=Q(current_quantity__gte=Decimal("0")),
                name="chk_inventory_stock_qty_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(average_cost__gte=Decimal("0")),
                name="chk_inventory_stock_cost_nonnegative",
            ),
        ]

    @property
    def stock_value(self) -> Decimal:
        return (self.current_quantity or Decimal("0")) * (self.average_cost or Decimal("0"))

    def __str__(self):
        return f"{self.inventory_item_id}: {self.current_quantity} @ {self.average_cost}"
