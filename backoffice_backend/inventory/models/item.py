# inventory/models/item.py

from __future__ import annotations

from django.db import models

from core.models import TenantScopedModel


class InventoryItem(TenantScopedModel):
    """
    Stock-keeping item master. Quantities and cost live on InventoryStock.
    """

    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=64, blank=True, default="")
    unit = models.CharField(max_length=20, blank=True, default="unit")
    description = models.TextField(blank=True, default="")

    expense_category = models.ForeignKey(
        "accounting.Category",
        on_delete=models.SET_NULL,
        related_name="inventory_items",
        null=True,
        blank=True,
    )

    class Meta(TenantScopedModel.Meta):
        ordering = ["name"]
        indexes = [
            models.Index(fields=["tenant", "sku"]),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})" if self.sku else self.name
