# inventory/admin.py

from django.contrib import admin

from inventory.models import InventoryItem, InventoryStock


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "tenant", "unit", "expense_category", "version")
    search_fields = ("name", "sku")
    readonly_fields = ("version", "created_at", "updated_at")


@admin.register(InventoryStock)
class InventoryStockAdmin(admin.ModelAdmin):
    """
    Quantities and cost are service-owned (weighted-average UPDATEs).
    """

    list_display = (
        "inventory_item",
        "tenant",
        "current_quantity",
        "average_cost",
        "last_purchase_date",
        "last_purchase_price",
    )
    search_fields = ("inventory_item__name", "inventory_item__sku")
    readonly_fields = (
        "current_quantity",
        "average_cost",
        "last_purchase_date",
        "last_purchase_price",
        "last_purchase_bill",
        "created_at",
        "updated_at",
    )
