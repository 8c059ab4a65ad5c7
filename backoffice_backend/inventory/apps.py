# inventory/apps.py

"""
INVENTORY APP CONFIG

Stock on hand and weighted-average unit cost per (tenant, inventory item).
Stock only moves through goods receipt on purchase bills.
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
    verbose_name = "Inventory"
