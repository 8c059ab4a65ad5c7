# procurement/apps.py

"""
PROCUREMENT APP CONFIG

Procure-to-pay between two tenants: the buyer's purchase order is flipped
into an invoice by the supplier, and the buyer's approval materialises a
payable Bill in the buyer's ledger.
"""

from django.apps import AppConfig


class ProcurementConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "procurement"
    verbose_name = "Procure to pay"
