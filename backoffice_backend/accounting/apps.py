# accounting/apps.py

"""
ACCOUNTING APP CONFIG

Payables, receivables, payroll payments and the accounts money moves
through. Money movement lives in accounting.services.posting.
"""

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Accounting"
