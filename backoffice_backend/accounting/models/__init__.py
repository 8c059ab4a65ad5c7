# accounting/models/__init__.py

"""
ACCOUNTING MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from accounting.models.account import Account
from accounting.models.bill import Bill
from accounting.models.directory import Category, Contact, Project
from accounting.models.invoice import Invoice
from accounting.models.payslip import Payslip
from accounting.models.transaction import Transaction

__all__ = [
    "Account",
    "Bill",
    "Category",
    "Contact",
    "Invoice",
    "Payslip",
    "Project",
    "Transaction",
]
