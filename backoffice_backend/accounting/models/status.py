# accounting/models/status.py

"""
Payment status shared by every payable / receivable document
(Bill, Invoice, Payslip, PurchaseBill).

Derived, never set by hand: see accounting.services.posting.derive_payment_status
"""

STATUS_UNPAID = "Unpaid"
STATUS_PARTIALLY_PAID = "Partially Paid"
STATUS_PAID = "Paid"

PAYMENT_STATUSES = [
    (STATUS_UNPAID, "Unpaid"),
    (STATUS_PARTIALLY_PAID, "Partially Paid"),
    (STATUS_PAID, "Paid"),
]
