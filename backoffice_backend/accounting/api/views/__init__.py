# accounting/api/views/__init__.py

from accounting.api.views.accounts import AccountListCreateView
from accounting.api.views.bills import BillDetailView, BillListCreateView, BillPayView
from accounting.api.views.receivables import InvoiceReceivePaymentView, PayslipPayView

__all__ = [
    "AccountListCreateView",
    "BillDetailView",
    "BillListCreateView",
    "BillPayView",
    "InvoiceReceivePaymentView",
    "PayslipPayView",
]
