# accounting/api/urls.py

from django.urls import path

from accounting.api.views import (
    AccountListCreateView,
    BillDetailView,
    BillListCreateView,
    BillPayView,
    InvoiceReceivePaymentView,
    PayslipPayView,
)

urlpatterns = [
    path("accounts/", AccountListCreateView.as_view(), name="accounts"),
    path("bills/", BillListCreateView.as_view(), name="bills"),
    path("bills/<uuid:bill_id>/", BillDetailView.as_view(), name="bill-detail"),
    path("bills/<uuid:bill_id>/pay/", BillPayView.as_view(), name="bill-pay"),
    path(
        "invoices/<uuid:invoice_id>/receive-payment/",
        InvoiceReceivePaymentView.as_view(),
        name="invoice-receive-payment",
    ),
    path("payslips/<uuid:payslip_id>/pay/", PayslipPayView.as_view(), name="payslip-pay"),
]
