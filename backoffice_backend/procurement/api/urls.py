# procurement/api/urls.py

from django.urls import path

from procurement.api.views import (
    P2PInvoiceApproveView,
    P2PInvoiceListView,
    P2PInvoiceRejectView,
    PurchaseOrderFlipView,
)

urlpatterns = [
    path(
        "purchase-orders/<uuid:po_id>/flip/",
        PurchaseOrderFlipView.as_view(),
        name="purchase-order-flip",
    ),
    path("invoices/", P2PInvoiceListView.as_view(), name="p2p-invoices"),
    path(
        "invoices/<uuid:invoice_id>/approve/",
        P2PInvoiceApproveView.as_view(),
        name="p2p-invoice-approve",
    ),
    path(
        "invoices/<uuid:invoice_id>/reject/",
        P2PInvoiceRejectView.as_view(),
        name="p2p-invoice-reject",
    ),
]
