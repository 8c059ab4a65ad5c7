# purchases/api/urls.py

from django.urls import path

from purchases.api.views import (
    PurchaseBillDetailView,
    PurchaseBillItemDetailView,
    PurchaseBillItemsView,
    PurchaseBillListCreateView,
    PurchaseBillPaymentsView,
    PurchaseBillPayView,
    PurchaseBillReceiveView,
)

urlpatterns = [
    path("bills/", PurchaseBillListCreateView.as_view(), name="purchase-bills"),
    path(
        "bills/<uuid:bill_id>/",
        PurchaseBillDetailView.as_view(),
        name="purchase-bill-detail",
    ),
    path(
        "bills/<uuid:bill_id>/items/",
        PurchaseBillItemsView.as_view(),
        name="purchase-bill-items",
    ),
    path(
        "bills/<uuid:bill_id>/items/<uuid:item_id>/",
        PurchaseBillItemDetailView.as_view(),
        name="purchase-bill-item-detail",
    ),
    path(
        "bills/<uuid:bill_id>/payments/",
        PurchaseBillPaymentsView.as_view(),
        name="purchase-bill-payments",
    ),
    path("bills/<uuid:bill_id>/pay/", PurchaseBillPayView.as_view(), name="purchase-bill-pay"),
    path(
        "bills/<uuid:bill_id>/receive/",
        PurchaseBillReceiveView.as_view(),
        name="purchase-bill-receive",
    ),
]
