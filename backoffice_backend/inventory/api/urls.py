# inventory/api/urls.py

from django.urls import path

from inventory.api.views import InventoryStockDetailView, InventoryStockListView

urlpatterns = [
    path("stock/", InventoryStockListView.as_view(), name="inventory-stock"),
    path(
        "stock/<uuid:item_id>/",
        InventoryStockDetailView.as_view(),
        name="inventory-stock-detail",
    ),
]
