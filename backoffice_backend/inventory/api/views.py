# inventory/api/views.py

"""
PATH: inventory/api/views.py

GET /api/inventory/stock/              stock rows for the caller's tenant
GET /api/inventory/stock/<item_id>/    one item (0 / 0 when never received)

Stock is read-only over HTTP: it only moves through purchase bill receiving.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from core.services.exceptions import NotFoundError
from core.api.views import TenantAPIView
from inventory.api.serializers import InventoryStockSerializer, StockSnapshotSerializer
from inventory.models import InventoryItem, InventoryStock
from inventory.services.valuation import stock_snapshot
from permissions.roles import CAP_INVENTORY_VIEW


class InventoryStockListView(TenantAPIView):
    required_capability = CAP_INVENTORY_VIEW
    filterset_fields = ["inventory_item"]

    def get_queryset(self):
        return InventoryStock.objects.filter(tenant_id=self.tenant_id).select_related(
            "inventory_item"
        )

    @extend_schema(tags=["inventory"], responses=InventoryStockSerializer(many=True))
    def get(self, request):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(InventoryStockSerializer(page, many=True).data)
        return Response(InventoryStockSerializer(qs, many=True).data, status=status.HTTP_200_OK)


class InventoryStockDetailView(TenantAPIView):
    required_capability = CAP_INVENTORY_VIEW

    @extend_schema(tags=["inventory"], responses=StockSnapshotSerializer)
    def get(self, request, item_id):
        if not InventoryItem.objects.filter(tenant_id=self.tenant_id, pk=item_id).exists():
            raise NotFoundError("Inventory item not found", code="INVENTORY_ITEM_NOT_FOUND")
        return Response(
            stock_snapshot(tenant_id=self.tenant_id, inventory_item_id=item_id),
            status=status.HTTP_200_OK,
        )
