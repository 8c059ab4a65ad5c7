# inventory/api/serializers.py

from rest_framework import serializers

from inventory.models import InventoryStock


class InventoryStockSerializer(serializers.ModelSerializer):
    """
    Output serializer (DB truth).
    """

    item_name = serializers.CharField(source="inventory_item.name", read_only=True)
    sku = serializers.CharField(source="inventory_item.sku", read_only=True)
    stock_value = serializers.DecimalField(
        max_digits=24, decimal_places=6, read_only=True
    )

    class Meta:
        model = InventoryStock
        fields = [
            "id",
            "inventory_item_id",
            "item_name",
            "sku",
            "current_quantity",
            "average_cost",
            "stock_value",
            "last_purchase_date",
            "last_purchase_price",
            "last_purchase_bill_id",
            "updated_at",
        ]
        read_only_fields = fields


class StockSnapshotSerializer(serializers.Serializer):
    inventory_item_id = serializers.UUIDField()
    current_quantity = serializers.CharField()
    average_cost = serializers.CharField()
    last_purchase_date = serializers.CharField(allow_null=True)
    last_purchase_price = serializers.CharField(allow_null=True)
