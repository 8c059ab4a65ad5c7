# purchases/api/serializers.py

from rest_framework import serializers

from purchases.models import PurchaseBill, PurchaseBillItem, PurchaseBillPayment


# ============================================================
# OUTPUT (DB truth)
# ============================================================


class PurchaseBillItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = PurchaseBillItem
        fields = [
            "id",
            "bill_id",
            "inventory_item_id",
            "item_name",
            "description",
            "quantity",
            "received_quantity",
            "price_per_unit",
            "total_amount",
            "updated_at",
        ]
        read_only_fields = fields


class PurchaseBillSerializer(serializers.ModelSerializer):
    vendor_name = serializers.CharField(source="vendor.name", read_only=True, default="")
    items = PurchaseBillItemSerializer(many=True, read_only=True)

    class Meta:
        model = PurchaseBill
        fields = [
            "id",
            "bill_number",
            "vendor_id",
            "vendor_name",
            "bill_date",
            "due_date",
            "description",
            "total_amount",
            "paid_amount",
            "status",
            "delivery_status",
            "items_received",
            "items_received_date",
            "project_id",
            "items",
            "version",
            "deleted_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PurchaseBillPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = PurchaseBillPayment
        fields = [
            "id",
            "bill_id",
            "amount",
            "payment_date",
            "payment_account_id",
            "description",
            "transaction_id",
            "created_at",
        ]
        read_only_fields = fields


# ============================================================
# INPUT
# ============================================================


class PurchaseBillWriteSerializer(serializers.Serializer):
    """
    Header fields only: totals come from lines, payment fields from payments.
    """

    id = serializers.UUIDField(required=False)
    bill_number = serializers.CharField(max_length=64, required=False)
    vendor_id = serializers.UUIDField(required=False, allow_null=True)
    bill_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True)
    project_id = serializers.UUIDField(required=False, allow_null=True)
    version = serializers.IntegerField(required=False, min_value=1)
    recreate = serializers.BooleanField(required=False, default=False)


class PurchaseBillItemWriteSerializer(serializers.Serializer):
    id = serializers.UUIDField(required=False)
    inventory_item_id = serializers.UUIDField()
    item_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.DecimalField(max_digits=18, decimal_places=4)
    price_per_unit = serializers.DecimalField(max_digits=18, decimal_places=6)


class PurchaseBillPaySerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    account_id = serializers.UUIDField()
    payment_date = serializers.DateField(required=False)
    description = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Payment amount must be greater than 0")
        return value


class ReceiveLineSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    received_quantity = serializers.DecimalField(max_digits=18, decimal_places=4)


class ReceiveItemsSerializer(serializers.Serializer):
    items = ReceiveLineSerializer(many=True, allow_empty=False)


class ReceiveItemsResultSerializer(serializers.Serializer):
    items = PurchaseBillItemSerializer(many=True)
    all_received = serializers.BooleanField()
    delivery_status = serializers.CharField()
