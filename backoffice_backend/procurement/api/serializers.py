# procurement/api/serializers.py

from rest_framework import serializers

from procurement.models import BillReconciliation, P2PInvoice, PurchaseOrder


class PurchaseOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "po_number",
            "buyer_tenant_id",
            "supplier_tenant_id",
            "total_amount",
            "status",
            "items",
            "project_id",
            "description",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class P2PInvoiceSerializer(serializers.ModelSerializer):
    po_number = serializers.CharField(source="po.po_number", read_only=True)
    bill_id = serializers.SerializerMethodField()

    class Meta:
        model = P2PInvoice
        fields = [
            "id",
            "invoice_number",
            "po_id",
            "po_number",
            "buyer_tenant_id",
            "supplier_tenant_id",
            "amount",
            "items",
            "status",
            "issue_date",
            "reviewed_by_id",
            "reviewed_at",
            "rejected_reason",
            "bill_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_bill_id(self, obj):
        bill = getattr(obj, "bill", None)
        return str(bill.id) if bill is not None else None


class BillReconciliationSerializer(serializers.ModelSerializer):
    class Meta:
        model = BillReconciliation
        fields = ["id", "invoice_id", "status", "attempts", "last_error", "bill_id", "created_at"]
        read_only_fields = fields


class InvoiceApproveSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class InvoiceRejectSerializer(serializers.Serializer):
    # Blank reasons are refused by the service with VALIDATION_ERROR.
    reason = serializers.CharField(required=False, allow_blank=True, default="")
