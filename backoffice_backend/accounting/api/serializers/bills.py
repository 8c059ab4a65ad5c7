# accounting/api/serializers/bills.py

from rest_framework import serializers

from accounting.models import Bill


class BillSerializer(serializers.ModelSerializer):
    """
    Output serializer (DB truth).
    """

    contact_name = serializers.CharField(source="contact.name", read_only=True, default="")
    remaining_balance = serializers.DecimalField(
        max_digits=14, decimal_places=2, read_only=True
    )

    class Meta:
        model = Bill
        fields = [
            "id",
            "bill_number",
            "contact_id",
            "contact_name",
            "amount",
            "paid_amount",
            "remaining_balance",
            "status",
            "issue_date",
            "due_date",
            "description",
            "category_id",
            "project_id",
            "p2p_invoice_id",
            "version",
            "deleted_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BillWriteSerializer(serializers.Serializer):
    """
    Input serializer for create / update.

    paid_amount and status are derived by payment posting and are not
    accepted here.
    """

    id = serializers.UUIDField(required=False)
    bill_number = serializers.CharField(max_length=64, required=False)
    contact_id = serializers.UUIDField(required=False, allow_null=True)
    amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=0, required=False
    )
    issue_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True)
    category_id = serializers.UUIDField(required=False, allow_null=True)
    project_id = serializers.UUIDField(required=False, allow_null=True)
    version = serializers.IntegerField(required=False, min_value=1)
    recreate = serializers.BooleanField(required=False, default=False)
