# accounting/api/serializers/payments.py

from rest_framework import serializers

from accounting.models import Transaction


class PaymentCreateSerializer(serializers.Serializer):
    """
    Input serializer (Swagger-visible) for bill / invoice payments.
    """

    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    account_id = serializers.UUIDField()
    payment_date = serializers.DateField(required=False)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    category_id = serializers.UUIDField(required=False, allow_null=True)
    reference = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=100
    )

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be > 0")
        return value


class PayslipPaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    account_id = serializers.UUIDField(required=False)
    payment_date = serializers.DateField(required=False)
    category_id = serializers.UUIDField(required=False, allow_null=True)


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = [
            "id",
            "transaction_type",
            "amount",
            "date",
            "description",
            "reference",
            "account_id",
            "category_id",
            "contact_id",
            "project_id",
            "bill_id",
            "invoice_id",
            "payslip_id",
            "purchase_bill_id",
            "created_at",
        ]
        read_only_fields = fields
