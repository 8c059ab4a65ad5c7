# accounting/api/serializers/accounts.py

from rest_framework import serializers

from accounting.models import Account, Invoice, Payslip


class AccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = Account
        fields = [
            "id",
            "name",
            "account_type",
            "balance",
            "description",
            "version",
            "updated_at",
        ]
        read_only_fields = fields


class AccountWriteSerializer(serializers.Serializer):
    id = serializers.UUIDField(required=False)
    name = serializers.CharField(max_length=150, required=False)
    account_type = serializers.ChoiceField(choices=Account.ACCOUNT_TYPES, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    balance = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, help_text="Opening balance (create only)"
    )
    version = serializers.IntegerField(required=False, min_value=1)
    recreate = serializers.BooleanField(required=False, default=False)


class InvoiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "contact_id",
            "amount",
            "paid_amount",
            "status",
            "issue_date",
            "due_date",
            "version",
        ]
        read_only_fields = fields


class PayslipSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payslip
        fields = [
            "id",
            "employee_id",
            "month",
            "net_salary",
            "paid_amount",
            "status",
            "cost_allocations",
            "payment_account_id",
            "payment_date",
            "version",
        ]
        read_only_fields = fields
