# accounting/api/serializers/__init__.py

from accounting.api.serializers.accounts import (
    AccountSerializer,
    AccountWriteSerializer,
    InvoiceSerializer,
    PayslipSerializer,
)
from accounting.api.serializers.bills import BillSerializer, BillWriteSerializer
from accounting.api.serializers.payments import (
    PaymentCreateSerializer,
    PayslipPaymentSerializer,
    TransactionSerializer,
)

__all__ = [
    "AccountSerializer",
    "AccountWriteSerializer",
    "BillSerializer",
    "BillWriteSerializer",
    "InvoiceSerializer",
    "PaymentCreateSerializer",
    "PayslipPaymentSerializer",
    "PayslipSerializer",
    "TransactionSerializer",
]
