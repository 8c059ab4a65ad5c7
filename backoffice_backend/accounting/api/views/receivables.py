# accounting/api/views/receivables.py

"""
PATH: accounting/api/views/receivables.py

POST /api/accounting/invoices/<id>/receive-payment/   (receivables.collect)
POST /api/accounting/payslips/<id>/pay/               (payroll.pay)
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from accounting.api.serializers import (
    InvoiceSerializer,
    PaymentCreateSerializer,
    PayslipPaymentSerializer,
    PayslipSerializer,
    TransactionSerializer,
)
from accounting.services.posting import pay_payslip, receive_invoice_payment
from core.api.views import TenantAPIView
from permissions.roles import CAP_PAYROLL_PAY, CAP_RECEIVABLES_COLLECT


class InvoiceReceivePaymentView(TenantAPIView):
    serializer_class = PaymentCreateSerializer
    required_capability = CAP_RECEIVABLES_COLLECT

    @extend_schema(
        tags=["accounting"],
        request=PaymentCreateSerializer,
        responses={201: InvoiceSerializer},
    )
    def post(self, request, invoice_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        result = receive_invoice_payment(
            tenant_id=self.tenant_id,
            invoice_id=invoice_id,
            amount=data["amount"],
            account_id=data["account_id"],
            payment_date=data.get("payment_date"),
            description=data.get("description", ""),
            category_id=data.get("category_id"),
            reference=data.get("reference", ""),
            user=request.user,
        )

        return Response(
            {
                "transaction": TransactionSerializer(result["transaction"]).data,
                "invoice": InvoiceSerializer(result["invoice"]).data,
            },
            status=status.HTTP_201_CREATED,
        )


class PayslipPayView(TenantAPIView):
    serializer_class = PayslipPaymentSerializer
    required_capability = CAP_PAYROLL_PAY

    @extend_schema(
        tags=["accounting"],
        request=PayslipPaymentSerializer,
        responses={201: PayslipSerializer},
    )
    def post(self, request, payslip_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        result = pay_payslip(
            tenant_id=self.tenant_id,
            payslip_id=payslip_id,
            amount=data.get("amount"),
            account_id=data.get("account_id"),
            payment_date=data.get("payment_date"),
            category_id=data.get("category_id"),
            user=request.user,
        )

        return Response(
            {
                "transactions": TransactionSerializer(result["transactions"], many=True).data,
                "payslip": PayslipSerializer(result["payslip"]).data,
            },
            status=status.HTTP_201_CREATED,
        )
