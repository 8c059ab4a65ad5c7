# accounting/api/views/bills.py

"""
PATH: accounting/api/views/bills.py

BILLS API

GET    /api/accounting/bills/                 list live bills (bills.view)
POST   /api/accounting/bills/                 create / update (bills.edit)
                                               X-Entity-Version: optimistic check
DELETE /api/accounting/bills/<id>/            soft delete (bills.edit)
POST   /api/accounting/bills/<id>/pay/        pay (bills.pay)

Error contract:
- 409 VERSION_CONFLICT  {server_version}
- 409 LOCK_TIMEOUT      {retriable: true}
- 400 PAYMENT_OVERPAYMENT {remaining_balance, overpayment}
- 403 BILL_PAID_IMMUTABLE
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from accounting.api.serializers import (
    BillSerializer,
    BillWriteSerializer,
    PaymentCreateSerializer,
    TransactionSerializer,
)
from accounting.models import Bill
from accounting.services.bill_service import delete_bill, save_bill
from accounting.services.posting import pay_bill
from core.api.views import TenantAPIView
from permissions.roles import CAP_BILLS_EDIT, CAP_BILLS_PAY, CAP_BILLS_VIEW


class BillListCreateView(TenantAPIView):
    serializer_class = BillWriteSerializer
    filterset_fields = ["status", "contact", "project"]

    def get_queryset(self):
        return Bill.objects.filter(tenant_id=self.tenant_id).select_related("contact")

    @property
    def required_capability(self):
        return CAP_BILLS_VIEW if self.request.method == "GET" else CAP_BILLS_EDIT

    @extend_schema(tags=["accounting"], responses=BillSerializer(many=True))
    def get(self, request):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(BillSerializer(page, many=True).data)
        return Response(BillSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["accounting"],
        request=BillWriteSerializer,
        responses={200: BillSerializer, 201: BillSerializer},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)

        bill_id = data.pop("id", None)
        recreate = data.pop("recreate", False)
        existed = bool(bill_id) and Bill.all_objects.filter(
            tenant_id=self.tenant_id, pk=bill_id
        ).exists()

        bill = save_bill(
            tenant_id=self.tenant_id,
            data=data,
            bill_id=bill_id,
            expected_version=self.expected_version(request.data),
            recreate=recreate,
            user=request.user,
        )

        body = BillSerializer(bill).data
        if bill.is_deleted:
            body["_soft_deleted"] = True
        return Response(
            body, status=status.HTTP_200_OK if existed else status.HTTP_201_CREATED
        )


class BillDetailView(TenantAPIView):
    required_capability = CAP_BILLS_EDIT

    @extend_schema(tags=["accounting"], request=None, responses={200: BillSerializer})
    def delete(self, request, bill_id):
        bill = delete_bill(
            tenant_id=self.tenant_id,
            bill_id=bill_id,
            expected_version=self.expected_version(),
            user=request.user,
        )
        return Response(BillSerializer(bill).data, status=status.HTTP_200_OK)


class BillPayView(TenantAPIView):
    serializer_class = PaymentCreateSerializer
    required_capability = CAP_BILLS_PAY

    @extend_schema(
        tags=["accounting"],
        request=PaymentCreateSerializer,
        responses={201: BillSerializer},
    )
    def post(self, request, bill_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        result = pay_bill(
            tenant_id=self.tenant_id,
            bill_id=bill_id,
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
                "bill": BillSerializer(result["bill"]).data,
            },
            status=status.HTTP_201_CREATED,
        )
