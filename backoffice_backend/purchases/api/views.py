# purchases/api/views.py

"""
PATH: purchases/api/views.py

PURCHASE BILLS API

GET    /api/purchases/bills/                          list (bills.view)
POST   /api/purchases/bills/                          create / update header (bills.edit)
DELETE /api/purchases/bills/<id>/                     soft delete, no payments (bills.edit)
GET    /api/purchases/bills/<id>/items/               lines (bills.view)
POST   /api/purchases/bills/<id>/items/               create / update line (bills.edit)
DELETE /api/purchases/bills/<id>/items/<item_id>/     delete line (bills.edit)
GET    /api/purchases/bills/<id>/payments/            payments (bills.view)
POST   /api/purchases/bills/<id>/pay/                 pay (bills.pay)
POST   /api/purchases/bills/<id>/receive/             receive goods (inventory.receive)
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from accounting.api.serializers import TransactionSerializer
from core.api.views import TenantAPIView
from core.services.versioned_store import get_entity
from permissions.roles import (
    CAP_BILLS_EDIT,
    CAP_BILLS_PAY,
    CAP_BILLS_VIEW,
    CAP_INVENTORY_RECEIVE,
)
from purchases.api.serializers import (
    PurchaseBillItemSerializer,
    PurchaseBillItemWriteSerializer,
    PurchaseBillPaymentSerializer,
    PurchaseBillPaySerializer,
    PurchaseBillSerializer,
    PurchaseBillWriteSerializer,
    ReceiveItemsResultSerializer,
    ReceiveItemsSerializer,
)
from purchases.models import PurchaseBill, PurchaseBillItem, PurchaseBillPayment
from purchases.services.bill_service import (
    delete_bill_item,
    delete_purchase_bill,
    save_bill_item,
    save_purchase_bill,
)
from purchases.services.payment_service import pay_purchase_bill
from purchases.services.receiving_service import receive_items


def _read_or_edit(request):
    return CAP_BILLS_VIEW if request.method == "GET" else CAP_BILLS_EDIT


class PurchaseBillListCreateView(TenantAPIView):
    serializer_class = PurchaseBillWriteSerializer
    filterset_fields = ["status", "delivery_status", "vendor", "project"]

    @property
    def required_capability(self):
        return _read_or_edit(self.request)

    def get_queryset(self):
        return (
            PurchaseBill.objects.filter(tenant_id=self.tenant_id)
            .select_related("vendor")
            .prefetch_related("items")
        )

    @extend_schema(tags=["purchases"], responses=PurchaseBillSerializer(many=True))
    def get(self, request):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(PurchaseBillSerializer(page, many=True).data)
        return Response(PurchaseBillSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["purchases"],
        request=PurchaseBillWriteSerializer,
        responses={200: PurchaseBillSerializer, 201: PurchaseBillSerializer},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)

        bill_id = data.pop("id", None)
        recreate = data.pop("recreate", False)
        existed = bool(bill_id) and PurchaseBill.all_objects.filter(
            tenant_id=self.tenant_id, pk=bill_id
        ).exists()

        bill = save_purchase_bill(
            tenant_id=self.tenant_id,
            data=data,
            bill_id=bill_id,
            expected_version=self.expected_version(request.data),
            recreate=recreate,
            user=request.user,
        )

        body = PurchaseBillSerializer(bill).data
        if bill.is_deleted:
            body["_soft_deleted"] = True
        return Response(
            body, status=status.HTTP_200_OK if existed else status.HTTP_201_CREATED
        )


class PurchaseBillDetailView(TenantAPIView):
    required_capability = CAP_BILLS_EDIT

    @extend_schema(tags=["purchases"], request=None, responses={200: PurchaseBillSerializer})
    def delete(self, request, bill_id):
        bill = delete_purchase_bill(
            tenant_id=self.tenant_id,
            bill_id=bill_id,
            expected_version=self.expected_version(),
            user=request.user,
        )
        return Response(PurchaseBillSerializer(bill).data, status=status.HTTP_200_OK)


class PurchaseBillItemsView(TenantAPIView):
    serializer_class = PurchaseBillItemWriteSerializer

    @property
    def required_capability(self):
        return _read_or_edit(self.request)

    @extend_schema(tags=["purchases"], responses=PurchaseBillItemSerializer(many=True))
    def get(self, request, bill_id):
        bill = get_entity(PurchaseBill, tenant_id=self.tenant_id, entity_id=bill_id)
        qs = PurchaseBillItem.objects.filter(bill=bill)
        return Response(PurchaseBillItemSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["purchases"],
        request=PurchaseBillItemWriteSerializer,
        responses={200: PurchaseBillSerializer},
    )
    def post(self, request, bill_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)

        line, bill = save_bill_item(
            tenant_id=self.tenant_id,
            bill_id=bill_id,
            item_id=data.pop("id", None),
            data=data,
            user=request.user,
        )
        return Response(
            {
                "item": PurchaseBillItemSerializer(line).data,
                "bill": PurchaseBillSerializer(bill).data,
            },
            status=status.HTTP_200_OK,
        )


class PurchaseBillItemDetailView(TenantAPIView):
    required_capability = CAP_BILLS_EDIT

    @extend_schema(tags=["purchases"], request=None, responses={200: PurchaseBillSerializer})
    def delete(self, request, bill_id, item_id):
        bill = delete_bill_item(
            tenant_id=self.tenant_id, bill_id=bill_id, item_id=item_id, user=request.user
        )
        return Response(PurchaseBillSerializer(bill).data, status=status.HTTP_200_OK)


class PurchaseBillPaymentsView(TenantAPIView):
    required_capability = CAP_BILLS_VIEW

    @extend_schema(tags=["purchases"], responses=PurchaseBillPaymentSerializer(many=True))
    def get(self, request, bill_id):
        bill = get_entity(
            PurchaseBill, tenant_id=self.tenant_id, entity_id=bill_id, include_deleted=True
        )
        qs = PurchaseBillPayment.objects.filter(bill=bill)
        return Response(
            PurchaseBillPaymentSerializer(qs, many=True).data, status=status.HTTP_200_OK
        )


class PurchaseBillPayView(TenantAPIView):
    serializer_class = PurchaseBillPaySerializer
    required_capability = CAP_BILLS_PAY

    @extend_schema(
        tags=["purchases"],
        request=PurchaseBillPaySerializer,
        responses={201: PurchaseBillSerializer},
    )
    def post(self, request, bill_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        result = pay_purchase_bill(
            tenant_id=self.tenant_id,
            bill_id=bill_id,
            amount=data["amount"],
            account_id=data["account_id"],
            payment_date=data.get("payment_date"),
            description=data.get("description", ""),
            user=request.user,
        )

        return Response(
            {
                "payment": PurchaseBillPaymentSerializer(result["payment"]).data,
                "transaction": TransactionSerializer(result["transaction"]).data,
                "bill": PurchaseBillSerializer(result["bill"]).data,
            },
            status=status.HTTP_201_CREATED,
        )


class PurchaseBillReceiveView(TenantAPIView):
    serializer_class = ReceiveItemsSerializer
    required_capability = CAP_INVENTORY_RECEIVE

    @extend_schema(
        tags=["purchases"],
        request=ReceiveItemsSerializer,
        responses={200: ReceiveItemsResultSerializer},
    )
    def post(self, request, bill_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = receive_items(
            tenant_id=self.tenant_id,
            bill_id=bill_id,
            items=[dict(line) for line in s.validated_data["items"]],
            user=request.user,
        )

        return Response(
            ReceiveItemsResultSerializer(result).data, status=status.HTTP_200_OK
        )
