# procurement/api/views.py

"""
PATH: procurement/api/views.py

PROCURE-TO-PAY API

POST /api/procurement/purchase-orders/<id>/flip/   supplier invoices a PO (p2p.flip)
GET  /api/procurement/invoices/?role=buyer|supplier  invoices the tenant is party to
POST /api/procurement/invoices/<id>/approve/       buyer approves (p2p.review)
POST /api/procurement/invoices/<id>/reject/        buyer rejects, reason required

Approve always answers 200 once the approval is committed; `bill_created`
tells the client whether the payable bill exists yet.
"""

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response

from accounting.api.serializers import BillSerializer
from core.api.views import TenantAPIView
from permissions.roles import CAP_BILLS_VIEW, CAP_P2P_FLIP, CAP_P2P_REVIEW
from procurement.api.serializers import (
    BillReconciliationSerializer,
    InvoiceApproveSerializer,
    InvoiceRejectSerializer,
    P2PInvoiceSerializer,
    PurchaseOrderSerializer,
)
from procurement.models import P2PInvoice
from procurement.services.invoice_service import (
    approve_invoice,
    flip_purchase_order,
    reject_invoice,
)


class PurchaseOrderFlipView(TenantAPIView):
    required_capability = CAP_P2P_FLIP

    @extend_schema(tags=["procurement"], request=None, responses={201: P2PInvoiceSerializer})
    def post(self, request, po_id):
        invoice = flip_purchase_order(tenant_id=self.tenant_id, po_id=po_id, user=request.user)
        return Response(
            {
                "invoice": P2PInvoiceSerializer(invoice).data,
                "purchase_order": PurchaseOrderSerializer(invoice.po).data,
            },
            status=status.HTTP_201_CREATED,
        )


class P2PInvoiceListView(TenantAPIView):
    required_capability = CAP_BILLS_VIEW
    filterset_fields = ["status"]

    def get_queryset(self):
        tenant_id = self.tenant_id
        role = self.request.query_params.get("role")
        if role == "buyer":
            scope = Q(buyer_tenant_id=tenant_id)
        elif role == "supplier":
            scope = Q(supplier_tenant_id=tenant_id)
        else:
            scope = Q(buyer_tenant_id=tenant_id) | Q(supplier_tenant_id=tenant_id)
        return P2PInvoice.objects.filter(scope).select_related("po")

    @extend_schema(
        tags=["procurement"],
        parameters=[OpenApiParameter("role", str, enum=["buyer", "supplier"], required=False)],
        responses=P2PInvoiceSerializer(many=True),
    )
    def get(self, request):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(P2PInvoiceSerializer(page, many=True).data)
        return Response(P2PInvoiceSerializer(qs, many=True).data, status=status.HTTP_200_OK)


class P2PInvoiceApproveView(TenantAPIView):
    serializer_class = InvoiceApproveSerializer
    required_capability = CAP_P2P_REVIEW

    @extend_schema(tags=["procurement"], request=InvoiceApproveSerializer)
    def post(self, request, invoice_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        outcome = approve_invoice(
            tenant_id=self.tenant_id,
            invoice_id=invoice_id,
            reason=s.validated_data.get("reason") or None,
            user=request.user,
        )

        body = {
            "invoice": P2PInvoiceSerializer(outcome.invoice).data,
            "approved": outcome.approved,
            "bill_created": outcome.bill_created,
            "bill": BillSerializer(outcome.bill).data if outcome.bill else None,
        }
        if outcome.reconciliation is not None:
            body["reconciliation"] = BillReconciliationSerializer(outcome.reconciliation).data
        return Response(body, status=status.HTTP_200_OK)


class P2PInvoiceRejectView(TenantAPIView):
    serializer_class = InvoiceRejectSerializer
    required_capability = CAP_P2P_REVIEW

    @extend_schema(
        tags=["procurement"],
        request=InvoiceRejectSerializer,
        responses={200: P2PInvoiceSerializer},
    )
    def post(self, request, invoice_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        invoice = reject_invoice(
            tenant_id=self.tenant_id,
            invoice_id=invoice_id,
            reason=s.validated_data.get("reason"),
            user=request.user,
        )
        return Response(P2PInvoiceSerializer(invoice).data, status=status.HTTP_200_OK)
