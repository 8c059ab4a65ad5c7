# procurement/models.py

"""
PROCURE-TO-PAY RECORDS

Purchase orders and P2P invoices are shared between two tenants (buyer and
supplier), so they carry both tenant references instead of a single owner.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.db.models import Q
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class PurchaseOrder(models.Model):
    STATUS_DRAFT = "DRAFT"
    STATUS_SENT = "SENT"
    STATUS_RECEIVED = "RECEIVED"
    STATUS_INVOICED = "INVOICED"
    STATUS_DELIVERED = "DELIVERED"
    STATUS_COMPLETED = "COMPLETED"

    STATUSES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_SENT, "Sent"),
        (STATUS_RECEIVED, "Received"),
        (STATUS_INVOICED, "Invoiced"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_COMPLETED, "Completed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    po_number = models.CharField(max_length=64)
    buyer_tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.PROTECT,
        related_name="purchase_orders_placed",
    )
    supplier_tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.PROTECT,
        related_name="purchase_orders_received",
    )

    total_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_DRAFT)
    items = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)

    # Buyer-side project the resulting bill is booked against.
    project = models.ForeignKey(
        "accounting.Project",
        on_delete=models.SET_NULL,
        related_name="purchase_orders",
        null=True,
        blank=True,
    )
    description = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["buyer_tenant", "po_number"],
                name="uniq_po_number_per_buyer",
            ),
            models.CheckConstraint(
                condition=Q(total_amount__gte=Decimal("0.00")),
                name="purchase_order_total_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["supplier_tenant", "status"]),
            models.Index(fields=["buyer_tenant", "status"]),
        ]

    def __str__(self):
        return f"{self.po_number} ({self.status})"


class P2PInvoice(models.Model):
    """
    Supplier invoice created by flipping a purchase order.

    Exactly one invoice per purchase order (one-to-one); approval by the buyer
    materialises one accounting.Bill (Bill.p2p_invoice, also one-to-one).
    """

    STATUS_PENDING = "PENDING"
    STATUS_APPROVED = "APPROVED"
    STATUS_REJECTED = "REJECTED"

    STATUSES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_number = models.CharField(max_length=64, unique=True)
    po = models.OneToOneField(
        PurchaseOrder,
        on_delete=models.PROTECT,
        related_name="invoice",
    )
    buyer_tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.PROTECT,
        related_name="p2p_invoices_received",
    )
    supplier_tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.PROTECT,
        related_name="p2p_invoices_issued",
    )

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    items = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_PENDING)
    issue_date = models.DateField(default=timezone.localdate)

    reviewed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    rejected_reason = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["buyer_tenant", "status"]),
            models.Index(fields=["supplier_tenant", "status"]),
        ]

    def __str__(self):
        return f"{self.invoice_number} ({self.status})"


class RegisteredSupplier(models.Model):
    """
    A supplier tenant as known to a buyer tenant (approved registration).
    Preferred source of vendor details when a bill is synthesised.
    """

    STATUS_ACTIVE = "ACTIVE"
    STATUS_INACTIVE = "INACTIVE"

    STATUSES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    buyer_tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.CASCADE,
        related_name="registered_suppliers",
    )
    supplier_tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.CASCADE,
        related_name="registered_with_buyers",
    )

    supplier_name = models.CharField(max_length=200, blank=True, default="")
    supplier_company = models.CharField(max_length=200, blank=True, default="")
    contact_no = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["supplier_company", "supplier_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["buyer_tenant", "supplier_tenant"],
                name="uniq_registered_supplier",
            ),
        ]

    def __str__(self):
        return self.supplier_company or self.supplier_name or str(self.supplier_tenant_id)


class BillReconciliation(models.Model):
    """
    Durable marker for an approved invoice whose payable bill could not be
    created. OPEN rows are retried by `manage.py reconcile_p2p_bills`.
    """

    STATUS_OPEN = "OPEN"
    STATUS_RESOLVED = "RESOLVED"

    STATUSES = [
        (STATUS_OPEN, "Open"),
        (STATUS_RESOLVED, "Resolved"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.PROTECT,
        related_name="+",
    )
    invoice = models.OneToOneField(
        P2PInvoice,
        on_delete=models.PROTECT,
        related_name="reconciliation",
    )
    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_OPEN)
    attempts = models.PositiveIntegerField(default=1)
    last_error = models.TextField(blank=True, default="")

    bill = models.ForeignKey(
        "accounting.Bill",
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"]),
        ]

    def __str__(self):
        return f"{self.invoice_id} ({self.status}, {self.attempts} attempts)"
