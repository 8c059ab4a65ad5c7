# purchases/models.py

"""
PURCHASE BILLS (stock purchases)

A purchase bill is paid first, then its goods are received:
- payments go through purchases.services.payment_service (row-locked)
- receiving goes through purchases.services.receiving_service (row-locked),
  which moves InventoryStock at weighted-average cost
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from accounting.models.status import PAYMENT_STATUSES, STATUS_PAID, STATUS_UNPAID
from core.models import TenantScopedModel
from core.services.money import money
from inventory.services.delivery_status import DELIVERY_STATUSES, PENDING

User = settings.AUTH_USER_MODEL


class PurchaseBill(TenantScopedModel):
    """
    Supplier bill for inventory purchases.

    total_amount is the sum of line totals and is recomputed by the bill
    service whenever a line changes.
    """

    bill_number = models.CharField(max_length=64)

    vendor = models.ForeignKey(
        "accounting.Contact",
        on_delete=models.PROTECT,
        related_name="purchase_bills",
        null=True,
        blank=True,
    )

    bill_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)
    description = models.TextField(blank=True, default="")

    total_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    paid_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    status = models.CharField(
        max_length=20, choices=PAYMENT_STATUSES, default=STATUS_UNPAID
    )

    delivery_status = models.CharField(
        max_length=20, choices=DELIVERY_STATUSES, default=PENDING
    )
    items_received = models.BooleanField(default=False)
    items_received_date = models.DateTimeField(null=True, blank=True)

    project = models.ForeignKey(
        "accounting.Project",
        on_delete=models.SET_NULL,
        related_name="purchase_bills",
        null=True,
        blank=True,
    )

    class Meta(TenantScopedModel.Meta):
        ordering = ["-bill_date", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "bill_number"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_purchase_bill_number_per_tenant",
            ),
            models.CheckConstraint(
                condition=Q(total_amount__gte=Decimal("0.00")),
                name="purchase_bill_total_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(paid_amount__gte=Decimal("0.00")),
                name="purchase_bill_paid_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant", "status"]),
            models.Index(fields=["tenant", "delivery_status"]),
        ]

    @property
    def is_paid(self) -> bool:
        return self.status == STATUS_PAID

    @property
    def remaining_balance(self) -> Decimal:
        return money(self.total_amount) - money(self.paid_amount)

    def __str__(self):
        return f"{self.bill_number} | {self.total_amount} | {self.status}"


class PurchaseBillItem(models.Model):
    """
    Purchase bill line.

    0 <= received_quantity <= quantity
    total_amount = quantity * price_per_unit
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.PROTECT,
        related_name="+",
    )
    bill = models.ForeignKey(
        PurchaseBill,
        on_delete=models.CASCADE,
        related_name="items",
    )
    inventory_item = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.PROTECT,
        related_name="purchase_bill_items",
    )

    item_name = models.CharField(max_length=200, blank=True, default="")
    description = models.TextField(blank=True, default="")

    quantity = models.DecimalField(max_digits=18, decimal_places=4)
    received_quantity = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.0000")
    )
    price_per_unit = models.DecimalField(max_digits=18, decimal_places=6)
    total_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="purchase_bill_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(received_quantity__gte=0),
                name="purchase_bill_item_received_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(price_per_unit__gte=Decimal("0")),
                name="purchase_bill_item_price_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["bill", "created_at"]),
        ]

    def clean(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({"quantity": "quantity must be > 0"})

        if self.received_quantity is not None and self.quantity is not None:
            if self.received_quantity < 0 or self.received_quantity > self.quantity:
                raise ValidationError(
                    {"received_quantity": "received_quantity must be between 0 and quantity"}
                )

    @property
    def line_total(self) -> Decimal:
        return money(Decimal(str(self.quantity)) * Decimal(str(self.price_per_unit)))

    def save(self, *args, **kwargs):
        self.total_amount = self.line_total
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.item_name or self.inventory_item_id} x {self.quantity}"


class PurchaseBillPayment(models.Model):
    """
    One payment against a purchase bill.

    Links the ledger Transaction that moved the money; the bill's
    paid_amount is the sum of these rows.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.PROTECT,
        related_name="+",
    )
    bill = models.ForeignKey(
        PurchaseBill,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_date = models.DateField(default=timezone.localdate)
    payment_account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        related_name="purchase_bill_payments",
    )
    description = models.CharField(max_length=255, blank=True, default="")

    transaction = models.OneToOneField(
        "accounting.Transaction",
        on_delete=models.PROTECT,
        related_name="purchase_bill_payment",
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=Decimal("0.00")),
                name="purchase_bill_payment_amount_gt_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["bill", "created_at"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Payments are immutable")
        if self.description is not None:
            self.description = self.description.strip()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Payments are immutable")

    def __str__(self):
        return f"{self.bill_id} - {self.amount}"
