# accounting/models/bill.py

"""
BILL (accounts payable)

Guarantees:
- paid_amount <= amount + epsilon (enforced by the posting service under a row lock)
- paid_amount is re-derived from the sum of the bill's Transactions after
  every payment, never incremented in place
- status is derived from paid_amount / amount
- a Paid bill is immutable (no edit, no delete) except through payment posting
- at most one Bill per approved P2P invoice (one-to-one link)
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone

from accounting.models.status import PAYMENT_STATUSES, STATUS_PAID, STATUS_UNPAID
from core.models import TenantScopedModel


class Bill(TenantScopedModel):
    bill_number = models.CharField(max_length=64)

    contact = models.ForeignKey(
        "accounting.Contact",
        on_delete=models.PROTECT,
        related_name="bills",
        null=True,
        blank=True,
    )

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    paid_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    status = models.CharField(
        max_length=20, choices=PAYMENT_STATUSES, default=STATUS_UNPAID
    )

    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)
    description = models.TextField(blank=True, default="")

    category = models.ForeignKey(
        "accounting.Category",
        on_delete=models.SET_NULL,
        related_name="bills",
        null=True,
        blank=True,
    )
    project = models.ForeignKey(
        "accounting.Project",
        on_delete=models.SET_NULL,
        related_name="bills",
        null=True,
        blank=True,
    )

    # Set when the bill was synthesized from an approved P2P invoice.
    p2p_invoice = models.OneToOneField(
        "procurement.P2PInvoice",
        on_delete=models.PROTECT,
        related_name="bill",
        null=True,
        blank=True,
    )

    class Meta(TenantScopedModel.Meta):
        ordering = ["-issue_date", "-created_at"]
        indexes = [
            models.Index(fields=["tenant", "status"]),
            models.Index(fields=["tenant", "due_date"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "bill_number"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_bill_number_per_tenant",
            ),
            models.CheckConstraint(
                condition=Q(amount__gte=Decimal("0.00")),
                name="chk_bill_amount_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(paid_amount__gte=Decimal("0.00")),
                name="chk_bill_paid_nonnegative",
            ),
        ]

    @property
    def is_paid(self) -> bool:
        return self.status == STATUS_PAID

    @property
    def remaining_balance(self) -> Decimal:
        return (self.amount or Decimal("0.00")) - (self.paid_amount or Decimal("0.00"))

    def __str__(self):
        return f"{self.bill_number} | {self.amount} | {self.status}"
