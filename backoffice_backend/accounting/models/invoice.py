# accounting/models/invoice.py

"""
INVOICE (accounts receivable)

Mirror of Bill for money coming in. Same payment invariants:
paid_amount re-derived from its Income transactions, status derived.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone

from accounting.models.status import PAYMENT_STATUSES, STATUS_UNPAID
from core.models import TenantScopedModel


class Invoice(TenantScopedModel):
    invoice_number = models.CharField(max_length=64)

    contact = models.ForeignKey(
        "accounting.Contact",
        on_delete=models.PROTECT,
        related_name="invoices",
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
        related_name="invoices",
        null=True,
        blank=True,
    )
    project = models.ForeignKey(
        "accounting.Project",
        on_delete=models.SET_NULL,
        related_name="invoices",
        null=True,
        blank=True,
    )

    class Meta(TenantScopedModel.Meta):
        ordering = ["-issue_date", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "invoice_number"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_invoice_number_per_tenant",
            ),
            models.CheckConstraint(
                condition=Q(amount__gte=Decimal("0.00")),
                name="chk_invoice_amount_nonnegative",
            ),
        ]

    def __str__(self):
        return f"{self.invoice_number} | {self.amount} | {self.status}"
