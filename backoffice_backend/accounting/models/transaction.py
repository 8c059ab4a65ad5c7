# accounting/models/transaction.py

"""
TRANSACTION (money movement, immutable)

One row per payment leg. Created once by the posting services; never updated,
never deleted. Document paid amounts are re-derived by summing these rows, so
the transaction list is the source of truth for "how much has been paid".
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone


class Transaction(models.Model):
    TYPE_INCOME = "Income"
    TYPE_EXPENSE = "Expense"

    TRANSACTION_TYPES = [
        (TYPE_INCOME, "Income"),
        (TYPE_EXPENSE, "Expense"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.PROTECT,
        related_name="transactions",
    )

    transaction_type = models.CharField(max_length=10, choices=TRANSACTION_TYPES)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    date = models.DateField(default=timezone.localdate)
    description = models.TextField(blank=True, default="")
    reference = models.CharField(max_length=100, blank=True, default="")

    account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    category = models.ForeignKey(
        "accounting.Category",
        on_delete=models.SET_NULL,
        related_name="transactions",
        null=True,
        blank=True,
    )
    contact = models.ForeignKey(
        "accounting.Contact",
        on_delete=models.SET_NULL,
        related_name="transactions",
        null=True,
        blank=True,
    )
    project = models.ForeignKey(
        "accounting.Project",
        on_delete=models.SET_NULL,
        related_name="transactions",
        null=True,
        blank=True,
    )

    # Document the payment settles (at most one is set).
    bill = models.ForeignKey(
        "accounting.Bill",
        on_delete=models.PROTECT,
        related_name="transactions",
        null=True,
        blank=True,
    )
    invoice = models.ForeignKey(
        "accounting.Invoice",
        on_delete=models.PROTECT,
        related_name="transactions",
        null=True,
        blank=True,
    )
    payslip = models.ForeignKey(
        "accounting.Payslip",
        on_delete=models.PROTECT,
        related_name="transactions",
        null=True,
        blank=True,
    )
    purchase_bill = models.ForeignKey(
        "purchases.PurchaseBill",
        on_delete=models.PROTECT,
        related_name="transactions",
        null=True,
        blank=True,
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["tenant", "date"]),
            models.Index(fields=["bill"]),
            models.Index(fields=["invoice"]),
            models.Index(fields=["payslip"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=Decimal("0.00")),
                name="chk_transaction_amount_positive",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Transaction records are immutable once created")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Transaction records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.transaction_type} {self.amount} on {self.date}"
