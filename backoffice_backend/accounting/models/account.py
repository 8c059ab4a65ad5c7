# accounting/models/account.py

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q

from core.models import TenantScopedModel


class Account(TenantScopedModel):
    """
    Cash / bank / card account money is paid from or received into.

    Not a chart-of-accounts node: the only posting rule is a simple balance
    increment (payments out decrement, receipts in increment), applied with
    an F() update inside the posting transaction.
    """

    TYPE_CASH = "Cash"
    TYPE_BANK = "Bank"
    TYPE_CARD = "Credit Card"
    TYPE_OTHER = "Other"

    ACCOUNT_TYPES = [
        (TYPE_CASH, "Cash"),
        (TYPE_BANK, "Bank"),
        (TYPE_CARD, "Credit Card"),
        (TYPE_OTHER, "Other"),
    ]

    name = models.CharField(max_length=150)
    account_type = models.CharField(
        max_length=20, choices=ACCOUNT_TYPES, default=TYPE_BANK
    )
    balance = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    description = models.TextField(blank=True, default="")

    class Meta(TenantScopedModel.Meta):
        ordering = ["name"]
        indexes = [
            models.Index(fields=["tenant", "name"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.account_type})"
