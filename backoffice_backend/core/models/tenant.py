# core/models/tenant.py

"""
TENANT

Every business record in the back-office is owned by exactly one tenant.
Provisioning / licensing lives outside this service; we only keep the fields
the engine reads (display names and default supplier payment terms).
"""

import uuid
from datetime import timedelta

from django.db import models


class Tenant(models.Model):
    TERMS_NET_30 = "Net 30"
    TERMS_NET_60 = "Net 60"
    TERMS_NET_90 = "Net 90"
    TERMS_DUE_ON_RECEIPT = "Due on Receipt"

    PAYMENT_TERMS = [
        (TERMS_NET_30, "Net 30"),
        (TERMS_NET_60, "Net 60"),
        (TERMS_NET_90, "Net 90"),
        (TERMS_DUE_ON_RECEIPT, "Due on Receipt"),
    ]

    TERM_DAYS = {
        TERMS_NET_30: 30,
        TERMS_NET_60: 60,
        TERMS_NET_90: 90,
        TERMS_DUE_ON_RECEIPT: 0,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    company_name = models.CharField(max_length=200, blank=True, default="")
    payment_terms = models.CharField(
        max_length=20, choices=PAYMENT_TERMS, default=TERMS_NET_30
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    @property
    def display_name(self) -> str:
        return (self.company_name or self.name or "").strip()

    def due_date_for(self, issue_date):
        days = self.TERM_DAYS.get(self.payment_terms, 30)
        return issue_date + timedelta(days=days)

    def __str__(self):
        return self.display_name or str(self.id)
