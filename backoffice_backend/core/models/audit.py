# core/models/audit.py

"""
AUDIT LOG (APPEND-ONLY)

One row per state transition or money movement:
- P2P transitions (PO / INVOICE / BILL)
- Payment postings (BILL / INVOICE / PAYSLIP / PURCHASE_BILL)
- Goods receipts

Created once. Never updated. Never deleted.
Rows are written inside the caller's transaction so the audit trail commits
(or rolls back) together with the change it describes.
"""

import uuid

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class AuditLog(models.Model):
    ENTITY_PO = "PO"
    ENTITY_INVOICE = "INVOICE"
    ENTITY_BILL = "BILL"
    ENTITY_RECEIVABLE = "RECEIVABLE"
    ENTITY_PAYSLIP = "PAYSLIP"
    ENTITY_PURCHASE_BILL = "PURCHASE_BILL"

    ENTITY_TYPES = [
        (ENTITY_PO, "Purchase order"),
        (ENTITY_INVOICE, "P2P invoice"),
        (ENTITY_BILL, "Bill"),
        (ENTITY_RECEIVABLE, "Receivable invoice"),
        (ENTITY_PAYSLIP, "Payslip"),
        (ENTITY_PURCHASE_BILL, "Purchase bill"),
    ]

    ACTION_CREATED = "CREATED"
    ACTION_STATUS_CHANGE = "STATUS_CHANGE"
    ACTION_APPROVED = "APPROVED"
    ACTION_REJECTED = "REJECTED"
    ACTION_PAYMENT = "PAYMENT"
    ACTION_RECEIPT = "RECEIPT"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.PROTECT,
        related_name="audit_logs",
    )

    entity_type = models.CharField(max_length=20, choices=ENTITY_TYPES)
    entity_id = models.UUIDField()
    action = models.CharField(max_length=30)

    from_status = models.CharField(max_length=30, null=True, blank=True)
    to_status = models.CharField(max_length=30, null=True, blank=True)

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    reason = models.TextField(null=True, blank=True)
    payload = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    performed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["performed_at"]
        indexes = [
            models.Index(fields=["tenant", "entity_type", "entity_id"]),
            models.Index(fields=["performed_at"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("AuditLog records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("AuditLog records cannot be deleted")

    def __str__(self):
        transition = ""
        if self.from_status or self.to_status:
            transition = f" {self.from_status or '-'} -> {self.to_status or '-'}"
        return f"{self.entity_type}:{self.entity_id} {self.action}{transition}"
