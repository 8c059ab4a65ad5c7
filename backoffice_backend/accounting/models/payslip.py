# accounting/models/payslip.py

"""
PAYSLIP

Only the payment side lives here. Gross-to-net calculation (tax tables,
deductions) is produced upstream and arrives as net_salary.

cost_allocations: [{"project_id": "<uuid>", "percentage": 60}, ...]
Percentages must sum to 100. Paying the payslip creates one Expense
transaction per allocation.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q

from accounting.models.status import PAYMENT_STATUSES, STATUS_UNPAID
from core.models import TenantScopedModel


class Payslip(TenantScopedModel):
    employee = models.ForeignKey(
        "accounting.Contact",
        on_delete=models.PROTECT,
        related_name="payslips",
    )
    month = models.CharField(max_length=7, help_text="YYYY-MM")

    net_salary = models.DecimalField(max_digits=14, decimal_places=2)
    paid_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    status = models.CharField(
        max_length=20, choices=PAYMENT_STATUSES, default=STATUS_UNPAID
    )

    cost_allocations = models.JSONField(default=list, blank=True)

    payment_account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.SET_NULL,
        related_name="payslips",
        null=True,
        blank=True,
    )
    payment_date = models.DateField(null=True, blank=True)

    class Meta(TenantScopedModel.Meta):
        ordering = ["-month", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "employee", "month"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_payslip_employee_month",
            ),
            models.CheckConstraint(
                condition=Q(net_salary__gte=Decimal("0.00")),
                name="chk_payslip_net_nonnegative",
            ),
        ]

    def __str__(self):
        return f"Payslip {self.month} | {self.employee_id} | {self.status}"
