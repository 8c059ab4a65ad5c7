# accounting/models/directory.py

"""
Reference data documents point at: categories, projects, contacts.
"""

from __future__ import annotations

from django.db import models

from core.models import TenantScopedModel


class Category(TenantScopedModel):
    TYPE_INCOME = "Income"
    TYPE_EXPENSE = "Expense"

    CATEGORY_TYPES = [
        (TYPE_INCOME, "Income"),
        (TYPE_EXPENSE, "Expense"),
    ]

    name = models.CharField(max_length=150)
    category_type = models.CharField(
        max_length=10, choices=CATEGORY_TYPES, default=TYPE_EXPENSE
    )

    class Meta(TenantScopedModel.Meta):
        ordering = ["name"]
        verbose_name_plural = "Categories"

    def __str__(self):
        return self.name


class Project(TenantScopedModel):
    """Cost-allocation target (bills, payslip splits, purchase bills)."""

    name = models.CharField(max_length=150)
    status = models.CharField(max_length=30, blank=True, default="Active")

    class Meta(TenantScopedModel.Meta):
        ordering = ["name"]

    def __str__(self):
        return self.name


class Contact(TenantScopedModel):
    TYPE_VENDOR = "Vendor"
    TYPE_CUSTOMER = "Customer"
    TYPE_EMPLOYEE = "Employee"

    CONTACT_TYPES = [
        (TYPE_VENDOR, "Vendor"),
        (TYPE_CUSTOMER, "Customer"),
        (TYPE_EMPLOYEE, "Employee"),
    ]

    name = models.CharField(max_length=200)
    company_name = models.CharField(max_length=200, blank=True, default="")
    contact_type = models.CharField(
        max_length=10, choices=CONTACT_TYPES, default=TYPE_VENDOR
    )
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")
    description = models.TextField(blank=True, default="")

    class Meta(TenantScopedModel.Meta):
        ordering = ["name"]
        indexes = [
            models.Index(fields=["tenant", "contact_type", "company_name"]),
        ]

    def __str__(self):
        return self.company_name or self.name
