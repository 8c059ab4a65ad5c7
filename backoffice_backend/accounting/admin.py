# accounting/admin.py

from django.contrib import admin

from accounting.models import (
    Account,
    Bill,
    Category,
    Contact,
    Invoice,
    Payslip,
    Project,
    Transaction,
)

# ============================================================
# REFERENCE DATA
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "account_type", "balance", "version", "updated_at")
    list_filter = ("account_type",)
    search_fields = ("name",)
    readonly_fields = ("balance", "version", "created_at", "updated_at")


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "category_type")
    list_filter = ("category_type",)
    search_fields = ("name",)


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "status")
    search_fields = ("name",)


@admin.register(Contact)
class ContactAdmin(admin.ModelAdmin):
    list_display = ("name", "company_name", "tenant", "contact_type", "phone")
    list_filter = ("contact_type",)
    search_fields = ("name", "company_name")


# ============================================================
# DOCUMENTS (payment fields are service-owned)
# ============================================================


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = (
        "bill_number",
        "tenant",
        "contact",
        "amount",
        "paid_amount",
        "status",
        "due_date",
        "version",
    )
    list_filter = ("status",)
    search_fields = ("bill_number", "contact__name")
    readonly_fields = ("paid_amount", "status", "version", "p2p_invoice", "created_at", "updated_at")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "tenant", "amount", "paid_amount", "status", "version")
    list_filter = ("status",)
    search_fields = ("invoice_number",)
    readonly_fields = ("paid_amount", "status", "version")


@admin.register(Payslip)
class PayslipAdmin(admin.ModelAdmin):
    list_display = ("employee", "month", "net_salary", "paid_amount", "status")
    list_filter = ("status", "month")
    readonly_fields = ("paid_amount", "status", "version")


# ============================================================
# TRANSACTIONS (immutable)
# ============================================================


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("date", "tenant", "transaction_type", "amount", "account", "bill", "invoice")
    list_filter = ("transaction_type", "date")
    search_fields = ("description", "reference")
    readonly_fields = [f.name for f in Transaction._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
