# procurement/admin.py

from django.contrib import admin

from procurement.models import BillReconciliation, P2PInvoice, PurchaseOrder, RegisteredSupplier


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ("po_number", "buyer_tenant", "supplier_tenant", "total_amount", "status")
    list_filter = ("status",)
    search_fields = ("po_number",)


@admin.register(P2PInvoice)
class P2PInvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "po", "buyer_tenant", "supplier_tenant", "amount", "status")
    list_filter = ("status",)
    search_fields = ("invoice_number", "po__po_number")
    # Status moves only through the approve / reject services.
    readonly_fields = ("status", "reviewed_by", "reviewed_at", "rejected_reason")


@admin.register(RegisteredSupplier)
class RegisteredSupplierAdmin(admin.ModelAdmin):
    list_display = ("supplier_company", "supplier_name", "buyer_tenant", "status")
    list_filter = ("status",)


@admin.register(BillReconciliation)
class BillReconciliationAdmin(admin.ModelAdmin):
    list_display = ("invoice", "tenant", "status", "attempts", "updated_at")
    list_filter = ("status",)
    readonly_fields = ("invoice", "tenant", "attempts", "last_error", "bill", "resolved_at")
