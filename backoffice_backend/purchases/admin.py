# purchases/admin.py

from django.contrib import admin

from purchases.models import PurchaseBill, PurchaseBillItem, PurchaseBillPayment


class PurchaseBillItemInline(admin.TabularInline):
    model = PurchaseBillItem
    extra = 0
    readonly_fields = ("received_quantity", "total_amount")


@admin.register(PurchaseBill)
class PurchaseBillAdmin(admin.ModelAdmin):
    list_display = (
        "bill_number",
        "tenant",
        "vendor",
        "total_amount",
        "paid_amount",
        "status",
        "delivery_status",
        "version",
    )
    list_filter = ("status", "delivery_status")
    search_fields = ("bill_number", "vendor__name")
    readonly_fields = (
        "total_amount",
        "paid_amount",
        "status",
        "delivery_status",
        "items_received",
        "items_received_date",
        "version",
    )
    inlines = [PurchaseBillItemInline]


@admin.register(PurchaseBillPayment)
class PurchaseBillPaymentAdmin(admin.ModelAdmin):
    list_display = ("bill", "tenant", "amount", "payment_date", "payment_account")
    search_fields = ("bill__bill_number",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
