# core/admin.py

from django.contrib import admin

from core.models import AuditLog, Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ("name", "company_name", "payment_terms", "is_active", "created_at")
    list_filter = ("payment_terms", "is_active")
    search_fields = ("name", "company_name")


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = (
        "performed_at",
        "tenant",
        "entity_type",
        "entity_id",
        "action",
        "from_status",
        "to_status",
        "performed_by",
    )
    list_filter = ("entity_type", "action")
    search_fields = ("entity_id", "reason")
    readonly_fields = [f.name for f in AuditLog._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
