# core/models/base.py

"""
TENANT-SCOPED VERSIONED BASE MODEL

Shared columns for every synchronisable back-office entity:
- id           client-suppliable UUID (offline clients mint ids)
- tenant       owning tenant
- version      optimistic-concurrency token (NULL on legacy rows)
- deleted_at   soft delete marker
- user         last writer

Writes that touch `version` MUST go through core.services.versioned_store.
Plain `.save()` is fine for fields that are not concurrency-guarded
(the service layer is the only writer in practice).
"""

import uuid

from django.conf import settings
from django.db import models


class LiveManager(models.Manager):
    """Default manager: hides soft-deleted rows."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)

    def for_tenant(self, tenant_id):
        return self.get_queryset().filter(tenant_id=tenant_id)


class AllObjectsManager(models.Manager):
    """Includes soft-deleted rows (by-id addressing, audit, recreation)."""

    def for_tenant(self, tenant_id):
        return self.get_queryset().filter(tenant_id=tenant_id)


class TenantScopedModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(
        "core.Tenant",
        on_delete=models.PROTECT,
        related_name="+",
    )

    # NULL = legacy row written before versioning; matches any expected version.
    version = models.PositiveIntegerField(null=True, blank=True, default=1)

    deleted_at = models.DateTimeField(null=True, blank=True)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LiveManager()
    all_objects = AllObjectsManager()

    class Meta:
        abstract = True
        base_manager_name = "all_objects"

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
