from .audit import AuditLog
from .base import AllObjectsManager, LiveManager, TenantScopedModel
from .tenant import Tenant

__all__ = [
    "AuditLog",
    "AllObjectsManager",
    "LiveManager",
    "Tenant",
    "TenantScopedModel",
]
