# core/apps.py

"""
CORE APP CONFIG

Shared engine primitives used by every back-office module:
- Tenant + tenant-scoped versioned base model
- Append-only audit log
- Domain error taxonomy
- Versioned entity store (optimistic CAS)
- Tenant event emission (after commit)
- Startup schema capability check
"""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
    verbose_name = "Back-office Core"

    def ready(self):
        # Registers system checks.
        from core import checks  # noqa: F401
