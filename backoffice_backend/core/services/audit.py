# core/services/audit.py

from __future__ import annotations

from core.models import AuditLog


def record(
    entity_type: str,
    entity_id,
    action: str,
    *,
    tenant_id,
    from_status: str | None = None,
    to_status: str | None = None,
    user=None,
    reason: str | None = None,
    payload: dict | None = None,
) -> AuditLog:
    """
    Append one audit row inside the caller's transaction.
    """
    return AuditLog.objects.create(
        tenant_id=tenant_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        from_status=from_status,
        to_status=to_status,
        performed_by=actor(user),
        reason=reason or None,
        payload=payload or {},
    )


def actor(user):
    """The authenticated user behind a call, or None (system / anonymous)."""
    return user if getattr(user, "is_authenticated", False) else None
