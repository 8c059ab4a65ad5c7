# core/services/events.py

"""
TENANT EVENT EMISSION (notification boundary)

emit_to_tenant() is the only way services announce changes to connected
clients. The transport (websocket fan-out, push, ...) lives elsewhere and
subscribes to the `tenant_event` signal.

Rules:
- Fire-and-forget: receivers run after the surrounding transaction commits,
  through send_robust, so a failing receiver is logged and never rolls back
  (or fails) the write that triggered it.
- Tenant-scoped: every event carries exactly one tenant_id.
- Rolled-back transactions emit nothing.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger("events")

# Receivers get: tenant_id, event_type, payload, user_id
tenant_event = Signal()


def _dispatch(*, tenant_id, event_type: str, payload: dict, user_id):
    results = tenant_event.send_robust(
        sender=None,
        tenant_id=tenant_id,
        event_type=event_type,
        payload=payload,
        user_id=user_id,
    )
    for receiver, result in results:
        if isinstance(result, Exception):
            logger.error(
                "Tenant event receiver failed",
                extra={
                    "tenant_id": str(tenant_id),
                    "event_type": event_type,
                    "receiver": getattr(receiver, "__qualname__", repr(receiver)),
                    "error": str(result),
                },
            )


def emit_to_tenant(tenant_id, event_type: str, payload: dict | None = None, *, user=None):
    user_id = str(getattr(user, "pk", "") or "") or None
    data = dict(payload or {})

    transaction.on_commit(
        lambda: _dispatch(
            tenant_id=str(tenant_id),
            event_type=event_type,
            payload=data,
            user_id=user_id,
        )
    )
