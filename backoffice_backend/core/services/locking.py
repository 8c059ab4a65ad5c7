# core/services/locking.py

"""
ROW LOCKING

lock_row() takes an exclusive row lock on the parent record of a money or
stock operation (SELECT ... FOR UPDATE NOWAIT).

Rules:
- Must be called inside transaction.atomic; the lock is held until commit.
- NOWAIT: a second writer fails immediately instead of queueing behind the
  first one. That failure surfaces as LockTimeoutError (retriable).
- Backends without row locks (sqlite) silently skip the FOR UPDATE clause;
  sqlite serialises writers on its database-level lock instead.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db.utils import OperationalError

from core.services.exceptions import LockTimeoutError, NotFoundError

logger = logging.getLogger("locking")


def lock_row(queryset, *, label: str = "", **lookup):
    model = queryset.model
    label = label or model._meta.verbose_name.title()
    nowait = bool(getattr(settings, "LOCK_NOWAIT", True))

    try:
        return queryset.select_for_update(nowait=nowait).get(**lookup)
    except model.DoesNotExist as exc:
        raise NotFoundError(f"{label} not found") from exc
    except OperationalError as exc:
        logger.warning(
            "Row lock not available",
            extra={"model": model._meta.label, "lookup": {k: str(v) for k, v in lookup.items()}},
        )
        raise LockTimeoutError(
            f"{label} is being processed by another operation. Please retry.",
        ) from exc
