# core/services/versioned_store.py

"""
======================================================
PATH: core/services/versioned_store.py
======================================================
VERSIONED ENTITY STORE (optimistic concurrency)

upsert_entity():
- Row missing                      -> INSERT with version = 1
- Row exists, no expected_version  -> blind overwrite, version + 1
- Row exists, expected_version     -> applied only if stored version matches
                                      (or stored version is NULL);
                                      otherwise VersionConflictError, no write

The compare-and-increment is ALWAYS one conditional UPDATE:

    UPDATE ... SET version = COALESCE(version, 1) + 1, ...
     WHERE id = %s AND tenant_id = %s AND (version = %s OR version IS NULL)

Never read-then-save. Blind writes use the version they read as the CAS token
and retry a bounded number of times if a concurrent writer got there first.

Soft-deleted rows:
- routine upserts return the deleted row untouched (sync races must not
  un-delete records)
- recreate=True (explicit authenticated recreation by id) clears deleted_at

Legacy NULL versions:
- a NULL stored version matches any expected version
- every successful write leaves a concrete version behind
"""

from __future__ import annotations

import logging
import uuid

from django.db import IntegrityError, transaction
from django.db.models import F, Q, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.services.audit import actor
from core.services.exceptions import (
    NotFoundError,
    RequestValidationError,
    TenantAccessError,
    VersionConflictError,
)

logger = logging.getLogger("versioned_store")

MAX_BLIND_RETRIES = 3


def _label(model) -> str:
    return model._meta.verbose_name.title()


def next_version():
    return Coalesce(F("version"), Value(1)) + 1


def bump_version(model, pk, **updates) -> int:
    """
    Unconditional versioned write for callers that already hold the row lock
    (payment posting, total recomputation). Returns the number of rows hit.
    """
    updates["version"] = next_version()
    updates.setdefault("updated_at", timezone.now())
    return model.all_objects.filter(pk=pk).update(**updates)


def _current_version(model, entity_id):
    return (
        model.all_objects.filter(pk=entity_id)
        .values_list("version", flat=True)
        .first()
    )


def parse_expected_version(raw):
    """
    Normalise an expected version coming from a header / payload.
    Blank means "not supplied" (blind write).
    """
    if raw in (None, ""):
        return None
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError) as exc:
        raise RequestValidationError(f"Invalid entity version: {raw!r}") from exc
    if value < 1:
        raise RequestValidationError(f"Invalid entity version: {raw!r}")
    return value


def get_entity(model, *, tenant_id, entity_id, include_deleted: bool = False):
    manager = model.all_objects if include_deleted else model.objects
    try:
        return manager.get(tenant_id=tenant_id, pk=entity_id)
    except model.DoesNotExist as exc:
        raise NotFoundError(f"{_label(model)} not found") from exc


def _insert(model, *, tenant_id, entity_id, values, user):
    obj = model(id=entity_id, tenant_id=tenant_id, version=1, **values)
    if actor(user) is not None:
        obj.user = actor(user)
    # Savepoint so a lost insert race does not poison the outer transaction.
    with transaction.atomic():
        obj.save(force_insert=True)
    return model.all_objects.get(pk=obj.pk)


@transaction.atomic
def upsert_entity(
    model,
    *,
    tenant_id,
    values: dict,
    entity_id=None,
    expected_version: int | None = None,
    recreate: bool = False,
    guard=None,
    user=None,
):
    """
    Insert or conditionally update one tenant-scoped versioned row.

    guard(current) is called with the stored row before any update and may
    raise to veto the write (e.g. paid bills are immutable). A dict returned
    by the guard is merged into the update (fields derived from the stored
    row, such as a re-derived status).
    """
    values = dict(values or {})
    entity_id = entity_id or uuid.uuid4()
    manager = model.all_objects

    for attempt in range(1, MAX_BLIND_RETRIES + 1):
        current = manager.filter(tenant_id=tenant_id, pk=entity_id).first()

        if current is None:
            if manager.filter(pk=entity_id).exclude(tenant_id=tenant_id).exists():
                raise TenantAccessError(f"{_label(model)} belongs to another tenant")
            try:
                return _insert(
                    model,
                    tenant_id=tenant_id,
                    entity_id=entity_id,
                    values=values,
                    user=user,
                )
            except IntegrityError:
                # Concurrent insert of the same id: fall through to the update path.
                if not manager.filter(tenant_id=tenant_id, pk=entity_id).exists():
                    raise
                continue

        if current.deleted_at is not None and not recreate:
            logger.info(
                "Ignoring write to soft-deleted record",
                extra={"model": model._meta.label, "entity_id": str(entity_id)},
            )
            return current

        derived = guard(current) if guard is not None else None

        qs = manager.filter(tenant_id=tenant_id, pk=entity_id)
        if expected_version is not None:
            if current.version is not None and current.version != expected_version:
                raise VersionConflictError(server_version=current.version)
            qs = qs.filter(Q(version=expected_version) | Q(version__isnull=True))
        elif current.version is None:
            qs = qs.filter(version__isnull=True)
        else:
            qs = qs.filter(version=current.version)

        updates = dict(values)
        updates.update(derived or {})
        updates["version"] = next_version()
        updates["updated_at"] = timezone.now()
        if actor(user) is not None:
            updates["user"] = actor(user)
        if recreate:
            updates["deleted_at"] = None

        if qs.update(**updates) == 1:
            return manager.get(pk=entity_id)

        if expected_version is not None:
            raise VersionConflictError(server_version=_current_version(model, entity_id))

        logger.info(
            "Blind write lost CAS race, retrying",
            extra={
                "model": model._meta.label,
                "entity_id": str(entity_id),
                "attempt": attempt,
            },
        )

    raise VersionConflictError(
        "Record is being modified concurrently. Please retry.",
        server_version=_current_version(model, entity_id),
    )


@transaction.atomic
def soft_delete_entity(
    model,
    *,
    tenant_id,
    entity_id,
    expected_version: int | None = None,
    guard=None,
    user=None,
):
    current = get_entity(model, tenant_id=tenant_id, entity_id=entity_id)

    if guard is not None:
        guard(current)

    if (
        expected_version is not None
        and current.version is not None
        and current.version != expected_version
    ):
        raise VersionConflictError(server_version=current.version)

    qs = model.all_objects.filter(tenant_id=tenant_id, pk=entity_id)
    if current.version is None:
        qs = qs.filter(version__isnull=True)
    else:
        qs = qs.filter(version=current.version)

    updates = {
        "deleted_at": timezone.now(),
        "updated_at": timezone.now(),
        "version": next_version(),
    }
    if actor(user) is not None:
        updates["user"] = actor(user)

    if qs.update(**updates) != 1:
        raise VersionConflictError(server_version=_current_version(model, entity_id))

    return model.all_objects.get(pk=entity_id)
