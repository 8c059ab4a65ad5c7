# core/checks.py

"""
SCHEMA CAPABILITY CHECK (startup)

Optional columns are declared statically on the models. Instead of probing
information_schema per request, we compare the declared columns with the live
tables ONCE, as a Django system check tagged `database`:

    python manage.py check --database default

(The test runner and `migrate` run database checks automatically.)

- Missing table   -> Warning (fresh database, run migrate)
- Missing column  -> Error   (code and schema disagree; refuse to serve)
"""

from __future__ import annotations

from django.apps import apps
from django.core.checks import Error, Tags, Warning, register
from django.db import connections
from django.db.utils import DatabaseError

ENGINE_APPS = ("core", "accounting", "inventory", "purchases", "procurement")


def _engine_models(app_configs):
    labels = set(ENGINE_APPS)
    if app_configs is not None:
        labels &= {c.label for c in app_configs}
    for label in sorted(labels):
        try:
            config = apps.get_app_config(label)
        except LookupError:
            continue
        for model in config.get_models():
            if model._meta.managed and not model._meta.proxy:
                yield model


def missing_columns(connection, model) -> list[str] | None:
    """
    Returns declared columns absent from the live table, or None when the
    table itself does not exist.
    """
    table = model._meta.db_table
    with connection.cursor() as cursor:
        if table not in connection.introspection.table_names(cursor):
            return None
        live = {
            col.name
            for col in connection.introspection.get_table_description(cursor, table)
        }
    declared = [f.column for f in model._meta.local_concrete_fields]
    return [c for c in declared if c not in live]


@register(Tags.database)
def check_engine_schema(app_configs=None, databases=None, **kwargs):
    messages = []
    for alias in databases or []:
        connection = connections[alias]
        for model in _engine_models(app_configs):
            try:
                missing = missing_columns(connection, model)
            except DatabaseError as exc:
                messages.append(
                    Warning(
                        f"Could not inspect table for {model._meta.label}: {exc}",
                        obj=model,
                        id="core.W002",
                    )
                )
                continue

            if missing is None:
                messages.append(
                    Warning(
                        f"Table {model._meta.db_table} does not exist yet.",
                        hint="Run `python manage.py migrate --run-syncdb`.",
                        obj=model,
                        id="core.W001",
                    )
                )
            elif missing:
                messages.append(
                    Error(
                        f"Table {model._meta.db_table} is missing columns: "
                        f"{', '.join(missing)}",
                        hint="Apply pending schema changes before serving traffic.",
                        obj=model,
                        id="core.E001",
                    )
                )
    return messages
