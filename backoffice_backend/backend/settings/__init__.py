# backend/settings/__init__.py
"""
Settings package. Nothing is imported here; pick a module explicitly:
- backend.settings.dev   (local development, tests; sqlite by default)
- backend.settings.prod  (Postgres, fail-closed)
"""
