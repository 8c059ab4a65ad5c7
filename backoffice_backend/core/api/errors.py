# core/api/errors.py

"""
API ERROR NORMALIZATION

Canonical error body for every back-office endpoint:

    {"error": {"code": "...", "message": "...", ...details}}
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response

from core.services.exceptions import BackofficeError

logger = logging.getLogger("api")


def error_response(*, code: str, message: str, http_status: int, **details):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message}
    body.update({k: v for k, v in details.items() if v is not None})
    return Response({"error": body}, status=http_status)


def domain_error_response(exc: BackofficeError):
    if exc.http_status >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Domain error", extra={"code": exc.code})
    body = {k: v for k, v in exc.as_dict().items() if v is not None}
    if exc.retriable:
        body["retriable"] = True
    return Response({"error": body}, status=exc.http_status)


def request_tenant_id(request):
    """
    Tenant of the authenticated caller (identity boundary).
    """
    return getattr(request.user, "tenant_id", None)
