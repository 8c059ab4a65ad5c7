# core/api/views.py

"""
TENANT-SCOPED API BASE VIEW

Every back-office endpoint:
- requires an authenticated staff user attached to a tenant
- requires the capability named by `required_capability`
- passes request.user.tenant_id + request.user down to services
- renders domain errors through the canonical error body
"""

from __future__ import annotations

from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated

from core.api.errors import domain_error_response, request_tenant_id
from core.services.exceptions import BackofficeError
from core.services.versioned_store import parse_expected_version
from permissions.roles import BelongsToTenant, HasCapability

VERSION_HEADER = "X-Entity-Version"


class TenantAPIView(GenericAPIView):
    permission_classes = [IsAuthenticated, BelongsToTenant, HasCapability]
    required_capability = None

    @property
    def tenant_id(self):
        return request_tenant_id(self.request)

    def expected_version(self, data=None):
        raw = self.request.headers.get(VERSION_HEADER)
        if raw in (None, "") and data:
            raw = data.get("version")
        return parse_expected_version(raw)

    def handle_exception(self, exc):
        if isinstance(exc, BackofficeError):
            return domain_error_response(exc)
        return super().handle_exception(exc)
