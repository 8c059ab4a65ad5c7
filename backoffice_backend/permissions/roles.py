# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
# These describe what the staff member does inside their tenant.
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_ACCOUNTANT = "accountant"
ROLE_STOREKEEPER = "storekeeper"
ROLE_CLERK = "clerk"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_ACCOUNTANT,
    ROLE_STOREKEEPER,
    ROLE_CLERK,
}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views should protect capabilities, not raw roles.
CAP_BILLS_VIEW = "bills.view"
CAP_BILLS_EDIT = "bills.edit"
CAP_BILLS_PAY = "bills.pay"

CAP_RECEIVABLES_COLLECT = "receivables.collect"
CAP_PAYROLL_PAY = "payroll.pay"
CAP_ACCOUNTS_EDIT = "accounts.edit"

CAP_INVENTORY_VIEW = "inventory.view"
CAP_INVENTORY_RECEIVE = "inventory.receive"

CAP_P2P_FLIP = "p2p.flip"
CAP_P2P_REVIEW = "p2p.review"

CAP_AUDIT_VIEW = "audit.view"

ALL_CAPABILITIES = {
    CAP_BILLS_VIEW,
    CAP_BILLS_EDIT,
    CAP_BILLS_PAY,
    CAP_RECEIVABLES_COLLECT,
    CAP_PAYROLL_PAY,
    CAP_ACCOUNTS_EDIT,
    CAP_INVENTORY_VIEW,
    CAP_INVENTORY_RECEIVE,
    CAP_P2P_FLIP,
    CAP_P2P_REVIEW,
    CAP_AUDIT_VIEW,
}


# =========================================================
# ROLE → CAPABILITY MAP (DEFAULT)
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        CAP_BILLS_VIEW,
        CAP_BILLS_EDIT,
        CAP_BILLS_PAY,
        CAP_RECEIVABLES_COLLECT,
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_RECEIVE,
        CAP_P2P_FLIP,
        CAP_P2P_REVIEW,
        CAP_AUDIT_VIEW,
    },
    ROLE_ACCOUNTANT: {
        CAP_BILLS_VIEW,
        CAP_BILLS_EDIT,
        CAP_BILLS_PAY,
        CAP_RECEIVABLES_COLLECT,
        CAP_PAYROLL_PAY,
        CAP_ACCOUNTS_EDIT,
        CAP_AUDIT_VIEW,
    },
    ROLE_STOREKEEPER: {
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_RECEIVE,
    },
    ROLE_CLERK: {
        CAP_BILLS_VIEW,
        CAP_INVENTORY_VIEW,
        # deliberately NOT pay / review
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def effective_capabilities_for(request, user) -> set[str]:
    """
    Capabilities granted by the user's role. Superusers get everything.
    """
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        required_capability = CAP_BILLS_PAY
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # If not set, deny-by-default to avoid accidental open endpoints
            return False

        caps = effective_capabilities_for(request, user)
        return required in caps


class BelongsToTenant(BasePermission):
    """
    Every back-office request is tenant-scoped; accounts without a tenant
    (platform superusers) cannot call tenant endpoints.
    """

    message = "User is not attached to a tenant."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "tenant_id", None))
