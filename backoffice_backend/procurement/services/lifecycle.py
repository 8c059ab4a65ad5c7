"""
PROCURE-TO-PAY LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for purchase orders and P2P invoices.

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Single source of truth
"""

from core.services.exceptions import InvalidTransitionError
from procurement.models import P2PInvoice, PurchaseOrder

# ============================================================
# P2P INVOICE
# ============================================================

INVOICE_TERMINAL_STATES = {
    P2PInvoice.STATUS_APPROVED,
    P2PInvoice.STATUS_REJECTED,
}

INVOICE_TRANSITIONS = {
    P2PInvoice.STATUS_PENDING: {
        P2PInvoice.STATUS_APPROVED,
        P2PInvoice.STATUS_REJECTED,
    },
}


# ============================================================
# PURCHASE ORDER
# ============================================================

# Only the INVOICED edge is driven here (flip, from SENT or RECEIVED); the
# rest is driven by the buyer's PO workflow.
PO_TRANSITIONS = {
    PurchaseOrder.STATUS_DRAFT: {PurchaseOrder.STATUS_SENT},
    PurchaseOrder.STATUS_SENT: {
        PurchaseOrder.STATUS_RECEIVED,
        PurchaseOrder.STATUS_INVOICED,
    },
    PurchaseOrder.STATUS_RECEIVED: {PurchaseOrder.STATUS_INVOICED},
    PurchaseOrder.STATUS_INVOICED: {PurchaseOrder.STATUS_DELIVERED},
    PurchaseOrder.STATUS_DELIVERED: {PurchaseOrder.STATUS_COMPLETED},
}

# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition_invoice(*, from_status: str, to_status: str) -> bool:
    if from_status in INVOICE_TERMINAL_STATES:
        return False

    return to_status in INVOICE_TRANSITIONS.get(from_status, set())


def validate_invoice_transition(from_status: str, to_status: str) -> None:
    if not can_transition_invoice(from_status=from_status, to_status=to_status):
        raise InvalidTransitionError(from_status=from_status, to_status=to_status)


def can_transition_po(*, from_status: str, to_status: str) -> bool:
    return to_status in PO_TRANSITIONS.get(from_status, set())


def validate_po_transition(from_status: str, to_status: str) -> None:
    if not can_transition_po(from_status=from_status, to_status=to_status):
        raise InvalidTransitionError(from_status=from_status, to_status=to_status)
