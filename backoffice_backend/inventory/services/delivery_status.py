# inventory/services/delivery_status.py

"""
DELIVERY STATUS RULES

Derives a purchase bill's delivery status from its lines.

DESIGN PRINCIPLES:
- No database writes
- No side effects
- "Received" is epsilon-tolerant (settings.MONEY_EPSILON); any received
  quantity above zero leaves Pending
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from core.services.money import epsilon

PENDING = "Pending"
PARTIALLY_RECEIVED = "Partially Received"
RECEIVED = "Received"

DELIVERY_STATUSES = [
    (PENDING, "Pending"),
    (PARTIALLY_RECEIVED, "Partially Received"),
    (RECEIVED, "Received"),
]


@dataclass(frozen=True)
class DeliverySummary:
    all_received: bool
    any_received: bool
    status: str


def _line_values(line) -> tuple[Decimal, Decimal]:
    if isinstance(line, dict):
        ordered = line.get("quantity")
        received = line.get("received_quantity")
    else:
        ordered = getattr(line, "quantity", None)
        received = getattr(line, "received_quantity", None)
    return Decimal(str(ordered or 0)), Decimal(str(received or 0))


def summarize(lines: Iterable) -> DeliverySummary:
    eps = epsilon()
    values = [_line_values(line) for line in lines]

    if not values:
        return DeliverySummary(all_received=False, any_received=False, status=PENDING)

    all_received = all(received >= ordered - eps for ordered, received in values)
    any_received = any(received > 0 for _, received in values)

    if all_received:
        status = RECEIVED
    elif any_received:
        status = PARTIALLY_RECEIVED
    else:
        status = PENDING

    return DeliverySummary(all_received=all_received, any_received=any_received, status=status)


def resolve_delivery_status(lines: Iterable) -> str:
    return summarize(lines).status
