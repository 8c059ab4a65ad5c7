# core/services/money.py

"""
MONEY / QUANTITY HELPERS

- Money is Decimal, 2dp, ROUND_HALF_UP (same rule everywhere).
- Quantities are Decimal, 4dp.
- Unit costs are Decimal, 6dp (weighted averages need the extra precision).
- EPSILON is the tolerance for "fully paid" / "fully received" / overpayment
  checks; configurable via settings.MONEY_EPSILON.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

TWOPLACES = Decimal("0.01")
FOURPLACES = Decimal("0.0001")
SIXPLACES = Decimal("0.000001")
ZERO = Decimal("0.00")


def epsilon() -> Decimal:
    return Decimal(str(getattr(settings, "MONEY_EPSILON", "0.01")))


def _to_decimal(v) -> Decimal:
    try:
        return Decimal(str(v if v not in (None, "") else "0"))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValueError(f"Not a number: {v!r}") from exc


def money(v) -> Decimal:
    return _to_decimal(v).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def quantity(v) -> Decimal:
    return _to_decimal(v).quantize(FOURPLACES, rounding=ROUND_HALF_UP)


def unit_cost(v) -> Decimal:
    return _to_decimal(v).quantize(SIXPLACES, rounding=ROUND_HALF_UP)
