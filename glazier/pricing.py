# glazier/pricing.py
"""Decimal arithmetic for estimate totals.

Every amount is carried as :class:`decimal.Decimal`; floats only appear when
a value is serialised to JSON, after it has been quantized.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Tuple

CENTS = Decimal('0.01')
RATE_PLACES = Decimal('0.001')
ZERO = Decimal('0')


def to_decimal(value, field: str = 'value') -> Decimal:
    """Coerce a JSON number (or numeric string) to ``Decimal``.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal('0.1')`` rather
    than its binary expansion. Raises ``ValueError`` naming ``field``.
    """
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise ValueError(f'{field} must be a number')
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f'{field} must be a number') from None
    if not result.is_finite():
        raise ValueError(f'{field} must be a number')
    return result


def money(value) -> Decimal:
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def rate(value) -> Decimal:
    return to_decimal(value).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def line_total(quantity, unit_price) -> Decimal:
    return money(to_decimal(quantity) * to_decimal(unit_price))


def compute_totals(line_totals: Iterable, tax_rate) -> Tuple[Decimal, Decimal, Decimal]:
    """Return ``(subtotal, tax_amount, total)`` for the given line totals.

    subtotal   = sum of line totals
    tax_amount = subtotal * tax_rate / 100, rounded half-up to cents
    total      = subtotal + tax_amount
    """
    subtotal = money(sum((to_decimal(t) for t in line_totals), ZERO))
    tax_amount = money(subtotal * to_decimal(tax_rate) / Decimal(100))
    return subtotal, tax_amount, subtotal + tax_amount


def as_number(value):
    """JSON-safe rendering of a Numeric column (None stays None)."""
    if value is None:
        return None
    return float(value)
