from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

CENT = Decimal("0.01")


def parse_decimal(value: Any) -> Optional[Decimal]:
    """
    Lenient numeric parse used at the request boundary.

    Returns None for anything that is not a finite number: None, "", booleans,
    non-numeric strings, NaN/Infinity. Ints, floats, Decimals and numeric
    strings ("12", " 3.50 ") are accepted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            result = Decimal(s)
        except InvalidOperation:
            return None
    else:
        return None
    if not result.is_finite():
        return None
    return result


def decimal_or_zero(value: Any) -> Decimal:
    parsed = parse_decimal(value)
    return parsed if parsed is not None else Decimal("0")


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_to_json(value: Optional[Decimal]) -> Optional[float]:
    if value is None:
        return None
    return float(value)
