"""
Decimal helpers shared by every calculator.

Amounts are carried as Decimal so that repeated calls with the same
inputs produce identical results down to the kobo.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from taxengine.core.exceptions import InvalidInputError

ZERO = Decimal("0")
KOBO = Decimal("0.01")
RATE_PLACES = Decimal("0.0001")


def to_decimal(value, field: str = "amount") -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be numeric, got a boolean", field=field)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            # str() first so that 0.1 becomes Decimal("0.1"), not its binary expansion
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise InvalidInputError(f"{field} is not a number: {value!r}", field=field) from e
    else:
        raise InvalidInputError(f"{field} must be numeric, got {type(value).__name__}", field=field)

    if not result.is_finite():
        raise InvalidInputError(f"{field} must be finite, got {value!r}", field=field)
    return result


def non_negative(value, field: str = "amount") -> Decimal:
    """Convert and clamp to zero; negative money never produces negative tax."""
    return max(to_decimal(value, field), ZERO)


def money(value: Decimal) -> Decimal:
    return value.quantize(KOBO, rounding=ROUND_HALF_UP)


def rate(value: Decimal) -> Decimal:
    return value.quantize(RATE_PLACES, rounding=ROUND_HALF_UP)
