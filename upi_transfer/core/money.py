from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Union

from .errors import InvalidAmountError

Amount = Union[Decimal, int, float, str]

MINOR_UNITS = Decimal("100")
_PAISE = Decimal("0.01")


def to_decimal(value: Amount) -> Decimal:
    """Coerce a caller-supplied amount into a Decimal.

    Floats go through ``repr`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than the binary expansion. Strings that do not parse raise
    ``decimal.InvalidOperation``.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Amounts must be numeric, not bool")
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def positive_amount(amount: Amount) -> Decimal:
    """Coerce ``amount`` and reject anything that is not a finite number above zero."""
    try:
        value = to_decimal(amount)
    except InvalidOperation:
        raise InvalidAmountError.not_a_number(amount) from None
    if not value.is_finite():
        raise InvalidAmountError.not_a_number(value)
    if value < 0:
        raise InvalidAmountError.negative(value)
    if value == 0:
        raise InvalidAmountError.zero()
    return value


def below(value: Decimal, bound: Decimal, epsilon: Decimal) -> bool:
    return value < bound - epsilon


def above(value: Decimal, bound: Decimal, epsilon: Decimal) -> bool:
    return value > bound + epsilon


def to_paise(value: Decimal) -> Decimal:
    """Round to whole paise, half to even."""
    return value.quantize(_PAISE, rounding=ROUND_HALF_EVEN)


def to_minor_units(value: Decimal) -> int:
    return int(to_paise(value) * MINOR_UNITS)


def from_minor_units(value: int) -> Decimal:
    return (Decimal(value) / MINOR_UNITS).quantize(_PAISE)
