"""Utilities for converting points into money values."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")

AmountLike = Union[Decimal, int, float, str]


def _as_decimal(value: AmountLike) -> Decimal:
    if isinstance(value, bool):
        raise TypeError("Booleans are not amounts.")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    raise TypeError(f"Unsupported amount type: {type(value)!r}")


def to_decimal(value: AmountLike) -> Decimal:
    """Convert ``value`` to a :class:`~decimal.Decimal` with two decimal places."""

    return _as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_rate(value: AmountLike) -> Decimal:
    """Convert a dollars-per-point rate, keeping the precision it was given."""

    rate = _as_decimal(value)
    if not rate.is_finite():
        raise ValueError("Rate must be a finite number.")
    if rate < Decimal("0"):
        raise ValueError("Rate cannot be negative.")
    return rate


def points_to_dollars(points: int, rate: AmountLike) -> Decimal:
    """Return ``points * rate`` rounded half-up to cents."""

    return to_decimal(Decimal(points) * _as_decimal(rate))

