"""Precision — decimal rounding helpers for CLOB prices, sizes and amounts.

Values stay ``float`` end to end so that the amounts we sign match the ones
the exchange computes from the same inputs.  Every rounding helper leaves a
value untouched when it already fits the requested number of decimals.
"""

from __future__ import annotations

import math
from decimal import Decimal

from eth_utils import to_wei

USDC_DECIMALS = 6


def decimal_places(value: float) -> int:
    """Number of fractional digits in the shortest representation of *value*.

    Parameters
    ----------
    value:
        Any finite float.

    Returns
    -------
    int
        ``0`` for integral values, otherwise the count of digits after the
        decimal point in ``repr(value)`` (exponent forms are expanded, so
        ``1e-07`` has seven places).
    """
    _validate_finite(value, "value")
    if value == int(value):
        return 0
    exponent = Decimal(repr(value)).as_tuple().exponent
    return max(0, -exponent)


def round_down(value: float, decimals: int) -> float:
    """Truncate *value* towards negative infinity at *decimals* places."""
    if decimal_places(value) <= decimals:
        return value
    factor = 10.0 ** decimals
    return math.floor(value * factor) / factor


def round_up(value: float, decimals: int) -> float:
    """Round *value* towards positive infinity at *decimals* places."""
    if decimal_places(value) <= decimals:
        return value
    factor = 10.0 ** decimals
    return math.ceil(value * factor) / factor


def round_normal(value: float, decimals: int) -> float:
    """Round *value* half away from zero at *decimals* places.

    Python's ``round`` is banker's rounding; the exchange rounds ``x.5`` up,
    so the half case is handled explicitly.
    """
    if decimal_places(value) <= decimals:
        return value
    factor = 10.0 ** decimals
    scaled = abs(value * factor)
    whole = math.floor(scaled)
    if scaled - whole >= 0.5:
        whole += 1
    return math.copysign(whole, value) / factor


def adjust_amount(amount: float, allowed_decimals: int) -> float:
    """Fit *amount* into *allowed_decimals* places without eating real value.

    Representation noise (``3.6999999999999997``) is absorbed by first
    rounding up at ``allowed_decimals + 4`` places; only when that still
    leaves too many digits is the amount truncated to ``allowed_decimals``.

    Parameters
    ----------
    amount:
        Raw product of a rounded size and a rounded price.
    allowed_decimals:
        Amount precision from the market's rounding config.

    Returns
    -------
    float
        Amount with at most *allowed_decimals* fractional digits.
    """
    if decimal_places(amount) > allowed_decimals:
        amount = round_up(amount, allowed_decimals + 4)
        if decimal_places(amount) > allowed_decimals:
            amount = round_down(amount, allowed_decimals)
    return amount


def to_base_units(amount: float) -> str:
    """Scale a rounded human amount to 6-decimal base units, as a decimal string.

    >>> to_base_units(3.7)
    '3700000'
    """
    _validate_finite(amount, "amount")
    # "mwei" is 10**6, the collateral and outcome-token precision.
    return str(to_wei(amount, "mwei"))


# ── Internal validators ──────────────────────────────────────────────


def _validate_finite(value: float, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a float, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
