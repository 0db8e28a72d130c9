"""
Precision constants and checked integer helpers for RewardFlow.

All amounts are integers in the token's smallest unit (18 decimals by
default, like most fungible reward assets):

    1 token = 10**18 units

Stored values are bounded to fixed-width ranges so that the ledger's
numbers stay portable to a 256-bit host:

    amounts, accumulators, rates     -> unsigned 256-bit
    allocation weights, timestamps   -> unsigned 64-bit
    reward debt                      -> signed 256-bit

Python integers never wrap, so products are computed at full width and
then range-checked; anything outside its range raises
``ArithmeticOverflow`` instead of wrapping.
"""

from __future__ import annotations

from decimal import Decimal

from rewardflow_core.errors import ArithmeticOverflow

# Fixed-point scale of accumulated-reward-per-share.
ACC_PRECISION: int = 10 ** 12

TOKEN_DECIMALS: int = 18
UNITS_PER_TOKEN: int = 10 ** TOKEN_DECIMALS

UINT64_MAX: int = 2 ** 64 - 1
UINT256_MAX: int = 2 ** 256 - 1
INT256_MIN: int = -(2 ** 255)
INT256_MAX: int = 2 ** 255 - 1


def checked_uint(value: int, bits: int = 256, what: str = "") -> int:
    """Return *value* if it fits in an unsigned ``bits``-wide integer."""
    if value < 0 or value > 2 ** bits - 1:
        raise ArithmeticOverflow(what, value, f"uint{bits}")
    return value


def checked_int(value: int, bits: int = 256, what: str = "") -> int:
    """Return *value* if it fits in a signed ``bits``-wide integer."""
    bound = 2 ** (bits - 1)
    if value < -bound or value > bound - 1:
        raise ArithmeticOverflow(what, value, f"int{bits}")
    return value


def to_int256(value: int, what: str = "") -> int:
    """Convert an unsigned result into the signed range used for debt."""
    return checked_int(checked_uint(value, what=what), what=what)


def checked_add(a: int, b: int, what: str = "") -> int:
    return checked_uint(a + b, what=what)


def checked_sub(a: int, b: int, what: str = "") -> int:
    return checked_uint(a - b, what=what)


def checked_mul(a: int, b: int, what: str = "") -> int:
    return checked_uint(a * b, what=what)


def checked_div(a: int, b: int, what: str = "") -> int:
    """Floor division of non-negative operands."""
    if b == 0:
        raise ArithmeticOverflow(what or "division by zero", a, "nonzero divisor")
    return checked_uint(a // b, what=what)


def parse_units(value: str | int | Decimal, decimals: int = TOKEN_DECIMALS) -> int:
    """
    Convert a human amount to integer units.

    >>> parse_units("1")
    1000000000000000000
    >>> parse_units("0.01")
    10000000000000000
    """
    scaled = Decimal(str(value)) * (Decimal(10) ** decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value} has more than {decimals} decimal places")
    return int(scaled)


def format_units(units: int, decimals: int = TOKEN_DECIMALS) -> str:
    """
    Render integer units as a decimal string without float rounding.

    >>> format_units(1500000000000000000)
    '1.5'
    """
    sign = "-" if units < 0 else ""
    whole, frac = divmod(abs(units), 10 ** decimals)
    if frac == 0:
        return f"{sign}{whole}"
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{frac_str}"
