"""
Fixed-point integer helpers.

Every money-affecting path in the engine goes through these functions; none of
them touches floating point.

Conventions:
- ppm: parts-per-million, 1_000_000 == 100%.
- bps: basis points, 10_000 == 100%.
- Q64.64: an integer `v` representing `v / 2**64`.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction
from typing import Optional

from loguru import logger

from ..errors import DivisionByZero


PPM_DENOM = 1_000_000
BPS_DENOM = 10_000

Q64 = 1 << 64
Q128 = 1 << 128
MAX_UINT64 = Q64 - 1
MAX_UINT128 = Q128 - 1

_DECIMAL_RE = re.compile(r"[0-9]+(\.[0-9]+)?")


def require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_non_negative(name: str, value: int) -> None:
    require_int(name, value)
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def parse_decimal(text: str, decimals: int) -> int:
    """
    Parse a decimal string into an integer scaled by ``10**decimals``.

    The fractional part is right-padded with zeros or truncated to exactly
    `decimals` digits. Anything other than ASCII digits with an optional
    fraction (signs, exponents, several dots, blanks, a trailing newline,
    non-ASCII digits) parses to 0.
    """
    require_non_negative("decimals", decimals)
    if not isinstance(text, str) or _DECIMAL_RE.fullmatch(text) is None:
        logger.debug("malformed decimal input {!r}; treating as zero", text)
        return 0
    int_part, _, frac_part = text.partition(".")
    frac_part = (frac_part + "0" * decimals)[:decimals]
    return int(int_part + frac_part)


def parse_decimal_fraction(text: str) -> Fraction:
    """Strict variant of `parse_decimal` returning the exact rational value."""
    if not isinstance(text, str):
        raise TypeError("decimal value must be a string")
    value = text.strip()
    if not value:
        raise ValueError("decimal value is required")
    if value.startswith("-"):
        raise ValueError(f"decimal value must be positive: {text!r}")
    if _DECIMAL_RE.fullmatch(value) is None:
        raise ValueError(f"invalid decimal format: {text!r}")
    int_part, _, frac_part = value.partition(".")
    return Fraction(int(int_part + frac_part), 10 ** len(frac_part))


def format_fixed(value: int, decimals: int, display_decimals: Optional[int] = None) -> str:
    """
    Render a scaled integer as a decimal string.

    Trailing zero fractional digits are stripped and the sign is preserved.
    `display_decimals` truncates (never rounds) the fractional part.
    """
    require_int("value", value)
    require_non_negative("decimals", decimals)
    if display_decimals is not None:
        require_non_negative("display_decimals", display_decimals)

    sign = "-" if value < 0 else ""
    magnitude = -value if value < 0 else value
    scale = 10**decimals
    int_part = magnitude // scale
    frac = str(magnitude % scale).rjust(decimals, "0") if decimals else ""
    if display_decimals is not None:
        frac = frac[:display_decimals]
    frac = frac.rstrip("0")
    if int_part == 0 and not frac:
        sign = ""
    return f"{sign}{int_part}.{frac}" if frac else f"{sign}{int_part}"


def mul_div_floor(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) on unbounded integers."""
    if denominator == 0:
        raise DivisionByZero("mul_div_floor division by zero")
    return (a * b) // denominator


def mul_div_ceil(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator) on unbounded integers."""
    if denominator == 0:
        raise DivisionByZero("mul_div_ceil division by zero")
    return -((-(a * b)) // denominator)


def isqrt(n: int) -> int:
    """Integer square root by Newton iteration (floor, exact on perfect squares)."""
    require_int("n", n)
    if n < 0:
        raise ValueError("square root of a negative number")
    if n < 2:
        return n
    x0 = n
    x1 = (x0 + 1) >> 1
    while x1 < x0:
        x0 = x1
        x1 = (x1 + n // x1) >> 1
    return x0


def clamp_ppm(ppm: int) -> int:
    require_int("ppm", ppm)
    return min(PPM_DENOM, max(0, ppm))


def apply_fee_ppm(amount: int, ppm: int) -> int:
    """amount * (1_000_000 - ppm) // 1_000_000 with ppm clamped to [0, 1_000_000]."""
    require_non_negative("amount", amount)
    return (amount * (PPM_DENOM - clamp_ppm(ppm))) // PPM_DENOM


def mul_by_ppm(amount: int, ppm: int) -> int:
    """amount * ppm // 1_000_000 (ppm is not clamped; values above 100% scale up)."""
    require_int("amount", amount)
    require_non_negative("ppm", ppm)
    return (amount * ppm) // PPM_DENOM


def require_bps(slippage_bps: int) -> None:
    require_int("slippage_bps", slippage_bps)
    if not (0 <= slippage_bps <= BPS_DENOM):
        raise ValueError(f"slippage_bps must be in [0, {BPS_DENOM}]: {slippage_bps}")


def apply_slippage_down(amount: int, slippage_bps: int) -> int:
    """Minimum acceptable output: floor(amount * (10_000 - bps) / 10_000)."""
    require_non_negative("amount", amount)
    require_bps(slippage_bps)
    return (amount * (BPS_DENOM - slippage_bps)) // BPS_DENOM


def apply_slippage_up(amount: int, slippage_bps: int) -> int:
    """Maximum acceptable input: floor(amount * (10_000 + bps) / 10_000)."""
    require_non_negative("amount", amount)
    require_bps(slippage_bps)
    return (amount * (BPS_DENOM + slippage_bps)) // BPS_DENOM


def apply_buffer_bps(amount: int, buffer_bps: int) -> int:
    """Add headroom to a max-amount bound; `buffer_bps` may exceed 100%."""
    require_non_negative("amount", amount)
    require_non_negative("buffer_bps", buffer_bps)
    return (amount * (BPS_DENOM + buffer_bps)) // BPS_DENOM


def to_x64(value: int) -> int:
    """Integer -> Q64.64."""
    require_int("value", value)
    return value << 64


def from_x64(value_x64: int) -> int:
    """Q64.64 -> integer part (floor)."""
    require_int("value_x64", value_x64)
    return value_x64 >> 64


def price_x128_from_sqrt_price_x64(sqrt_price_x64: int) -> int:
    """Square a Q64.64 sqrt price into a Q128.128 price."""
    require_non_negative("sqrt_price_x64", sqrt_price_x64)
    return sqrt_price_x64 * sqrt_price_x64


def fraction_to_decimal(value: Fraction, places: int = 18) -> Decimal:
    """Exact rational -> Decimal truncated (toward zero) at `places` fractional digits."""
    scaled = abs(value.numerator) * 10**places // value.denominator
    sign = "-" if value < 0 else ""
    return Decimal(f"{sign}{format_fixed(scaled, places)}")


def round_significant(value: Decimal, digits: int) -> Decimal:
    """Round to `digits` significant digits, half-up. Zero stays zero."""
    if digits <= 0:
        raise ValueError("digits must be positive")
    if value == 0:
        return Decimal(0)
    exponent = value.adjusted() - digits + 1
    return value.quantize(Decimal(1).scaleb(exponent), rounding=ROUND_HALF_UP)
