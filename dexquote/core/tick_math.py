"""
Tick <-> price conversions for concentrated-liquidity pools.

A tick `t` represents the raw price `1.0001**t` of token1 per token0 (base
units). Pools store `sqrt(price)` as Q64.64. All conversions that feed an
amount are integer-only; the human-price helpers work in log space with
`decimal` so that extreme prices never overflow.

Algorithm Design:
- sqrt_price_x64_from_tick: binary decomposition of |tick| against a table of
  Q128.128 factors `1.0001**(-2**i / 2)`, built once by repeated squaring.
- tick_from_sqrt_price_x64: log estimate, then exact correction against the
  forward function so the round trip is exact for every tick in the domain.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal, localcontext
from enum import Enum
from fractions import Fraction
from functools import lru_cache
from typing import Optional, Tuple, Union

from ..errors import PriceOutOfRange, TickOutOfRange
from ..state.balances import MintId, pair_orientation
from .fixed_point import MAX_UINT128, Q128, isqrt, parse_decimal_fraction, require_int


MIN_TICK = -443636
MAX_TICK = 443636
TICK_ARRAY_SIZE = 60

# |tick| must fit the factor table below.
TICK_TABLE_BITS = 19
ABSOLUTE_MAX_TICK = (1 << TICK_TABLE_BITS) - 1

_MAX_UINT256 = (1 << 256) - 1
_LOG_PREC = 60


def _build_factor_table() -> Tuple[int, ...]:
    # factor[i] = floor(2**128 * 1.0001**(-(2**i) / 2))
    first = isqrt((10_000 << 256) // 10_001)
    table = [first]
    for _ in range(1, TICK_TABLE_BITS):
        prev = table[-1]
        table.append((prev * prev) >> 128)
    return tuple(table)


_FACTORS_X128 = _build_factor_table()


def _check_tick(tick: int, min_tick: int, max_tick: int) -> None:
    require_int("tick", tick)
    if tick < min_tick or tick > max_tick:
        raise TickOutOfRange(tick, min_tick, max_tick)


@lru_cache(maxsize=8192)
def _sqrt_price_x64_at(tick: int) -> int:
    abs_tick = -tick if tick < 0 else tick
    ratio = Q128
    for i in range(TICK_TABLE_BITS):
        if abs_tick & (1 << i):
            ratio = (ratio * _FACTORS_X128[i]) >> 128
    if tick > 0:
        ratio = _MAX_UINT256 // ratio
    return ratio >> 64


def sqrt_price_x64_from_tick(tick: int, *, min_tick: int = MIN_TICK, max_tick: int = MAX_TICK) -> int:
    """
    Compute `sqrt(1.0001**tick)` as Q64.64 (floor).

    Raises:
        TickOutOfRange: if `tick` is outside `[min_tick, max_tick]`.
    """
    _check_tick(tick, min_tick, max_tick)
    if max(-min_tick, max_tick) > ABSOLUTE_MAX_TICK:
        raise ValueError(f"tick bounds exceed the supported domain of +/-{ABSOLUTE_MAX_TICK}")
    return _sqrt_price_x64_at(tick)


MIN_SQRT_PRICE_X64 = _sqrt_price_x64_at(MIN_TICK)
MAX_SQRT_PRICE_X64 = _sqrt_price_x64_at(MAX_TICK)

_LOG_SQRT_1_0001 = math.log(1.0001) / 2
_LOG_Q64 = 64 * math.log(2)


def tick_from_sqrt_price_x64(sqrt_price_x64: int, *, min_tick: int = MIN_TICK, max_tick: int = MAX_TICK) -> int:
    """
    Greatest tick `t` with `sqrt_price_x64_from_tick(t) <= sqrt_price_x64`.

    Raises:
        PriceOutOfRange: if the sqrt price lies outside the domain spanned by
        `[min_tick, max_tick]`.
    """
    require_int("sqrt_price_x64", sqrt_price_x64)
    low = sqrt_price_x64_from_tick(min_tick, min_tick=min_tick, max_tick=max_tick)
    high = sqrt_price_x64_from_tick(max_tick, min_tick=min_tick, max_tick=max_tick)
    if not (low <= sqrt_price_x64 <= high):
        raise PriceOutOfRange(f"sqrt_price_x64 must be in [{low}, {high}], got {sqrt_price_x64}")

    # The float estimate is only a starting point; the loops below make the result exact.
    estimate = math.floor((math.log(sqrt_price_x64) - _LOG_Q64) / _LOG_SQRT_1_0001)
    tick = min(max_tick, max(min_tick, estimate))
    while tick > min_tick and _sqrt_price_x64_at(tick) > sqrt_price_x64:
        tick -= 1
    while tick < max_tick and _sqrt_price_x64_at(tick + 1) <= sqrt_price_x64:
        tick += 1
    return tick


@dataclass(frozen=True)
class PriceView:
    """Human-readable prices derived from a pool's sqrt price."""

    token1_per_token0: Fraction
    token0_per_token1: Fraction


def price_from_sqrt_price_x64(sqrt_price_x64: int, decimals0: int, decimals1: int) -> PriceView:
    """
    Square the Q64.64 sqrt price into a Q128.128 raw price (token1 per token0
    in base units) and rescale by `10**(decimals0 - decimals1)`.
    """
    require_int("sqrt_price_x64", sqrt_price_x64)
    if sqrt_price_x64 < 0:
        raise ValueError("sqrt_price_x64 must be non-negative")
    raw = Fraction(sqrt_price_x64 * sqrt_price_x64, Q128)
    human = raw * Fraction(10) ** (decimals0 - decimals1)
    reciprocal = Fraction(0) if human == 0 else 1 / human
    return PriceView(token1_per_token0=human, token0_per_token1=reciprocal)


def _token_decimals(a_is_0: bool, decimals_a: int, decimals_b: int) -> Tuple[int, int]:
    if a_is_0:
        return decimals_a, decimals_b
    return decimals_b, decimals_a


def sqrt_price_x64_from_human_price(
    price_a_per_b: str,
    *,
    mint_a: MintId,
    mint_b: MintId,
    decimals_a: int,
    decimals_b: int,
    mint0: MintId,
    mint1: MintId,
) -> int:
    """
    Convert a UI "A per B" decimal price into the pool's Q64.64 sqrt price.

    The pool price is token1 per token0 in base units, so the UI price is
    inverted when A is token0 and rescaled by the decimal difference. The
    result is floor(sqrt(price * 2**128)).

    Raises:
        ValueError: for a malformed or zero price.
        InvalidInputMint: if A/B are not the pool's two mints.
        PriceOutOfRange: if the sqrt price does not fit in 128 bits.
    """
    price = parse_decimal_fraction(price_a_per_b)
    if price == 0:
        raise ValueError("price must be greater than 0")

    a_is_0 = pair_orientation(mint_a, mint_b, mint0, mint1)
    decimals0, decimals1 = _token_decimals(a_is_0, decimals_a, decimals_b)

    price_1_per_0 = 1 / price if a_is_0 else price
    raw = price_1_per_0 * Fraction(10) ** (decimals1 - decimals0)
    sqrt_price = isqrt((raw.numerator << 128) // raw.denominator)
    if sqrt_price > MAX_UINT128:
        raise PriceOutOfRange(f"price {price_a_per_b} is out of the supported range")
    return sqrt_price


def tick_from_human_price(
    price_a_per_b: Union[str, Decimal, Fraction],
    *,
    mint_a: MintId,
    mint_b: MintId,
    decimals_a: int,
    decimals_b: int,
    mint0: MintId,
    mint1: MintId,
) -> int:
    """
    Convert a UI "A per B" price into a raw tick (not snapped to spacing).

    Computed in log space: `floor((±ln(price) + (dec1 - dec0) * ln(10)) / ln(1.0001))`.
    """
    if isinstance(price_a_per_b, str):
        price_a_per_b = parse_decimal_fraction(price_a_per_b)
    if price_a_per_b <= 0:
        raise ValueError(f"price must be positive: {price_a_per_b}")

    a_is_0 = pair_orientation(mint_a, mint_b, mint0, mint1)
    decimals0, decimals1 = _token_decimals(a_is_0, decimals_a, decimals_b)

    with localcontext() as ctx:
        ctx.prec = _LOG_PREC
        if isinstance(price_a_per_b, Fraction):
            price = Decimal(price_a_per_b.numerator) / Decimal(price_a_per_b.denominator)
        else:
            price = Decimal(price_a_per_b)
        log_human = -price.ln() if a_is_0 else price.ln()
        log_base = log_human + (decimals1 - decimals0) * Decimal(10).ln()
        tick = (log_base / Decimal("1.0001").ln()).to_integral_value(rounding=ROUND_FLOOR)
    return int(tick)


def clamp_to_spacing(tick: int, spacing: int, *, min_tick: int = MIN_TICK, max_tick: int = MAX_TICK) -> int:
    """
    Round `tick` to the nearest multiple of `spacing` (ties go down) and pull
    it inside the spacing-aligned domain `[ceil(min/s)*s, floor(max/s)*s]`.
    """
    require_int("tick", tick)
    require_int("spacing", spacing)
    if spacing <= 0:
        raise ValueError(f"tick spacing must be positive: {spacing}")
    q, r = divmod(tick, spacing)
    if 2 * r > spacing:
        q += 1
    snapped = q * spacing
    min_allowed = -((-min_tick) // spacing) * spacing
    max_allowed = (max_tick // spacing) * spacing
    return min(max_allowed, max(min_allowed, snapped))


def tick_array_start(tick: int, spacing: int, array_size: int = TICK_ARRAY_SIZE) -> int:
    """Start index of the fixed-size tick array bucket containing `tick`."""
    require_int("tick", tick)
    require_int("spacing", spacing)
    require_int("array_size", array_size)
    if spacing <= 0 or array_size <= 0:
        raise ValueError("spacing and array_size must be positive")
    span = spacing * array_size
    return (tick // span) * span


class PriceMode(Enum):
    FULL = "FULL"
    CUSTOM = "CUSTOM"


def tick_range_from_price_mode(
    mode: PriceMode,
    spacing: int,
    *,
    mint_a: MintId,
    mint_b: MintId,
    decimals_a: int,
    decimals_b: int,
    mint0: MintId,
    mint1: MintId,
    min_price_a_per_b: Optional[str] = None,
    max_price_a_per_b: Optional[str] = None,
    min_tick: int = MIN_TICK,
    max_tick: int = MAX_TICK,
) -> Tuple[int, int]:
    """
    Resolve a position's (tick_lower, tick_upper) from a price mode.

    FULL spans the whole spacing-aligned domain. CUSTOM converts the two UI
    prices to ticks, orders them (inverting an "A per B" price flips the
    order), rounds the lower tick down and the upper tick up to the spacing,
    and widens a range that collapses to one tick by a single spacing.
    """
    if mode is PriceMode.FULL:
        lower = clamp_to_spacing(min_tick, spacing, min_tick=min_tick, max_tick=max_tick)
        upper = clamp_to_spacing(max_tick, spacing, min_tick=min_tick, max_tick=max_tick)
        return lower, upper

    if min_price_a_per_b is None or max_price_a_per_b is None:
        raise ValueError("min and max prices are required for a custom range")
    require_int("spacing", spacing)
    if spacing <= 0:
        raise ValueError(f"tick spacing must be positive: {spacing}")

    pair = dict(
        mint_a=mint_a,
        mint_b=mint_b,
        decimals_a=decimals_a,
        decimals_b=decimals_b,
        mint0=mint0,
        mint1=mint1,
    )
    raw_lower, raw_upper = sorted(
        (
            tick_from_human_price(min_price_a_per_b, **pair),
            tick_from_human_price(max_price_a_per_b, **pair),
        )
    )
    min_allowed = -((-min_tick) // spacing) * spacing
    max_allowed = (max_tick // spacing) * spacing
    lower = min(max_allowed, max(min_allowed, (raw_lower // spacing) * spacing))
    upper = min(max_allowed, max(min_allowed, -((-raw_upper) // spacing) * spacing))
    if upper <= lower:
        upper = lower + spacing
        if upper > max_allowed:
            upper = max_allowed
            lower = max_allowed - spacing
    return lower, upper
