"""
Concentrated-liquidity position valuation.

For a position with liquidity `L` over `[sqrt_lower, sqrt_upper]` and current
sqrt price `c` (all sqrt prices Q64.64):

- c <= sqrt_lower: all value is token0,
  amount0 = L * (sqrt_upper - sqrt_lower) * 2**64 / (sqrt_lower * sqrt_upper)
- c >= sqrt_upper: all value is token1,
  amount1 = L * (sqrt_upper - sqrt_lower) / 2**64
- otherwise the range is split at c.

Each amount is a single rounding of an exact rational, so the inverse
(`liquidity_from_amount`) recovers `L` to within one unit whenever a unit of
liquidity is worth at least one base unit of the token.

Amounts leaving the pool round down; amounts owed to the pool (deposits)
round up.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from loguru import logger

from ..errors import DivisionByZero
from ..state.balances import Amount, TokenAmount
from ..state.pools import ConcentratedLiquidityPool
from ..state.positions import Position
from .config import DEFAULT_CONFIG, EngineConfig
from .fixed_point import (
    PPM_DENOM,
    Q64,
    Q128,
    apply_buffer_bps,
    apply_slippage_down,
    mul_div_ceil,
    mul_div_floor,
    price_x128_from_sqrt_price_x64,
    require_int,
    require_non_negative,
)
from .tick_math import sqrt_price_x64_from_tick, tick_array_start


def _ordered(sqrt_a: int, sqrt_b: int) -> Tuple[int, int]:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    if sqrt_a <= 0:
        raise DivisionByZero("sqrt price must be positive")
    return sqrt_a, sqrt_b


def amount0_for_liquidity(sqrt_a: int, sqrt_b: int, liquidity: int, *, round_up: bool = False) -> Amount:
    """L * (sqrt_b - sqrt_a) * 2**64 / (sqrt_a * sqrt_b)."""
    require_non_negative("liquidity", liquidity)
    lo, hi = _ordered(sqrt_a, sqrt_b)
    div = mul_div_ceil if round_up else mul_div_floor
    return div(liquidity * Q64, hi - lo, lo * hi)


def amount1_for_liquidity(sqrt_a: int, sqrt_b: int, liquidity: int, *, round_up: bool = False) -> Amount:
    """L * (sqrt_b - sqrt_a) / 2**64."""
    require_non_negative("liquidity", liquidity)
    lo, hi = _ordered(sqrt_a, sqrt_b)
    div = mul_div_ceil if round_up else mul_div_floor
    return div(liquidity, hi - lo, Q64)


def _range_sqrt_prices(tick_lower: int, tick_upper: int, config: EngineConfig) -> Tuple[int, int]:
    require_int("tick_lower", tick_lower)
    require_int("tick_upper", tick_upper)
    if tick_lower >= tick_upper:
        raise ValueError(f"tick_lower must be below tick_upper: {tick_lower} >= {tick_upper}")
    bounds = dict(min_tick=config.min_tick, max_tick=config.max_tick)
    return sqrt_price_x64_from_tick(tick_lower, **bounds), sqrt_price_x64_from_tick(tick_upper, **bounds)


def amounts_from_liquidity(
    liquidity: int,
    tick_lower: int,
    tick_upper: int,
    sqrt_price_x64: int,
    *,
    round_up: bool = False,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Tuple[Amount, Amount]:
    """Token amounts (amount0, amount1) held by `liquidity` over the tick range at the given price."""
    require_non_negative("sqrt_price_x64", sqrt_price_x64)
    sqrt_lower, sqrt_upper = _range_sqrt_prices(tick_lower, tick_upper, config)

    if sqrt_price_x64 <= sqrt_lower:
        return amount0_for_liquidity(sqrt_lower, sqrt_upper, liquidity, round_up=round_up), 0
    if sqrt_price_x64 >= sqrt_upper:
        return 0, amount1_for_liquidity(sqrt_lower, sqrt_upper, liquidity, round_up=round_up)
    return (
        amount0_for_liquidity(sqrt_price_x64, sqrt_upper, liquidity, round_up=round_up),
        amount1_for_liquidity(sqrt_lower, sqrt_price_x64, liquidity, round_up=round_up),
    )


def amounts_from_liquidity_at_tick(
    liquidity: int,
    tick_lower: int,
    tick_upper: int,
    current_tick: int,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Tuple[Amount, Amount]:
    current = sqrt_price_x64_from_tick(current_tick, min_tick=config.min_tick, max_tick=config.max_tick)
    return amounts_from_liquidity(liquidity, tick_lower, tick_upper, current, config=config)


def liquidity_from_amount(
    amount: Amount,
    tick_lower: int,
    tick_upper: int,
    sqrt_price_x64: int,
    is_token0: bool,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> int:
    """
    Liquidity obtainable from `amount` of one token (floor).

    Returns 0 when the range holds none of that token at the current price:
    token0 above the range, token1 below it.
    """
    require_non_negative("amount", amount)
    require_non_negative("sqrt_price_x64", sqrt_price_x64)
    sqrt_lower, sqrt_upper = _range_sqrt_prices(tick_lower, tick_upper, config)

    if is_token0:
        if sqrt_price_x64 >= sqrt_upper:
            return 0
        lo = max(sqrt_price_x64, sqrt_lower)
        return mul_div_floor(amount * lo, sqrt_upper, Q64 * (sqrt_upper - lo))

    if sqrt_price_x64 <= sqrt_lower:
        return 0
    hi = min(sqrt_price_x64, sqrt_upper)
    return mul_div_floor(amount, Q64, hi - sqrt_lower)


def liquidity_from_amounts(
    amount0: Amount,
    amount1: Amount,
    tick_lower: int,
    tick_upper: int,
    sqrt_price_x64: int,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> int:
    """Largest liquidity both amounts can fund; inside the range the scarcer side binds."""
    sqrt_lower, sqrt_upper = _range_sqrt_prices(tick_lower, tick_upper, config)
    l0 = liquidity_from_amount(amount0, tick_lower, tick_upper, sqrt_price_x64, True, config=config)
    l1 = liquidity_from_amount(amount1, tick_lower, tick_upper, sqrt_price_x64, False, config=config)
    if sqrt_price_x64 <= sqrt_lower:
        return l0
    if sqrt_price_x64 >= sqrt_upper:
        return l1
    return min(l0, l1)


def position_token_amounts(
    pool: ConcentratedLiquidityPool, position: Position, *, config: EngineConfig = DEFAULT_CONFIG
) -> Tuple[TokenAmount, TokenAmount]:
    """Current value of a position as decimal-aware token amounts."""
    amount0, amount1 = amounts_from_liquidity(
        position.liquidity, position.tick_lower, position.tick_upper, pool.sqrt_price_x64, config=config
    )
    return TokenAmount(pool.mint0, amount0, pool.decimals0), TokenAmount(pool.mint1, amount1, pool.decimals1)


def choose_base_flag(amount0_max: Amount, amount1_max: Amount, sqrt_price_x64: int) -> bool:
    """
    Pick the anchor side for opening a position sized by amounts alone.

    Returns True to anchor on token0, False for token1. Anchoring on a side
    is feasible when the other side's maximum covers what that anchor requires
    at the current price. When both are feasible, prefer the one leaving the
    smaller unused share (in ppm) on the other side; an exact tie anchors on
    token0.

    Raises:
        ValueError: if neither side can anchor within the given maxima.
    """
    require_non_negative("amount0_max", amount0_max)
    require_non_negative("amount1_max", amount1_max)
    if amount0_max == 0 and amount1_max > 0:
        return False
    if amount1_max == 0 and amount0_max > 0:
        return True

    price_x128 = price_x128_from_sqrt_price_x64(sqrt_price_x64)
    required1 = mul_div_floor(amount0_max, price_x128, Q128)
    required0 = mul_div_floor(amount1_max, Q128, price_x128)
    ok_base0 = required1 <= amount1_max
    ok_base1 = required0 <= amount0_max

    if ok_base0 and not ok_base1:
        return True
    if ok_base1 and not ok_base0:
        return False
    if ok_base0 and ok_base1:
        left1_ppm = 0 if amount1_max == 0 else (amount1_max - required1) * PPM_DENOM // amount1_max
        left0_ppm = 0 if amount0_max == 0 else (amount0_max - required0) * PPM_DENOM // amount0_max
        return left1_ppm <= left0_ppm
    raise ValueError("neither token can anchor the position within the given maximum amounts")


def _check_position_range(pool: ConcentratedLiquidityPool, tick_lower: int, tick_upper: int) -> None:
    if tick_lower % pool.tick_spacing != 0 or tick_upper % pool.tick_spacing != 0:
        raise ValueError(f"ticks ({tick_lower}, {tick_upper}) must be multiples of tick_spacing {pool.tick_spacing}")


@dataclass(frozen=True)
class OpenPositionPreview:
    tick_lower: int
    tick_upper: int
    tick_array_lower_start: int
    tick_array_upper_start: int
    liquidity: int
    amount0: Amount
    amount1: Amount
    amount0_max: Amount
    amount1_max: Amount
    base_flag: bool


def open_position_preview(
    pool: ConcentratedLiquidityPool,
    tick_lower: int,
    tick_upper: int,
    amount: Amount,
    is_token0: bool,
    buffer_bps: Optional[int] = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> OpenPositionPreview:
    """
    Size a deposit from one side's amount.

    Liquidity is derived from `amount` of the chosen token; the amounts of both
    tokens it requires are rounded up, and the maxima add `buffer_bps` of
    headroom so rounding inside the pool program cannot trip its slippage check.
    """
    if buffer_bps is None:
        buffer_bps = config.position_amount_buffer_bps
    _check_position_range(pool, tick_lower, tick_upper)

    liquidity = liquidity_from_amount(amount, tick_lower, tick_upper, pool.sqrt_price_x64, is_token0, config=config)
    if liquidity == 0 and amount > 0:
        logger.debug(
            "{} amount {} adds no liquidity to range [{}, {}] at pool {}",
            "token0" if is_token0 else "token1",
            amount,
            tick_lower,
            tick_upper,
            pool.pool_id,
        )
    amount0, amount1 = amounts_from_liquidity(
        liquidity, tick_lower, tick_upper, pool.sqrt_price_x64, round_up=True, config=config
    )
    return OpenPositionPreview(
        tick_lower=tick_lower,
        tick_upper=tick_upper,
        tick_array_lower_start=tick_array_start(tick_lower, pool.tick_spacing, config.tick_array_size),
        tick_array_upper_start=tick_array_start(tick_upper, pool.tick_spacing, config.tick_array_size),
        liquidity=liquidity,
        amount0=amount0,
        amount1=amount1,
        amount0_max=apply_buffer_bps(amount0, buffer_bps),
        amount1_max=apply_buffer_bps(amount1, buffer_bps),
        base_flag=is_token0,
    )


def increase_liquidity_preview(
    pool: ConcentratedLiquidityPool,
    position: Position,
    amount: Amount,
    is_token0: bool,
    buffer_bps: Optional[int] = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> OpenPositionPreview:
    if position.pool_id != pool.pool_id:
        raise ValueError(f"position belongs to pool {position.pool_id}, not {pool.pool_id}")
    return open_position_preview(
        pool, position.tick_lower, position.tick_upper, amount, is_token0, buffer_bps, config=config
    )


@dataclass(frozen=True)
class DecreaseLiquidityPreview:
    liquidity: int
    amount0: Amount
    amount1: Amount
    amount0_min: Amount
    amount1_min: Amount
    closes_position: bool


def decrease_liquidity_preview(
    pool: ConcentratedLiquidityPool,
    position: Position,
    liquidity: int,
    slippage_bps: Optional[int] = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> DecreaseLiquidityPreview:
    """
    Token amounts released by removing `liquidity` from `position`, rounded
    down, with slippage-reduced minimums.
    """
    if slippage_bps is None:
        slippage_bps = config.default_slippage_bps
    if position.pool_id != pool.pool_id:
        raise ValueError(f"position belongs to pool {position.pool_id}, not {pool.pool_id}")
    remaining = position.decrease(liquidity)

    amount0, amount1 = amounts_from_liquidity(
        liquidity, position.tick_lower, position.tick_upper, pool.sqrt_price_x64, config=config
    )
    return DecreaseLiquidityPreview(
        liquidity=liquidity,
        amount0=amount0,
        amount1=amount1,
        amount0_min=apply_slippage_down(amount0, slippage_bps),
        amount1_min=apply_slippage_down(amount1, slippage_bps),
        closes_position=remaining.is_closable,
    )
