"""
Constant-product quoter.

Fee model (ppm):
- effective fee = trade fee, plus the creator fee when the pool has creator
  fees enabled and the creator-fee selector covers the input side,
- capped at 1_000_000 ppm.

Exact-in quotes an output amount; exact-out quotes a required input amount as
an `AmountOutcome`, since the pool may not hold enough of the output token.
The integer math lives in `dexquote.kernels.python.cpmm_swap_ppm`.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Optional, Tuple

from ..errors import InsufficientLiquidity, InvalidInputMint, PoolSwapDisabled
from ..kernels.python import cpmm_swap_ppm
from ..state.balances import Amount, MintId, pair_matches
from ..state.pools import ConstantProductPool, CreatorFeeOn
from .config import DEFAULT_CONFIG, EngineConfig
from .fixed_point import PPM_DENOM, apply_fee_ppm, apply_slippage_down, apply_slippage_up, require_non_negative
from .quote import AmountOutcome, RouteOutcome, RouteResult, SwapMode, build_quote


def _input_is_token0(pool: ConstantProductPool, input_mint: MintId) -> bool:
    if input_mint == pool.mint0:
        return True
    if input_mint == pool.mint1:
        return False
    raise InvalidInputMint(input_mint, pool.pool_id)


def _check_swappable(pool: ConstantProductPool) -> None:
    if pool.swap_disabled:
        raise PoolSwapDisabled(pool.pool_id, pool.status)


def _reserves(pool: ConstantProductPool, input_is_0: bool) -> Tuple[Amount, Amount]:
    if input_is_0:
        return pool.reserve0, pool.reserve1
    return pool.reserve1, pool.reserve0


def creator_fee_applies(pool: ConstantProductPool, input_mint: MintId) -> bool:
    input_is_0 = _input_is_token0(pool, input_mint)
    if not pool.enable_creator_fee:
        return False
    side = pool.fee_config.creator_fee_on
    return (
        side is CreatorFeeOn.BOTH_TOKEN
        or (side is CreatorFeeOn.ONLY_TOKEN_0 and input_is_0)
        or (side is CreatorFeeOn.ONLY_TOKEN_1 and not input_is_0)
    )


def effective_fee_ppm(pool: ConstantProductPool, input_mint: MintId) -> int:
    fee = pool.fee_config.trade_fee_rate
    if creator_fee_applies(pool, input_mint):
        fee += pool.fee_config.creator_fee_rate
    return min(fee, PPM_DENOM)


def quote_exact_in(pool: ConstantProductPool, input_mint: MintId, amount_in: Amount) -> Amount:
    """
    Output amount for selling exactly `amount_in` of `input_mint`.

    Returns 0 for a zero input or when either reserve is empty.

    Raises:
        InvalidInputMint: if `input_mint` is not one of the pool's mints.
        PoolSwapDisabled: if the pool status forbids swaps.
    """
    require_non_negative("amount_in", amount_in)
    input_is_0 = _input_is_token0(pool, input_mint)
    _check_swappable(pool)

    reserve_in, reserve_out = _reserves(pool, input_is_0)
    if amount_in == 0 or reserve_in == 0 or reserve_out == 0:
        return 0
    res = cpmm_swap_ppm.swap_exact_in(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_in=amount_in,
        fee_ppm=effective_fee_ppm(pool, input_mint),
    )
    return res.amount_out


def quote_exact_out(pool: ConstantProductPool, output_mint: MintId, amount_out: Amount) -> AmountOutcome:
    """
    Input amount needed to buy exactly `amount_out` of `output_mint`.

    A request the reserves cannot fill yields an `InsufficientLiquidity`
    failure outcome rather than an exception.

    Raises:
        InvalidInputMint: if `output_mint` is not one of the pool's mints.
        PoolSwapDisabled: if the pool status forbids swaps.
        DivisionByZero: if the effective fee on the input side is 100%.
    """
    require_non_negative("amount_out", amount_out)
    output_is_0 = _input_is_token0(pool, output_mint)
    _check_swappable(pool)

    input_is_0 = not output_is_0
    input_mint = pool.mint0 if input_is_0 else pool.mint1
    reserve_in, reserve_out = _reserves(pool, input_is_0)
    if amount_out == 0:
        return AmountOutcome.success(0)
    if reserve_in == 0 or reserve_out == 0 or amount_out >= reserve_out:
        return AmountOutcome.failure(InsufficientLiquidity.code)

    res = cpmm_swap_ppm.swap_exact_out(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_out=amount_out,
        fee_ppm=effective_fee_ppm(pool, input_mint),
    )
    return AmountOutcome.success(res.amount_in)


def spot_price_impact(*, reserve_in: Amount, reserve_out: Amount, net_in: Amount, amount_out: Amount) -> Fraction:
    """
    Execution shortfall against the pre-trade spot price, on the fee-adjusted input:
    `1 - amount_out * reserve_in / (net_in * reserve_out)`.
    """
    if net_in == 0 or reserve_out == 0:
        return Fraction(0)
    return 1 - Fraction(amount_out * reserve_in, net_in * reserve_out)


def _pair_sides(pool: ConstantProductPool, input_mint: MintId, output_mint: MintId) -> bool:
    if not pair_matches(input_mint, output_mint, pool.mint0, pool.mint1):
        bad = output_mint if input_mint in (pool.mint0, pool.mint1) else input_mint
        raise InvalidInputMint(bad, pool.pool_id)
    return input_mint == pool.mint0


def route_exact_in(
    pool: ConstantProductPool,
    input_mint: MintId,
    output_mint: MintId,
    amount_in: Amount,
    slippage_bps: Optional[int] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> RouteOutcome:
    """Quote an exact-in swap and bound it by `min_amount_out`."""
    if slippage_bps is None:
        slippage_bps = config.default_slippage_bps
    input_is_0 = _pair_sides(pool, input_mint, output_mint)
    amount_out = quote_exact_in(pool, input_mint, amount_in)

    reserve_in, reserve_out = _reserves(pool, input_is_0)
    net_in = apply_fee_ppm(amount_in, effective_fee_ppm(pool, input_mint))
    quote = build_quote(
        input_mint=input_mint,
        output_mint=output_mint,
        amount_in=amount_in,
        amount_out=amount_out,
        input_decimals=pool.decimals_of(input_mint),
        output_decimals=pool.decimals_of(output_mint),
        impact=spot_price_impact(reserve_in=reserve_in, reserve_out=reserve_out, net_in=net_in, amount_out=amount_out),
        implied_price_scale=config.implied_price_scale,
        significant_digits=config.price_impact_significant_digits,
    )
    return RouteOutcome.success(
        RouteResult(
            quote=quote,
            mode=SwapMode.EXACT_IN,
            slippage_bps=slippage_bps,
            bound=apply_slippage_down(amount_out, slippage_bps),
            pool_type=pool.pool_type,
            pool_id=pool.pool_id,
        )
    )


def route_exact_out(
    pool: ConstantProductPool,
    input_mint: MintId,
    output_mint: MintId,
    amount_out: Amount,
    slippage_bps: Optional[int] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> RouteOutcome:
    """Quote an exact-out swap and bound it by `max_amount_in`."""
    if slippage_bps is None:
        slippage_bps = config.default_slippage_bps
    input_is_0 = _pair_sides(pool, input_mint, output_mint)
    outcome = quote_exact_out(pool, output_mint, amount_out)
    if not outcome.ok:
        return RouteOutcome.failure(outcome.error)
    amount_in = outcome.unwrap()

    reserve_in, reserve_out = _reserves(pool, input_is_0)
    net_in = apply_fee_ppm(amount_in, effective_fee_ppm(pool, input_mint))
    quote = build_quote(
        input_mint=input_mint,
        output_mint=output_mint,
        amount_in=amount_in,
        amount_out=amount_out,
        input_decimals=pool.decimals_of(input_mint),
        output_decimals=pool.decimals_of(output_mint),
        impact=spot_price_impact(reserve_in=reserve_in, reserve_out=reserve_out, net_in=net_in, amount_out=amount_out),
        implied_price_scale=config.implied_price_scale,
        significant_digits=config.price_impact_significant_digits,
    )
    return RouteOutcome.success(
        RouteResult(
            quote=quote,
            mode=SwapMode.EXACT_OUT,
            slippage_bps=slippage_bps,
            bound=apply_slippage_up(amount_in, slippage_bps),
            pool_type=pool.pool_type,
            pool_id=pool.pool_id,
        )
    )
