"""
Pool-variant dispatch for quoting.

`Pool` is a closed union; every branch below handles one variant and anything
else is rejected, so adding a variant means extending this module.
"""

from __future__ import annotations

from typing import Optional

from ..state.balances import Amount, MintId
from ..state.pools import ConcentratedLiquidityPool, ConstantProductPool, Pool
from . import clmm
from . import cpmm
from .config import DEFAULT_CONFIG, EngineConfig
from .quote import RouteOutcome


def _require_computer(
    pool: ConcentratedLiquidityPool, computer: Optional[clmm.ClmmSwapComputer]
) -> clmm.ClmmSwapComputer:
    if computer is None:
        raise ValueError(f"pool {pool.pool_id} is concentrated-liquidity but no swap computer was supplied")
    return computer


def route_exact_in_for_pool(
    pool: Pool,
    *,
    input_mint: MintId,
    output_mint: MintId,
    amount_in: Amount,
    slippage_bps: Optional[int] = None,
    clmm_computer: Optional[clmm.ClmmSwapComputer] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> RouteOutcome:
    if isinstance(pool, ConstantProductPool):
        return cpmm.route_exact_in(pool, input_mint, output_mint, amount_in, slippage_bps, config)
    if isinstance(pool, ConcentratedLiquidityPool):
        computer = _require_computer(pool, clmm_computer)
        return clmm.route_exact_in(pool, computer, input_mint, output_mint, amount_in, slippage_bps, config)
    raise TypeError(f"unsupported pool variant: {type(pool).__name__}")


def route_exact_out_for_pool(
    pool: Pool,
    *,
    input_mint: MintId,
    output_mint: MintId,
    amount_out: Amount,
    slippage_bps: Optional[int] = None,
    clmm_computer: Optional[clmm.ClmmSwapComputer] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> RouteOutcome:
    if isinstance(pool, ConstantProductPool):
        return cpmm.route_exact_out(pool, input_mint, output_mint, amount_out, slippage_bps, config)
    if isinstance(pool, ConcentratedLiquidityPool):
        computer = _require_computer(pool, clmm_computer)
        return clmm.route_exact_out(pool, computer, input_mint, output_mint, amount_out, slippage_bps, config)
    raise TypeError(f"unsupported pool variant: {type(pool).__name__}")
