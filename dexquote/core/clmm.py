"""
Concentrated-liquidity quoter.

The multi-tick price walk needs the pool's initialized tick arrays and is
supplied by the caller as a `ClmmSwapComputer`. This module validates the
request, forwards it with the caller's slippage, and normalizes the result
into the shared `Quote` / `RouteResult` shapes.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Optional, Protocol

from ..errors import InsufficientLiquidity, InvalidInputMint, PoolSwapDisabled
from ..state.balances import Amount, MintId, pair_matches
from ..state.pools import ConcentratedLiquidityPool
from .config import DEFAULT_CONFIG, EngineConfig
from .fixed_point import apply_slippage_down, apply_slippage_up, require_non_negative
from .quote import AmountOutcome, RouteOutcome, RouteResult, SwapMode, build_quote


@dataclass(frozen=True)
class ClmmSwapComputation:
    """
    What a tick-walk routine reports back.

    `price_impact` is a ratio (Fraction(1, 100) == 1%). `bound` is the
    routine's own slippage-adjusted limit, if it computes one.
    """

    amount_in: Amount
    amount_out: Amount
    price_impact: Fraction = Fraction(0)
    fee_amount: Amount = 0
    bound: Optional[Amount] = None

    def __post_init__(self) -> None:
        for name in ("amount_in", "amount_out", "fee_amount"):
            require_non_negative(name, getattr(self, name))
        if self.bound is not None:
            require_non_negative("bound", self.bound)
        if not isinstance(self.price_impact, Fraction):
            object.__setattr__(self, "price_impact", Fraction(self.price_impact))


class ClmmSwapComputer(Protocol):
    def compute_exact_in(
        self, pool: ConcentratedLiquidityPool, *, input_mint: MintId, amount_in: Amount, slippage_bps: int
    ) -> ClmmSwapComputation: ...

    def compute_exact_out(
        self, pool: ConcentratedLiquidityPool, *, output_mint: MintId, amount_out: Amount, slippage_bps: int
    ) -> ClmmSwapComputation: ...


def check_pair(pool: ConcentratedLiquidityPool, input_mint: MintId, output_mint: MintId) -> bool:
    """Return True when the input is token0; raise InvalidInputMint for a foreign mint."""
    if not pair_matches(input_mint, output_mint, pool.mint0, pool.mint1):
        bad = output_mint if input_mint in (pool.mint0, pool.mint1) else input_mint
        raise InvalidInputMint(bad, pool.pool_id)
    return input_mint == pool.mint0


def normalize_exact_in(requested_in: Amount, computed: ClmmSwapComputation) -> AmountOutcome:
    """A walk that could not spend the whole input ran out of liquidity."""
    if computed.amount_in > requested_in:
        raise ValueError(f"swap computer spent {computed.amount_in} > requested {requested_in}")
    if computed.amount_in < requested_in:
        return AmountOutcome.failure(InsufficientLiquidity.code)
    return AmountOutcome.success(computed.amount_out)


def normalize_exact_out(requested_out: Amount, computed: ClmmSwapComputation) -> AmountOutcome:
    """A walk that could not deliver the whole output ran out of liquidity."""
    if computed.amount_out < requested_out:
        return AmountOutcome.failure(InsufficientLiquidity.code)
    return AmountOutcome.success(computed.amount_in)


def _prepare(pool: ConcentratedLiquidityPool, input_mint: MintId, output_mint: MintId, amount: Amount) -> None:
    require_non_negative("amount", amount)
    check_pair(pool, input_mint, output_mint)
    if pool.swap_disabled:
        raise PoolSwapDisabled(pool.pool_id, pool.status)


def _route(
    pool: ConcentratedLiquidityPool,
    *,
    mode: SwapMode,
    input_mint: MintId,
    output_mint: MintId,
    amount_in: Amount,
    amount_out: Amount,
    impact: Fraction,
    bound: Amount,
    slippage_bps: int,
    config: EngineConfig,
) -> RouteOutcome:
    quote = build_quote(
        input_mint=input_mint,
        output_mint=output_mint,
        amount_in=amount_in,
        amount_out=amount_out,
        input_decimals=pool.decimals_of(input_mint),
        output_decimals=pool.decimals_of(output_mint),
        impact=impact,
        implied_price_scale=config.implied_price_scale,
        significant_digits=config.price_impact_significant_digits,
    )
    return RouteOutcome.success(
        RouteResult(
            quote=quote,
            mode=mode,
            slippage_bps=slippage_bps,
            bound=bound,
            pool_type=pool.pool_type,
            pool_id=pool.pool_id,
        )
    )


def route_exact_in(
    pool: ConcentratedLiquidityPool,
    computer: ClmmSwapComputer,
    input_mint: MintId,
    output_mint: MintId,
    amount_in: Amount,
    slippage_bps: Optional[int] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> RouteOutcome:
    if slippage_bps is None:
        slippage_bps = config.default_slippage_bps
    _prepare(pool, input_mint, output_mint, amount_in)
    if amount_in == 0:
        computed = ClmmSwapComputation(amount_in=0, amount_out=0)
    else:
        try:
            computed = computer.compute_exact_in(
                pool, input_mint=input_mint, amount_in=amount_in, slippage_bps=slippage_bps
            )
        except InsufficientLiquidity:
            return RouteOutcome.failure(InsufficientLiquidity.code)

    outcome = normalize_exact_in(amount_in, computed)
    if not outcome.ok:
        return RouteOutcome.failure(outcome.error)
    amount_out = outcome.unwrap()

    bound = computed.bound if computed.bound is not None else apply_slippage_down(amount_out, slippage_bps)
    if bound > amount_out:
        raise ValueError(f"minimum output {bound} exceeds quoted output {amount_out}")
    return _route(
        pool,
        mode=SwapMode.EXACT_IN,
        input_mint=input_mint,
        output_mint=output_mint,
        amount_in=amount_in,
        amount_out=amount_out,
        impact=computed.price_impact,
        bound=bound,
        slippage_bps=slippage_bps,
        config=config,
    )


def route_exact_out(
    pool: ConcentratedLiquidityPool,
    computer: ClmmSwapComputer,
    input_mint: MintId,
    output_mint: MintId,
    amount_out: Amount,
    slippage_bps: Optional[int] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> RouteOutcome:
    if slippage_bps is None:
        slippage_bps = config.default_slippage_bps
    _prepare(pool, input_mint, output_mint, amount_out)
    if amount_out == 0:
        computed = ClmmSwapComputation(amount_in=0, amount_out=0)
    else:
        try:
            computed = computer.compute_exact_out(
                pool, output_mint=output_mint, amount_out=amount_out, slippage_bps=slippage_bps
            )
        except InsufficientLiquidity:
            return RouteOutcome.failure(InsufficientLiquidity.code)

    outcome = normalize_exact_out(amount_out, computed)
    if not outcome.ok:
        return RouteOutcome.failure(outcome.error)
    amount_in = outcome.unwrap()

    bound = computed.bound if computed.bound is not None else apply_slippage_up(amount_in, slippage_bps)
    if bound < amount_in:
        raise ValueError(f"maximum input {bound} is below quoted input {amount_in}")
    return _route(
        pool,
        mode=SwapMode.EXACT_OUT,
        input_mint=input_mint,
        output_mint=output_mint,
        amount_in=amount_in,
        amount_out=amount_out,
        impact=computed.price_impact,
        bound=bound,
        slippage_bps=slippage_bps,
        config=config,
    )
