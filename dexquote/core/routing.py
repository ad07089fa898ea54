"""
Best single-hop route selection across heterogeneous pools.

Every pool that trades the requested pair is quoted independently. A pool that
raises, is swap-disabled, or cannot fill the request is excluded and logged;
it never aborts the comparison across the others.
A malformed amount or slippage raises before any pool is quoted.

Selection:
- exact-in: greatest `min_amount_out`,
- exact-out: smallest `max_amount_in`.

Determinism:
- Ties are broken by pool-type priority (`EngineConfig.pool_type_priority`,
  constant-product first by default), then lexicographically by pool_id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from ..state.balances import Amount, MintId, pair_matches
from ..state.pools import Pool
from .amm_dispatch import route_exact_in_for_pool, route_exact_out_for_pool
from .clmm import ClmmSwapComputer
from .config import DEFAULT_CONFIG, EngineConfig
from .fixed_point import require_bps, require_non_negative
from .quote import RouteOutcome, RouteResult, SwapMode


@dataclass(frozen=True)
class CandidateSet:
    routes: Tuple[RouteResult, ...]
    # pool_id -> reason the pool contributed no candidate
    excluded: Dict[str, str] = field(default_factory=dict)


def _only_mode(candidates: Iterable[RouteResult], mode: SwapMode) -> List[RouteResult]:
    out = []
    for c in candidates:
        if c.mode is not mode:
            raise ValueError(f"cannot compare a {c.mode.value} candidate in a {mode.value} selection")
        out.append(c)
    return out


def _exact_in_key(r: RouteResult, config: EngineConfig) -> Tuple[int, int, str]:
    return (-r.bound, config.pool_type_rank(r.pool_type), r.pool_id)


def _exact_out_key(r: RouteResult, config: EngineConfig) -> Tuple[int, int, str]:
    return (r.bound, config.pool_type_rank(r.pool_type), r.pool_id)


def select_best_exact_in(
    candidates: Iterable[RouteResult], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[RouteResult]:
    """Pick the candidate with the greatest positive `min_amount_out`, or None."""
    usable = [c for c in _only_mode(candidates, SwapMode.EXACT_IN) if c.bound > 0]
    if not usable:
        return None
    return min(usable, key=lambda r: _exact_in_key(r, config))


def select_best_exact_out(
    candidates: Iterable[RouteResult], config: EngineConfig = DEFAULT_CONFIG
) -> Optional[RouteResult]:
    """Pick the candidate with the smallest positive `max_amount_in`, or None."""
    usable = [
        c for c in _only_mode(candidates, SwapMode.EXACT_OUT) if c.bound > 0 and c.quote.amount_out > 0
    ]
    if not usable:
        return None
    return min(usable, key=lambda r: _exact_out_key(r, config))


def _collect(
    pools: Sequence[Pool],
    *,
    mode: SwapMode,
    input_mint: MintId,
    output_mint: MintId,
    amount: Amount,
    slippage_bps: Optional[int],
    clmm_computer: Optional[ClmmSwapComputer],
    config: EngineConfig,
) -> CandidateSet:
    # Request-level errors belong to the caller, not to any one pool.
    require_non_negative("amount", amount)
    if slippage_bps is None:
        slippage_bps = config.default_slippage_bps
    require_bps(slippage_bps)

    routes: List[RouteResult] = []
    excluded: Dict[str, str] = {}

    for pool in pools:
        if not pair_matches(input_mint, output_mint, pool.mint0, pool.mint1):
            continue
        try:
            outcome: RouteOutcome
            if mode is SwapMode.EXACT_IN:
                outcome = route_exact_in_for_pool(
                    pool,
                    input_mint=input_mint,
                    output_mint=output_mint,
                    amount_in=amount,
                    slippage_bps=slippage_bps,
                    clmm_computer=clmm_computer,
                    config=config,
                )
            else:
                outcome = route_exact_out_for_pool(
                    pool,
                    input_mint=input_mint,
                    output_mint=output_mint,
                    amount_out=amount,
                    slippage_bps=slippage_bps,
                    clmm_computer=clmm_computer,
                    config=config,
                )
        except Exception as exc:
            reason = getattr(exc, "code", type(exc).__name__)
            logger.debug("excluding pool {} from {} routing: {} ({})", pool.pool_id, mode.value, reason, exc)
            excluded[pool.pool_id] = reason
            continue

        if not outcome.ok:
            logger.debug("excluding pool {} from {} routing: {}", pool.pool_id, mode.value, outcome.error)
            excluded[pool.pool_id] = outcome.error
            continue

        route = outcome.unwrap()
        if route.bound <= 0:
            logger.debug("excluding pool {} from {} routing: zero bound", pool.pool_id, mode.value)
            excluded[pool.pool_id] = "ZeroAmount"
            continue
        routes.append(route)

    return CandidateSet(routes=tuple(routes), excluded=excluded)


def collect_candidates_exact_in(
    pools: Sequence[Pool],
    *,
    input_mint: MintId,
    output_mint: MintId,
    amount_in: Amount,
    slippage_bps: Optional[int] = None,
    clmm_computer: Optional[ClmmSwapComputer] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> CandidateSet:
    return _collect(
        pools,
        mode=SwapMode.EXACT_IN,
        input_mint=input_mint,
        output_mint=output_mint,
        amount=amount_in,
        slippage_bps=slippage_bps,
        clmm_computer=clmm_computer,
        config=config,
    )


def collect_candidates_exact_out(
    pools: Sequence[Pool],
    *,
    input_mint: MintId,
    output_mint: MintId,
    amount_out: Amount,
    slippage_bps: Optional[int] = None,
    clmm_computer: Optional[ClmmSwapComputer] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> CandidateSet:
    return _collect(
        pools,
        mode=SwapMode.EXACT_OUT,
        input_mint=input_mint,
        output_mint=output_mint,
        amount=amount_out,
        slippage_bps=slippage_bps,
        clmm_computer=clmm_computer,
        config=config,
    )


def best_route_exact_in(
    pools: Sequence[Pool],
    *,
    input_mint: MintId,
    output_mint: MintId,
    amount_in: Amount,
    slippage_bps: Optional[int] = None,
    clmm_computer: Optional[ClmmSwapComputer] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[RouteResult]:
    """
    Quote every pool for the pair and return the best exact-in route.

    Returns None when no pool produced a positive `min_amount_out`.
    """
    if input_mint == output_mint:
        return None
    candidates = collect_candidates_exact_in(
        pools,
        input_mint=input_mint,
        output_mint=output_mint,
        amount_in=amount_in,
        slippage_bps=slippage_bps,
        clmm_computer=clmm_computer,
        config=config,
    )
    best = select_best_exact_in(candidates.routes, config)
    if best is not None:
        logger.debug("best exact-in route: {} pool {} min_out={}", best.pool_type.value, best.pool_id, best.bound)
    return best


def best_route_exact_out(
    pools: Sequence[Pool],
    *,
    input_mint: MintId,
    output_mint: MintId,
    amount_out: Amount,
    slippage_bps: Optional[int] = None,
    clmm_computer: Optional[ClmmSwapComputer] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[RouteResult]:
    """
    Quote every pool for the pair and return the best exact-out route.

    Returns None when no pool can deliver `amount_out`.
    """
    if input_mint == output_mint:
        return None
    candidates = collect_candidates_exact_out(
        pools,
        input_mint=input_mint,
        output_mint=output_mint,
        amount_out=amount_out,
        slippage_bps=slippage_bps,
        clmm_computer=clmm_computer,
        config=config,
    )
    best = select_best_exact_out(candidates.routes, config)
    if best is not None:
        logger.debug("best exact-out route: {} pool {} max_in={}", best.pool_type.value, best.pool_id, best.bound)
    return best
