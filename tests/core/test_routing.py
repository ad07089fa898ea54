from __future__ import annotations

from dataclasses import replace

import pytest

from dexquote.core.clmm import ClmmSwapComputation
from dexquote.core.config import EngineConfig
from dexquote.core.routing import (
    best_route_exact_in,
    best_route_exact_out,
    collect_candidates_exact_in,
    collect_candidates_exact_out,
    select_best_exact_in,
)
from dexquote.core.tick_math import sqrt_price_x64_from_tick
from dexquote.errors import InsufficientLiquidity
from dexquote.state.pools import ConcentratedLiquidityPool, ConstantProductPool, FeeConfig, PoolType


def _cp(pid: str, r0: int, r1: int, fee: int = 0, status: int = 0, a0: str = "A", a1: str = "B") -> ConstantProductPool:
    return ConstantProductPool(
        pool_id=pid,
        mint0=a0,
        mint1=a1,
        decimals0=6,
        decimals1=6,
        vault0=r0,
        vault1=r1,
        fee_config=FeeConfig(trade_fee_rate=fee),
        status=status,
    )


def _cl(pid: str) -> ConcentratedLiquidityPool:
    return ConcentratedLiquidityPool(
        pool_id=pid,
        mint0="A",
        mint1="B",
        decimals0=6,
        decimals1=6,
        sqrt_price_x64=sqrt_price_x64_from_tick(0),
        tick_current=0,
        tick_spacing=1,
    )


class _MirrorCpmm:
    """Quotes a concentrated pool exactly like a fee-less 1000/1000 constant-product pool."""

    def compute_exact_in(self, pool, *, input_mint, amount_in, slippage_bps):
        return ClmmSwapComputation(amount_in=amount_in, amount_out=amount_in * 1_000 // (1_000 + amount_in))

    def compute_exact_out(self, pool, *, output_mint, amount_out, slippage_bps):
        if amount_out >= 1_000:
            raise InsufficientLiquidity("beyond the last tick")
        return ClmmSwapComputation(amount_in=amount_out * 1_000 // (1_000 - amount_out), amount_out=amount_out)


class _Exploding:
    def compute_exact_in(self, pool, *, input_mint, amount_in, slippage_bps):
        raise RuntimeError("tick arrays unavailable")

    compute_exact_out = compute_exact_in


def test_best_route_picks_greatest_min_out():
    pools = [_cp("p_shallow", 1_000, 1_000), _cp("p_deep", 100_000, 100_000)]
    best = best_route_exact_in(pools, input_mint="A", output_mint="B", amount_in=100)
    assert best is not None
    assert best.pool_id == "p_deep"


def test_tie_prefers_constant_product_then_priority_override():
    pools = [_cl("cl"), _cp("cp", 1_000, 1_000)]
    best = best_route_exact_in(pools, input_mint="A", output_mint="B", amount_in=10, clmm_computer=_MirrorCpmm())
    assert best is not None
    assert best.pool_type is PoolType.CPMM

    config = EngineConfig(pool_type_priority=("CLMM", "CPMM"))
    best = best_route_exact_in(
        pools, input_mint="A", output_mint="B", amount_in=10, clmm_computer=_MirrorCpmm(), config=config
    )
    assert best is not None
    assert best.pool_type is PoolType.CLMM


def test_tie_break_is_deterministic():
    # Identical pools tie; the lexicographically smallest pool_id wins.
    pools = [_cp("p2", 1_000, 1_000), _cp("p1", 1_000, 1_000), _cp("p3", 1_000, 1_000)]
    winners = {
        best_route_exact_in(order, input_mint="A", output_mint="B", amount_in=10).pool_id
        for order in (pools, list(reversed(pools)), pools[1:] + pools[:1])
    }
    assert winners == {"p1"}

    again = [best_route_exact_in(pools, input_mint="A", output_mint="B", amount_in=10) for _ in range(3)]
    assert again[0] == again[1] == again[2]


def test_failing_pools_are_excluded_not_fatal():
    pools = [
        _cp("disabled", 1_000_000, 1_000_000, status=0b100),
        _cp("empty", 0, 1_000),
        _cl("broken"),
        _cp("ok", 1_000, 1_000),
        _cp("other_pair", 1_000, 1_000, a0="C", a1="D"),
    ]
    found = collect_candidates_exact_in(
        pools, input_mint="A", output_mint="B", amount_in=10, clmm_computer=_Exploding()
    )
    assert [r.pool_id for r in found.routes] == ["ok"]
    assert found.excluded == {"disabled": "PoolSwapDisabled", "empty": "ZeroAmount", "broken": "RuntimeError"}


def test_no_candidate_returns_none():
    assert best_route_exact_in([], input_mint="A", output_mint="B", amount_in=10) is None
    assert best_route_exact_in([_cp("p", 1_000, 1_000)], input_mint="A", output_mint="A", amount_in=10) is None
    assert best_route_exact_in([_cp("p", 1_000, 1_000)], input_mint="A", output_mint="B", amount_in=0) is None


def test_exact_out_picks_smallest_max_in():
    pools = [_cp("p_shallow", 2_000, 2_000), _cp("p_deep", 100_000, 100_000), _cp("p_tiny", 50, 50)]
    found = collect_candidates_exact_out(pools, input_mint="A", output_mint="B", amount_out=100)
    assert found.excluded == {"p_tiny": "InsufficientLiquidity"}
    best = best_route_exact_out(pools, input_mint="A", output_mint="B", amount_out=100)
    assert best is not None
    assert best.pool_id == "p_deep"
    assert best.max_amount_in is not None and best.max_amount_in >= best.quote.amount_in


def test_exact_out_reports_computer_shortfall():
    found = collect_candidates_exact_out(
        [_cl("cl")], input_mint="A", output_mint="B", amount_out=5_000, clmm_computer=_MirrorCpmm()
    )
    assert found.routes == ()
    assert found.excluded == {"cl": "InsufficientLiquidity"}


def test_selection_rejects_mixed_modes():
    exact_in = best_route_exact_in([_cp("p", 1_000, 1_000)], input_mint="A", output_mint="B", amount_in=10)
    exact_out = best_route_exact_out([_cp("p", 1_000, 1_000)], input_mint="A", output_mint="B", amount_out=10)
    with pytest.raises(ValueError, match="cannot compare"):
        select_best_exact_in([exact_in, exact_out])


def test_selection_ignores_zero_bounds():
    route = best_route_exact_in([_cp("p", 1_000, 1_000)], input_mint="A", output_mint="B", amount_in=10)
    assert select_best_exact_in([replace(route, bound=0)]) is None


@pytest.mark.parametrize(
    "kwargs,exc",
    [
        (dict(amount_in=10, slippage_bps=20_000), ValueError),
        (dict(amount_in=10, slippage_bps=-1), ValueError),
        (dict(amount_in=-5), ValueError),
        (dict(amount_in="5"), TypeError),
    ],
)
def test_malformed_request_raises_instead_of_excluding_every_pool(kwargs, exc):
    pools = [_cp("p1", 1_000, 1_000), _cp("p2", 2_000, 2_000)]
    with pytest.raises(exc):
        collect_candidates_exact_in(pools, input_mint="A", output_mint="B", **kwargs)
    with pytest.raises(exc):
        best_route_exact_in(pools, input_mint="A", output_mint="B", **kwargs)


def test_malformed_exact_out_request_raises():
    with pytest.raises(ValueError, match="slippage_bps"):
        best_route_exact_out(
            [_cp("p", 1_000, 1_000)], input_mint="A", output_mint="B", amount_out=10, slippage_bps=10_001
        )
