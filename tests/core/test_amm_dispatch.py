from __future__ import annotations

import pytest

from dexquote.core import cpmm
from dexquote.core.amm_dispatch import route_exact_in_for_pool, route_exact_out_for_pool
from dexquote.core.clmm import ClmmSwapComputation
from dexquote.core.tick_math import sqrt_price_x64_from_tick
from dexquote.state.pools import ConcentratedLiquidityPool, ConstantProductPool, FeeConfig, PoolType


class _FixedComputer:
    def compute_exact_in(self, pool, *, input_mint, amount_in, slippage_bps):
        return ClmmSwapComputation(amount_in=amount_in, amount_out=amount_in // 2)

    def compute_exact_out(self, pool, *, output_mint, amount_out, slippage_bps):
        return ClmmSwapComputation(amount_in=amount_out * 2, amount_out=amount_out)


CPMM = ConstantProductPool(
    pool_id="cp",
    mint0="A",
    mint1="B",
    decimals0=6,
    decimals1=6,
    vault0=1_000_000,
    vault1=1_000_000,
    fee_config=FeeConfig(trade_fee_rate=3_000),
)

CLMM = ConcentratedLiquidityPool(
    pool_id="cl",
    mint0="A",
    mint1="B",
    decimals0=6,
    decimals1=6,
    sqrt_price_x64=sqrt_price_x64_from_tick(0),
    tick_current=0,
    tick_spacing=1,
)


def test_constant_product_goes_to_cpmm_quoter() -> None:
    got = route_exact_in_for_pool(CPMM, input_mint="A", output_mint="B", amount_in=1_000, slippage_bps=25)
    assert got == cpmm.route_exact_in(CPMM, "A", "B", 1_000, 25)
    got = route_exact_out_for_pool(CPMM, input_mint="A", output_mint="B", amount_out=1_000, slippage_bps=25)
    assert got == cpmm.route_exact_out(CPMM, "A", "B", 1_000, 25)


def test_concentrated_goes_to_computer() -> None:
    route = route_exact_in_for_pool(
        CLMM, input_mint="A", output_mint="B", amount_in=1_000, clmm_computer=_FixedComputer()
    ).unwrap()
    assert route.pool_type is PoolType.CLMM
    assert route.quote.amount_out == 500

    route = route_exact_out_for_pool(
        CLMM, input_mint="A", output_mint="B", amount_out=1_000, clmm_computer=_FixedComputer()
    ).unwrap()
    assert route.quote.amount_in == 2_000


def test_concentrated_without_computer_is_rejected() -> None:
    with pytest.raises(ValueError, match="no swap computer"):
        route_exact_in_for_pool(CLMM, input_mint="A", output_mint="B", amount_in=1)


def test_unknown_variant_is_rejected() -> None:
    with pytest.raises(TypeError, match="unsupported pool variant"):
        route_exact_out_for_pool(object(), input_mint="A", output_mint="B", amount_out=1)  # type: ignore[arg-type]
