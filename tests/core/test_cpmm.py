from __future__ import annotations

from decimal import Decimal

import pytest

from dexquote.core.cpmm import (
    creator_fee_applies,
    effective_fee_ppm,
    quote_exact_in,
    quote_exact_out,
    route_exact_in,
    route_exact_out,
)
from dexquote.core.quote import SwapMode
from dexquote.errors import DivisionByZero, InsufficientLiquidity, InvalidInputMint, PoolSwapDisabled
from dexquote.state.pools import ConstantProductPool, CreatorFeeOn, FeeConfig, PoolType

T0 = "MINT_A"
T1 = "MINT_B"


def _pool(
    r0: int = 1_000_000,
    r1: int = 2_000_000,
    *,
    fee: int = 2_500,
    creator_fee: int = 0,
    creator_fee_on: CreatorFeeOn = CreatorFeeOn.BOTH_TOKEN,
    enable_creator_fee: bool = False,
    status: int = 0,
    pool_id: str = "cpmm-1",
) -> ConstantProductPool:
    return ConstantProductPool(
        pool_id=pool_id,
        mint0=T0,
        mint1=T1,
        decimals0=6,
        decimals1=6,
        vault0=r0,
        vault1=r1,
        fee_config=FeeConfig(trade_fee_rate=fee, creator_fee_rate=creator_fee, creator_fee_on=creator_fee_on),
        enable_creator_fee=enable_creator_fee,
        status=status,
    )


def test_exact_in_concrete_scenario() -> None:
    out = quote_exact_in(_pool(), T0, 10_000)
    assert out == (9_975 * 2_000_000) // 1_009_975
    assert out == 19_752


def test_exact_in_reverse_direction() -> None:
    out = quote_exact_in(_pool(), T1, 10_000)
    net = 10_000 * 997_500 // 1_000_000
    assert out == net * 1_000_000 // (2_000_000 + net)


def test_exact_in_zero_cases() -> None:
    assert quote_exact_in(_pool(), T0, 0) == 0
    assert quote_exact_in(_pool(r0=0), T0, 10_000) == 0
    assert quote_exact_in(_pool(r1=0), T0, 10_000) == 0


def test_invalid_mint_and_disabled_pool() -> None:
    with pytest.raises(InvalidInputMint, match="OTHER"):
        quote_exact_in(_pool(), "OTHER", 1)
    with pytest.raises(PoolSwapDisabled):
        quote_exact_in(_pool(status=0b100), T0, 1)
    with pytest.raises(PoolSwapDisabled):
        quote_exact_out(_pool(status=0b111), T1, 1)
    # Deposit/withdraw bits do not block swaps.
    assert quote_exact_in(_pool(status=0b011), T0, 10_000) == 19_752


def test_invalid_mint_checked_before_status() -> None:
    with pytest.raises(InvalidInputMint):
        quote_exact_in(_pool(status=0b100), "OTHER", 1)


def test_creator_fee_selector() -> None:
    only0 = _pool(creator_fee=1_000, creator_fee_on=CreatorFeeOn.ONLY_TOKEN_0, enable_creator_fee=True)
    assert effective_fee_ppm(only0, T0) == 3_500
    assert effective_fee_ppm(only0, T1) == 2_500

    only1 = _pool(creator_fee=1_000, creator_fee_on=CreatorFeeOn.ONLY_TOKEN_1, enable_creator_fee=True)
    assert effective_fee_ppm(only1, T0) == 2_500
    assert effective_fee_ppm(only1, T1) == 3_500

    both = _pool(creator_fee=1_000, creator_fee_on=CreatorFeeOn.BOTH_TOKEN, enable_creator_fee=True)
    assert creator_fee_applies(both, T0) and creator_fee_applies(both, T1)

    disabled = _pool(creator_fee=1_000, enable_creator_fee=False)
    assert effective_fee_ppm(disabled, T0) == 2_500


def test_effective_fee_is_capped() -> None:
    pool = _pool(fee=900_000, creator_fee=200_000, enable_creator_fee=True)
    assert effective_fee_ppm(pool, T0) == 1_000_000
    assert quote_exact_in(pool, T0, 10_000) == 0
    with pytest.raises(DivisionByZero):
        quote_exact_out(pool, T1, 100)


def test_exact_out_formula() -> None:
    outcome = quote_exact_out(_pool(), T1, 19_752)
    assert outcome.ok
    before_fee = 19_752 * 1_000_000 // (2_000_000 - 19_752)
    assert outcome.unwrap() == before_fee * 1_000_000 // (1_000_000 - 2_500)


def test_exact_out_insufficient_liquidity_is_an_outcome() -> None:
    for amount in (2_000_000, 2_000_001):
        outcome = quote_exact_out(_pool(), T1, amount)
        assert not outcome.ok
        assert outcome.error == "InsufficientLiquidity"
        with pytest.raises(InsufficientLiquidity):
            outcome.unwrap()
    assert not quote_exact_out(_pool(r0=0), T1, 1).ok
    assert quote_exact_out(_pool(), T1, 0).unwrap() == 0


def test_route_exact_in() -> None:
    route = route_exact_in(_pool(), T0, T1, 10_000, slippage_bps=50).unwrap()
    assert route.mode is SwapMode.EXACT_IN
    assert route.pool_type is PoolType.CPMM
    assert route.pool_id == "cpmm-1"
    assert route.quote.amount_out == 19_752
    assert route.bound == route.min_amount_out == 19_752 * 9_950 // 10_000
    assert route.max_amount_in is None
    assert route.quote.amount_out_per_one_in == 19_752 * 10**9 // 10_000
    assert route.quote.amount_in_per_one_out == 10_000 * 10**9 // 19_752
    # 1 - 19752 * 1e6 / (9975 * 2e6) = 0.9925%
    assert route.quote.price_impact_pct == Decimal("0.99")


def test_route_exact_in_default_slippage() -> None:
    route = route_exact_in(_pool(), T0, T1, 10_000).unwrap()
    assert route.slippage_bps == 10
    assert route.bound == 19_752 * 9_990 // 10_000


def test_route_exact_out() -> None:
    route = route_exact_out(_pool(), T0, T1, 19_752, slippage_bps=50).unwrap()
    amount_in = quote_exact_out(_pool(), T1, 19_752).unwrap()
    assert route.mode is SwapMode.EXACT_OUT
    assert route.quote.amount_in == amount_in
    assert route.bound == route.max_amount_in == amount_in * 10_050 // 10_000
    assert route.min_amount_out is None


def test_route_exact_out_failure() -> None:
    outcome = route_exact_out(_pool(), T0, T1, 5_000_000)
    assert not outcome.ok
    assert outcome.error == "InsufficientLiquidity"


def test_route_rejects_foreign_output_mint() -> None:
    with pytest.raises(InvalidInputMint, match="OTHER"):
        route_exact_in(_pool(), T0, "OTHER", 10)
    with pytest.raises(InvalidInputMint):
        route_exact_out(_pool(), T0, T0, 10)


def test_exact_in_monotone_in_amount() -> None:
    pool = _pool()
    outs = [quote_exact_in(pool, T0, a) for a in range(0, 200_001, 5_000)]
    assert outs == sorted(outs)


def test_exact_out_monotone_in_amount() -> None:
    pool = _pool()
    ins = [quote_exact_out(pool, T1, a).unwrap() for a in range(0, 1_900_001, 50_000)]
    assert ins == sorted(ins)
