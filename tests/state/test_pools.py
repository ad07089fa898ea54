from __future__ import annotations

import pytest

from dexquote.core.tick_math import sqrt_price_x64_from_tick
from dexquote.state.pools import (
    ConcentratedLiquidityPool,
    ConstantProductPool,
    CreatorFeeOn,
    FeeConfig,
    PoolType,
    TickInfo,
)


def _cp(**overrides) -> ConstantProductPool:
    params = dict(
        pool_id="cp",
        mint0="A",
        mint1="B",
        decimals0=6,
        decimals1=9,
        vault0=1_000,
        vault1=2_000,
        fee_config=FeeConfig(trade_fee_rate=2_500),
    )
    params.update(overrides)
    return ConstantProductPool(**params)


def _cl(**overrides) -> ConcentratedLiquidityPool:
    params = dict(
        pool_id="cl",
        mint0="A",
        mint1="B",
        decimals0=6,
        decimals1=6,
        sqrt_price_x64=sqrt_price_x64_from_tick(120),
        tick_current=120,
        tick_spacing=60,
    )
    params.update(overrides)
    return ConcentratedLiquidityPool(**params)


def test_reserves_subtract_accrued_fees() -> None:
    pool = _cp(protocol_fees0=10, fund_fees0=5, creator_fees0=7, protocol_fees1=1, creator_fees1=100)
    assert pool.reserve0 == 1_000 - 10 - 5
    assert pool.reserve1 == 2_000 - 1

    with_creator = _cp(creator_fees0=7, creator_fees1=100, enable_creator_fee=True)
    assert with_creator.reserve0 == 993
    assert with_creator.reserve1 == 1_900


def test_fees_exceeding_vault_are_rejected() -> None:
    with pytest.raises(ValueError, match="Accrued fees exceed vault balances"):
        _cp(vault0=10, protocol_fees0=6, fund_fees0=5)


def test_status_bits() -> None:
    assert _cp(status=0b001).deposit_disabled
    assert _cp(status=0b010).withdraw_disabled
    assert _cp(status=0b100).swap_disabled
    pool = _cp(status=0)
    assert not (pool.deposit_disabled or pool.withdraw_disabled or pool.swap_disabled)
    assert _cl(status=1 << 4).swap_disabled
    assert not _cl(status=0b1111).swap_disabled


def test_mints_must_be_ordered() -> None:
    with pytest.raises(ValueError, match="canonical order"):
        _cp(mint0="B", mint1="A")
    with pytest.raises(ValueError, match="canonical order"):
        _cl(mint0="A", mint1="A")
    with pytest.raises(TypeError):
        _cp(mint0="")


def test_fee_config_validation() -> None:
    assert FeeConfig(trade_fee_rate=1, creator_fee_on=2).creator_fee_on is CreatorFeeOn.ONLY_TOKEN_1
    with pytest.raises(ValueError):
        FeeConfig(trade_fee_rate=1_000_001)
    with pytest.raises(ValueError):
        FeeConfig(trade_fee_rate=0, creator_fee_on=3)
    with pytest.raises(TypeError):
        _cp(fee_config=2_500)


def test_decimals_of() -> None:
    pool = _cp()
    assert pool.decimals_of("A") == 6
    assert pool.decimals_of("B") == 9
    with pytest.raises(KeyError):
        pool.decimals_of("C")


def test_pool_types() -> None:
    assert _cp().pool_type is PoolType.CPMM
    assert _cl().pool_type is PoolType.CLMM
    assert [t.value for t in PoolType] == ["CPMM", "CLMM"]


def test_concentrated_pool_validation() -> None:
    pool = _cl(ticks={-60: TickInfo(liquidity_net=500, liquidity_gross=500), 180: TickInfo(-500, 500)})
    assert set(pool.ticks) == {-60, 180}

    with pytest.raises(ValueError, match="inconsistent"):
        _cl(tick_current=121)
    with pytest.raises(ValueError, match="multiple of tick_spacing"):
        _cl(ticks={30: TickInfo(1)})
    with pytest.raises(TypeError):
        _cl(ticks={60: 1})
    with pytest.raises(ValueError, match="tick_spacing"):
        _cl(tick_spacing=0)
    with pytest.raises(ValueError):
        TickInfo(liquidity_net=0, liquidity_gross=-1)


def test_snapshots_are_immutable() -> None:
    pool = _cp()
    with pytest.raises(AttributeError):
        pool.vault0 = 5  # type: ignore[misc]
