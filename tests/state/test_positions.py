from __future__ import annotations

import pytest

from dexquote.state.positions import Position


def _position(**overrides) -> Position:
    params = dict(pool_id="cl", tick_lower=-120, tick_upper=120, tick_spacing=60, liquidity=1_000)
    params.update(overrides)
    return Position(**params)


def test_lifecycle() -> None:
    opened = _position()
    grown = opened.increase(500)
    assert grown.liquidity == 1_500
    assert opened.liquidity == 1_000

    accrued = grown.accrue(7, 3)
    assert (accrued.fees_owed0, accrued.fees_owed1) == (7, 3)

    partial, got0, got1 = accrued.collect(amount0_max=5)
    assert (got0, got1) == (5, 3)
    assert (partial.fees_owed0, partial.fees_owed1) == (2, 0)

    drained = partial.decrease(1_500)
    assert not drained.is_closable
    closed, got0, got1 = drained.collect()
    assert (got0, got1) == (2, 0)
    assert closed.is_closable


def test_decrease_beyond_holdings() -> None:
    with pytest.raises(ValueError, match="cannot remove 1001 liquidity from a position holding 1000"):
        _position().decrease(1_001)


@pytest.mark.parametrize("delta", [0, -1])
def test_deltas_must_be_positive(delta: int) -> None:
    with pytest.raises(ValueError):
        _position().increase(delta)
    with pytest.raises(ValueError):
        _position().decrease(delta)


def test_invalid_positions() -> None:
    with pytest.raises(ValueError, match="below tick_upper"):
        _position(tick_lower=120, tick_upper=120)
    with pytest.raises(ValueError, match="multiples"):
        _position(tick_lower=-100)
    with pytest.raises(ValueError):
        _position(liquidity=-1)
    with pytest.raises(TypeError):
        _position(liquidity=1.5)
    with pytest.raises(ValueError):
        _position().accrue(-1, 0)
    with pytest.raises(ValueError):
        _position(fees_owed0=5).collect(amount0_max=-1)
