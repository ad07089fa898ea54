"""
LP-token sizing for constant-product pools.

All rounding favours the pool:
- a deposit is trimmed to the pool ratio (floor on the matched side) and the
  excess is handed back,
- the first deposit into an empty pool mints `isqrt(amount0 * amount1)`,
- later deposits mint the smaller of the two pro-rata shares,
- a withdrawal pays `floor(lp * reserve / supply)` per side.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from ...errors import InsufficientLiquidity


def _check_amounts(**values: int) -> None:
    for name, value in values.items():
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"{name} must be an int")
        if value < 0:
            raise ValueError(f"{name} must be non-negative: {value}")


@dataclass(frozen=True)
class DepositSizing:
    """How a deposit lands in the pool and what it mints."""

    used0: int
    used1: int
    refund0: int
    refund1: int
    lp_minted: int
    lp_supply_after: int


def fit_to_ratio(reserve0: int, reserve1: int, desired0: int, desired1: int) -> Tuple[int, int]:
    """
    Largest (used0, used1) within the desired amounts that keeps reserve0:reserve1.

    An empty pool has no ratio yet, so both desired amounts are used as given.
    """
    _check_amounts(reserve0=reserve0, reserve1=reserve1, desired0=desired0, desired1=desired1)
    if desired0 == 0 or desired1 == 0:
        raise ValueError("both deposit amounts must be positive")
    if reserve0 == 0 or reserve1 == 0:
        return desired0, desired1

    matched1 = desired0 * reserve1 // reserve0
    if matched1 <= desired1:
        used = (desired0, matched1)
    else:
        used = (desired1 * reserve0 // reserve1, desired1)
    if min(used) == 0:
        raise InsufficientLiquidity(f"deposit ({desired0}, {desired1}) is too small for the pool ratio")
    return used


def first_deposit_lp(amount0: int, amount1: int) -> int:
    """LP minted by the deposit that opens an empty pool."""
    _check_amounts(amount0=amount0, amount1=amount1)
    minted = math.isqrt(amount0 * amount1)
    if minted == 0:
        raise ValueError("initial deposit must be positive on both sides")
    return minted


def size_deposit(
    *,
    reserve0: int,
    reserve1: int,
    lp_supply: int,
    desired0: int,
    desired1: int,
    lp_min: int = 0,
) -> DepositSizing:
    """
    Size a deposit and the LP it mints.

    Raises:
        ValueError: if the pool state is inconsistent (supply without reserves
        or reserves without supply) or the mint falls below `lp_min`.
        InsufficientLiquidity: if the deposit is too small to mint anything.
    """
    _check_amounts(reserve0=reserve0, reserve1=reserve1, lp_supply=lp_supply, lp_min=lp_min)
    empty_reserves = reserve0 == 0 and reserve1 == 0

    if lp_supply == 0:
        if not empty_reserves:
            raise ValueError("pool has reserves but no LP supply")
        _check_amounts(desired0=desired0, desired1=desired1)
        used0, used1 = desired0, desired1
        minted = first_deposit_lp(used0, used1)
    else:
        if reserve0 == 0 or reserve1 == 0:
            raise ValueError("pool has LP supply but an empty reserve")
        used0, used1 = fit_to_ratio(reserve0, reserve1, desired0, desired1)
        minted = min(used0 * lp_supply // reserve0, used1 * lp_supply // reserve1)
        if minted == 0:
            raise InsufficientLiquidity(f"deposit ({desired0}, {desired1}) mints no LP")

    if minted < lp_min:
        raise ValueError(f"lp minted ({minted}) < lp_min ({lp_min})")
    return DepositSizing(
        used0=used0,
        used1=used1,
        refund0=desired0 - used0,
        refund1=desired1 - used1,
        lp_minted=minted,
        lp_supply_after=lp_supply + minted,
    )


def size_withdraw(*, lp_amount: int, reserve0: int, reserve1: int, lp_supply: int) -> Tuple[int, int]:
    """Token amounts paid out for burning `lp_amount`."""
    _check_amounts(lp_amount=lp_amount, reserve0=reserve0, reserve1=reserve1, lp_supply=lp_supply)
    if lp_amount == 0:
        raise ValueError("lp_amount must be positive")
    if lp_amount > lp_supply:
        raise ValueError(f"lp_amount ({lp_amount}) exceeds lp supply ({lp_supply})")
    return lp_amount * reserve0 // lp_supply, lp_amount * reserve1 // lp_supply
