"""
Constant-product deposit and withdraw sizing.
"""

from __future__ import annotations

from decimal import Decimal
from fractions import Fraction
from typing import Tuple

from ..errors import InvalidInputMint
from ..kernels.python.lp_math import DepositSizing, first_deposit_lp, size_deposit, size_withdraw
from ..state.balances import Amount, MintId
from ..state.pools import ConstantProductPool
from .fixed_point import fraction_to_decimal, require_non_negative


def initial_lp_amount(amount0: Amount, amount1: Amount) -> Amount:
    """LP minted by the first deposit into an empty pool: `isqrt(amount0 * amount1)`."""
    return first_deposit_lp(amount0, amount1)


def deposit_preview(
    pool: ConstantProductPool,
    amount0_desired: Amount,
    amount1_desired: Amount,
    amount0_min: Amount = 0,
    amount1_min: Amount = 0,
    lp_min: Amount = 0,
) -> DepositSizing:
    """
    Size a deposit into a pool.

    The used amounts keep the pool ratio; whatever exceeds it is refunded.

    LP minted:
        lp = min(floor(amount0_used * lp_supply / reserve0),
                 floor(amount1_used * lp_supply / reserve1))

    Raises:
        ValueError: if deposits are disabled or amounts are invalid, if a used
        amount falls below its minimum, or if fewer than `lp_min` LP tokens
        would be minted.
    """
    if pool.deposit_disabled:
        raise ValueError(f"deposits are disabled on pool {pool.pool_id}")
    require_non_negative("amount0_min", amount0_min)
    require_non_negative("amount1_min", amount1_min)

    res = size_deposit(
        reserve0=pool.reserve0,
        reserve1=pool.reserve1,
        lp_supply=pool.lp_supply,
        desired0=amount0_desired,
        desired1=amount1_desired,
        lp_min=lp_min,
    )
    if res.used0 < amount0_min:
        raise ValueError(f"amount0_used ({res.used0}) < amount0_min ({amount0_min})")
    if res.used1 < amount1_min:
        raise ValueError(f"amount1_used ({res.used1}) < amount1_min ({amount1_min})")
    return res


def paired_amount(pool: ConstantProductPool, mint: MintId, amount: Amount) -> Amount:
    """Amount of the other token matching `amount` of `mint` at the pool ratio (floor)."""
    require_non_negative("amount", amount)
    if mint == pool.mint0:
        reserve, other = pool.reserve0, pool.reserve1
    elif mint == pool.mint1:
        reserve, other = pool.reserve1, pool.reserve0
    else:
        raise InvalidInputMint(mint, pool.pool_id)
    if reserve == 0:
        raise ValueError(f"pool {pool.pool_id} has no reserve to price against")
    return (amount * other) // reserve


def withdraw_preview(
    pool: ConstantProductPool,
    lp_amount: Amount,
    amount0_min: Amount = 0,
    amount1_min: Amount = 0,
) -> Tuple[Amount, Amount]:
    """
    Token amounts released by burning `lp_amount`.

    Outputs:
        amount0_out = floor(lp_amount * reserve0 / lp_supply)
        amount1_out = floor(lp_amount * reserve1 / lp_supply)
    """
    if pool.withdraw_disabled:
        raise ValueError(f"withdrawals are disabled on pool {pool.pool_id}")
    amount0_out, amount1_out = size_withdraw(
        lp_amount=lp_amount,
        reserve0=pool.reserve0,
        reserve1=pool.reserve1,
        lp_supply=pool.lp_supply,
    )
    if amount0_out < amount0_min:
        raise ValueError(f"amount0_out ({amount0_out}) < amount0_min ({amount0_min})")
    if amount1_out < amount1_min:
        raise ValueError(f"amount1_out ({amount1_out}) < amount1_min ({amount1_min})")
    return amount0_out, amount1_out


def share_of_pool_pct(lp_minted: Amount, lp_supply: Amount) -> Decimal:
    """Percentage of the post-deposit supply held by `lp_minted`."""
    require_non_negative("lp_minted", lp_minted)
    require_non_negative("lp_supply", lp_supply)
    total = lp_supply + lp_minted
    if total == 0:
        return Decimal(0)
    return fraction_to_decimal(Fraction(lp_minted * 100, total), places=6)
