"""
Constant-product swap kernel with ppm fees.

Semantics:
- The fee is taken off the input first with floor rounding:
  `net_in = floor(amount_in * (1_000_000 - fee_ppm) / 1_000_000)`.
- Exact-in pricing: `amount_out = floor(net_in * reserve_out / (reserve_in + net_in))`.
- Exact-out pricing runs the same two steps backwards, each with floor
  rounding: `net_in = floor(amount_out * reserve_in / (reserve_out - amount_out))`,
  then `amount_in = floor(net_in * 1_000_000 / (1_000_000 - fee_ppm))`.

The fee stays in the pool. Callers are responsible for deciding which fee
rate applies to the input side.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import DivisionByZero, InsufficientLiquidity


PPM_DENOM = 1_000_000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _check_inputs(reserve_in: int, reserve_out: int, amount: int, fee_ppm: int, amount_name: str) -> None:
    for name, v in (
        ("reserve_in", reserve_in),
        ("reserve_out", reserve_out),
        (amount_name, amount),
        ("fee_ppm", fee_ppm),
    ):
        _require_int(name, v)

    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError("cannot swap against an empty reserve")
    if amount < 0:
        raise ValueError(f"{amount_name} must be non-negative")
    if not (0 <= fee_ppm <= PPM_DENOM):
        raise ValueError(f"fee_ppm must be in [0, {PPM_DENOM}]")


@dataclass(frozen=True)
class SwapExactInResult:
    amount_in: int
    amount_out: int
    net_in: int
    fee_amount: int
    new_reserve_in: int
    new_reserve_out: int


@dataclass(frozen=True)
class SwapExactOutResult:
    amount_in: int
    amount_out: int
    net_in: int
    fee_amount: int
    new_reserve_in: int
    new_reserve_out: int


def swap_exact_in(*, reserve_in: int, reserve_out: int, amount_in: int, fee_ppm: int) -> SwapExactInResult:
    """
    Exact-in quote + post-state.

    A zero input quotes a zero output; the output can never reach `reserve_out`.
    """
    _check_inputs(reserve_in, reserve_out, amount_in, fee_ppm, "amount_in")

    net_in = (amount_in * (PPM_DENOM - fee_ppm)) // PPM_DENOM
    amount_out = (net_in * reserve_out) // (reserve_in + net_in)
    if amount_out >= reserve_out:
        raise AssertionError("amount_out reached reserve_out")

    return SwapExactInResult(
        amount_in=amount_in,
        amount_out=amount_out,
        net_in=net_in,
        fee_amount=amount_in - net_in,
        new_reserve_in=reserve_in + amount_in,
        new_reserve_out=reserve_out - amount_out,
    )


def swap_exact_out(*, reserve_in: int, reserve_out: int, amount_out: int, fee_ppm: int) -> SwapExactOutResult:
    """
    Exact-out quote + post-state.

    Raises:
        InsufficientLiquidity: if `amount_out >= reserve_out`.
        DivisionByZero: if the fee is exactly 100%.
    """
    _check_inputs(reserve_in, reserve_out, amount_out, fee_ppm, "amount_out")
    if amount_out >= reserve_out:
        raise InsufficientLiquidity(f"amount_out {amount_out} must be below reserve_out {reserve_out}")
    if fee_ppm == PPM_DENOM:
        raise DivisionByZero("cannot invert a 100% fee")

    net_in = (amount_out * reserve_in) // (reserve_out - amount_out)
    amount_in = (net_in * PPM_DENOM) // (PPM_DENOM - fee_ppm)

    return SwapExactOutResult(
        amount_in=amount_in,
        amount_out=amount_out,
        net_in=net_in,
        fee_amount=amount_in - net_in,
        new_reserve_in=reserve_in + amount_in,
        new_reserve_out=reserve_out - amount_out,
    )
