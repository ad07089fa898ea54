"""
Shared result shapes for quoters and the route selector.

- `AmountOutcome` / `RouteOutcome`: explicit success-or-reason results. A pool
  that cannot fill a request reports a failure code instead of a magic
  "infinite cost" amount, so no arithmetic can ever run on a sentinel.
- `Quote`: one pool's answer for one request, never mutated.
- `RouteResult`: a winning-candidate shape with its slippage bound and origin.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Optional

from ..errors import InsufficientLiquidity, QuoteError
from ..state.balances import Amount, MintId
from ..state.pools import PoolType
from .fixed_point import fraction_to_decimal, round_significant


class SwapMode(Enum):
    EXACT_IN = "EXACT_IN"
    EXACT_OUT = "EXACT_OUT"


def _raise_for(code: str) -> None:
    if code == InsufficientLiquidity.code:
        raise InsufficientLiquidity("pool cannot fill the requested amount")
    raise QuoteError(code)


@dataclass(frozen=True)
class AmountOutcome:
    amount: Optional[Amount] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.amount is None) == (self.error is None):
            raise ValueError("AmountOutcome needs exactly one of amount or error")

    @classmethod
    def success(cls, amount: Amount) -> "AmountOutcome":
        return cls(amount=amount)

    @classmethod
    def failure(cls, error: str) -> "AmountOutcome":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Amount:
        if self.error is not None:
            _raise_for(self.error)
        assert self.amount is not None
        return self.amount


@dataclass(frozen=True)
class Quote:
    input_mint: MintId
    output_mint: MintId
    amount_in: Amount
    amount_out: Amount
    input_decimals: int
    output_decimals: int
    # Output per one base unit of input (and the reverse), scaled by EngineConfig.implied_price_scale.
    amount_out_per_one_in: int
    amount_in_per_one_out: int
    price_impact_pct: Decimal

    def implied_price(self) -> Fraction:
        """Human output-per-input price, adjusted for both tokens' decimals."""
        if self.amount_in == 0:
            return Fraction(0)
        raw = Fraction(self.amount_out, self.amount_in)
        return raw * Fraction(10) ** (self.input_decimals - self.output_decimals)


@dataclass(frozen=True)
class RouteResult:
    quote: Quote
    mode: SwapMode
    slippage_bps: int
    bound: Amount
    pool_type: PoolType
    pool_id: str

    @property
    def min_amount_out(self) -> Optional[Amount]:
        return self.bound if self.mode is SwapMode.EXACT_IN else None

    @property
    def max_amount_in(self) -> Optional[Amount]:
        return self.bound if self.mode is SwapMode.EXACT_OUT else None


@dataclass(frozen=True)
class RouteOutcome:
    route: Optional[RouteResult] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.route is None) == (self.error is None):
            raise ValueError("RouteOutcome needs exactly one of route or error")

    @classmethod
    def success(cls, route: RouteResult) -> "RouteOutcome":
        return cls(route=route)

    @classmethod
    def failure(cls, error: str) -> "RouteOutcome":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> RouteResult:
        if self.error is not None:
            _raise_for(self.error)
        assert self.route is not None
        return self.route


def scaled_ratio(numerator: int, denominator: int, scale: int) -> int:
    """floor(numerator * scale / denominator), or 0 for an empty denominator."""
    if denominator == 0:
        return 0
    return (numerator * scale) // denominator


def impact_percent(impact: Fraction, significant_digits: int) -> Decimal:
    """Convert an impact ratio (0.0123 == 1.23%) to a percent rounded half-up."""
    if impact <= 0:
        return Decimal(0)
    return round_significant(fraction_to_decimal(impact * 100), significant_digits)


def build_quote(
    *,
    input_mint: MintId,
    output_mint: MintId,
    amount_in: Amount,
    amount_out: Amount,
    input_decimals: int,
    output_decimals: int,
    impact: Fraction,
    implied_price_scale: int,
    significant_digits: int,
) -> Quote:
    return Quote(
        input_mint=input_mint,
        output_mint=output_mint,
        amount_in=amount_in,
        amount_out=amount_out,
        input_decimals=input_decimals,
        output_decimals=output_decimals,
        amount_out_per_one_in=scaled_ratio(amount_out, amount_in, implied_price_scale),
        amount_in_per_one_out=scaled_ratio(amount_in, amount_out, implied_price_scale),
        price_impact_pct=impact_percent(impact, significant_digits),
    )
