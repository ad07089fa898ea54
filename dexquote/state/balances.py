"""
Token identifiers and amounts.

Amounts are always integers in a token's smallest unit. A `TokenAmount`
binds such an integer to its mint and decimal exponent so that amounts of
different tokens cannot be mixed by accident.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidInputMint


# Type aliases
MintId = str  # base58 mint address (compared exactly)
Amount = int  # Non-negative integer in smallest units (arbitrary precision)


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class TokenAmount:
    mint: MintId
    amount: Amount
    decimals: int

    def __post_init__(self) -> None:
        _require_int("amount", self.amount)
        _require_int("decimals", self.decimals)
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative: {self.amount}")
        if self.decimals < 0:
            raise ValueError(f"decimals must be non-negative: {self.decimals}")

    def _check_same_token(self, other: "TokenAmount") -> None:
        if not isinstance(other, TokenAmount):
            raise TypeError("can only combine TokenAmount with TokenAmount")
        if other.mint != self.mint or other.decimals != self.decimals:
            raise ValueError(f"cannot combine amounts of {self.mint} and {other.mint}")

    def __add__(self, other: "TokenAmount") -> "TokenAmount":
        self._check_same_token(other)
        return TokenAmount(self.mint, self.amount + other.amount, self.decimals)

    def __sub__(self, other: "TokenAmount") -> "TokenAmount":
        self._check_same_token(other)
        if other.amount > self.amount:
            raise ValueError(f"TokenAmount cannot go negative: {self.amount} - {other.amount}")
        return TokenAmount(self.mint, self.amount - other.amount, self.decimals)

    def __str__(self) -> str:
        scale = 10**self.decimals
        whole, frac = divmod(self.amount, scale)
        frac_str = str(frac).rjust(self.decimals, "0").rstrip("0") if self.decimals else ""
        return f"{whole}.{frac_str}" if frac_str else str(whole)


def pair_matches(mint_a: MintId, mint_b: MintId, mint0: MintId, mint1: MintId) -> bool:
    """True if {mint_a, mint_b} is exactly the pool pair {mint0, mint1}, in either order."""
    return (mint_a == mint0 and mint_b == mint1) or (mint_a == mint1 and mint_b == mint0)


def pair_orientation(mint_a: MintId, mint_b: MintId, mint0: MintId, mint1: MintId) -> bool:
    """
    Return True if A is the pool's token0 (so B is token1), False if A is token1.

    Raises:
        InvalidInputMint: if A/B are not the pool pair.
    """
    if not pair_matches(mint_a, mint_b, mint0, mint1):
        bad = mint_a if mint_a not in (mint0, mint1) else mint_b
        raise InvalidInputMint(bad)
    return mint_a == mint0
