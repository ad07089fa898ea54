"""
Concentrated-liquidity positions.

Positions are immutable; every lifecycle step returns a new `Position`.
A position is opened with some liquidity, grows with `increase`, shrinks with
`decrease`, accrues fees that are paid out by `collect`, and may be closed
once `is_closable` holds.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class Position:
    pool_id: str
    tick_lower: int
    tick_upper: int
    tick_spacing: int
    liquidity: int = 0
    fees_owed0: int = 0
    fees_owed1: int = 0

    def __post_init__(self) -> None:
        for name in ("tick_lower", "tick_upper", "tick_spacing", "liquidity", "fees_owed0", "fees_owed1"):
            _require_int(name, getattr(self, name))
        if self.tick_spacing <= 0:
            raise ValueError(f"tick_spacing must be positive: {self.tick_spacing}")
        if self.tick_lower >= self.tick_upper:
            raise ValueError(f"tick_lower must be below tick_upper: {self.tick_lower} >= {self.tick_upper}")
        if self.tick_lower % self.tick_spacing != 0 or self.tick_upper % self.tick_spacing != 0:
            raise ValueError(f"position ticks must be multiples of tick_spacing {self.tick_spacing}")
        if self.liquidity < 0 or self.fees_owed0 < 0 or self.fees_owed1 < 0:
            raise ValueError("liquidity and fees owed must be non-negative")

    def increase(self, liquidity_delta: int) -> "Position":
        _require_int("liquidity_delta", liquidity_delta)
        if liquidity_delta <= 0:
            raise ValueError("liquidity_delta must be positive")
        return replace(self, liquidity=self.liquidity + liquidity_delta)

    def decrease(self, liquidity_delta: int) -> "Position":
        _require_int("liquidity_delta", liquidity_delta)
        if liquidity_delta <= 0:
            raise ValueError("liquidity_delta must be positive")
        if liquidity_delta > self.liquidity:
            raise ValueError(f"cannot remove {liquidity_delta} liquidity from a position holding {self.liquidity}")
        return replace(self, liquidity=self.liquidity - liquidity_delta)

    def accrue(self, fee0: int, fee1: int) -> "Position":
        _require_int("fee0", fee0)
        _require_int("fee1", fee1)
        if fee0 < 0 or fee1 < 0:
            raise ValueError("accrued fees must be non-negative")
        return replace(self, fees_owed0=self.fees_owed0 + fee0, fees_owed1=self.fees_owed1 + fee1)

    def collect(
        self, amount0_max: Optional[int] = None, amount1_max: Optional[int] = None
    ) -> Tuple["Position", int, int]:
        """
        Pay out accrued fees, capped by the optional maxima.

        Returns (updated_position, amount0_collected, amount1_collected).
        """
        amount0 = self.fees_owed0 if amount0_max is None else min(self.fees_owed0, amount0_max)
        amount1 = self.fees_owed1 if amount1_max is None else min(self.fees_owed1, amount1_max)
        if amount0 < 0 or amount1 < 0:
            raise ValueError("collect maxima must be non-negative")
        updated = replace(self, fees_owed0=self.fees_owed0 - amount0, fees_owed1=self.fees_owed1 - amount1)
        return updated, amount0, amount1

    @property
    def is_closable(self) -> bool:
        return self.liquidity == 0 and self.fees_owed0 == 0 and self.fees_owed1 == 0
