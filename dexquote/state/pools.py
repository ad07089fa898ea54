"""
Pool snapshots for the two supported AMM designs.

Snapshots are read from chain by the caller and handed to the engine as
immutable values. `Pool` is the closed set of pool variants; dispatch code
branches on the concrete class and rejects anything else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import ClassVar, Mapping, Union

from .balances import Amount, MintId


PPM_DENOM = 1_000_000

# Status words: a set bit disables the corresponding instruction.
CPMM_STATUS_DEPOSIT_BIT = 1 << 0
CPMM_STATUS_WITHDRAW_BIT = 1 << 1
CPMM_STATUS_SWAP_BIT = 1 << 2
CLMM_STATUS_SWAP_BIT = 1 << 4


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_non_negative(name: str, value: int) -> None:
    _require_int(name, value)
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def _require_ordered_mints(mint0: MintId, mint1: MintId) -> None:
    if not isinstance(mint0, str) or not isinstance(mint1, str) or not mint0 or not mint1:
        raise TypeError("mints must be non-empty strings")
    if mint0 >= mint1:
        raise ValueError(f"Mints must be in canonical order: {mint0} < {mint1}")


class PoolType(Enum):
    """Pool variants, declared in tie-break priority order."""

    CPMM = "CPMM"
    CLMM = "CLMM"


class CreatorFeeOn(IntEnum):
    BOTH_TOKEN = 0
    ONLY_TOKEN_0 = 1
    ONLY_TOKEN_1 = 2


@dataclass(frozen=True)
class FeeConfig:
    """Trading fee (ppm), optional creator fee (ppm) and the side it applies to."""

    trade_fee_rate: int
    creator_fee_rate: int = 0
    creator_fee_on: CreatorFeeOn = CreatorFeeOn.BOTH_TOKEN

    def __post_init__(self) -> None:
        for name, v in (
            ("trade_fee_rate", self.trade_fee_rate),
            ("creator_fee_rate", self.creator_fee_rate),
        ):
            _require_int(name, v)
            if not (0 <= v <= PPM_DENOM):
                raise ValueError(f"{name} must be in [0, {PPM_DENOM}]: {v}")
        if not isinstance(self.creator_fee_on, CreatorFeeOn):
            object.__setattr__(self, "creator_fee_on", CreatorFeeOn(self.creator_fee_on))


@dataclass(frozen=True)
class ConstantProductPool:
    """
    Constant-product pool snapshot.

    Reserves are derived, not stored:
        reserve = vault - protocol_fees - fund_fees - (creator_fees if enable_creator_fee)
    """

    pool_type: ClassVar[PoolType] = PoolType.CPMM

    pool_id: str
    mint0: MintId
    mint1: MintId
    decimals0: int
    decimals1: int
    vault0: Amount
    vault1: Amount
    fee_config: FeeConfig
    protocol_fees0: Amount = 0
    protocol_fees1: Amount = 0
    fund_fees0: Amount = 0
    fund_fees1: Amount = 0
    creator_fees0: Amount = 0
    creator_fees1: Amount = 0
    enable_creator_fee: bool = False
    status: int = 0
    lp_supply: Amount = 0

    def __post_init__(self) -> None:
        _require_ordered_mints(self.mint0, self.mint1)
        for name in (
            "decimals0",
            "decimals1",
            "vault0",
            "vault1",
            "protocol_fees0",
            "protocol_fees1",
            "fund_fees0",
            "fund_fees1",
            "creator_fees0",
            "creator_fees1",
            "status",
            "lp_supply",
        ):
            _require_non_negative(name, getattr(self, name))
        if not isinstance(self.fee_config, FeeConfig):
            raise TypeError("fee_config must be a FeeConfig")
        if self.reserve0 < 0 or self.reserve1 < 0:
            raise ValueError(
                f"Accrued fees exceed vault balances: reserves=({self.reserve0}, {self.reserve1})"
            )

    @property
    def reserve0(self) -> Amount:
        creator = self.creator_fees0 if self.enable_creator_fee else 0
        return self.vault0 - self.protocol_fees0 - self.fund_fees0 - creator

    @property
    def reserve1(self) -> Amount:
        creator = self.creator_fees1 if self.enable_creator_fee else 0
        return self.vault1 - self.protocol_fees1 - self.fund_fees1 - creator

    @property
    def swap_disabled(self) -> bool:
        return (self.status & CPMM_STATUS_SWAP_BIT) != 0

    @property
    def deposit_disabled(self) -> bool:
        return (self.status & CPMM_STATUS_DEPOSIT_BIT) != 0

    @property
    def withdraw_disabled(self) -> bool:
        return (self.status & CPMM_STATUS_WITHDRAW_BIT) != 0

    def decimals_of(self, mint: MintId) -> int:
        if mint == self.mint0:
            return self.decimals0
        if mint == self.mint1:
            return self.decimals1
        raise KeyError(mint)


@dataclass(frozen=True)
class TickInfo:
    liquidity_net: int
    liquidity_gross: int = 0

    def __post_init__(self) -> None:
        _require_int("liquidity_net", self.liquidity_net)
        _require_non_negative("liquidity_gross", self.liquidity_gross)


@dataclass(frozen=True)
class ConcentratedLiquidityPool:
    """
    Concentrated-liquidity pool snapshot.

    `ticks` holds every initialized tick boundary with its net liquidity delta;
    the engine only validates it and forwards it to the swap computer.
    """

    pool_type: ClassVar[PoolType] = PoolType.CLMM

    pool_id: str
    mint0: MintId
    mint1: MintId
    decimals0: int
    decimals1: int
    sqrt_price_x64: int
    tick_current: int
    tick_spacing: int
    liquidity: int = 0
    fee_rate: int = 0
    ticks: Mapping[int, TickInfo] = field(default_factory=dict)
    status: int = 0

    def __post_init__(self) -> None:
        from ..core.tick_math import tick_from_sqrt_price_x64

        _require_ordered_mints(self.mint0, self.mint1)
        for name in ("decimals0", "decimals1", "sqrt_price_x64", "liquidity", "status"):
            _require_non_negative(name, getattr(self, name))
        _require_int("tick_current", self.tick_current)
        _require_int("tick_spacing", self.tick_spacing)
        _require_int("fee_rate", self.fee_rate)
        if self.tick_spacing <= 0:
            raise ValueError(f"tick_spacing must be positive: {self.tick_spacing}")
        if not (0 <= self.fee_rate <= PPM_DENOM):
            raise ValueError(f"fee_rate must be in [0, {PPM_DENOM}]: {self.fee_rate}")
        for tick, info in self.ticks.items():
            _require_int("tick", tick)
            if tick % self.tick_spacing != 0:
                raise ValueError(f"tick {tick} is not a multiple of tick_spacing {self.tick_spacing}")
            if not isinstance(info, TickInfo):
                raise TypeError(f"tick {tick} must map to a TickInfo")

        expected = tick_from_sqrt_price_x64(self.sqrt_price_x64)
        if expected != self.tick_current:
            raise ValueError(
                f"tick_current {self.tick_current} inconsistent with sqrt_price_x64 (expected {expected})"
            )

    @property
    def swap_disabled(self) -> bool:
        return (self.status & CLMM_STATUS_SWAP_BIT) != 0

    def decimals_of(self, mint: MintId) -> int:
        if mint == self.mint0:
            return self.decimals0
        if mint == self.mint1:
            return self.decimals1
        raise KeyError(mint)


Pool = Union[ConstantProductPool, ConcentratedLiquidityPool]
