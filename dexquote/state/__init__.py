"""
Snapshot data model: token amounts, pools and positions.
"""

from .balances import Amount, MintId, TokenAmount, pair_matches, pair_orientation
from .pools import (
    CLMM_STATUS_SWAP_BIT,
    CPMM_STATUS_SWAP_BIT,
    ConcentratedLiquidityPool,
    ConstantProductPool,
    CreatorFeeOn,
    FeeConfig,
    Pool,
    PoolType,
    TickInfo,
)
from .positions import Position

__all__ = [
    "Amount",
    "MintId",
    "TokenAmount",
    "pair_matches",
    "pair_orientation",
    "CLMM_STATUS_SWAP_BIT",
    "CPMM_STATUS_SWAP_BIT",
    "ConcentratedLiquidityPool",
    "ConstantProductPool",
    "CreatorFeeOn",
    "FeeConfig",
    "Pool",
    "PoolType",
    "TickInfo",
    "Position",
]
