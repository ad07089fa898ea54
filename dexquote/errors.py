"""Exception types for the quoting engine.

Every engine error derives from ``QuoteError`` so route candidate generation
can exclude a pool without catching unrelated failures. Insufficient liquidity
is normally reported through ``AmountOutcome`` (see ``quote.py``) and only
raised when a caller explicitly unwraps a failed outcome.
"""

from __future__ import annotations

from typing import Optional


class QuoteError(ValueError):
    """Base class for quoting and liquidity-math errors."""

    code = "QuoteError"


class InvalidInputMint(QuoteError):
    """Raised when a mint passed to a quote call is not one of the pool's mints."""

    code = "InvalidInputMint"

    def __init__(self, mint: str, pool_id: Optional[str] = None) -> None:
        self.mint = mint
        self.pool_id = pool_id
        where = f" pool {pool_id}" if pool_id else " pool"
        super().__init__(f"mint {mint} does not belong to{where}")


class PoolSwapDisabled(QuoteError):
    """Raised when the pool status word forbids swaps."""

    code = "PoolSwapDisabled"

    def __init__(self, pool_id: str, status: int) -> None:
        self.pool_id = pool_id
        self.status = status
        super().__init__(f"swaps are disabled on pool {pool_id} (status={status:#b})")


class InsufficientLiquidity(QuoteError):
    """Raised by ``AmountOutcome.unwrap()`` when the pool cannot fill the request."""

    code = "InsufficientLiquidity"


class DivisionByZero(QuoteError, ZeroDivisionError):
    """Raised for a zero denominator (100% fee on exact-out, empty price range)."""

    code = "DivisionByZero"


class TickOutOfRange(QuoteError):
    """Raised when a tick lies outside ``[min_tick, max_tick]``."""

    code = "TickOutOfRange"

    def __init__(self, tick: int, min_tick: int, max_tick: int) -> None:
        self.tick = tick
        super().__init__(f"tick must be in [{min_tick}, {max_tick}], got {tick}")


class PriceOutOfRange(QuoteError):
    """Raised when a price or sqrt price cannot be represented as Q64.64 within the tick domain."""

    code = "PriceOutOfRange"
