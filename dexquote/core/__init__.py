"""
Core quoting and liquidity-math algorithms
"""

from .config import DEFAULT_CONFIG, EngineConfig, load_engine_config
from .quote import AmountOutcome, Quote, RouteOutcome, RouteResult, SwapMode
from .cpmm import effective_fee_ppm, quote_exact_in, quote_exact_out
from .clmm import ClmmSwapComputation, ClmmSwapComputer
from .routing import (
    CandidateSet,
    best_route_exact_in,
    best_route_exact_out,
    select_best_exact_in,
    select_best_exact_out,
)
from .paths import PathHop, PathQuote, apply_path_slippage, best_path_exact_in, best_path_exact_out
from .liquidity import deposit_preview, initial_lp_amount, withdraw_preview
from .liquidity_math import (
    amounts_from_liquidity,
    choose_base_flag,
    decrease_liquidity_preview,
    liquidity_from_amount,
    open_position_preview,
)
from .tick_math import (
    MAX_TICK,
    MIN_TICK,
    PriceMode,
    clamp_to_spacing,
    sqrt_price_x64_from_tick,
    tick_array_start,
    tick_from_sqrt_price_x64,
)

__all__ = [
    "DEFAULT_CONFIG",
    "EngineConfig",
    "load_engine_config",
    "AmountOutcome",
    "Quote",
    "RouteOutcome",
    "RouteResult",
    "SwapMode",
    "effective_fee_ppm",
    "quote_exact_in",
    "quote_exact_out",
    "ClmmSwapComputation",
    "ClmmSwapComputer",
    "CandidateSet",
    "best_route_exact_in",
    "best_route_exact_out",
    "select_best_exact_in",
    "select_best_exact_out",
    "PathHop",
    "PathQuote",
    "apply_path_slippage",
    "best_path_exact_in",
    "best_path_exact_out",
    "deposit_preview",
    "initial_lp_amount",
    "withdraw_preview",
    "amounts_from_liquidity",
    "choose_base_flag",
    "decrease_liquidity_preview",
    "liquidity_from_amount",
    "open_position_preview",
    "MAX_TICK",
    "MIN_TICK",
    "PriceMode",
    "clamp_to_spacing",
    "sqrt_price_x64_from_tick",
    "tick_array_start",
    "tick_from_sqrt_price_x64",
]
