"""
dexquote: deterministic swap quoting and liquidity math for constant-product
and concentrated-liquidity pools.

The engine consumes pool snapshots that the caller has already fetched and
returns pure computed results; it performs no I/O apart from optional config
loading (`dexquote.core.config.load_engine_config`).
"""

__version__ = "0.1.0"
