"""
Engine configuration.

`EngineConfig` holds the program-defined constants the engine needs (tick
domain, slippage default, rounding conventions, tie-break order). It is always
passed explicitly; `load_engine_config` reads overrides from a YAML mapping.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import yaml
from loguru import logger

from ..state.pools import PoolType


@dataclass(frozen=True)
class EngineConfig:
    min_tick: int = -443636
    max_tick: int = 443636
    tick_array_size: int = 60
    default_slippage_bps: int = 10
    price_impact_significant_digits: int = 2
    implied_price_scale: int = 10**9
    pool_type_priority: Tuple[str, ...] = ("CPMM", "CLMM")
    max_hops: int = 3
    position_amount_buffer_bps: int = 0

    def __post_init__(self) -> None:
        for f in fields(self):
            if f.name == "pool_type_priority":
                continue
            v = getattr(self, f.name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{f.name} must be an int")

        if self.min_tick >= self.max_tick:
            raise ValueError("min_tick must be below max_tick")
        if self.tick_array_size <= 0:
            raise ValueError("tick_array_size must be positive")
        if not (0 <= self.default_slippage_bps <= 10_000):
            raise ValueError("default_slippage_bps must be in [0, 10000]")
        if self.price_impact_significant_digits <= 0:
            raise ValueError("price_impact_significant_digits must be positive")
        if self.implied_price_scale <= 0:
            raise ValueError("implied_price_scale must be positive")
        if self.max_hops < 1:
            raise ValueError("max_hops must be at least 1")
        if self.position_amount_buffer_bps < 0:
            raise ValueError("position_amount_buffer_bps must be non-negative")

        priority = tuple(self.pool_type_priority)
        known = {t.value for t in PoolType}
        if len(set(priority)) != len(priority) or set(priority) != known:
            raise ValueError(f"pool_type_priority must order exactly {sorted(known)}: {priority}")
        object.__setattr__(self, "pool_type_priority", priority)

    def pool_type_rank(self, pool_type: PoolType) -> int:
        return self.pool_type_priority.index(pool_type.value)


DEFAULT_CONFIG = EngineConfig()


def engine_config_from_mapping(data: Dict[str, Any]) -> EngineConfig:
    if not isinstance(data, dict):
        raise ValueError("engine config must be a mapping")
    allowed = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValueError(f"unknown engine config keys: {unknown}")
    kwargs = dict(data)
    if "pool_type_priority" in kwargs:
        kwargs["pool_type_priority"] = tuple(kwargs["pool_type_priority"])
    return EngineConfig(**kwargs)


def load_engine_config(path: Union[str, Path]) -> EngineConfig:
    """Load an `EngineConfig` from a YAML file; missing keys keep their defaults."""
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        data = {}
    config = engine_config_from_mapping(data)
    logger.debug("loaded engine config from {}: {}", p, config)
    return config
