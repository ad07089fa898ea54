"""
Multi-hop routing over constant-product pools.

Pools form an undirected token graph. Every simple path of at most
`max_hops` pools from the input token to the output token is enumerated and
quoted hop by hop:
- exact-in walks forwards, each hop selling the previous hop's output,
- exact-out walks backwards from the requested output, each hop buying the
  next hop's required input.

A hop that fails (disabled pool, empty reserve, zero amount, insufficient
liquidity) drops the whole path.

Determinism:
- Ties are broken lexicographically by (hop_count, pool_id sequence).

Complexity:
- Time: O(paths * hops); the path count is bounded by the DFS depth `max_hops`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from ..state.balances import Amount, MintId
from ..state.pools import ConstantProductPool
from . import cpmm
from .config import DEFAULT_CONFIG, EngineConfig
from .fixed_point import apply_slippage_down, apply_slippage_up


@dataclass(frozen=True)
class PathHop:
    pool_id: str
    input_mint: MintId
    output_mint: MintId
    amount_in: Amount
    amount_out: Amount
    min_amount_out: Optional[Amount] = None
    max_amount_in: Optional[Amount] = None


@dataclass(frozen=True)
class PathQuote:
    hops: Tuple[PathHop, ...]
    amount_in: Amount
    amount_out: Amount
    # Slippage-adjusted end-to-end bound; set by `apply_path_slippage`.
    bound: Optional[Amount] = None

    @property
    def pool_ids(self) -> Tuple[str, ...]:
        return tuple(h.pool_id for h in self.hops)


Graph = Dict[MintId, List[ConstantProductPool]]


def build_graph(pools: Sequence[ConstantProductPool]) -> Graph:
    graph: Graph = {}
    for p in sorted(pools, key=lambda p: p.pool_id):
        graph.setdefault(p.mint0, []).append(p)
        graph.setdefault(p.mint1, []).append(p)
    return graph


def _other_mint(pool: ConstantProductPool, mint: MintId) -> Optional[MintId]:
    if mint == pool.mint0:
        return pool.mint1
    if mint == pool.mint1:
        return pool.mint0
    return None


def enumerate_paths(
    graph: Graph, start: MintId, end: MintId, max_hops: int = 3
) -> List[Tuple[ConstantProductPool, ...]]:
    """All simple token paths from `start` to `end` using at most `max_hops` pools."""
    found: List[Tuple[ConstantProductPool, ...]] = []
    seen = {start}
    path: List[ConstantProductPool] = []

    def dfs(cur: MintId) -> None:
        if cur == end and path:
            found.append(tuple(path))
            return
        if len(path) >= max_hops:
            return
        for pool in graph.get(cur, ()):
            nxt = _other_mint(pool, cur)
            if nxt is None or nxt in seen:
                continue
            seen.add(nxt)
            path.append(pool)
            dfs(nxt)
            path.pop()
            seen.discard(nxt)

    dfs(start)
    return found


def quote_path_exact_in(
    path: Sequence[ConstantProductPool], input_mint: MintId, output_mint: MintId, amount_in: Amount
) -> Optional[PathQuote]:
    if amount_in <= 0:
        return None
    amount, cur = amount_in, input_mint
    hops: List[PathHop] = []
    for pool in path:
        nxt = _other_mint(pool, cur)
        if nxt is None:
            return None
        try:
            out = cpmm.quote_exact_in(pool, cur, amount)
        except Exception as exc:
            logger.debug("dropping path through pool {}: {}", pool.pool_id, exc)
            return None
        if out <= 0:
            return None
        hops.append(PathHop(pool.pool_id, cur, nxt, amount, out))
        amount, cur = out, nxt
    if cur != output_mint:
        return None
    return PathQuote(hops=tuple(hops), amount_in=amount_in, amount_out=amount)


def quote_path_exact_out(
    path: Sequence[ConstantProductPool], input_mint: MintId, output_mint: MintId, amount_out: Amount
) -> Optional[PathQuote]:
    if amount_out <= 0:
        return None
    need, cur = amount_out, output_mint
    reversed_hops: List[PathHop] = []
    for pool in reversed(path):
        prev = _other_mint(pool, cur)
        if prev is None:
            return None
        try:
            outcome = cpmm.quote_exact_out(pool, cur, need)
        except Exception as exc:
            logger.debug("dropping path through pool {}: {}", pool.pool_id, exc)
            return None
        if not outcome.ok or outcome.unwrap() <= 0:
            return None
        required = outcome.unwrap()
        reversed_hops.append(PathHop(pool.pool_id, prev, cur, required, need))
        need, cur = required, prev
    if cur != input_mint:
        return None
    hops = tuple(reversed(reversed_hops))
    return PathQuote(hops=hops, amount_in=hops[0].amount_in, amount_out=hops[-1].amount_out)


def _path_key(q: PathQuote) -> Tuple[int, Tuple[str, ...]]:
    return (len(q.hops), q.pool_ids)


def best_path_exact_in(
    pools: Sequence[ConstantProductPool],
    *,
    input_mint: MintId,
    output_mint: MintId,
    amount_in: Amount,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[PathQuote]:
    """Best exact-in path (greatest output) of up to `config.max_hops` pools."""
    if input_mint == output_mint:
        return None
    best: Optional[PathQuote] = None
    for path in enumerate_paths(build_graph(pools), input_mint, output_mint, config.max_hops):
        q = quote_path_exact_in(path, input_mint, output_mint, amount_in)
        if q is None:
            continue
        if best is None or q.amount_out > best.amount_out or (
            q.amount_out == best.amount_out and _path_key(q) < _path_key(best)
        ):
            best = q
    return best


def best_path_exact_out(
    pools: Sequence[ConstantProductPool],
    *,
    input_mint: MintId,
    output_mint: MintId,
    amount_out: Amount,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[PathQuote]:
    """Best exact-out path (smallest required input) of up to `config.max_hops` pools."""
    if input_mint == output_mint:
        return None
    best: Optional[PathQuote] = None
    for path in enumerate_paths(build_graph(pools), input_mint, output_mint, config.max_hops):
        q = quote_path_exact_out(path, input_mint, output_mint, amount_out)
        if q is None:
            continue
        if best is None or q.amount_in < best.amount_in or (
            q.amount_in == best.amount_in and _path_key(q) < _path_key(best)
        ):
            best = q
    return best


def apply_path_slippage(q: PathQuote, slippage_bps: int, *, exact_in: bool) -> PathQuote:
    """
    Attach per-hop slippage bounds.

    Exact-in sets `min_amount_out` on every hop and bounds the final output;
    exact-out sets `max_amount_in` on every hop and bounds the first input.
    """
    if exact_in:
        hops = tuple(replace(h, min_amount_out=apply_slippage_down(h.amount_out, slippage_bps)) for h in q.hops)
        return replace(q, hops=hops, bound=apply_slippage_down(q.amount_out, slippage_bps))
    hops = tuple(replace(h, max_amount_in=apply_slippage_up(h.amount_in, slippage_bps)) for h in q.hops)
    return replace(q, hops=hops, bound=apply_slippage_up(q.amount_in, slippage_bps))
