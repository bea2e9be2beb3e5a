"""Contract of the external estimation engine.

The engine is an opaque stateful service: ``initialize`` seeds a new
simulation from a config, and every ``advance(steps)`` runs that many more
epochs and returns the *cumulative* state (all nodes, all stats so far).
Either method may be a plain function or a coroutine.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Mapping, Protocol, Sequence, TypeVar, runtime_checkable

from ..core.config import SimulationConfig
from ..core.errors import EngineError
from ..core.node import Node, Stats

T = TypeVar("T")


@runtime_checkable
class EstimationEngine(Protocol):
    def initialize(self, config: SimulationConfig) -> None | Awaitable[None]: ...

    def advance(self, steps: int) -> Any: ...


@dataclass(frozen=True)
class ChunkResult:
    """Cumulative engine state after an ``advance`` call."""

    nodes: tuple[Node, ...]
    stats: Stats

    @classmethod
    def from_payload(cls, payload: Any) -> ChunkResult:
        """Parse an engine payload.

        Accepts a :class:`ChunkResult` or a mapping with ``nodes`` (node
        objects or mappings) and ``stats`` (a :class:`Stats` or mapping).
        Raises :class:`EngineError` on anything malformed.
        """
        if isinstance(payload, ChunkResult):
            return payload
        if not isinstance(payload, Mapping):
            raise EngineError(f"engine returned {type(payload).__name__}, expected a mapping")
        try:
            raw_nodes: Sequence[Any] = payload["nodes"]
            raw_stats = payload["stats"]
            nodes = tuple(_parse_node(n) for n in raw_nodes)
            stats = raw_stats if isinstance(raw_stats, Stats) else Stats.from_dict(raw_stats)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise EngineError(f"malformed engine payload: {exc!r}") from exc
        return cls(nodes=nodes, stats=stats)


def _parse_node(raw: Any) -> Node:
    if isinstance(raw, Node):
        return raw
    if not isinstance(raw, Mapping):
        raise EngineError(f"engine node entry is {type(raw).__name__}, expected a mapping")
    return Node.from_dict(raw)


async def maybe_await(value: T | Awaitable[T]) -> T:
    """Resolve *value* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value  # type: ignore[return-value]
