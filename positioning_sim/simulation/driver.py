"""Simulation driver: runs the estimation engine in bounded chunks.

Orchestrates chunked ``advance`` calls against an
:class:`~positioning_sim.simulation.engine.EstimationEngine`, keeping the
latest cumulative snapshot, a progress percentage and a run state that the
presentation layer can observe.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import math
from dataclasses import dataclass, replace
from typing import Awaitable, Callable

from ..config import CHUNK_SIZE
from ..core.config import SimulationConfig
from ..core.errors import EngineError, SimulationBusyError
from ..core.node import Node, Stats
from .engine import ChunkResult, EstimationEngine, maybe_await

logger = logging.getLogger(__name__)


class DriverState(enum.Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    RUNNING = "running"
    RESETTING = "resetting"


@dataclass(frozen=True)
class DriverSnapshot:
    """Immutable view of the driver handed to listeners."""

    state: DriverState
    progress: float
    nodes: tuple[Node, ...]
    stats: Stats | None


Listener = Callable[[DriverSnapshot], None]


async def _yield_to_loop() -> None:
    await asyncio.sleep(0)


def chunk_plan(total_steps: int, chunk_size: int) -> list[int]:
    """Split *total_steps* into chunks of at most *chunk_size*.

    >>> chunk_plan(30, 25)
    [25, 5]
    """
    n_chunks = math.ceil(total_steps / chunk_size) if total_steps > 0 else 0
    return [min(chunk_size, total_steps - i * chunk_size) for i in range(n_chunks)]


class SimulationDriver:
    """Drives one engine instance through chunked runs.

    Only one run may be in flight; :meth:`run` raises
    :class:`SimulationBusyError` otherwise.  Between chunks the driver
    awaits *pause* (by default one trip through the event loop) so that
    progress and partial results can be rendered, and so that a
    :meth:`reset` issued meanwhile is noticed before the next ``advance``.
    """

    def __init__(
        self,
        engine: EstimationEngine,
        chunk_size: int = CHUNK_SIZE,
        pause: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self.engine = engine
        self.chunk_size = chunk_size
        self._pause = pause or _yield_to_loop
        self._state = DriverState.IDLE
        self._progress = 0.0
        self._nodes: tuple[Node, ...] = ()
        self._stats: Stats | None = None
        self._config: SimulationConfig | None = None
        self._cancel_requested = False
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._nodes

    @property
    def stats(self) -> Stats | None:
        return self._stats

    @property
    def config(self) -> SimulationConfig | None:
        """Config the current simulation was initialized with."""
        return self._config

    @property
    def is_running(self) -> bool:
        return self._state is not DriverState.IDLE

    @property
    def epochs_completed(self) -> int:
        return self._stats.n_epochs if self._stats is not None else 0

    def snapshot(self) -> DriverSnapshot:
        return DriverSnapshot(self._state, self._progress, self._nodes, self._stats)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    def _set_state(self, state: DriverState) -> None:
        self._state = state
        self._notify()

    def _clear_snapshot(self) -> None:
        self._nodes = ()
        self._stats = None
        self._config = None
        self._progress = 0.0

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def run(self, config: SimulationConfig) -> None:
        """Advance the engine by ``config.n_epochs`` epochs.

        The engine is initialized only when no snapshot exists yet;
        otherwise the run continues the current simulation.  Raises
        :class:`EngineError` if the engine fails, keeping the snapshot of
        the last completed chunk.
        """
        if self._state is not DriverState.IDLE:
            logger.warning("run rejected: driver is %s", self._state.value)
            raise SimulationBusyError(f"a run is already in progress ({self._state.value})")

        self._cancel_requested = False
        plan = chunk_plan(config.n_epochs, self.chunk_size)
        try:
            if not self._nodes:
                self._set_state(DriverState.INITIALIZING)
                logger.info("initializing engine: %d nodes, h3 resolution %d",
                            config.n_nodes, config.h3_resolution)
                try:
                    await maybe_await(self.engine.initialize(config))
                except Exception as exc:
                    raise EngineError(f"engine initialize failed: {exc}") from exc
                self._clear_snapshot()
                self._config = config
                if self._cancel_requested:
                    return
            elif (self._config is not None
                  and replace(config, n_epochs=self._config.n_epochs) != self._config):
                logger.warning("continuing the current simulation: settings other than "
                               "n_epochs take effect after a reset")

            self._set_state(DriverState.RUNNING)
            logger.info("running %d epochs in %d chunk(s)", config.n_epochs, len(plan))
            for i, steps in enumerate(plan):
                if self._cancel_requested:
                    break
                try:
                    payload = await maybe_await(self.engine.advance(steps))
                except Exception as exc:
                    raise EngineError(
                        f"engine advance failed on chunk {i + 1}/{len(plan)}: {exc}"
                    ) from exc
                if self._cancel_requested:
                    break
                result = ChunkResult.from_payload(payload)

                self._nodes = result.nodes
                self._stats = result.stats
                self._progress = (i + 1) / len(plan) * 100
                logger.debug("chunk %d/%d done (%d epochs total)",
                             i + 1, len(plan), self.epochs_completed)
                self._notify()

                await self._pause()
        except EngineError:
            logger.exception("simulation run aborted")
            raise
        finally:
            if self._cancel_requested:
                logger.info("simulation run cancelled by reset")
                self._clear_snapshot()
            self._cancel_requested = False
            self._progress = 0.0
            self._set_state(DriverState.IDLE)

    async def reset(self) -> None:
        """Discard the snapshot and stop any run at its next yield point."""
        self._clear_snapshot()
        if self._state is DriverState.IDLE:
            logger.info("simulation reset")
            self._notify()
            return
        self._cancel_requested = True
        self._set_state(DriverState.RESETTING)
