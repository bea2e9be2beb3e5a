"""Bridges the synchronous Dash callbacks to the asyncio driver.

A :class:`BackgroundSession` owns an event loop running in a daemon thread
and one :class:`SimulationDriver`.  Callbacks submit ``run`` / ``reset``
coroutines to that loop and poll the driver snapshot from a
``dcc.Interval``.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading

from ..core.config import SimulationConfig
from ..core.errors import SimulationBusyError
from ..simulation.driver import DriverSnapshot, SimulationDriver
from ..simulation.engine import EstimationEngine

logger = logging.getLogger(__name__)


class BackgroundSession:
    def __init__(self, engine: EstimationEngine, **driver_kwargs) -> None:
        self.driver = SimulationDriver(engine, **driver_kwargs)
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name="simulation-loop", daemon=True,
        )
        self._thread.start()
        self._run_future: concurrent.futures.Future | None = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------

    def snapshot(self) -> DriverSnapshot:
        """Current driver snapshot, read on the loop thread."""
        return self._call(self._snapshot())

    async def _snapshot(self) -> DriverSnapshot:
        return self.driver.snapshot()

    def _call(self, coro):
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    def submit_run(self, config: SimulationConfig) -> concurrent.futures.Future:
        """Start a run in the background.

        Raises :class:`SimulationBusyError` right away when a run is still
        in flight instead of queueing a second one.
        """
        with self._lock:
            if self._run_future is not None and not self._run_future.done():
                raise SimulationBusyError("a run is already in progress")
            self._run_future = asyncio.run_coroutine_threadsafe(
                self.driver.run(config), self._loop,
            )
            return self._run_future

    def submit_reset(self) -> None:
        """Request a reset and wait until the driver has acknowledged it."""
        self._call(self.driver.reset())
        with self._lock:
            if self._run_future is not None and self._run_future.done():
                self._run_future = None

    @property
    def last_error(self) -> BaseException | None:
        """Exception raised by the most recent finished run, if any."""
        future = self._run_future
        if future is None or not future.done() or future.cancelled():
            return None
        return future.exception()

    def close(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        logger.debug("simulation loop stopped")
