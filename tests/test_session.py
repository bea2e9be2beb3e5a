"""Tests for the background event-loop session used by the web UI."""

from __future__ import annotations

import pytest

from positioning_sim.core.errors import EngineError
from positioning_sim.simulation.driver import DriverState
from positioning_sim.simulation.synthetic import SyntheticEngine
from positioning_sim.visualization.session import BackgroundSession


class _Failing(SyntheticEngine):
    def advance(self, steps):
        raise RuntimeError("boom")


@pytest.fixture
def small_config(config):
    values = config.to_dict()
    values["n_epochs"] = 30
    return type(config)(**values)


class TestBackgroundSession:
    def test_run_and_reset(self, small_config):
        """A background run should finish and reset should clear it."""
        session = BackgroundSession(SyntheticEngine(seed=2))
        try:
            session.submit_run(small_config).result(timeout=60)
            snap = session.snapshot()
            assert snap.state is DriverState.IDLE
            assert snap.stats.n_epochs == 30
            assert len(snap.nodes) == small_config.n_nodes
            assert session.last_error is None

            session.submit_reset()
            assert session.snapshot().nodes == ()
        finally:
            session.close()

    def test_engine_error_reported(self, small_config):
        """An engine failure should be reported until the next reset."""
        session = BackgroundSession(_Failing(seed=2))
        try:
            future = session.submit_run(small_config)
            with pytest.raises(EngineError):
                future.result(timeout=60)
            assert isinstance(session.last_error, EngineError)
            session.submit_reset()
            assert session.last_error is None
        finally:
            session.close()
