"""Tests for the Dash form wiring."""

from __future__ import annotations

from positioning_sim.core.node import Node
from positioning_sim.forms.fields import DEFAULT_FORM_FIELDS, FIELDS, RANGE
from positioning_sim.forms.normalizer import normalize
from positioning_sim.simulation.driver import DriverSnapshot, DriverState
from positioning_sim.visualization import dash_app

from conftest import make_node_payload


def _form_inputs():
    values, ids = [], []
    for spec in FIELDS:
        if spec.kind == RANGE:
            for part, value in zip(("min", "max"), spec.default):
                ids.append({"type": "field", "name": spec.name, "part": part})
                values.append(value)
        else:
            ids.append({"type": "field", "name": spec.name, "part": "value"})
            values.append(spec.default)
    return values, ids


class TestFormWiring:
    def test_collect_fields_rebuilds_ranges(self):
        """Min and max inputs should be merged back into one range field."""
        values, ids = _form_inputs()
        fields = dash_app._collect_fields(values, ids)
        assert fields["betaRange"] == ["0.2", "0.8"]
        assert normalize(fields) == normalize(DEFAULT_FORM_FIELDS)

    def test_every_field_has_an_input(self):
        """The layout should carry an input for every form field."""
        layout = str(dash_app.app.layout)
        for spec in FIELDS:
            assert f"'name': '{spec.name}'" in layout

    def test_read_only_measurements(self):
        """The measurement count should be shown in the sidebar."""
        sidebar = dash_app._sidebar()
        assert "n-measurements" in str(sidebar)


class TestFormLock:
    def test_unlocked_before_first_run(self):
        """An idle session without a simulation should leave the form editable."""
        assert not dash_app._form_locked(DriverSnapshot(DriverState.IDLE, 0.0, (), None))

    def test_locked_while_initializing(self):
        """The form should lock as soon as a run starts."""
        snap = DriverSnapshot(DriverState.INITIALIZING, 0.0, (), None)
        assert dash_app._form_locked(snap)

    def test_locked_until_reset(self):
        """A finished simulation should keep the form locked until reset."""
        nodes = (Node.from_dict(make_node_payload()),)
        assert dash_app._form_locked(DriverSnapshot(DriverState.RUNNING, 50.0, nodes, None))
        assert dash_app._form_locked(DriverSnapshot(DriverState.IDLE, 0.0, nodes, None))

    def test_poll_disables_every_field_input(self):
        """The poll callback should drive the disabled state of each field input."""
        outputs = [
            o for o in dash_app.app.callback_map
            if "poll-interval" in str(dash_app.app.callback_map[o]["inputs"])
        ]
        assert len(outputs) == 1
        assert '"type":"field"' in outputs[0]
        assert "disabled" in outputs[0]


class TestRenderCache:
    def test_first_poll_draws(self, monkeypatch):
        """Nothing rendered yet should always draw."""
        monkeypatch.setattr(dash_app, "_rendered", None)
        assert dash_app._needs_redraw((), ())

    def test_same_nodes_skip_redraw(self, monkeypatch):
        """The same snapshot and options should not be drawn twice."""
        nodes = (Node.from_dict(make_node_payload()),)
        monkeypatch.setattr(dash_app, "_rendered", (nodes, ("arcs",)))
        assert not dash_app._needs_redraw(nodes, ("arcs",))
        assert dash_app._needs_redraw(nodes, ("arcs", "cells"))

    def test_new_chunk_redraws(self, monkeypatch):
        """A new nodes tuple should redraw even when it has the same length."""
        old = (Node.from_dict(make_node_payload()),)
        new = (Node.from_dict(make_node_payload()),)
        monkeypatch.setattr(dash_app, "_rendered", (old, ()))
        assert dash_app._needs_redraw(new, ())
