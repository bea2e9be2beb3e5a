"""Tests for plotly figures and the matplotlib renderer."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import plotly.graph_objects as go
import pytest

from positioning_sim.core.node import Node, PositionKind, Stats
from positioning_sim.overlays.builder import OverlayGeometryBuilder
from positioning_sim.visualization.figures import node_description, overlay_figure, stats_figure
from positioning_sim.visualization.renderer import OverlayRenderer

from conftest import make_node_payload


@pytest.fixture
def nodes():
    return [Node.from_dict(make_node_payload(i)) for i in range(3)]


@pytest.fixture
def overlays(nodes):
    return OverlayGeometryBuilder(arc_segments=10, ellipse_points=12).build(nodes)


class TestOverlayFigure:
    def test_empty(self):
        """No nodes should give an empty map."""
        fig = overlay_figure([], [])
        assert isinstance(fig, go.Figure)
        assert len(fig.data) == 0

    def test_all_layers(self, nodes, overlays):
        """Every overlay layer should be drawn, markers last."""
        fig = overlay_figure(nodes, overlays)
        names = [t.name for t in fig.data]
        assert len(fig.data) == 8
        assert names[-3:] == ["Asserted", "Estimated", "True"]
        assert all(isinstance(t, go.Scattergeo) for t in fig.data)

    def test_optional_layers_hidden(self, nodes, overlays):
        """Toggled-off layers should be omitted."""
        fig = overlay_figure(nodes, overlays, show_arcs=False, show_cells=False,
                             show_ellipses=False)
        assert [t.name for t in fig.data] == ["Error path", "Asserted", "Estimated", "True"]

    def test_paths_separated(self, nodes, overlays):
        """Per-node paths should be separated by gaps."""
        fig = overlay_figure(nodes, overlays)
        error_path = next(t for t in fig.data if t.name == "Error path")
        # three points per node plus a gap
        assert len(error_path.lat) == 4 * len(nodes)
        assert error_path.lat[3] is None

    def test_markers_positions(self, nodes, overlays):
        """Markers should sit at node positions and be labelled by id."""
        fig = overlay_figure(nodes, overlays)
        true = next(t for t in fig.data if t.name == "True")
        assert list(true.lat) == pytest.approx([10.0] * 3)
        assert list(true.text) == ["0", "1", "2"]


class TestStatsFigure:
    def test_empty(self):
        """No stats should give an empty chart."""
        assert len(stats_figure(None).data) == 0
        assert len(stats_figure(Stats()).data) == 0

    def test_km_series(self):
        """Error series should be plotted in km against epoch."""
        fig = stats_figure(Stats([1000.0, 500.0], [800.0, 200.0], [3000.0, 3000.0]))
        assert len(fig.data) == 3
        assert list(fig.data[1].y) == pytest.approx([0.8, 0.2])
        assert list(fig.data[0].x) == [1, 2]


class TestNodeDescription:
    def test_asserted(self, nodes):
        """Asserted hover text should include its cell and error."""
        text = node_description(nodes[0], PositionKind.ASSERTED)
        assert "Node 0" in text
        assert "Asserted Position Error" in text
        assert nodes[0].asserted_index in text

    def test_estimate_shows_both(self, nodes):
        """Estimate hover text should show truth and estimate."""
        text = node_description(nodes[0], PositionKind.KF_ESTIMATED)
        assert "(Est:" in text
        assert "Position Error" in text

    def test_true_has_no_error(self, nodes):
        """True-position hover text should carry no error."""
        text = node_description(nodes[0], PositionKind.TRUE)
        assert "Error" not in text
        assert "τ: 10.00 ms" in text


class TestRenderer:
    def test_render_overlays(self, overlays):
        """The renderer should draw a cell patch per node on the given axes."""
        fig, ax = plt.subplots()
        out = OverlayRenderer(overlays).render_overlays(ax=ax, show_ids=True)
        assert out is ax
        assert ax.get_xlim() == (-180, 180)
        assert len(ax.patches) == len(overlays)
        plt.close(fig)

    def test_render_stats(self):
        """The renderer should plot three error curves in km."""
        fig, ax = plt.subplots()
        OverlayRenderer([]).render_stats(Stats([1000.0], [500.0], [2000.0]), ax=ax)
        assert len(ax.lines) == 3
        assert ax.lines[0].get_ydata()[0] == pytest.approx(1.0)
        plt.close(fig)
