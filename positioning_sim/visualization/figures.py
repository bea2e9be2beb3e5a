"""Plotly figures: node overlays on a globe and the RMS error chart."""

from __future__ import annotations

from typing import Iterable, Sequence

import plotly.graph_objects as go

from ..config import COLORS, LAYOUT_DEFAULTS
from ..core.node import Node, PositionKind, Stats
from ..overlays.builder import NodeOverlay

_KIND_TITLES = {
    PositionKind.TRUE: "true position",
    PositionKind.ASSERTED: "asserted position",
    PositionKind.LS_ESTIMATED: "least-squares estimated position",
    PositionKind.KF_ESTIMATED: "kalman filter estimated position",
}


# ═══════════════════════════════════════════════════════════════════════
#  Hover text
# ═══════════════════════════════════════════════════════════════════════


def node_description(node: Node, kind: PositionKind) -> str:
    """HTML hover text describing *node* as seen from *kind*."""
    lat, lon = node.true_wgs84.to_degrees()
    lines = [f"<b>Node {node.id}: {_KIND_TITLES[kind]}</b>"]
    if kind is PositionKind.ASSERTED:
        err = node.position_error(PositionKind.ASSERTED) / 1000
        lines.append(f"Asserted Position Error: {err:.1f} km")
        lines.append(f"Cell: {node.asserted_index}")
        return "<br>".join(lines)

    est = kind is PositionKind.KF_ESTIMATED
    est_lat, est_lon = node.kf_estimated_wgs84.to_degrees()
    lines.append(f"Latitude: {lat:.2f}°" + (f" (Est: {est_lat:.2f}°)" if est else ""))
    lines.append(f"Longitude: {lon:.2f}°" + (f" (Est: {est_lon:.2f}°)" if est else ""))
    lines.append(f"β: {node.true_beta:.2f} c" + (f" (Est: {node.kf_estimated_beta:.2f} c)" if est else ""))
    lines.append(f"τ: {node.true_tau * 1000:.2f} ms" + (f" (Est: {node.kf_estimated_tau * 1000:.2f} ms)" if est else ""))
    if kind is not PositionKind.TRUE:
        lines.append(f"Position Error: {node.position_error(kind) / 1000:.1f} km")
    return "<br>".join(lines)


# ═══════════════════════════════════════════════════════════════════════
#  Overlay map
# ═══════════════════════════════════════════════════════════════════════


def _joined(paths: Iterable[Sequence[tuple[float, float]]]) -> tuple[list, list]:
    """Concatenate paths into one lat/lon list separated by ``None`` gaps."""
    lats: list[float | None] = []
    lons: list[float | None] = []
    for path in paths:
        for lat, lon in path:
            lats.append(lat)
            lons.append(lon)
        lats.append(None)
        lons.append(None)
    return lats, lons


def _line_trace(paths, name: str, color: str, width: float = 1.0,
                fill: str | None = None, dash: str | None = None) -> go.Scattergeo:
    lats, lons = _joined(paths)
    return go.Scattergeo(
        lat=lats, lon=lons, mode="lines", name=name,
        line=dict(color=color, width=width, dash=dash),
        fill=fill, opacity=0.8 if fill else 1.0,
        hoverinfo="skip",
    )


def _marker_trace(nodes: Sequence[Node], overlays: Sequence[NodeOverlay],
                  kind: PositionKind, name: str, color: str, size: int,
                  show_ids: bool = False) -> go.Scattergeo:
    points = [o.markers[kind] for o in overlays]
    return go.Scattergeo(
        lat=[p[0] for p in points],
        lon=[p[1] for p in points],
        mode="markers+text" if show_ids else "markers",
        text=[str(n.id) for n in nodes] if show_ids else None,
        textposition="top center",
        name=name,
        marker=dict(size=size, color=color, line=dict(width=0.5, color=COLORS["white"])),
        hovertext=[node_description(n, kind) for n in nodes],
        hoverinfo="text",
    )


def overlay_figure(
    nodes: Sequence[Node],
    overlays: Sequence[NodeOverlay],
    *,
    title: str = "Simulation",
    show_arcs: bool = True,
    show_cells: bool = True,
    show_ellipses: bool = True,
) -> go.Figure:
    """Globe figure with cells, ellipses, error paths and markers per node."""
    fig = go.Figure()
    if overlays:
        if show_cells:
            fig.add_trace(_line_trace(
                (o.asserted_cell.closed() for o in overlays),
                "Asserted H3 cell", COLORS["pink"], fill="toself",
            ))
        if show_ellipses:
            fig.add_trace(_line_trace(
                (o.ellipse_outline for o in overlays),
                "1σ ellipse", COLORS["blue"], width=1.5,
            ))
        fig.add_trace(_line_trace(
            (o.error_path for o in overlays), "Error path", COLORS["grey"],
        ))
        if show_arcs:
            fig.add_trace(_line_trace(
                (o.asserted_arc.points for o in overlays),
                "True → asserted", COLORS["orange"], dash="dot",
            ))
            fig.add_trace(_line_trace(
                (o.estimate_arc.points for o in overlays),
                "True → estimate", COLORS["blue"], dash="dot",
            ))
        fig.add_trace(_marker_trace(nodes, overlays, PositionKind.ASSERTED,
                                    "Asserted", COLORS["pink"], 6))
        fig.add_trace(_marker_trace(nodes, overlays, PositionKind.KF_ESTIMATED,
                                    "Estimated", COLORS["blue"], 6))
        fig.add_trace(_marker_trace(nodes, overlays, PositionKind.TRUE,
                                    "True", COLORS["green"], 8, show_ids=True))

    fig.update_geos(
        projection_type="natural earth",
        showland=True, landcolor="#1a1a24",
        showocean=True, oceancolor="#0a0a0f",
        showcountries=True, countrycolor="#333344",
        coastlinecolor="#444455",
        bgcolor="#0a0a0f",
    )
    fig.update_layout(
        title=dict(text=title, font=dict(size=16)),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        **LAYOUT_DEFAULTS,
    )
    return fig


# ═══════════════════════════════════════════════════════════════════════
#  RMS error chart
# ═══════════════════════════════════════════════════════════════════════


def stats_figure(stats: Stats | None) -> go.Figure:
    """Per-epoch RMS position error (km) for each estimation method."""
    fig = go.Figure()
    if stats is not None and stats.n_epochs:
        frame = stats.to_frame(unit="km")
        series = (
            ("ls_error", "Least Squares Err.", COLORS["green"]),
            ("kf_error", "Kalman Filter Err.", COLORS["blue"]),
            ("asserted_error", "Asserted Position Err.", COLORS["pink"]),
        )
        for column, name, color in series:
            fig.add_trace(go.Scatter(
                x=frame.index, y=frame[column], mode="lines", name=name,
                line=dict(width=2, color=color),
                hovertemplate="Epoch %{x}<br>%{y:.2f} km<extra>" + name + "</extra>",
            ))
    fig.update_layout(
        title=dict(text="Position Error", font=dict(size=14)),
        xaxis=dict(title="Epoch"),
        yaxis=dict(title="RMS Error (km)"),
        height=300,
        **{k: v for k, v in LAYOUT_DEFAULTS.items() if k != "height"},
    )
    return fig
