"""Matplotlib-based static rendering of node overlays and error curves."""

from __future__ import annotations

from typing import Any, Sequence

import matplotlib.pyplot as plt
from matplotlib.patches import Polygon

from ..config import COLORS
from ..core.node import PositionKind, Stats
from ..overlays.builder import NodeOverlay


class OverlayRenderer:
    """Draws overlays in a plain longitude/latitude (equirectangular) frame."""

    def __init__(self, overlays: Sequence[NodeOverlay]) -> None:
        self.overlays = list(overlays)

    @staticmethod
    def _lonlat(points: Sequence[tuple[float, float]]) -> tuple[list[float], list[float]]:
        return [p[1] for p in points], [p[0] for p in points]

    def render_overlays(
        self,
        *,
        title: str = "Node overlays",
        show_arcs: bool = True,
        show_ids: bool = False,
        ax: Any = None,
    ) -> Any:
        """Draw cells, ellipses, arcs and markers for every node."""
        if ax is None:
            _fig, ax = plt.subplots(1, 1, figsize=(12, 6))

        for o in self.overlays:
            xs, ys = self._lonlat(o.asserted_cell.vertices)
            ax.add_patch(Polygon(
                list(zip(xs, ys)), closed=True, facecolor=COLORS["pink"],
                edgecolor=COLORS["pink"], alpha=0.2, linewidth=0.5, zorder=1,
            ))
            xs, ys = self._lonlat(o.ellipse_outline)
            ax.plot(xs, ys, color=COLORS["blue"], linewidth=0.8, zorder=2)
            xs, ys = self._lonlat(o.error_path)
            ax.plot(xs, ys, color=COLORS["grey"], linewidth=0.5, zorder=2)
            if show_arcs:
                for arc, color in ((o.asserted_arc, COLORS["orange"]),
                                   (o.estimate_arc, COLORS["blue"])):
                    # Arcs crossing the antimeridian would streak across the map.
                    if arc.crosses_antimeridian:
                        continue
                    xs, ys = self._lonlat(arc.points)
                    ax.plot(xs, ys, color=color, linewidth=0.5,
                            linestyle=":", zorder=2)

        for kind, color, size, label in (
            (PositionKind.ASSERTED, COLORS["pink"], 12, "Asserted"),
            (PositionKind.KF_ESTIMATED, COLORS["blue"], 12, "Estimated"),
            (PositionKind.TRUE, COLORS["green"], 20, "True"),
        ):
            xs, ys = self._lonlat([o.markers[kind] for o in self.overlays])
            ax.scatter(xs, ys, c=color, s=size, edgecolors="black",
                       linewidths=0.3, zorder=3, label=label)

        if show_ids:
            for o in self.overlays:
                lat, lon = o.markers[PositionKind.TRUE]
                ax.annotate(str(o.node_id), (lon, lat), textcoords="offset points",
                            xytext=(4, 4), fontsize=6, color="gray")

        ax.set_xlim(-180, 180)
        ax.set_ylim(-90, 90)
        ax.set_xlabel("Longitude (°)")
        ax.set_ylabel("Latitude (°)")
        ax.set_title(title)
        ax.set_aspect("equal")
        if self.overlays:
            ax.legend(loc="lower left", fontsize=8)
        return ax

    @staticmethod
    def render_stats(stats: Stats, *, title: str = "Position Error", ax: Any = None) -> Any:
        """Plot RMS errors (km) against epoch."""
        if ax is None:
            _fig, ax = plt.subplots(1, 1, figsize=(8, 4))
        frame = stats.to_frame(unit="km")
        epochs = frame.index.to_numpy()
        ax.plot(epochs, frame["ls_error"].to_numpy(), color=COLORS["green"], label="Least Squares Err.")
        ax.plot(epochs, frame["kf_error"].to_numpy(), color=COLORS["blue"], label="Kalman Filter Err.")
        ax.plot(epochs, frame["asserted_error"].to_numpy(), color=COLORS["pink"], label="Asserted Position Err.")
        ax.set_xlabel("Epoch")
        ax.set_ylabel("RMS Error (km)")
        ax.set_title(title)
        ax.grid(True, linestyle="--", alpha=0.3)
        ax.legend(fontsize=8)
        return ax
