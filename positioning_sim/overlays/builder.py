"""Per-node overlay assembly.

:class:`OverlayGeometryBuilder` turns each node of a driver snapshot into
the primitives the map draws for it.  It keeps only its sampling settings;
every call recomputes geometry from the node it is given.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..config import ARC_SEGMENTS, ELLIPSE_POINTS
from ..core.node import Node, PositionKind
from .arc import ArcGeometry, great_circle_arc
from .cells import CellBoundary, cell_boundary
from .ellipse import EllipseGeometry, confidence_ellipse


@dataclass(frozen=True)
class NodeOverlay:
    node_id: int
    asserted_cell: CellBoundary
    ellipse: EllipseGeometry
    ellipse_outline: tuple[tuple[float, float], ...]
    # asserted -> true -> kalman estimate
    error_path: tuple[tuple[float, float], ...]
    asserted_arc: ArcGeometry
    estimate_arc: ArcGeometry
    markers: dict[PositionKind, tuple[float, float]]


class OverlayGeometryBuilder:
    """Derive render primitives from :class:`Node` records."""

    def __init__(self, arc_segments: int = ARC_SEGMENTS,
                 ellipse_points: int = ELLIPSE_POINTS) -> None:
        self.arc_segments = arc_segments
        self.ellipse_points = ellipse_points

    def node_overlay(self, node: Node) -> NodeOverlay:
        ellipse = confidence_ellipse(node)
        markers = {kind: node.wgs84(kind).to_degrees() for kind in PositionKind}
        return NodeOverlay(
            node_id=node.id,
            asserted_cell=cell_boundary(node.asserted_index),
            ellipse=ellipse,
            ellipse_outline=tuple(ellipse.outline(self.ellipse_points)),
            error_path=(
                markers[PositionKind.ASSERTED],
                markers[PositionKind.TRUE],
                markers[PositionKind.KF_ESTIMATED],
            ),
            asserted_arc=great_circle_arc(
                node.true_wgs84, node.asserted_wgs84, self.arc_segments
            ),
            estimate_arc=great_circle_arc(
                node.true_wgs84, node.kf_estimated_wgs84, self.arc_segments
            ),
            markers=markers,
        )

    def build(self, nodes: Iterable[Node]) -> list[NodeOverlay]:
        return [self.node_overlay(node) for node in nodes]
