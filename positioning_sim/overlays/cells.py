"""H3 cell boundaries as map polygons."""

from __future__ import annotations

from dataclasses import dataclass

import h3

from .arc import _jumps_antimeridian


@dataclass(frozen=True)
class CellBoundary:
    """Ordered ``(lat°, lon°)`` vertices of an H3 cell."""

    cell_id: str
    resolution: int
    vertices: tuple[tuple[float, float], ...]

    @property
    def crosses_antimeridian(self) -> bool:
        return _jumps_antimeridian([lon for _, lon in self.closed()])

    def closed(self) -> list[tuple[float, float]]:
        """Vertices with the first repeated at the end."""
        return list(self.vertices) + [self.vertices[0]]


def cell_boundary(cell_id: str) -> CellBoundary:
    """Boundary of *cell_id*; raises ``ValueError`` for an invalid index."""
    if not isinstance(cell_id, str) or not h3.is_valid_cell(cell_id):
        raise ValueError(f"invalid H3 cell {cell_id!r}")
    vertices = tuple((float(lat), float(lng)) for lat, lng in h3.cell_to_boundary(cell_id))
    return CellBoundary(
        cell_id=cell_id,
        resolution=h3.get_resolution(cell_id),
        vertices=vertices,
    )
