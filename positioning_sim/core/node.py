"""Per-node engine output and per-epoch statistics."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Any, Mapping

import numpy as np
import pandas as pd


class PositionKind(enum.Enum):
    TRUE = "true"
    ASSERTED = "asserted"
    LS_ESTIMATED = "ls_estimated"
    KF_ESTIMATED = "kf_estimated"


@dataclass(frozen=True)
class WGS84:
    """Geographic position; latitude and longitude in radians, altitude in metres."""

    latitude: float
    longitude: float
    altitude: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WGS84:
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            altitude=float(data.get("altitude", 0.0)),
        )

    def to_degrees(self) -> tuple[float, float]:
        """Return ``(latitude, longitude)`` in degrees."""
        return math.degrees(self.latitude), math.degrees(self.longitude)


def _vector(value: Any, size: int, name: str) -> np.ndarray:
    arr = np.asarray(value, dtype=float)
    if arr.shape != (size,):
        raise ValueError(f"{name} must have {size} components, got shape {arr.shape}")
    return arr


@dataclass
class Node:
    """A single simulated node as reported by the estimation engine.

    Each position comes in three forms: an H3 cell index, an ECEF vector
    (metres) and a :class:`WGS84` triple.  The east/north uncertainty of the
    Kalman estimate is given by two orthogonal axis vectors and their
    variances.
    """

    id: int
    true_index: str
    true_position: np.ndarray
    true_wgs84: WGS84
    true_beta: float
    true_tau: float
    asserted_index: str
    asserted_position: np.ndarray
    asserted_wgs84: WGS84
    ls_estimated_index: str
    ls_estimated_position: np.ndarray
    ls_estimated_wgs84: WGS84
    kf_estimated_index: str
    kf_estimated_position: np.ndarray
    kf_estimated_wgs84: WGS84
    kf_estimated_beta: float
    kf_estimated_tau: float
    kf_en_variance_semimajor_axis: np.ndarray
    kf_en_variance_semimajor_axis_length: float
    kf_en_variance_semiminor_axis_length: float
    kf_en_variance_semiminor_axis: np.ndarray | None = field(default=None)

    def __post_init__(self) -> None:
        for name in ("true_position", "asserted_position",
                     "ls_estimated_position", "kf_estimated_position"):
            setattr(self, name, _vector(getattr(self, name), 3, name))
        self.kf_en_variance_semimajor_axis = _vector(
            self.kf_en_variance_semimajor_axis, 2, "kf_en_variance_semimajor_axis"
        )
        if self.kf_en_variance_semiminor_axis is None:
            # Orthogonal complement of the major axis.
            x, y = self.kf_en_variance_semimajor_axis
            self.kf_en_variance_semiminor_axis = np.array([-y, x])
        else:
            self.kf_en_variance_semiminor_axis = _vector(
                self.kf_en_variance_semiminor_axis, 2, "kf_en_variance_semiminor_axis"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Node:
        """Build a node from the engine's JSON-like payload."""
        minor = data.get("kf_en_variance_semiminor_axis")
        return cls(
            id=int(data["id"]),
            true_index=str(data["true_index"]),
            true_position=data["true_position"],
            true_wgs84=WGS84.from_dict(data["true_wgs84"]),
            true_beta=float(data["true_beta"]),
            true_tau=float(data["true_tau"]),
            asserted_index=str(data["asserted_index"]),
            asserted_position=data["asserted_position"],
            asserted_wgs84=WGS84.from_dict(data["asserted_wgs84"]),
            ls_estimated_index=str(data["ls_estimated_index"]),
            ls_estimated_position=data["ls_estimated_position"],
            ls_estimated_wgs84=WGS84.from_dict(data["ls_estimated_wgs84"]),
            kf_estimated_index=str(data["kf_estimated_index"]),
            kf_estimated_position=data["kf_estimated_position"],
            kf_estimated_wgs84=WGS84.from_dict(data["kf_estimated_wgs84"]),
            kf_estimated_beta=float(data["kf_estimated_beta"]),
            kf_estimated_tau=float(data["kf_estimated_tau"]),
            kf_en_variance_semimajor_axis=data["kf_en_variance_semimajor_axis"],
            kf_en_variance_semimajor_axis_length=float(data["kf_en_variance_semimajor_axis_length"]),
            kf_en_variance_semiminor_axis_length=float(data["kf_en_variance_semiminor_axis_length"]),
            kf_en_variance_semiminor_axis=minor,
        )

    def position(self, kind: PositionKind) -> np.ndarray:
        return getattr(self, f"{kind.value}_position")

    def wgs84(self, kind: PositionKind) -> WGS84:
        return getattr(self, f"{kind.value}_wgs84")

    def cell_index(self, kind: PositionKind) -> str:
        return getattr(self, f"{kind.value}_index")

    def position_error(self, kind: PositionKind) -> float:
        """Straight-line distance (m) between the true position and *kind*."""
        return float(np.linalg.norm(self.true_position - self.position(kind)))


@dataclass
class Stats:
    """RMS position errors (m), one entry per completed epoch."""

    ls_estimation_rms_error: list[float] = field(default_factory=list)
    kf_estimation_rms_error: list[float] = field(default_factory=list)
    assertion_rms_error: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        lengths = {
            len(self.ls_estimation_rms_error),
            len(self.kf_estimation_rms_error),
            len(self.assertion_rms_error),
        }
        if len(lengths) != 1:
            raise ValueError("stats arrays must have one entry per epoch")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Stats:
        return cls(
            ls_estimation_rms_error=[float(v) for v in data["ls_estimation_rms_error"]],
            kf_estimation_rms_error=[float(v) for v in data["kf_estimation_rms_error"]],
            assertion_rms_error=[float(v) for v in data["assertion_rms_error"]],
        )

    @property
    def n_epochs(self) -> int:
        return len(self.assertion_rms_error)

    def to_frame(self, unit: str = "m") -> pd.DataFrame:
        """Tabulate the errors indexed by epoch (starting at 1).

        *unit* is ``"m"`` or ``"km"``.
        """
        if unit not in ("m", "km"):
            raise ValueError(f"unsupported unit {unit!r}")
        scale = 1e-3 if unit == "km" else 1.0
        frame = pd.DataFrame(
            {
                "ls_error": self.ls_estimation_rms_error,
                "kf_error": self.kf_estimation_rms_error,
                "asserted_error": self.assertion_rms_error,
            },
            index=pd.RangeIndex(1, self.n_epochs + 1, name="epoch"),
            dtype=float,
        )
        return frame * scale
