"""Seeded stand-in for the external estimation engine.

:class:`SyntheticEngine` honours the engine contract (``initialize`` /
cumulative ``advance``) and produces payloads shaped like the real
engine's, so the driver, the overlays and the web UI can be exercised
without it.  It performs no estimation: every epoch the estimates are
simply pulled a fixed fraction closer to the true positions.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import h3
import numpy as np

from ..core.config import SimulationConfig
from ..core.geodesy import ecef_to_wgs84, wgs84_to_ecef
from ..core.node import WGS84

logger = logging.getLogger(__name__)

MAX_ABS_LATITUDE = math.radians(60.0)


def _cell(position: WGS84, resolution: int) -> str:
    lat, lon = position.to_degrees()
    return h3.latlng_to_cell(lat, lon, resolution)


def _wgs84_dict(position: WGS84) -> dict[str, float]:
    return {
        "latitude": position.latitude,
        "longitude": position.longitude,
        "altitude": position.altitude,
    }


def _rms(errors: np.ndarray) -> float:
    return float(np.sqrt(np.mean(np.sum(errors ** 2, axis=1))))


class SyntheticEngine:
    """Deterministic (given *seed*) engine double.

    Parameters
    ----------
    seed:
        Seed for ``numpy.random.default_rng``.
    convergence:
        Fraction of the Kalman estimate error kept after each epoch.
    """

    def __init__(self, seed: int | None = None, convergence: float = 0.9) -> None:
        if not 0.0 < convergence <= 1.0:
            raise ValueError("convergence must be in (0, 1]")
        self.seed = seed
        self.convergence = convergence
        self.config: SimulationConfig | None = None
        self.epoch = 0

    def initialize(self, config: SimulationConfig) -> None:
        self.config = config
        self.epoch = 0
        rng = np.random.default_rng(self.seed)
        self._rng = rng
        n = config.n_nodes

        sin_max = math.sin(MAX_ABS_LATITUDE)
        lats = np.arcsin(rng.uniform(-sin_max, sin_max, n))
        lons = rng.uniform(-math.pi, math.pi, n)
        self._true_wgs84 = [WGS84(float(la), float(lo), 0.0) for la, lo in zip(lats, lons)]
        self._true = np.array([wgs84_to_ecef(p) for p in self._true_wgs84])

        sigma = math.sqrt(config.asserted_position_variance)
        self._asserted = self._true + rng.normal(0.0, sigma, size=(n, 3))
        self._ls = self._asserted.copy()
        self._kf = self._asserted.copy()

        self._true_beta = rng.uniform(config.beta_min, config.beta_max, n)
        self._true_tau = rng.uniform(config.tau_min, config.tau_max, n)
        self._kf_beta = np.full(n, config.kf_model_beta)
        self._kf_tau = np.full(n, config.kf_model_tau)

        angles = rng.uniform(0.0, math.pi, n)
        self._major_axes = np.column_stack([np.cos(angles), np.sin(angles)])
        self._major_var = np.full(n, max(config.asserted_position_variance, 1.0))
        self._minor_var = self._major_var * rng.uniform(0.2, 0.8, n)

        self._stats: dict[str, list[float]] = {
            "ls_estimation_rms_error": [],
            "kf_estimation_rms_error": [],
            "assertion_rms_error": [],
        }
        logger.debug("synthetic engine initialized with %d nodes", n)

    def advance(self, steps: int) -> dict[str, Any]:
        if self.config is None:
            raise RuntimeError("Simulation not initialized")
        for _ in range(steps):
            self._epoch_step()
        return self._payload()

    def _epoch_step(self) -> None:
        keep = self.convergence
        jitter = math.sqrt(self.config.kf_model_position_variance) * 0.01
        self._kf = self._true + (self._kf - self._true) * keep
        self._kf += self._rng.normal(0.0, jitter, size=self._kf.shape)
        self._ls = self._true + (self._ls - self._true) * math.sqrt(keep)
        self._kf_beta = self._true_beta + (self._kf_beta - self._true_beta) * keep
        self._kf_tau = self._true_tau + (self._kf_tau - self._true_tau) * keep
        self._major_var = self._major_var * keep ** 2
        self._minor_var = self._minor_var * keep ** 2
        self.epoch += 1

        self._stats["kf_estimation_rms_error"].append(_rms(self._kf - self._true))
        self._stats["ls_estimation_rms_error"].append(_rms(self._ls - self._true))
        self._stats["assertion_rms_error"].append(_rms(self._asserted - self._true))

    def _payload(self) -> dict[str, Any]:
        res = self.config.h3_resolution
        nodes = []
        for i, true_wgs84 in enumerate(self._true_wgs84):
            asserted = ecef_to_wgs84(self._asserted[i])
            ls = ecef_to_wgs84(self._ls[i])
            kf = ecef_to_wgs84(self._kf[i])
            major = self._major_axes[i]
            nodes.append({
                "id": i,
                "true_index": _cell(true_wgs84, res),
                "true_position": self._true[i].tolist(),
                "true_wgs84": _wgs84_dict(true_wgs84),
                "true_beta": float(self._true_beta[i]),
                "true_tau": float(self._true_tau[i]),
                "asserted_index": _cell(asserted, res),
                "asserted_position": self._asserted[i].tolist(),
                "asserted_wgs84": _wgs84_dict(asserted),
                "ls_estimated_index": _cell(ls, res),
                "ls_estimated_position": self._ls[i].tolist(),
                "ls_estimated_wgs84": _wgs84_dict(ls),
                "kf_estimated_index": _cell(kf, res),
                "kf_estimated_position": self._kf[i].tolist(),
                "kf_estimated_wgs84": _wgs84_dict(kf),
                "kf_estimated_beta": float(self._kf_beta[i]),
                "kf_estimated_tau": float(self._kf_tau[i]),
                "kf_en_variance_semimajor_axis": major.tolist(),
                "kf_en_variance_semiminor_axis": [float(-major[1]), float(major[0])],
                "kf_en_variance_semimajor_axis_length": float(self._major_var[i]),
                "kf_en_variance_semiminor_axis_length": float(self._minor_var[i]),
            })
        stats = {k: list(v) for k, v in self._stats.items()}
        return {"nodes": nodes, "stats": stats}
