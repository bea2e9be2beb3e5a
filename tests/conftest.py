"""Shared fixtures: node payloads and a default config."""

from __future__ import annotations

import math

import h3
import pytest

from positioning_sim.core.geodesy import wgs84_to_ecef
from positioning_sim.core.node import WGS84
from positioning_sim.forms.normalizer import normalize, with_defaults


def _position(lat_deg: float, lon_deg: float, resolution: int = 5) -> dict:
    wgs = WGS84(math.radians(lat_deg), math.radians(lon_deg), 0.0)
    return {
        "index": h3.latlng_to_cell(lat_deg, lon_deg, resolution),
        "position": wgs84_to_ecef(wgs).tolist(),
        "wgs84": {"latitude": wgs.latitude, "longitude": wgs.longitude, "altitude": 0.0},
    }


def make_node_payload(node_id: int = 0, true=(10.0, 20.0), asserted=(10.5, 20.5),
                      ls=(10.2, 20.2), kf=(10.1, 20.1), **extra) -> dict:
    payload = {"id": node_id, "true_beta": 0.5, "true_tau": 0.01,
               "kf_estimated_beta": 0.45, "kf_estimated_tau": 0.012,
               "kf_en_variance_semimajor_axis": [1.0, 0.0],
               "kf_en_variance_semimajor_axis_length": 4.0e6,
               "kf_en_variance_semiminor_axis_length": 1.0e6}
    for prefix, (lat, lon) in (("true", true), ("asserted", asserted),
                               ("ls_estimated", ls), ("kf_estimated", kf)):
        pos = _position(lat, lon)
        payload[f"{prefix}_index"] = pos["index"]
        payload[f"{prefix}_position"] = pos["position"]
        payload[f"{prefix}_wgs84"] = pos["wgs84"]
    payload.update(extra)
    return payload


def make_stats_payload(n_epochs: int) -> dict:
    return {
        "ls_estimation_rms_error": [1000.0 * (n_epochs - i) for i in range(n_epochs)],
        "kf_estimation_rms_error": [500.0 * (n_epochs - i) for i in range(n_epochs)],
        "assertion_rms_error": [2000.0] * n_epochs,
    }


@pytest.fixture
def node_payload():
    return make_node_payload()


@pytest.fixture
def config():
    return normalize(with_defaults({"nNodes": "12", "nEpochs": "100", "h3Resolution": "3"}))
