"""Tests for node records, stats and geodesy."""

from __future__ import annotations

import math

import numpy as np
import pytest

from positioning_sim.core.geodesy import (
    SEMI_MAJOR_AXIS, ecef_to_wgs84, en_offset_to_degrees, wgs84_to_ecef,
)
from positioning_sim.core.node import WGS84, Node, PositionKind, Stats

from conftest import make_node_payload


class TestNode:
    def test_from_dict(self, node_payload):
        """A node payload should parse into vectors, positions and cells."""
        node = Node.from_dict(node_payload)
        assert node.id == 0
        assert node.true_position.shape == (3,)
        assert node.true_wgs84.to_degrees() == pytest.approx((10.0, 20.0))
        assert node.kf_estimated_beta == pytest.approx(0.45)
        assert node.cell_index(PositionKind.ASSERTED) == node_payload["asserted_index"]

    def test_minor_axis_defaults_to_perpendicular(self, node_payload):
        """A missing minor axis should default to the perpendicular of the major one."""
        node = Node.from_dict(node_payload)
        assert np.allclose(node.kf_en_variance_semiminor_axis, [0.0, 1.0])
        assert np.dot(node.kf_en_variance_semimajor_axis, node.kf_en_variance_semiminor_axis) == 0

    def test_explicit_minor_axis_kept(self):
        """An explicit minor axis should be kept."""
        node = Node.from_dict(make_node_payload(kf_en_variance_semiminor_axis=[0.0, -1.0]))
        assert np.allclose(node.kf_en_variance_semiminor_axis, [0.0, -1.0])

    def test_position_error(self):
        """Position error should be the distance to the true position."""
        node = Node.from_dict(make_node_payload(true_position=[0, 0, 0],
                                                asserted_position=[3000, 4000, 0]))
        assert node.position_error(PositionKind.ASSERTED) == pytest.approx(5000.0)
        assert node.position_error(PositionKind.TRUE) == 0.0

    def test_accessors_by_kind(self, node_payload):
        """Kind accessors should return the matching attributes."""
        node = Node.from_dict(node_payload)
        for kind in PositionKind:
            assert node.position(kind) is getattr(node, f"{kind.value}_position")
            assert node.wgs84(kind) == getattr(node, f"{kind.value}_wgs84")

    def test_bad_vector_shape(self):
        """A position that is not three-dimensional should be rejected."""
        with pytest.raises(ValueError):
            Node.from_dict(make_node_payload(true_position=[1.0, 2.0]))

    def test_missing_key(self, node_payload):
        """A missing field should raise KeyError."""
        del node_payload["true_beta"]
        with pytest.raises(KeyError):
            Node.from_dict(node_payload)


class TestStats:
    def test_unequal_lengths_rejected(self):
        """Stats series of unequal length should be rejected."""
        with pytest.raises(ValueError):
            Stats([1.0, 2.0], [1.0], [1.0, 2.0])

    def test_empty(self):
        """Empty stats should have no epochs and an empty frame."""
        stats = Stats()
        assert stats.n_epochs == 0
        assert stats.to_frame().empty

    def test_frame_in_km(self):
        """The frame should be indexed by epoch and converted to km."""
        stats = Stats([1000.0, 500.0], [800.0, 200.0], [3000.0, 3000.0])
        frame = stats.to_frame(unit="km")
        assert list(frame.index) == [1, 2]
        assert frame.index.name == "epoch"
        assert list(frame.columns) == ["ls_error", "kf_error", "asserted_error"]
        assert frame.loc[2, "kf_error"] == pytest.approx(0.2)
        assert frame.loc[1, "asserted_error"] == pytest.approx(3.0)

    def test_unknown_unit(self):
        """An unknown unit should be rejected."""
        with pytest.raises(ValueError):
            Stats().to_frame(unit="mi")

    def test_from_dict(self):
        """Stats should parse from the engine's key names."""
        stats = Stats.from_dict({
            "ls_estimation_rms_error": [1, 2, 3],
            "kf_estimation_rms_error": [1, 2, 3],
            "assertion_rms_error": [4, 4, 4],
        })
        assert stats.n_epochs == 3
        assert stats.assertion_rms_error == [4.0, 4.0, 4.0]


class TestGeodesy:
    def test_equator_prime_meridian(self):
        """The origin of lat/lon should sit on the x axis at the semi-major axis."""
        xyz = wgs84_to_ecef(WGS84(0.0, 0.0, 0.0))
        assert xyz == pytest.approx([SEMI_MAJOR_AXIS, 0.0, 0.0])

    def test_round_trip(self):
        """Geodetic to ECEF and back should return the input."""
        for lat, lon, alt in ((45.0, 10.0, 100.0), (-33.9, 151.2, 0.0), (60.0, -120.0, 5000.0)):
            original = WGS84(math.radians(lat), math.radians(lon), alt)
            back = ecef_to_wgs84(wgs84_to_ecef(original))
            assert back.latitude == pytest.approx(original.latitude, abs=1e-9)
            assert back.longitude == pytest.approx(original.longitude, abs=1e-9)
            assert back.altitude == pytest.approx(alt, abs=1e-2)

    def test_tangent_offset(self):
        """A tangent-plane offset should widen in longitude with latitude."""
        dlat, dlon = en_offset_to_degrees(60.0, 1000.0, 1000.0)
        assert dlon == pytest.approx(2 * dlat, rel=1e-9)
