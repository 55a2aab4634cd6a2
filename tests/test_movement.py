"""Unit tests for the movement gate."""

import pytest

from parksmart.models import Coordinate
from parksmart.movement import degree_distance, should_query

ORIGIN = Coordinate(37.7749, -122.4194)


class TestDegreeDistance:
    def test_zero_for_same_point(self):
        assert degree_distance(ORIGIN, ORIGIN) == 0.0

    def test_planar_pythagoras(self):
        other = Coordinate(ORIGIN.latitude + 0.0003, ORIGIN.longitude + 0.0004)
        assert degree_distance(ORIGIN, other) == pytest.approx(0.0005)


class TestShouldQuery:
    def test_first_query_always_passes(self):
        assert should_query(None, ORIGIN) is True
        assert should_query(None, ORIGIN, forced=False) is True
        assert should_query(None, ORIGIN, forced=True) is True

    @pytest.mark.parametrize("dlat,dlng", [(0.0, 0.0), (0.0001, 0.0001), (0.0004, 0.0), (0.0, -0.00049)])
    def test_jitter_is_ignored(self, dlat, dlng):
        current = Coordinate(ORIGIN.latitude + dlat, ORIGIN.longitude + dlng)
        assert should_query(ORIGIN, current) is False

    @pytest.mark.parametrize("dlat,dlng", [(0.0006, 0.0), (0.0, -0.001), (0.01, 0.01)])
    def test_real_movement_passes(self, dlat, dlng):
        current = Coordinate(ORIGIN.latitude + dlat, ORIGIN.longitude + dlng)
        assert should_query(ORIGIN, current) is True

    def test_forced_bypasses_gate(self):
        assert should_query(ORIGIN, ORIGIN, forced=True) is True

    def test_threshold_is_inclusive(self):
        origin = Coordinate(0.0, 0.0)
        assert should_query(origin, Coordinate(0.0, 0.5), threshold=0.5) is True
        assert should_query(origin, Coordinate(0.0, 0.25), threshold=0.5) is False

    def test_custom_threshold(self):
        current = Coordinate(ORIGIN.latitude + 0.002, ORIGIN.longitude)
        assert should_query(ORIGIN, current, threshold=0.005) is False
