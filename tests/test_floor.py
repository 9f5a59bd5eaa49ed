import math

import pytest

from sentinel_activity.geometry import FloorCorrector, FloorPlane


class TestFloorPlane:
    def test_identity_is_level(self):
        plane = FloorPlane.identity()
        assert plane.tilt_defined
        assert plane.tilt_radians == 0.0

    def test_tilt_from_normal(self):
        plane = FloorPlane(x=0.0, y=0.8, z=0.6, w=1.0)
        assert plane.tilt_radians == pytest.approx(math.atan2(0.6, 0.8))

    def test_zero_y_component_leaves_tilt_undefined(self):
        plane = FloorPlane(x=0.0, y=0.0, z=1.0, w=0.9)
        assert not plane.tilt_defined
        assert plane.tilt_radians is None

    def test_non_finite_plane_leaves_tilt_undefined(self):
        assert FloorPlane(x=0.0, y=float("nan"), z=0.2, w=0.9).tilt_radians is None


class TestFloorCorrector:
    def test_identity_plane_keeps_points(self):
        corrector = FloorCorrector(FloorPlane.identity())
        assert corrector.correct((1.0, 2.0, 3.0)) == pytest.approx((1.0, 2.0, 3.0))

    def test_level_plane_lifts_by_offset(self):
        corrector = FloorCorrector(FloorPlane(x=0.0, y=1.0, z=0.0, w=0.9))
        assert corrector.correct((0.5, -0.2, 2.0)) == pytest.approx((0.5, 0.7, 2.0))

    def test_tilted_plane_rotates_y_and_z(self):
        # cos = 0.8, sin = 0.6
        corrector = FloorCorrector(FloorPlane(x=0.0, y=0.8, z=0.6, w=1.0))
        x, y, z = corrector.correct((1.0, 2.0, 3.0))

        assert x == pytest.approx(1.0)
        assert y == pytest.approx(2.0 * 0.8 + 3.0 * 0.6 + 1.0)
        assert z == pytest.approx(3.0 * 0.8 - 2.0 * 0.6)

    def test_undefined_tilt_passes_points_through(self):
        corrector = FloorCorrector(FloorPlane(x=0.0, y=0.0, z=1.0, w=0.9))
        assert corrector.is_passthrough
        assert corrector.correct((1.0, 2.0, 3.0)) == pytest.approx((1.0, 2.0, 3.0))

    def test_correct_many_keeps_order(self):
        corrector = FloorCorrector(FloorPlane(x=0.0, y=1.0, z=0.0, w=1.0))
        points = corrector.correct_many([(0.0, 0.0, 0.0), (1.0, 1.0, 1.0)])
        assert points[0] == pytest.approx((0.0, 1.0, 0.0))
        assert points[1] == pytest.approx((1.0, 2.0, 1.0))

    def test_correct_many_empty(self):
        assert FloorCorrector(FloorPlane.identity()).correct_many([]) == []

    def test_results_are_plain_floats(self):
        x, y, z = FloorCorrector(FloorPlane.identity()).correct((1, 2, 3))
        assert all(type(c) is float for c in (x, y, z))
