#!/usr/bin/env python3
"""
Tests for the physics primitives.

Tests cover:
1. Vector3D arithmetic, angles and normalisation edge cases
2. Bounded direction rotation (used by the lead clamp)
3. Quaternion look rotations, frame transforms and bounded slews
"""

import math

import pytest
from numpy.testing import assert_allclose

from arcade_missiles.physics import (
    GRAVITY_MS2,
    Quaternion,
    Vector3D,
    gravity_vector,
    rotate_towards,
)


# =============================================================================
# VECTOR3D TESTS
# =============================================================================

class TestVector3D:
    """Vector arithmetic and geometry."""

    def test_add_sub_scale(self):
        a = Vector3D(1, 2, 3)
        b = Vector3D(4, -1, 0.5)
        assert a + b == Vector3D(5, 1, 3.5)
        assert a - b == Vector3D(-3, 3, 2.5)
        assert a * 2 == Vector3D(2, 4, 6)
        assert 2 * a == Vector3D(2, 4, 6)

    def test_divide_by_zero_raises(self):
        with pytest.raises(ValueError):
            Vector3D(1, 0, 0) / 0

    def test_cross_follows_frame_convention(self):
        """forward x left = up."""
        assert Vector3D.unit_x().cross(Vector3D.unit_y()) == Vector3D.unit_z()

    def test_normalized_zero_stays_zero(self):
        assert Vector3D.zero().normalized() == Vector3D.zero()

    @pytest.mark.parametrize(
        "other,expected_deg",
        [
            (Vector3D(1, 0, 0), 0.0),
            (Vector3D(0, 1, 0), 90.0),
            (Vector3D(-1, 0, 0), 180.0),
            (Vector3D(1, 1, 0), 45.0),
        ],
        ids=["same", "perpendicular", "opposite", "diagonal"]
    )
    def test_angle_to_deg(self, other, expected_deg):
        assert Vector3D.unit_x().angle_to_deg(other) == pytest.approx(expected_deg)

    def test_angle_with_zero_vector_is_zero(self):
        assert Vector3D.unit_x().angle_to(Vector3D.zero()) == 0.0

    def test_any_perpendicular(self):
        for v in (Vector3D.unit_x(), Vector3D.unit_z(), Vector3D(1, 2, 3)):
            p = v.any_perpendicular()
            assert p.magnitude == pytest.approx(1.0)
            assert v.dot(p) == pytest.approx(0.0, abs=1e-12)

    def test_gravity_points_down(self):
        assert gravity_vector() == Vector3D(0, 0, -GRAVITY_MS2)


# =============================================================================
# ROTATE TOWARDS TESTS
# =============================================================================

class TestRotateTowards:
    """Bounded rotation between directions."""

    def test_within_reach_returns_target(self):
        result = rotate_towards(Vector3D(1, 0, 0), Vector3D(10, 1, 0), math.radians(20))
        assert result == Vector3D(10, 1, 0).normalized()

    def test_step_is_bounded(self):
        result = rotate_towards(Vector3D(1, 0, 0), Vector3D(0, 1, 0), 0.5)
        assert result.angle_to(Vector3D(1, 0, 0)) == pytest.approx(0.5)
        # Stays in the plane of the two directions
        assert result.z == pytest.approx(0.0, abs=1e-12)
        assert result.y > 0

    def test_antiparallel_still_bounded(self):
        result = rotate_towards(Vector3D(1, 0, 0), Vector3D(-1, 0, 0), 0.3)
        assert result.angle_to(Vector3D(1, 0, 0)) == pytest.approx(0.3)

    def test_result_is_unit_length(self):
        result = rotate_towards(Vector3D(5, 0, 0), Vector3D(0, 0, 7), 0.2)
        assert result.magnitude == pytest.approx(1.0)


# =============================================================================
# QUATERNION TESTS
# =============================================================================

class TestQuaternion:
    """Orientation math."""

    def test_identity_axes(self):
        q = Quaternion.identity()
        assert q.forward == Vector3D.unit_x()
        assert q.left == Vector3D.unit_y()
        assert q.up == Vector3D.unit_z()

    def test_look_rotation_yaw(self):
        q = Quaternion.look_rotation(Vector3D(0, 1, 0), Vector3D.unit_z())
        assert_allclose(q.forward.to_tuple(), (0, 1, 0), atol=1e-12)
        assert_allclose(q.up.to_tuple(), (0, 0, 1), atol=1e-12)

    def test_look_rotation_keeps_up_perpendicular(self):
        q = Quaternion.look_rotation(Vector3D(1, 0, 1), Vector3D.unit_z())
        assert_allclose(q.forward.to_tuple(), Vector3D(1, 0, 1).normalized().to_tuple(), atol=1e-12)
        assert q.up.dot(q.forward) == pytest.approx(0.0, abs=1e-12)
        assert q.up.z > 0

    def test_look_rotation_parallel_up(self):
        """Looking straight up with an up hint along forward still works."""
        q = Quaternion.look_rotation(Vector3D(0, 0, 5), Vector3D.unit_z())
        assert_allclose(q.forward.to_tuple(), (0, 0, 1), atol=1e-12)

    def test_look_rotation_zero_forward_is_identity(self):
        assert Quaternion.look_rotation(Vector3D.zero()) == Quaternion.identity()

    def test_inverse_rotate_undoes_rotate(self):
        q = Quaternion.look_rotation(Vector3D(1, 2, -0.5), Vector3D(0, 0.2, 1))
        v = Vector3D(3.0, -1.0, 2.0)
        assert_allclose(q.inverse_rotate(q.rotate(v)).to_tuple(), v.to_tuple(), atol=1e-12)

    def test_axis_angle_matches_look_rotation(self):
        q = Quaternion.from_axis_angle(Vector3D.unit_z(), math.pi / 2)
        assert q.angle_to(Quaternion.look_rotation(Vector3D.unit_y())) == pytest.approx(0.0, abs=1e-4)

    def test_angle_to(self):
        q = Quaternion.look_rotation(Vector3D(0, 1, 0))
        assert Quaternion.identity().angle_to(q) == pytest.approx(90.0)

    def test_rotate_towards_is_rate_limited(self):
        goal = Quaternion.look_rotation(Vector3D(0, 1, 0))
        step = Quaternion.identity().rotate_towards(goal, 30.0)
        assert step.forward.angle_to_deg(Vector3D.unit_x()) == pytest.approx(30.0)
        assert step.angle_to(goal) == pytest.approx(60.0)

    def test_rotate_towards_snaps_when_within_reach(self):
        goal = Quaternion.look_rotation(Vector3D(1, 0.1, 0))
        assert Quaternion.identity().rotate_towards(goal, 30.0) is goal

    def test_rotate_towards_zero_rate_holds(self):
        goal = Quaternion.look_rotation(Vector3D(0, 1, 0))
        start = Quaternion.identity()
        assert start.rotate_towards(goal, 0.0) is start
