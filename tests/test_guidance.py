#!/usr/bin/env python3
"""
Tests for the guidance solver.

Key behaviours:
- Pursuit looks straight down the line of sight
- Lead looks at the predicted intercept point, but never further off the
  line of sight than 90% of the seeker cone
- Lead falls back to pursuit until a velocity estimate exists
- The speed prediction never extrapolates past motor burnout
"""

import pytest
from numpy.testing import assert_allclose

from arcade_missiles.guidance import (
    LEAD_CONE_FRACTION,
    MINIMUM_GUIDE_SPEED,
    GuidanceSolver,
    GuidanceType,
    predicted_speed,
)
from arcade_missiles.physics import Vector3D


UP = Vector3D.unit_z()


# =============================================================================
# GUIDANCE TYPE
# =============================================================================

class TestGuidanceType:
    """Parsing catalog names."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("pursuit", GuidanceType.PURSUIT),
            ("LEAD", GuidanceType.LEAD),
            (" Lead ", GuidanceType.LEAD),
        ],
        ids=["lower", "upper", "padded"]
    )
    def test_from_name(self, name, expected):
        assert GuidanceType.from_name(name) is expected

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError, match="Unknown guidance type"):
            GuidanceType.from_name("proportional")


# =============================================================================
# PURSUIT
# =============================================================================

class TestPursuit:
    """Pure pursuit."""

    def test_faces_line_of_sight(self):
        solver = GuidanceSolver(GuidanceType.PURSUIT)
        q = solver.desired_orientation(
            own_position=Vector3D(10, 0, 0),
            own_up=UP,
            target_position=Vector3D(10, 300, 400),
            now=1.0,
            predicted_speed=100.0
        )
        assert_allclose(q.forward.to_tuple(), (0, 0.6, 0.8), atol=1e-9)

    def test_pursuit_ignores_target_motion(self):
        solver = GuidanceSolver(GuidanceType.PURSUIT)
        solver.seed(Vector3D(1000, 0, 0), 0.0)
        q = solver.desired_orientation(Vector3D.zero(), UP, Vector3D(1000, 100, 0), 1.0, 50.0)
        expected = Vector3D(1000, 100, 0).normalized()
        assert_allclose(q.forward.to_tuple(), expected.to_tuple(), atol=1e-9)
        assert solver.last_solution is None


# =============================================================================
# LEAD
# =============================================================================

class TestLead:
    """Lead pursuit with a bounded lead angle."""

    def test_no_sample_falls_back_to_pursuit(self):
        solver = GuidanceSolver(GuidanceType.LEAD)
        q = solver.desired_orientation(Vector3D.zero(), UP, Vector3D(500, 500, 0), 0.5, 100.0)
        assert_allclose(q.forward.to_tuple(), Vector3D(1, 1, 0).normalized().to_tuple(), atol=1e-9)
        assert solver.last_solution is None
        # The call itself records a sample for the next step
        assert solver.has_sample

    def test_zero_elapsed_falls_back_to_pursuit(self):
        solver = GuidanceSolver(GuidanceType.LEAD)
        solver.seed(Vector3D(1000, 0, 0), 2.0)
        q = solver.desired_orientation(Vector3D.zero(), UP, Vector3D(1000, 50, 0), 2.0, 100.0)
        assert_allclose(q.forward.to_tuple(), Vector3D(1000, 50, 0).normalized().to_tuple(), atol=1e-9)
        assert solver.last_solution is None

    def test_small_lead_is_not_clamped(self):
        solver = GuidanceSolver(GuidanceType.LEAD, seeker_cone_deg=30.0)
        solver.seed(Vector3D(1000, 0, 0), 0.0)

        target = Vector3D(1000, 10, 0)  # 10 m/s crossing
        q = solver.desired_orientation(Vector3D.zero(), UP, target, 1.0, 100.0)

        solution = solver.last_solution
        assert solution is not None
        assert_allclose(solution.target_velocity.to_tuple(), (0, 10, 0), atol=1e-9)
        assert solution.time_to_impact == pytest.approx(target.magnitude / 100.0)
        assert_allclose(solution.lead_point.to_tuple(),
                        (target + Vector3D(0, 10, 0) * solution.time_to_impact).to_tuple(),
                        atol=1e-9)
        assert_allclose(q.forward.to_tuple(), solution.lead_point.normalized().to_tuple(), atol=1e-9)

    def test_lead_angle_bounded_by_seeker_cone(self):
        """A fast crossing target cannot drag the heading outside the cone."""
        cone = 30.0
        solver = GuidanceSolver(GuidanceType.LEAD, seeker_cone_deg=cone)
        solver.seed(Vector3D(1000, 0, 0), 0.0)

        target = Vector3D(1000, 500, 0)  # 500 m/s crossing
        q = solver.desired_orientation(Vector3D.zero(), UP, target, 1.0, 100.0)

        limit = cone * LEAD_CONE_FRACTION
        assert solver.last_solution.direction.angle_to_deg(target) == pytest.approx(limit)
        assert q.forward.angle_to_deg(target) <= limit + 1e-6
        # Deviation is towards the target's motion
        assert q.forward.angle_to_deg(Vector3D.unit_y()) < target.angle_to_deg(Vector3D.unit_y())

    def test_samples_advance_each_call(self):
        solver = GuidanceSolver(GuidanceType.LEAD, seeker_cone_deg=45.0)
        solver.seed(Vector3D(1000, 0, 0), 0.0)
        solver.desired_orientation(Vector3D.zero(), UP, Vector3D(1000, 20, 0), 1.0, 100.0)
        solver.desired_orientation(Vector3D.zero(), UP, Vector3D(1000, 60, 0), 2.0, 100.0)
        assert_allclose(solver.last_solution.target_velocity.to_tuple(), (0, 40, 0), atol=1e-9)

    def test_clear_forgets_history(self):
        solver = GuidanceSolver(GuidanceType.LEAD)
        solver.seed(Vector3D(1000, 0, 0), 0.0)
        solver.clear()
        assert not solver.has_sample
        assert solver.last_solution is None


# =============================================================================
# TIME TO IMPACT AND SPEED PREDICTION
# =============================================================================

class TestTimeToImpact:
    """Intercept time estimate."""

    def test_speed_floor(self):
        solver = GuidanceSolver(GuidanceType.LEAD)
        solution = solver.lead_direction(Vector3D.zero(), Vector3D(50, 0, 0), Vector3D.zero(), 0.0)
        assert solution.time_to_impact == pytest.approx(50.0 / MINIMUM_GUIDE_SPEED)

    def test_capped_by_max_time(self):
        solver = GuidanceSolver(GuidanceType.LEAD, max_time_to_impact=2.0)
        solution = solver.lead_direction(Vector3D.zero(), Vector3D(1000, 0, 0), Vector3D(0, 5, 0), 10.0)
        assert solution.time_to_impact == pytest.approx(2.0)
        assert_allclose(solution.lead_point.to_tuple(), (1000, 10, 0), atol=1e-9)

    def test_stationary_target_leads_nowhere(self):
        solver = GuidanceSolver(GuidanceType.LEAD)
        solution = solver.lead_direction(Vector3D.zero(), Vector3D(0, 300, 0), Vector3D.zero(), 80.0)
        assert_allclose(solution.direction.to_tuple(), (0, 1, 0), atol=1e-12)


class TestPredictedSpeed:
    """min(initial + a * lifetime, current + a * elapsed)."""

    @pytest.mark.parametrize(
        "initial,current,accel,lifetime,elapsed,expected",
        [
            (0.0, 10.0, 10.0, 3.0, 1.0, 20.0),     # Early: extrapolate
            (0.0, 25.0, 10.0, 3.0, 2.0, 30.0),     # Capped at burnout speed
            (50.0, 50.0, 0.0, 3.0, 5.0, 50.0),     # No acceleration
            (100.0, 130.0, 10.0, 3.0, 10.0, 130.0),
        ],
        ids=["extrapolate", "burnout_cap", "no_accel", "coasting"]
    )
    def test_prediction(self, initial, current, accel, lifetime, elapsed, expected):
        assert predicted_speed(initial, current, accel, lifetime, elapsed) == pytest.approx(expected)
