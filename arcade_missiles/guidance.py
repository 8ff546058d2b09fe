#!/usr/bin/env python3
"""
Guidance Solver for the Arcade Missiles simulator

Produces the orientation a missile wants to face. The missile then slews
towards it at its own turn rate; the solver never rotates anything itself.

Guidance modes:
- PURSUIT: Look straight at the target's current position
- LEAD: Look at a predicted intercept point, bounded by the seeker cone

Lead prediction:
- Target velocity from the finite difference of two position samples
- Missile speed predicted with the motor's remaining acceleration, capped
  at the motor's theoretical maximum
- time_to_impact = distance / max(predicted_speed, MINIMUM_GUIDE_SPEED)
- The lead direction may deviate from line of sight by at most 90% of the
  seeker cone, so the commanded heading stays inside what the seeker sees
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from .physics import Quaternion, Vector3D, rotate_towards


# =============================================================================
# CONSTANTS
# =============================================================================

# Floor on predicted speed; keeps lead points finite for slow missiles
MINIMUM_GUIDE_SPEED = 1.0

# Fraction of the seeker cone the lead direction may use
LEAD_CONE_FRACTION = 0.9


# =============================================================================
# GUIDANCE MODES
# =============================================================================

class GuidanceType(Enum):
    """Missile guidance laws."""
    PURSUIT = auto()  # Fly directly at the target
    LEAD = auto()     # Fly ahead of the target to intercept

    @classmethod
    def from_name(cls, name: str) -> GuidanceType:
        """Parse a catalog name such as "pursuit" or "Lead"."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown guidance type: {name!r}") from None


@dataclass
class LeadSolution:
    """
    Intermediate values of a lead computation.

    Attributes:
        target_velocity: Estimated target velocity (m/s)
        predicted_speed: Missile speed used for the estimate (m/s)
        time_to_impact: Estimated time to reach the target (s)
        lead_point: Predicted target position at impact (world)
        direction: Clamped world direction to steer along
    """
    target_velocity: Vector3D
    predicted_speed: float
    time_to_impact: float
    lead_point: Vector3D
    direction: Vector3D


# =============================================================================
# GUIDANCE SOLVER
# =============================================================================

@dataclass
class GuidanceSolver:
    """
    Per-missile guidance computer.

    Holds the target position history needed for lead guidance, so each
    missile owns its own solver.

    Attributes:
        guidance_type: PURSUIT or LEAD
        seeker_cone_deg: Seeker half-angle, bounds the lead deviation
        max_time_to_impact: Cap on predicted time to impact (s); a
            prediction beyond the missile's lifetime cannot be flown
    """
    guidance_type: GuidanceType = GuidanceType.PURSUIT
    seeker_cone_deg: float = 45.0
    max_time_to_impact: Optional[float] = None
    _last_sample: Optional[Vector3D] = field(default=None, init=False, repr=False)
    _last_sample_time: float = field(default=0.0, init=False, repr=False)
    last_solution: Optional[LeadSolution] = field(default=None, init=False, repr=False)

    def seed(self, target_position: Vector3D, now: float) -> None:
        """Record the target position at motor ignition."""
        self._last_sample = target_position.copy()
        self._last_sample_time = now

    def clear(self) -> None:
        """Forget the sample history."""
        self._last_sample = None
        self.last_solution = None

    @property
    def has_sample(self) -> bool:
        return self._last_sample is not None

    def pursuit_direction(
        self,
        own_position: Vector3D,
        target_position: Vector3D
    ) -> Vector3D:
        """Unit line-of-sight vector to the target."""
        return (target_position - own_position).normalized()

    def lead_direction(
        self,
        own_position: Vector3D,
        target_position: Vector3D,
        target_velocity: Vector3D,
        predicted_speed: float
    ) -> LeadSolution:
        """
        Compute the clamped lead direction for a known target velocity.

        Args:
            own_position: Missile position (world)
            target_position: Target position (world)
            target_velocity: Target velocity estimate (m/s)
            predicted_speed: Missile speed estimate (m/s)

        Returns:
            LeadSolution with the clamped steering direction
        """
        line_of_sight = target_position - own_position
        distance = line_of_sight.magnitude

        time_to_impact = distance / max(predicted_speed, MINIMUM_GUIDE_SPEED)
        if self.max_time_to_impact is not None and self.max_time_to_impact > 0:
            time_to_impact = min(time_to_impact, self.max_time_to_impact)

        lead_point = target_position + target_velocity * time_to_impact
        lead_vec = lead_point - own_position

        max_deviation = math.radians(self.seeker_cone_deg) * LEAD_CONE_FRACTION
        direction = rotate_towards(line_of_sight, lead_vec, max_deviation)

        return LeadSolution(
            target_velocity=target_velocity,
            predicted_speed=predicted_speed,
            time_to_impact=time_to_impact,
            lead_point=lead_point,
            direction=direction
        )

    def desired_orientation(
        self,
        own_position: Vector3D,
        own_up: Vector3D,
        target_position: Vector3D,
        now: float,
        predicted_speed: float
    ) -> Quaternion:
        """
        Orientation the missile should slew towards this step.

        Lead mode falls back to pursuit when no earlier sample exists or no
        time has passed since it (no velocity estimate is possible yet).

        Args:
            own_position: Missile position (world)
            own_up: Missile up vector, preserved as the look-rotation up
            target_position: Target position (world)
            now: Current simulation time (s)
            predicted_speed: Missile speed estimate for lead guidance (m/s)

        Returns:
            Desired world orientation
        """
        direction = self.pursuit_direction(own_position, target_position)

        if self.guidance_type == GuidanceType.LEAD:
            elapsed = now - self._last_sample_time
            if self._last_sample is not None and elapsed > 0.0:
                target_velocity = (target_position - self._last_sample) / elapsed
                self.last_solution = self.lead_direction(
                    own_position, target_position, target_velocity, predicted_speed
                )
                direction = self.last_solution.direction
            self._last_sample = target_position.copy()
            self._last_sample_time = now

        return Quaternion.look_rotation(direction, own_up)


def predicted_speed(
    initial_speed: float,
    current_speed: float,
    acceleration: float,
    motor_lifetime: float,
    time_since_activation: float
) -> float:
    """
    Speed estimate used for lead guidance.

    min(initial + a * motor_lifetime, current + a * time_since_activation)

    The first term is the fastest the motor can ever make the missile, so
    the estimate never extrapolates past burnout.
    """
    return min(
        initial_speed + acceleration * motor_lifetime,
        current_speed + acceleration * time_since_activation
    )
