"""
Seeker model for the Arcade Missiles simulator.

A seeker sees a target only inside a cone around the missile's boresight
and within a maximum range. Losing the target is permanent for the flight:
a target that drifts back into the cone is not reacquired.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .physics import Vector3D

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_SEEKER_CONE_DEG = 45.0
DEFAULT_SEEKER_RANGE = 5000.0


def can_track(
    own_position: Vector3D,
    own_forward: Vector3D,
    target_position: Vector3D,
    cone_deg: float,
    range_limit: float
) -> bool:
    """
    Check whether a target is inside the seeker cone and range.

    Args:
        own_position: Seeker position (world)
        own_forward: Seeker boresight direction (world)
        target_position: Target position (world)
        cone_deg: Maximum off-boresight angle in degrees
        range_limit: Maximum detection distance

    Returns:
        True if the target is visible this instant
    """
    rel_pos = target_position - own_position
    distance = rel_pos.magnitude
    angle_deg = math.degrees(own_forward.normalized().angle_to(rel_pos.normalized()))
    return angle_deg <= cone_deg and distance <= range_limit


@dataclass
class Seeker:
    """
    Seeker head with a one-way tracking latch.

    Attributes:
        cone_deg: Off-boresight limit in degrees
        range_limit: Detection range
        tracking: False once the target has been lost during this flight
    """
    cone_deg: float = DEFAULT_SEEKER_CONE_DEG
    range_limit: float = DEFAULT_SEEKER_RANGE
    tracking: bool = True

    def update(
        self,
        own_position: Vector3D,
        own_forward: Vector3D,
        target_position: Vector3D
    ) -> bool:
        """
        Run one seeker check and latch any loss.

        Returns:
            Whether the seeker is still tracking after this check
        """
        if not self.tracking:
            return False

        if not can_track(own_position, own_forward, target_position,
                         self.cone_deg, self.range_limit):
            self.tracking = False
            logger.debug(
                "Seeker lost target at %.1f m",
                own_position.distance_to(target_position)
            )
        return self.tracking

    def lose_track(self) -> None:
        """Drop the lock without a geometric check (target gone)."""
        self.tracking = False

    def reset(self) -> None:
        """Re-arm the latch for a new flight."""
        self.tracking = True
