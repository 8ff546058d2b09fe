#!/usr/bin/env python3
"""
Missile Flight Model for the Arcade Missiles simulator

Implements one munition's lifecycle as a state machine:

    MOUNTED -> LAUNCHED (dropping) -> ACTIVE (burning / coasting) -> DESTROYED

- MOUNTED: kinematic, attached to a launch point, follows its mount
- LAUNCHED: free fall after release; eject velocity plus inherited velocity,
  optional gravity; the motor is not lit yet
- ACTIVE: motor lit; accelerates for motor_lifetime, then coasts at constant
  speed; slews towards the guidance solution at a bounded turn rate
- DESTROYED: terminal; no further updates of any kind

Timing rules:
- time_to_live is measured from launch, not from motor ignition
- Collisions only count once drop_delay has elapsed since launch, so a
  dropped munition cannot detonate against its own carrier

The target is held through a weak reference. If the target object goes
away (or reports itself destroyed) the seeker loses lock for good and the
missile flies on unguided. Targets that cannot be weakly referenced are
held strongly.
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Optional

from .guidance import GuidanceSolver, GuidanceType, predicted_speed
from .interfaces import CollisionExclusion, EffectsSink, NullEffects
from .physics import Quaternion, Vector3D, gravity_vector
from .seeker import DEFAULT_SEEKER_CONE_DEG, DEFAULT_SEEKER_RANGE, Seeker

logger = logging.getLogger(__name__)


# =============================================================================
# MISSILE SPECIFICATIONS
# =============================================================================

@dataclass
class MissileSpec:
    """
    Performance and behaviour parameters for a munition type.

    Attributes:
        guidance_type: PURSUIT or LEAD
        seeker_cone_deg: Off-boresight angle the seeker can see (also bounds
            how far the missile may lead)
        seeker_range: Maximum distance at which the seeker holds lock
        override_initial_speed: Take the ignition speed from the forward
            component of the launch velocity (direct launch) or of the
            free-fall velocity (after a drop)
        initial_speed: Speed at ignition (m/s)
        motor_lifetime: Seconds of acceleration after ignition; <= 0 burns
            forever
        acceleration: Speed gained per second while the motor burns (m/s^2)
        turn_rate_deg_s: Maximum slew rate (deg/s)
        time_to_live: Self-destruct time measured from launch (s)
        drop_delay: Free-fall time before ignition (s); 0 ignites on launch
        eject_velocity: Body-frame velocity added on a drop launch (m/s)
        gravity: Whether gravity acts during the drop
        attach_offset: Body-frame position of the mounting lug; None mounts
            the missile by its origin
        collision_radius: Radius used by sphere collision checks (m)
        explode_on_self_destruct: Play the explosion on timeout as well
    """
    guidance_type: GuidanceType = GuidanceType.PURSUIT
    seeker_cone_deg: float = DEFAULT_SEEKER_CONE_DEG
    seeker_range: float = DEFAULT_SEEKER_RANGE
    override_initial_speed: bool = False
    initial_speed: float = 0.0
    motor_lifetime: float = 3.0
    acceleration: float = 15.0
    turn_rate_deg_s: float = 45.0
    time_to_live: float = 15.0
    drop_delay: float = 0.0
    eject_velocity: Vector3D = field(default_factory=Vector3D.zero)
    gravity: bool = True
    attach_offset: Optional[Vector3D] = None
    collision_radius: float = 0.5
    explode_on_self_destruct: bool = False

    def __post_init__(self) -> None:
        """Reject values that can never describe a flyable munition."""
        if self.seeker_cone_deg < 0 or self.seeker_range < 0:
            raise ValueError("Seeker cone and range must be non-negative")
        if self.turn_rate_deg_s < 0:
            raise ValueError("Turn rate must be non-negative")
        if self.time_to_live < 0 or self.drop_delay < 0:
            raise ValueError("time_to_live and drop_delay must be non-negative")
        if self.collision_radius < 0:
            raise ValueError("Collision radius must be non-negative")

    @property
    def max_speed(self) -> float:
        """Theoretical speed at burnout without an initial-speed override."""
        if self.motor_lifetime <= 0:
            return float('inf')
        return self.initial_speed + self.acceleration * self.motor_lifetime


class MissileState(Enum):
    """Lifecycle states."""
    MOUNTED = auto()    # Kinematic, attached to a launch point
    LAUNCHED = auto()   # Released, free falling before ignition
    ACTIVE = auto()     # Motor lit, guided flight
    DESTROYED = auto()  # Terminal


# =============================================================================
# MISSILE CLASS
# =============================================================================

class Missile:
    """
    A single munition and its flight state machine.

    The missile owns its own position and orientation once launched;
    launchers only interact with it through launch().

    Attributes:
        spec: Performance parameters
        name: Identifier used in logs and effect events
        position: World position (m)
        orientation: World orientation
        owner: Launching entity (never collided with), may be None
        effects: Presentation hooks
        state: Current lifecycle state
        launch_time: Simulation time of launch (s)
        activate_time: Simulation time of motor ignition (s)
        initial_speed: Ignition speed (may be overridden at ignition)
        destroy_reason: "impact", "self_destruct" or "discarded" once destroyed
    """

    def __init__(
        self,
        spec: MissileSpec,
        position: Optional[Vector3D] = None,
        orientation: Optional[Quaternion] = None,
        owner: Optional[Any] = None,
        name: str = "missile",
        effects: Optional[EffectsSink] = None
    ) -> None:
        self.spec = spec
        self.name = name
        self.position = position.copy() if position is not None else Vector3D.zero()
        self.orientation = orientation if orientation is not None else Quaternion.identity()
        self.owner = owner
        self.effects = effects if effects is not None else NullEffects()

        # Fixed at spawn, never changed afterwards
        self.owner_exclusion: tuple[Any, ...] = CollisionExclusion().exclusion_set(owner)

        self.state = MissileState.MOUNTED
        self.launch_time = 0.0
        self.activate_time = 0.0
        self.initial_speed = spec.initial_speed
        self.destroy_reason: Optional[str] = None

        self._speed = 0.0
        self._velocity = Vector3D.zero()
        self._launch_velocity = Vector3D.zero()
        self._use_gravity = False
        self._motor_active = False
        self._burnout_reported = False

        self._target_ref: Optional[Callable[[], Any]] = None
        self._had_target = False
        self._guided_rotation: Optional[Quaternion] = None

        self.seeker = Seeker(spec.seeker_cone_deg, spec.seeker_range)
        self.guidance = GuidanceSolver(
            guidance_type=spec.guidance_type,
            seeker_cone_deg=spec.seeker_cone_deg,
            max_time_to_impact=spec.time_to_live
        )

    def __repr__(self) -> str:
        return f"Missile({self.name!r}, {self.state.name}, speed={self._speed:.1f})"

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def launched(self) -> bool:
        return self.state != MissileState.MOUNTED

    @property
    def active(self) -> bool:
        return self.state == MissileState.ACTIVE

    @property
    def motor_active(self) -> bool:
        return self._motor_active and self.state == MissileState.ACTIVE

    @property
    def target_tracking(self) -> bool:
        return self.seeker.tracking

    @property
    def is_destroyed(self) -> bool:
        return self.state == MissileState.DESTROYED

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def forward(self) -> Vector3D:
        return self.orientation.forward

    @property
    def up(self) -> Vector3D:
        return self.orientation.up

    @property
    def velocity(self) -> Vector3D:
        """World velocity: free-fall velocity while dropping, forward * speed when active."""
        if self.state == MissileState.ACTIVE:
            return self.forward * self._speed
        if self.state == MissileState.LAUNCHED:
            return self._velocity.copy()
        return Vector3D.zero()

    @property
    def target(self) -> Optional[Any]:
        """The tracked target, or None if unassigned, collected or destroyed."""
        if self._target_ref is None:
            return None
        target = self._target_ref()
        if target is None or getattr(target, "is_destroyed", False):
            return None
        return target

    def assign_target(self, target: Optional[Any]) -> None:
        """Point the missile at a new target (weakly referenced)."""
        if target is None:
            self._target_ref = None
            self._had_target = False
            return
        try:
            self._target_ref = weakref.ref(target)
        except TypeError:
            logger.warning("%s: target %r does not support weak references, holding it strongly",
                           self.name, getattr(target, "name", target))
            self._target_ref = lambda: target
        self._had_target = True

    def time_since_launch(self, now: float) -> float:
        return now - self.launch_time

    def time_since_activation(self, now: float) -> float:
        return now - self.activate_time

    # -------------------------------------------------------------------------
    # Mounting
    # -------------------------------------------------------------------------

    def mount(self, position: Vector3D, orientation: Quaternion) -> None:
        """
        Place a mounted missile on a launch point.

        The missile hangs from its attach point if it has one, otherwise
        from its origin. Ignored once the missile has been launched.
        """
        if self.launched:
            return

        self.orientation = orientation
        if self.spec.attach_offset is not None:
            self.position = position - orientation.rotate(self.spec.attach_offset)
        else:
            self.position = position.copy()

    # -------------------------------------------------------------------------
    # Launch and ignition
    # -------------------------------------------------------------------------

    def launch(
        self,
        target: Optional[Any] = None,
        inherited_velocity: Optional[Vector3D] = None,
        now: float = 0.0
    ) -> bool:
        """
        Release the missile.

        With a drop delay the missile free falls first, starting at the
        inherited velocity plus its eject velocity; otherwise the motor lights
        immediately. Launching twice is a no-op.

        Args:
            target: Object with a `position`; None flies unguided
            inherited_velocity: Velocity of the launching platform (m/s)
            now: Current simulation time (s)

        Returns:
            True if this call launched the missile
        """
        if self.launched:
            return False

        if inherited_velocity is None:
            inherited_velocity = Vector3D.zero()

        self.assign_target(target)
        self.state = MissileState.LAUNCHED
        self.launch_time = now
        self._launch_velocity = inherited_velocity.copy()

        logger.debug("%s launched at t=%.3f (target=%s)", self.name, now,
                     getattr(target, "name", target))

        if self.spec.drop_delay > 0.0:
            self._use_gravity = self.spec.gravity
            self._velocity = inherited_velocity + self.orientation.rotate(self.spec.eject_velocity)
        else:
            self._activate(now)

        return True

    def _activate(self, now: float) -> None:
        """Light the motor."""
        if self.spec.override_initial_speed:
            if self.spec.drop_delay > 0.0:
                # Forward speed of the free-falling body
                self.initial_speed = self.orientation.inverse_rotate(self._velocity).x
            else:
                # Forward speed handed over by the launcher
                self.initial_speed = self.orientation.inverse_rotate(self._launch_velocity).x

        self._use_gravity = False
        self._velocity = Vector3D.zero()
        self.state = MissileState.ACTIVE
        self.activate_time = now
        self._speed = self.initial_speed
        self._motor_active = True
        self._burnout_reported = False

        target = self.target
        if target is not None:
            self.guidance.seed(target.position, now)

        logger.debug("%s motor ignition at t=%.3f, speed %.1f", self.name, now, self._speed)
        self.effects.on_motor_ignition(self)

    # -------------------------------------------------------------------------
    # Per-step update
    # -------------------------------------------------------------------------

    def update(self, now: float, dt: float) -> None:
        """
        Advance the missile by one simulation step.

        Order within a step: drop/ignition check, motor, seeker and guidance,
        slew, translation, then the time-to-live check.

        Args:
            now: Simulation time at the end of this step (s)
            dt: Step length (s)
        """
        if self.state in (MissileState.MOUNTED, MissileState.DESTROYED):
            return

        if self.state == MissileState.LAUNCHED:
            if self.time_since_launch(now) >= self.spec.drop_delay:
                self._activate(now)
            else:
                self._fall(dt)

        if self.state == MissileState.ACTIVE:
            self._run_motor(now, dt)
            self._guide(now)
            self._steer(dt)
            self.position = self.position + self.forward * (self._speed * dt)

        if self.time_since_launch(now) >= self.spec.time_to_live:
            logger.debug("%s time to live expired at t=%.3f", self.name, now)
            self.destroy(impact=False)

    def _fall(self, dt: float) -> None:
        if self._use_gravity:
            self._velocity = self._velocity + gravity_vector() * dt
        self.position = self.position + self._velocity * dt

    def _run_motor(self, now: float, dt: float) -> None:
        lifetime = self.spec.motor_lifetime
        burning = lifetime <= 0.0 or self.time_since_activation(now) < lifetime

        if burning:
            self._speed += self.spec.acceleration * dt
        elif not self._burnout_reported:
            self._burnout_reported = True
            logger.debug("%s motor burnout at t=%.3f, speed %.1f", self.name, now, self._speed)
            self.effects.on_motor_burnout(self)

        self._motor_active = burning

    def _guide(self, now: float) -> None:
        """Seeker check and guidance solution for this step."""
        if not self.seeker.tracking:
            return

        target = self.target
        if target is None:
            if self._had_target:
                # Target vanished mid-flight
                self.seeker.lose_track()
                self._guided_rotation = None
                logger.debug("%s target lost (gone)", self.name)
            return

        if not self.seeker.update(self.position, self.forward, target.position):
            self._guided_rotation = None
            return

        speed_estimate = predicted_speed(
            initial_speed=self.initial_speed,
            current_speed=self._speed,
            acceleration=self.spec.acceleration,
            motor_lifetime=self.spec.motor_lifetime,
            time_since_activation=self.time_since_activation(now)
        )
        self._guided_rotation = self.guidance.desired_orientation(
            own_position=self.position,
            own_up=self.up,
            target_position=target.position,
            now=now,
            predicted_speed=speed_estimate
        )

    def _steer(self, dt: float) -> None:
        if not self.seeker.tracking or self._guided_rotation is None:
            return
        self.orientation = self.orientation.rotate_towards(
            self._guided_rotation, self.spec.turn_rate_deg_s * dt
        )

    # -------------------------------------------------------------------------
    # Collision and destruction
    # -------------------------------------------------------------------------

    def ignores(self, body: Any) -> bool:
        """True if the body belongs to the launching owner."""
        return any(body is excluded for excluded in self.owner_exclusion)

    def on_collision(self, body: Any, now: float) -> bool:
        """
        Handle contact with another body.

        Contacts before launch, with the owner, or within the drop delay are
        ignored.

        Returns:
            True if the contact destroyed the missile
        """
        if self.state not in (MissileState.LAUNCHED, MissileState.ACTIVE):
            return False
        if self.ignores(body):
            return False
        if self.time_since_launch(now) < self.spec.drop_delay:
            return False

        self.destroy(impact=True)
        return True

    def destroy(self, impact: bool) -> None:
        """Remove the missile from play. Safe to call more than once."""
        if self.state == MissileState.DESTROYED:
            return

        self.state = MissileState.DESTROYED
        self.destroy_reason = "impact" if impact else "self_destruct"
        self._motor_active = False
        self._guided_rotation = None
        logger.debug("%s destroyed (%s)", self.name, self.destroy_reason)
        self.effects.on_destroyed(self, impact)

    def discard(self) -> None:
        """Remove the missile silently, as a launcher reset does."""
        if self.state == MissileState.DESTROYED:
            return

        self.state = MissileState.DESTROYED
        self.destroy_reason = "discarded"
        self._motor_active = False
        self._guided_rotation = None


# =============================================================================
# FACTORY
# =============================================================================

def create_missile(
    spec: MissileSpec,
    position: Vector3D,
    orientation: Quaternion,
    owner: Optional[Any] = None,
    name: str = "missile",
    effects: Optional[EffectsSink] = None
) -> Missile:
    """
    Default munition factory: a mounted missile hung at the given frame.

    Args:
        spec: Munition type
        position: Launch point position (world)
        orientation: Launch point orientation (world)
        owner: Launching entity for collision exclusion
        name: Missile identifier
        effects: Presentation hooks

    Returns:
        Missile in the MOUNTED state
    """
    missile = Missile(spec, owner=owner, name=name, effects=effects)
    if spec.attach_offset is None:
        logger.debug("No attach point for %s, mounting at missile origin", name)
    missile.mount(position, orientation)
    return missile
