#!/usr/bin/env python3
"""
Reference Simulation Loop for the Arcade Missiles simulator

A minimal stand-in for the host engine the flight model normally lives in:
- SimulationClock: fixed-step monotonic clock
- Target: a moving body that missiles can track and hit
- MissileSimulation: steps bodies, launchers and missiles once per tick and
  resolves sphere-overlap contacts

Per tick ordering:
1. Clock advances
2. Bodies move
3. Launchers run reload timers
4. Missiles update (guidance before translation, inside Missile.update)
5. Contacts are resolved and events emitted

Missiles never interact with each other, so their relative update order
does not matter.

Usage:
    sim = MissileSimulation(time_step=0.02, seed=7)
    sim.add_body(target)
    sim.add_launcher(launcher)
    sim.launch(launcher, target)
    sim.run(duration=10.0)
"""

from __future__ import annotations

import logging
import random
import weakref
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Optional

from .interfaces import Clock, EffectsSink, NullEffects
from .launcher import Launcher
from .missile import Missile
from .physics import Vector3D

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_TIME_STEP = 0.02  # 50 Hz


# =============================================================================
# CLOCK
# =============================================================================

class SimulationClock(Clock):
    """
    Fixed-step clock.

    Attributes:
        time_step: Seconds added per tick
    """

    def __init__(self, time_step: float = DEFAULT_TIME_STEP, start_time: float = 0.0) -> None:
        if time_step <= 0:
            raise ValueError("time_step must be positive")
        self.time_step = time_step
        self._now = start_time
        self._delta = 0.0
        self.ticks = 0

    def now(self) -> float:
        return self._now

    def delta_time(self) -> float:
        return self._delta

    def tick(self) -> float:
        """Advance one step and return the new time."""
        self.ticks += 1
        self._delta = self.time_step
        # Multiply rather than accumulate to keep long runs drift free
        self._now = self.ticks * self.time_step
        return self._now


# =============================================================================
# BODIES
# =============================================================================

@dataclass(eq=False)
class Target:
    """
    A trackable body moving at constant velocity.

    Attributes:
        name: Identifier
        position: World position (m)
        velocity: World velocity (m/s)
        radius: Collision radius (m)
        destroy_on_impact: Whether a missile impact removes the body
        is_destroyed: True once removed from play
        children: Sub-bodies that share its collision exclusion
    """
    name: str = "target"
    position: Vector3D = field(default_factory=Vector3D.zero)
    velocity: Vector3D = field(default_factory=Vector3D.zero)
    radius: float = 2.0
    destroy_on_impact: bool = True
    is_destroyed: bool = False
    children: list[Any] = field(default_factory=list)

    def update(self, dt: float) -> None:
        if not self.is_destroyed:
            self.position = self.position + self.velocity * dt


# =============================================================================
# EVENTS
# =============================================================================

class SimulationEventType(Enum):
    """Simulation event types."""
    LAUNCH = auto()
    IMPACT = auto()
    SELF_DESTRUCT = auto()
    TARGET_DESTROYED = auto()


@dataclass
class SimulationEvent:
    """
    Something notable that happened during a tick.

    Attributes:
        timestamp: Simulation time (s)
        event_type: Kind of event
        source: Name of the missile or launcher involved
        target: Name of the other party, if any
        data: Extra details
    """
    timestamp: float
    event_type: SimulationEventType
    source: str
    target: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# SIMULATION
# =============================================================================

class MissileSimulation:
    """
    Fixed-step loop driving launchers, missiles and bodies.

    Attributes:
        clock: Simulation clock
        effects: Sink handed to launchers created through this simulation
        rng: Seeded random source for launchers that need one
        bodies: Collidable, trackable bodies
        launchers: Registered launchers
        missiles: Missiles added directly (not through a launcher)
        events: Event log
    """

    def __init__(
        self,
        time_step: float = DEFAULT_TIME_STEP,
        seed: Optional[int] = None,
        effects: Optional[EffectsSink] = None
    ) -> None:
        self.clock = SimulationClock(time_step)
        self.effects = effects if effects is not None else NullEffects()
        self.rng = random.Random(seed)

        self.bodies: list[Target] = []
        self.launchers: list[Launcher] = []
        self.missiles: list[Missile] = []
        self.events: list[SimulationEvent] = []

        self._reported: weakref.WeakSet[Missile] = weakref.WeakSet()
        self._event_callbacks: list[Callable[[SimulationEvent], None]] = []

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def add_body(self, body: Target) -> None:
        self.bodies.append(body)

    def add_launcher(self, launcher: Launcher) -> None:
        self.launchers.append(launcher)

    def add_missile(self, missile: Missile) -> None:
        """Track a missile that was not fired through a registered launcher."""
        self.missiles.append(missile)

    def add_event_callback(self, callback: Callable[[SimulationEvent], None]) -> None:
        self._event_callbacks.append(callback)

    def _emit(self, event: SimulationEvent) -> None:
        self.events.append(event)
        for callback in self._event_callbacks:
            callback(event)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def now(self) -> float:
        return self.clock.now()

    def all_missiles(self) -> list[Missile]:
        """Missiles in flight: free ones plus every launcher's in-flight list."""
        self.missiles = [m for m in self.missiles if not m.is_destroyed]
        missiles = [m for m in self.missiles if m.launched]
        for launcher in self.launchers:
            missiles.extend(launcher.in_flight)
        return missiles

    def events_of_type(self, event_type: SimulationEventType) -> list[SimulationEvent]:
        return [e for e in self.events if e.event_type == event_type]

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def launch(
        self,
        launcher: Launcher,
        target: Optional[Any] = None,
        velocity: Optional[Vector3D] = None
    ) -> bool:
        """Fire a launcher at the current simulation time."""
        fired = launcher.launch(target, velocity, self.now)
        if fired:
            self._emit(SimulationEvent(
                timestamp=self.now,
                event_type=SimulationEventType.LAUNCH,
                source=launcher.name,
                target=getattr(target, "name", None),
                data={"ammo_remaining": launcher.ammo_remaining}
            ))
        return fired

    # -------------------------------------------------------------------------
    # Stepping
    # -------------------------------------------------------------------------

    def step(self) -> float:
        """
        Advance the simulation by one tick.

        Returns:
            Simulation time after the tick
        """
        now = self.clock.tick()
        dt = self.clock.delta_time()

        for body in self.bodies:
            body.update(dt)

        for launcher in self.launchers:
            launcher.update(dt)

        missiles = self.all_missiles()
        for missile in missiles:
            missile.update(now, dt)

        self._resolve_contacts(missiles, now)
        self._report_destroyed(missiles, now)
        return now

    def run(self, duration: float) -> None:
        """Step until `duration` seconds of simulation time have passed."""
        end_time = self.now + duration
        while self.now < end_time - 1e-9:
            self.step()

    def _resolve_contacts(self, missiles: list[Missile], now: float) -> None:
        for missile in missiles:
            if missile.is_destroyed:
                continue
            for body in self.bodies:
                if body.is_destroyed:
                    continue
                reach = missile.spec.collision_radius + body.radius
                if missile.position.distance_to(body.position) > reach:
                    continue
                if not missile.on_collision(body, now):
                    continue

                self._reported.add(missile)
                self._emit(SimulationEvent(
                    timestamp=now,
                    event_type=SimulationEventType.IMPACT,
                    source=missile.name,
                    target=body.name,
                    data={"speed": missile.speed}
                ))
                if body.destroy_on_impact:
                    body.is_destroyed = True
                    self._emit(SimulationEvent(
                        timestamp=now,
                        event_type=SimulationEventType.TARGET_DESTROYED,
                        source=missile.name,
                        target=body.name
                    ))
                    logger.debug("%s destroyed by %s", body.name, missile.name)
                break

    def _report_destroyed(self, missiles: list[Missile], now: float) -> None:
        for missile in missiles:
            if not missile.is_destroyed or missile in self._reported:
                continue
            self._reported.add(missile)
            if missile.destroy_reason == "self_destruct":
                self._emit(SimulationEvent(
                    timestamp=now,
                    event_type=SimulationEventType.SELF_DESTRUCT,
                    source=missile.name
                ))
