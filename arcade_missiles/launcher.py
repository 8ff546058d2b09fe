#!/usr/bin/env python3
"""
Launcher Ammunition Models for the Arcade Missiles simulator

Two launcher variants share one capability interface (Launcher):

- HardpointLauncher: missiles are spawned ahead of time and hang on
  stations. Each station reloads on its own timer. Stations form a ring;
  the head fires and moves to the tail only when it actually launched.
  An empty head stays at the head, so the next command retries the same
  station instead of skipping ahead.

- PodLauncher: missiles are spawned at the moment of firing from a cycling
  set of tubes, with random angular dispersion. One inter-shot cooldown is
  shared by all tubes. When the pod runs dry a magazine reload starts;
  magazines are consumed and never replenish.

All timers are countdowns decremented by update(dt); nothing is scheduled.
Launch commands that cannot be honoured return False and change nothing.
"""

from __future__ import annotations

import logging
import math
import random
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from .interfaces import EffectsSink, MunitionFactory, NullEffects
from .missile import Missile, MissileSpec, create_missile
from .physics import Quaternion, Vector3D

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_FIRE_DELAY = 6.0
DEFAULT_MAGAZINE_RELOAD_TIME = 6.0


# =============================================================================
# LAUNCHER SPECIFICATIONS
# =============================================================================

@dataclass
class HardpointSpec:
    """
    Hardpoint launcher parameters.

    Attributes:
        missile_count: Total missiles the launcher carries, including the
            ones spawned on the stations at start
        fire_delay: Time for an empty station to reload (s)
    """
    missile_count: int = 1
    fire_delay: float = DEFAULT_FIRE_DELAY

    def __post_init__(self) -> None:
        if self.missile_count < 0:
            raise ValueError("missile_count must be non-negative")
        if self.fire_delay < 0:
            raise ValueError("fire_delay must be non-negative")


@dataclass
class PodSpec:
    """
    Missile pod parameters.

    Attributes:
        missile_count: Missiles per magazine
        fire_delay: Time between successive shots (s)
        dispersion_angle_deg: Random exit-angle spread (deg)
        magazine_count: Reloads available after the first load is spent
        magazine_reload_time: Time to load a fresh magazine (s)
    """
    missile_count: int = 1
    fire_delay: float = DEFAULT_FIRE_DELAY
    dispersion_angle_deg: float = 0.0
    magazine_count: int = 1
    magazine_reload_time: float = DEFAULT_MAGAZINE_RELOAD_TIME

    def __post_init__(self) -> None:
        if self.missile_count < 0 or self.magazine_count < 0:
            raise ValueError("missile_count and magazine_count must be non-negative")
        if self.fire_delay < 0 or self.magazine_reload_time < 0:
            raise ValueError("fire_delay and magazine_reload_time must be non-negative")
        if self.dispersion_angle_deg < 0:
            raise ValueError("dispersion_angle_deg must be non-negative")


@dataclass
class LaunchPoint:
    """
    A launch rail or tube, expressed in the launcher's body frame.

    Attributes:
        position: Offset from the launcher origin (m)
        orientation: Rotation relative to the launcher
        name: Identifier, e.g. "Hp1"
    """
    position: Vector3D = field(default_factory=Vector3D.zero)
    orientation: Quaternion = field(default_factory=Quaternion.identity)
    name: str = "Hp1"


def resolve_launch_points(
    launch_points: Optional[Sequence[LaunchPoint]],
    launcher_name: str
) -> list[LaunchPoint]:
    """
    Launch points to use, falling back to the launcher origin.

    Args:
        launch_points: Configured points, possibly empty
        launcher_name: Used in the diagnostic

    Returns:
        Non-empty list of launch points
    """
    if launch_points:
        return list(launch_points)

    logger.warning(
        "No launch points configured on %s, using launcher position instead.",
        launcher_name
    )
    return [LaunchPoint(name="origin")]


# =============================================================================
# LAUNCHER INTERFACE
# =============================================================================

class Launcher(ABC):
    """
    Capability interface shared by all launcher variants.

    Controllers only need this surface: fire, reset, step timers, and read
    the ammunition counters.
    """

    name: str

    @abstractmethod
    def launch(
        self,
        target: Optional[Any] = None,
        velocity: Optional[Vector3D] = None,
        now: float = 0.0
    ) -> bool:
        """Fire one munition at target; False if nothing was ready."""

    @abstractmethod
    def reset_launcher(self) -> None:
        """Restore initial ammunition and discard munitions in play."""

    @abstractmethod
    def update(self, dt: float) -> None:
        """Advance reload timers by dt seconds."""

    @property
    @abstractmethod
    def ammo_remaining(self) -> int:
        """Rounds the launcher can still fire before a reload."""

    @property
    @abstractmethod
    def magazines_remaining(self) -> int:
        """Magazines left (hardpoints always report 1)."""

    @property
    @abstractmethod
    def in_flight(self) -> list[Missile]:
        """Launched munitions that have not been destroyed yet."""


@dataclass
class LauncherMount:
    """
    World pose of a launcher and the frames of its launch points.

    Attributes:
        position: Launcher origin in world space (m)
        orientation: Launcher orientation in world space
    """
    position: Vector3D = field(default_factory=Vector3D.zero)
    orientation: Quaternion = field(default_factory=Quaternion.identity)

    def world_frame(self, point: LaunchPoint) -> tuple[Vector3D, Quaternion]:
        """World position and orientation of a launch point."""
        position = self.position + self.orientation.rotate(point.position)
        orientation = (self.orientation * point.orientation).normalized()
        return position, orientation


def _warn_if_unowned(owner: Optional[Any], launcher_name: str) -> None:
    if owner is None:
        logger.warning("%s has no owner assigned; its missiles may hit the launcher.",
                       launcher_name)


def _prune(missiles: list[Missile]) -> list[Missile]:
    return [m for m in missiles if not m.is_destroyed]


# =============================================================================
# HARDPOINT LAUNCHER
# =============================================================================

class HardpointStation:
    """
    One station of a hardpoint launcher.

    Holds at most one loaded missile. While empty, counts its cooldown down
    and spawns a replacement when it reaches zero.

    Attributes:
        launch_point: Rail the missile hangs from
        reload_time: Cooldown started by each launch (s)
        cooldown: Remaining reload time (s)
        loaded: The mounted missile, or None
    """

    def __init__(
        self,
        launch_point: LaunchPoint,
        reload_time: float,
        spawn: Any,
        loaded: bool = True
    ) -> None:
        self.launch_point = launch_point
        self.reload_time = reload_time
        self.cooldown = 0.0
        self._spawn = spawn
        self.loaded: Optional[Missile] = spawn(launch_point) if loaded else None

    @property
    def is_loaded(self) -> bool:
        return self.loaded is not None

    def update(self, dt: float) -> bool:
        """
        Run the reload countdown.

        Returns:
            True when a new missile was spawned this step
        """
        if self.loaded is not None:
            return False

        self.cooldown -= dt
        if self.cooldown <= 0.0:
            self.cooldown = 0.0
            self.loaded = self._spawn(self.launch_point)
            return True
        return False

    def launch(
        self,
        target: Optional[Any],
        inherited_velocity: Vector3D,
        now: float
    ) -> Optional[Missile]:
        """
        Release the loaded missile.

        Returns:
            The launched missile, or None if the station was empty
        """
        if self.loaded is None:
            return None

        missile = self.loaded
        missile.launch(target, inherited_velocity, now)
        self.loaded = None
        self.cooldown = self.reload_time
        return missile

    def clear(self) -> None:
        """Discard the loaded missile and stop any reload."""
        if self.loaded is not None:
            self.loaded.discard()
            self.loaded = None
        self.cooldown = 0.0


class HardpointLauncher(Launcher):
    """
    Launcher with pre-spawned missiles on a ring of stations.

    Attributes:
        missile_spec: Munition type hung on the stations
        spec: Launcher parameters
        launch_points: One station per point
        owner: Launching entity (collision exclusion)
        name: Identifier
        mount: World pose
        ammo_count: Visible missile counter
    """

    def __init__(
        self,
        missile_spec: MissileSpec,
        spec: Optional[HardpointSpec] = None,
        launch_points: Optional[Sequence[LaunchPoint]] = None,
        owner: Optional[Any] = None,
        name: str = "hardpoint",
        effects: Optional[EffectsSink] = None,
        factory: MunitionFactory = create_missile,
        mount: Optional[LauncherMount] = None
    ) -> None:
        self.missile_spec = missile_spec
        self.spec = spec if spec is not None else HardpointSpec()
        self.name = name
        self.owner = owner
        self.effects = effects if effects is not None else NullEffects()
        self.factory = factory
        self.mount = mount if mount is not None else LauncherMount()
        self.launch_points = resolve_launch_points(launch_points, name)
        _warn_if_unowned(owner, name)

        self.ammo_count = self.spec.missile_count
        self._spawned = 0
        self._serial = 0
        self._in_flight: list[Missile] = []
        self.stations: deque[HardpointStation] = deque()
        self._initialize_stations()

    def __repr__(self) -> str:
        return f"HardpointLauncher({self.name!r}, ammo={self.ammo_count})"

    @property
    def ammo_remaining(self) -> int:
        return self.ammo_count

    @property
    def magazines_remaining(self) -> int:
        return 1

    @property
    def in_flight(self) -> list[Missile]:
        self._in_flight = _prune(self._in_flight)
        return list(self._in_flight)

    @property
    def loaded_missiles(self) -> list[Missile]:
        """Missiles currently hanging on stations, in ring order."""
        return [s.loaded for s in self.stations if s.loaded is not None]

    def _spawn(self, point: LaunchPoint) -> Missile:
        self._serial += 1
        position, orientation = self.mount.world_frame(point)
        return self.factory(
            self.missile_spec, position, orientation, self.owner,
            f"{self.name}-{point.name}-{self._serial}", self.effects
        )

    def _initialize_stations(self) -> None:
        """Rebuild the ring and load every station the ammo count allows."""
        self.stations.clear()
        self._spawned = 0

        for point in self.launch_points:
            load = self._spawned < self.spec.missile_count
            self.stations.append(
                HardpointStation(point, self.spec.fire_delay, self._spawn, loaded=load)
            )
            if load:
                self._spawned += 1

    def set_pose(self, position: Vector3D, orientation: Quaternion) -> None:
        """Move the launcher; loaded missiles move with it."""
        self.mount = LauncherMount(position.copy(), orientation)
        self._follow_mount()

    def _follow_mount(self) -> None:
        for station in self.stations:
            if station.loaded is not None:
                station.loaded.mount(*self.mount.world_frame(station.launch_point))

    def update(self, dt: float) -> None:
        """
        Run station reloads.

        Reloading stops once every missile the launcher carries has been
        spawned (counting the ones loaded at start).
        """
        for station in self.stations:
            if self._spawned >= self.spec.missile_count:
                break
            if station.update(dt):
                self._spawned += 1
                logger.debug("%s reloaded station %s", self.name, station.launch_point.name)

        self._follow_mount()

    def launch(
        self,
        target: Optional[Any] = None,
        velocity: Optional[Vector3D] = None,
        now: float = 0.0
    ) -> bool:
        """
        Fire from the head station.

        On success the head moves to the back of the ring. An empty head is
        left in place so the next command retries the reloading station.

        Args:
            target: Object to guide towards, or None for unguided
            velocity: Velocity of the launching platform (m/s)
            now: Current simulation time (s)

        Returns:
            True if a missile was launched
        """
        if not self.stations:
            return False

        if velocity is None:
            velocity = Vector3D.zero()

        head = self.stations[0]
        missile = head.launch(target, velocity, now)
        if missile is None:
            return False

        self.stations.rotate(-1)
        self.ammo_count -= 1
        self._in_flight.append(missile)
        self.effects.on_launcher_fired(self)
        logger.debug("%s fired %s, %d remaining", self.name, missile.name, self.ammo_count)
        return True

    def reset_launcher(self) -> None:
        """Discard loaded and in-flight missiles, restore ammo, respawn now."""
        self.ammo_count = self.spec.missile_count

        for station in self.stations:
            station.clear()
        for missile in self._in_flight:
            missile.discard()
        self._in_flight = []

        self._initialize_stations()
        logger.info("%s reset: %d missiles", self.name, self.ammo_count)


# =============================================================================
# POD LAUNCHER
# =============================================================================

class PodLauncher(Launcher):
    """
    Rocket/missile pod that spawns a munition per shot.

    Attributes:
        missile_spec: Munition type fired
        spec: Pod parameters
        launch_points: Tubes, fired in order
        owner: Launching entity (collision exclusion)
        name: Identifier
        mount: World pose
        ammo_count: Rounds left in the current magazine
        magazine_count: Spare magazines left
        reload_cooldown: Inter-shot countdown (s)
        magazine_reload_cooldown: Magazine reload countdown (s)
        tube_index: Tube the next shot leaves from
        rng: Random source for dispersion
    """

    def __init__(
        self,
        missile_spec: MissileSpec,
        spec: Optional[PodSpec] = None,
        launch_points: Optional[Sequence[LaunchPoint]] = None,
        owner: Optional[Any] = None,
        name: str = "pod",
        effects: Optional[EffectsSink] = None,
        factory: MunitionFactory = create_missile,
        mount: Optional[LauncherMount] = None,
        rng: Optional[random.Random] = None
    ) -> None:
        self.missile_spec = missile_spec
        self.spec = spec if spec is not None else PodSpec()
        self.name = name
        self.owner = owner
        self.effects = effects if effects is not None else NullEffects()
        self.factory = factory
        self.mount = mount if mount is not None else LauncherMount()
        self.launch_points = resolve_launch_points(launch_points, name)
        self.rng = rng if rng is not None else random.Random()
        _warn_if_unowned(owner, name)

        self.ammo_count = self.spec.missile_count
        self.magazine_count = self.spec.magazine_count
        self.reload_cooldown = 0.0
        self.magazine_reload_cooldown = 0.0
        self.tube_index = 0
        self._serial = 0
        self._in_flight: list[Missile] = []

    def __repr__(self) -> str:
        return (f"PodLauncher({self.name!r}, ammo={self.ammo_count}, "
                f"magazines={self.magazine_count})")

    @property
    def ammo_remaining(self) -> int:
        return self.ammo_count

    @property
    def magazines_remaining(self) -> int:
        return self.magazine_count

    @property
    def in_flight(self) -> list[Missile]:
        self._in_flight = _prune(self._in_flight)
        return list(self._in_flight)

    @property
    def reloading(self) -> bool:
        """True while a magazine reload is counting down."""
        return self.magazine_reload_cooldown > 0.0 and self.magazine_count > 0

    def can_fire(self) -> bool:
        return (self.ammo_count > 0
                and self.reload_cooldown <= 0.0
                and self.magazine_reload_cooldown <= 0.0)

    def set_pose(self, position: Vector3D, orientation: Quaternion) -> None:
        self.mount = LauncherMount(position.copy(), orientation)

    def update(self, dt: float) -> None:
        """Count down the shot cooldown and any magazine reload."""
        if self.reload_cooldown > 0.0:
            self.reload_cooldown = max(0.0, self.reload_cooldown - dt)

        if self.magazine_count > 0 and self.magazine_reload_cooldown > 0.0:
            self.magazine_reload_cooldown -= dt
            if self.magazine_reload_cooldown <= 0.0:
                self.magazine_reload_cooldown = 0.0
                self.ammo_count = self.spec.missile_count
                self.reload_cooldown = 0.0
                self.magazine_count -= 1
                logger.debug("%s magazine loaded, %d spare", self.name, self.magazine_count)

    def dispersed_orientation(self, tube_orientation: Quaternion) -> Quaternion:
        """
        Tube orientation perturbed by a random exit angle.

        The deviation is drawn uniformly from a disk of radius
        dispersion_angle (radians) in the tube's lateral/up plane and added
        to the tube's forward axis.
        """
        radius = math.radians(self.spec.dispersion_angle_deg)
        if radius <= 0.0:
            return tube_orientation

        # Uniform over the disk area, not the radius
        r = radius * math.sqrt(self.rng.random())
        theta = self.rng.uniform(0.0, 2.0 * math.pi)
        deviation = tube_orientation.rotate(
            Vector3D(0.0, r * math.cos(theta), r * math.sin(theta))
        )
        return Quaternion.look_rotation(
            tube_orientation.forward + deviation, tube_orientation.up
        )

    def launch_missile(
        self,
        target: Optional[Any] = None,
        velocity: Optional[Vector3D] = None,
        now: float = 0.0
    ) -> Optional[Missile]:
        """
        Fire one munition from the current tube.

        Returns:
            The launched missile, or None if the pod could not fire
        """
        if not self.can_fire():
            return None

        if velocity is None:
            velocity = Vector3D.zero()

        point = self.launch_points[self.tube_index]
        position, tube_orientation = self.mount.world_frame(point)
        orientation = self.dispersed_orientation(tube_orientation)

        self._serial += 1
        missile = self.factory(
            self.missile_spec, position, orientation, self.owner,
            f"{self.name}-{point.name}-{self._serial}", self.effects
        )
        missile.launch(target, velocity, now)
        self._in_flight.append(missile)
        self.effects.on_launcher_fired(self)

        self.reload_cooldown = self.spec.fire_delay
        self.ammo_count -= 1
        self.tube_index = (self.tube_index + 1) % len(self.launch_points)
        logger.debug("%s fired %s, %d remaining", self.name, missile.name, self.ammo_count)

        if self.ammo_count <= 0:
            self.reload_magazine()

        return missile

    def launch(
        self,
        target: Optional[Any] = None,
        velocity: Optional[Vector3D] = None,
        now: float = 0.0
    ) -> bool:
        return self.launch_missile(target, velocity, now) is not None

    def reload_magazine(self) -> bool:
        """
        Start loading the next magazine.

        Rounds left in the current magazine are discarded when the reload
        completes.

        Returns:
            False if no magazines remain or a reload is already running
        """
        if self.magazine_count <= 0:
            logger.info("%s has no magazines left", self.name)
            return False
        if self.magazine_reload_cooldown > 0.0:
            return False

        self.magazine_reload_cooldown = self.spec.magazine_reload_time
        if self.magazine_reload_cooldown <= 0.0:
            # Instant reload
            self.ammo_count = self.spec.missile_count
            self.reload_cooldown = 0.0
            self.magazine_count -= 1
        logger.debug("%s reloading magazine", self.name)
        return True

    def reset_launcher(self) -> None:
        """Restore ammo and magazines, clear timers, discard in-flight rounds."""
        self.reload_cooldown = 0.0
        self.magazine_reload_cooldown = 0.0
        self.ammo_count = self.spec.missile_count
        self.magazine_count = self.spec.magazine_count
        self.tube_index = 0

        for missile in self._in_flight:
            missile.discard()
        self._in_flight = []
        logger.info("%s reset: %d missiles, %d magazines",
                    self.name, self.ammo_count, self.magazine_count)
