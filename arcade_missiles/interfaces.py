"""
Collaborator contracts for the Arcade Missiles simulator.

The flight and launcher models do not own time, collision geometry, or
presentation. They call into these services instead:

- Clock: simulation time and per-step delta time
- EffectsSink: motor ignition, burnout, launcher fire and destruction hooks
- CollisionExclusion: bodies a munition must never collide with
- MunitionFactory: builds a mounted munition from a spec and spawn frame
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .missile import Missile


# =============================================================================
# CLOCK
# =============================================================================

class Clock(ABC):
    """Source of monotonic simulation time."""

    @abstractmethod
    def now(self) -> float:
        """Current simulation time in seconds."""

    @abstractmethod
    def delta_time(self) -> float:
        """Seconds elapsed since the previous tick."""


# =============================================================================
# EFFECTS
# =============================================================================

class EffectsSink(ABC):
    """
    Receiver for presentation events.

    The core notifies the sink; it never reads state back from it.
    """

    @abstractmethod
    def on_motor_ignition(self, missile: Missile) -> None:
        """Motor lit: start trail, play fire and loop sounds."""

    @abstractmethod
    def on_motor_burnout(self, missile: Missile) -> None:
        """Motor stopped accelerating: trail may be detached."""

    @abstractmethod
    def on_destroyed(self, missile: Missile, impact: bool) -> None:
        """Missile removed from the world, by impact or self destruct."""

    @abstractmethod
    def on_launcher_fired(self, launcher: Any) -> None:
        """A launcher successfully released a munition."""


class NullEffects(EffectsSink):
    """Effects sink that ignores everything."""

    def on_motor_ignition(self, missile: Missile) -> None:
        pass

    def on_motor_burnout(self, missile: Missile) -> None:
        pass

    def on_destroyed(self, missile: Missile, impact: bool) -> None:
        pass

    def on_launcher_fired(self, launcher: Any) -> None:
        pass


class EffectsRecorder(EffectsSink):
    """
    Effects sink that records what would have been played.

    Explosions play on impact, and on self destruct only for munitions whose
    spec enables `explode_on_self_destruct`.

    Attributes:
        events: List of (event_name, source_name) tuples in call order
    """

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def on_motor_ignition(self, missile: Missile) -> None:
        self.events.append(("ignition", missile.name))

    def on_motor_burnout(self, missile: Missile) -> None:
        self.events.append(("burnout", missile.name))

    def on_destroyed(self, missile: Missile, impact: bool) -> None:
        if impact or missile.spec.explode_on_self_destruct:
            self.events.append(("explosion", missile.name))
        else:
            self.events.append(("fizzle", missile.name))

    def on_launcher_fired(self, launcher: Any) -> None:
        self.events.append(("fire", getattr(launcher, "name", "launcher")))

    def count(self, event_name: str) -> int:
        """Number of recorded events with the given name."""
        return sum(1 for name, _ in self.events if name == event_name)


# =============================================================================
# COLLISION EXCLUSION
# =============================================================================

class CollisionExclusion:
    """
    Resolves the set of bodies an owner's munitions must ignore.

    The owner itself is always excluded, along with anything it lists in a
    `children` attribute (launch rails, pods, sub-bodies).
    """

    def exclusion_set(self, owner: Optional[Any]) -> tuple[Any, ...]:
        """
        Bodies to ignore for collision purposes, compared by identity.

        The bodies themselves are held so their identities stay unique for
        the munition's lifetime.

        Args:
            owner: Launching entity, or None

        Returns:
            Tuple of bodies; empty when there is no owner
        """
        if owner is None:
            return ()

        bodies = [owner]
        bodies.extend(getattr(owner, "children", ()) or ())
        return tuple(bodies)


# Signature: (spec, position, orientation, owner, name, effects) -> mounted Missile
MunitionFactory = Callable[
    ["MissileSpec", "Vector3D", "Quaternion", Optional[Any], str, EffectsSink],
    "Missile",
]
