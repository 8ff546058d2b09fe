"""
Launcher selection for a controlling agent (player or AI).

Launchers are sorted into weapon groups by name prefix. The agent cycles
through groups and fires the selected one; within a group, launchers take
turns so that consecutive shots alternate between wings.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from .launcher import Launcher
from .physics import Vector3D

logger = logging.getLogger(__name__)


# Weapon groups of the demo aircraft; RCL is the rocket pod group
DEFAULT_GROUP_PREFIXES = ("MSL", "XMA", "RCL")


@dataclass
class AmmoCounter:
    """Ammunition summary for one group."""
    ammo: int = 0
    magazines: int = 0


@dataclass
class LauncherGroup:
    """
    A weapon group.

    Attributes:
        name: Group prefix, e.g. "MSL"
        launchers: Launchers in firing order
        allow_hold_fire: Whether holding the trigger keeps firing
        count_magazines: Whether the HUD counter includes magazines
    """
    name: str
    launchers: deque = field(default_factory=deque)
    allow_hold_fire: bool = False
    count_magazines: bool = False

    def counter(self) -> AmmoCounter:
        ammo = sum(launcher.ammo_remaining for launcher in self.launchers)
        magazines = 0
        if self.count_magazines:
            magazines = sum(launcher.magazines_remaining for launcher in self.launchers)
        return AmmoCounter(ammo=ammo, magazines=magazines)


class LauncherSelector:
    """
    Weapon selection and firing for one agent.

    Usage:
        selector = LauncherSelector()
        selector.register_all(launchers)
        selector.cycle_group()
        selector.fire(target, velocity, now)
    """

    def __init__(
        self,
        group_prefixes: Sequence[str] = DEFAULT_GROUP_PREFIXES,
        hold_fire_groups: Iterable[str] = ("RCL",),
        magazine_groups: Iterable[str] = ("RCL",)
    ) -> None:
        hold = set(hold_fire_groups)
        magazines = set(magazine_groups)
        self.groups: list[LauncherGroup] = [
            LauncherGroup(
                name=prefix,
                allow_hold_fire=prefix in hold,
                count_magazines=prefix in magazines
            )
            for prefix in group_prefixes
        ]
        self.selected_index = 0
        self._all: list[Launcher] = []

    @property
    def selected_group(self) -> Optional[LauncherGroup]:
        if not self.groups:
            return None
        return self.groups[self.selected_index]

    @property
    def launchers(self) -> list[Launcher]:
        return list(self._all)

    def group(self, name: str) -> Optional[LauncherGroup]:
        for group in self.groups:
            if group.name == name:
                return group
        return None

    def register(self, launcher: Launcher) -> bool:
        """
        File a launcher under the first group whose prefix its name has.

        Returns:
            False if no group matched (the launcher is still reset by
            reset_all, but never fired)
        """
        self._all.append(launcher)
        for group in self.groups:
            if launcher.name.startswith(group.name):
                group.launchers.append(launcher)
                return True

        logger.debug("Launcher %s matches no weapon group", launcher.name)
        return False

    def register_all(self, launchers: Iterable[Launcher]) -> None:
        for launcher in launchers:
            self.register(launcher)

    def cycle_group(self) -> Optional[LauncherGroup]:
        """Select the next group, wrapping around."""
        if not self.groups:
            return None
        self.selected_index = (self.selected_index + 1) % len(self.groups)
        return self.selected_group

    def select_group(self, name: str) -> bool:
        for index, group in enumerate(self.groups):
            if group.name == name:
                self.selected_index = index
                return True
        return False

    def fire(
        self,
        target: Optional[Any] = None,
        velocity: Optional[Vector3D] = None,
        now: float = 0.0,
        held: bool = False
    ) -> bool:
        """
        Fire the next launcher of the selected group.

        The launcher goes to the back of the group whether or not it had a
        round ready, so a held trigger walks across all launchers.

        Args:
            target: Object to guide towards
            velocity: Velocity of the firing platform (m/s)
            now: Current simulation time (s)
            held: True when the trigger is being held rather than pressed;
                only groups that allow hold fire respond

        Returns:
            True if a munition was launched
        """
        group = self.selected_group
        if group is None or not group.launchers:
            return False
        if held and not group.allow_hold_fire:
            return False

        launcher = group.launchers.popleft()
        fired = launcher.launch(target, velocity, now)
        group.launchers.append(launcher)
        return fired

    def update(self, dt: float) -> None:
        """Step every registered launcher's timers."""
        for launcher in self._all:
            launcher.update(dt)

    def reset_all(self) -> None:
        for launcher in self._all:
            launcher.reset_launcher()

    def ammo_counters(self) -> dict[str, AmmoCounter]:
        """Per-group ammunition totals, keyed by group name."""
        return {group.name: group.counter() for group in self.groups}
