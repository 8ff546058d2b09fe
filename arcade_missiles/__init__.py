"""Arcade Missiles: guided missile flight and launcher ammunition models."""

from .physics import (
    Quaternion,
    Vector3D,
    rotate_towards,
)

from .seeker import (
    Seeker,
    can_track,
)

from .guidance import (
    GuidanceSolver,
    GuidanceType,
    LeadSolution,
    MINIMUM_GUIDE_SPEED,
    predicted_speed,
)

from .missile import (
    Missile,
    MissileSpec,
    MissileState,
    create_missile,
)

from .launcher import (
    # Specs
    HardpointSpec,
    PodSpec,
    LaunchPoint,
    LauncherMount,
    # Launchers
    Launcher,
    HardpointLauncher,
    HardpointStation,
    PodLauncher,
)

from .selector import (
    AmmoCounter,
    LauncherGroup,
    LauncherSelector,
)

from .interfaces import (
    Clock,
    CollisionExclusion,
    EffectsRecorder,
    EffectsSink,
    NullEffects,
)

from .simulation import (
    MissileSimulation,
    SimulationClock,
    SimulationEvent,
    SimulationEventType,
    Target,
)

from .config import (
    build_all_launchers,
    build_launcher,
    default_catalog,
    load_catalog,
    munition_spec_from_dict,
)

__all__ = [
    # Physics
    "Quaternion",
    "Vector3D",
    "rotate_towards",
    # Seeker
    "Seeker",
    "can_track",
    # Guidance
    "GuidanceSolver",
    "GuidanceType",
    "LeadSolution",
    "MINIMUM_GUIDE_SPEED",
    "predicted_speed",
    # Missile
    "Missile",
    "MissileSpec",
    "MissileState",
    "create_missile",
    # Launchers
    "HardpointSpec",
    "PodSpec",
    "LaunchPoint",
    "LauncherMount",
    "Launcher",
    "HardpointLauncher",
    "HardpointStation",
    "PodLauncher",
    # Selector
    "AmmoCounter",
    "LauncherGroup",
    "LauncherSelector",
    # Interfaces
    "Clock",
    "CollisionExclusion",
    "EffectsRecorder",
    "EffectsSink",
    "NullEffects",
    # Simulation
    "MissileSimulation",
    "SimulationClock",
    "SimulationEvent",
    "SimulationEventType",
    "Target",
    # Config
    "build_all_launchers",
    "build_launcher",
    "default_catalog",
    "load_catalog",
    "munition_spec_from_dict",
]
