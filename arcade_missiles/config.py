"""
Catalog loading and logging setup for the Arcade Missiles simulator.

A catalog is a JSON document describing munition types and launchers:

    {
        "munitions": {"MSL": {"guidance_type": "lead", "turn_rate_deg_s": 60, ...}},
        "launchers": {"MSL-L": {"kind": "hardpoint", "munition": "MSL", ...}}
    }

Vectors are written as three-element lists. Unknown keys are rejected so
that typos surface at load time rather than as silently ignored tuning.
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import fields
from pathlib import Path
from typing import Any, Optional

from .guidance import GuidanceType
from .interfaces import EffectsSink
from .launcher import (
    HardpointLauncher,
    HardpointSpec,
    LaunchPoint,
    Launcher,
    LauncherMount,
    PodLauncher,
    PodSpec,
)
from .missile import MissileSpec
from .physics import Quaternion, Vector3D

logger = logging.getLogger(__name__)


DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "munitions.json"

_VECTOR_FIELDS = ("eject_velocity", "attach_offset")
_LAUNCHER_KINDS = ("hardpoint", "pod")


def load_catalog(filepath: str | Path) -> dict:
    """
    Load a munition catalog from a JSON file.

    Args:
        filepath: Path to the catalog.

    Returns:
        Dictionary with "munitions" and "launchers" sections.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    with open(filepath, "r") as f:
        catalog = json.load(f)
    catalog.setdefault("munitions", {})
    catalog.setdefault("launchers", {})
    return catalog


def default_catalog() -> dict:
    """The catalog shipped with the package (demo aircraft loadout)."""
    return load_catalog(DEFAULT_CATALOG_PATH)


def _check_keys(data: dict, allowed: set[str], what: str) -> None:
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(f"Unknown {what} keys: {', '.join(sorted(unknown))}")


def _vector(value: Any) -> Vector3D:
    if len(value) != 3:
        raise ValueError(f"Expected a 3-element vector, got {value!r}")
    return Vector3D.from_tuple(value)


def munition_spec_from_dict(data: dict) -> MissileSpec:
    """
    Build a MissileSpec from a catalog entry.

    Raises:
        ValueError: On unknown keys, bad vectors or an unknown guidance type.
    """
    allowed = {f.name for f in fields(MissileSpec)}
    _check_keys(data, allowed, "munition")

    kwargs = dict(data)
    if "guidance_type" in kwargs:
        kwargs["guidance_type"] = GuidanceType.from_name(kwargs["guidance_type"])
    for name in _VECTOR_FIELDS:
        if kwargs.get(name) is not None:
            kwargs[name] = _vector(kwargs[name])
    return MissileSpec(**kwargs)


def launch_points_from_list(entries: list[dict]) -> list[LaunchPoint]:
    """
    Build launch points from catalog entries.

    Each entry has a "name", a "position" and optionally a "forward"
    direction (defaults to the launcher's forward axis).
    """
    points = []
    for index, entry in enumerate(entries, start=1):
        _check_keys(entry, {"name", "position", "forward"}, "launch point")
        orientation = Quaternion.identity()
        if "forward" in entry:
            orientation = Quaternion.look_rotation(_vector(entry["forward"]))
        points.append(LaunchPoint(
            position=_vector(entry.get("position", (0.0, 0.0, 0.0))),
            orientation=orientation,
            name=entry.get("name", f"Hp{index}")
        ))
    return points


def launcher_spec_from_dict(data: dict) -> HardpointSpec | PodSpec:
    """
    Build the launcher parameters of a catalog entry.

    Raises:
        ValueError: On an unknown launcher kind or unknown keys.
    """
    kind = data.get("kind")
    if kind not in _LAUNCHER_KINDS:
        raise ValueError(f"Unknown launcher kind: {kind!r}")

    spec_cls = HardpointSpec if kind == "hardpoint" else PodSpec
    params = {k: v for k, v in data.items() if k not in ("kind", "munition", "launch_points")}
    _check_keys(params, {f.name for f in fields(spec_cls)}, f"{kind} launcher")
    return spec_cls(**params)


def build_launcher(
    name: str,
    catalog: dict,
    owner: Optional[Any] = None,
    effects: Optional[EffectsSink] = None,
    rng: Optional[random.Random] = None,
    mount: Optional[LauncherMount] = None
) -> Launcher:
    """
    Create a launcher described in a catalog.

    Args:
        name: Launcher key in the catalog (also the launcher's name)
        catalog: Loaded catalog
        owner: Launching entity
        effects: Effects sink for the launcher and its missiles
        rng: Random source for pod dispersion
        mount: World pose of the launcher

    Returns:
        A HardpointLauncher or PodLauncher

    Raises:
        KeyError: If the launcher or its munition is not in the catalog.
    """
    entry = catalog["launchers"][name]
    missile_spec = munition_spec_from_dict(catalog["munitions"][entry["munition"]])
    spec = launcher_spec_from_dict(entry)
    points = launch_points_from_list(entry.get("launch_points", []))

    if isinstance(spec, HardpointSpec):
        return HardpointLauncher(
            missile_spec, spec, points, owner=owner, name=name,
            effects=effects, mount=mount
        )
    return PodLauncher(
        missile_spec, spec, points, owner=owner, name=name,
        effects=effects, mount=mount, rng=rng
    )


def build_all_launchers(
    catalog: dict,
    owner: Optional[Any] = None,
    effects: Optional[EffectsSink] = None,
    rng: Optional[random.Random] = None
) -> list[Launcher]:
    """Create every launcher in the catalog, in catalog order."""
    return [
        build_launcher(name, catalog, owner=owner, effects=effects, rng=rng)
        for name in catalog["launchers"]
    ]


def configure_logging(level: int | str = logging.INFO) -> None:
    """Console logging for scripts."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
