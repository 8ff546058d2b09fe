#!/usr/bin/env python3
# /// script
# requires-python = ">=3.10"
# dependencies = ["numpy"]
# ///
"""
Run head-on or crossing engagements between a launch aircraft and a drone.

The launch aircraft carries the default catalog loadout (MSL, XMA and RCL
groups). Each trial fires one weapon group at a drone flying across the
aircraft's nose and records whether, and when, the shot connected.

Examples:
    python scripts/run_engagement.py --group MSL --trials 20
    python scripts/run_engagement.py --group RCL --crossing-angle 30 --verbose
"""

import argparse
import math
import sys
from pathlib import Path

import numpy as np

# Add project root to path for proper imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from arcade_missiles.config import build_all_launchers, configure_logging, default_catalog
from arcade_missiles.interfaces import EffectsRecorder
from arcade_missiles.launcher import LauncherMount
from arcade_missiles.physics import Quaternion, Vector3D
from arcade_missiles.selector import LauncherSelector
from arcade_missiles.simulation import MissileSimulation, SimulationEventType, Target


def run_trial(
    group: str,
    target_range: float,
    target_speed: float,
    crossing_angle_deg: float,
    carrier_speed: float,
    duration: float,
    seed: int,
    hold_fire: bool,
) -> dict:
    """Fly one engagement and summarise it."""
    effects = EffectsRecorder()
    sim = MissileSimulation(time_step=0.02, seed=seed, effects=effects)

    carrier = Target(
        name="carrier",
        velocity=Vector3D(carrier_speed, 0.0, 0.0),
        destroy_on_impact=False,
        radius=4.0,
    )
    heading = math.radians(180.0 - crossing_angle_deg)
    drone = Target(
        name="drone",
        position=Vector3D(target_range, 0.0, 0.0),
        velocity=Vector3D(math.cos(heading), math.sin(heading), 0.0) * target_speed,
        radius=3.0,
    )
    sim.add_body(carrier)
    sim.add_body(drone)

    selector = LauncherSelector()
    for launcher in build_all_launchers(default_catalog(), owner=carrier,
                                        effects=effects, rng=sim.rng):
        selector.register(launcher)
        sim.add_launcher(launcher)
    selector.select_group(group)

    launches = 0
    while sim.now < duration and not drone.is_destroyed:
        for launcher in selector.launchers:
            launcher.set_pose(carrier.position, Quaternion.identity())
        if launches == 0 or (hold_fire and selector.selected_group.allow_hold_fire):
            if selector.fire(drone, carrier.velocity, sim.now, held=launches > 0):
                launches += 1
        sim.step()

    impacts = sim.events_of_type(SimulationEventType.IMPACT)
    return {
        "launches": launches,
        "hit": drone.is_destroyed,
        "time_to_kill": impacts[0].timestamp if drone.is_destroyed else float("nan"),
        "self_destructs": len(sim.events_of_type(SimulationEventType.SELF_DESTRUCT)),
        "explosions": effects.count("explosion"),
    }


def main():
    parser = argparse.ArgumentParser(
        description="Run missile engagements against a crossing drone",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--group", default="MSL", choices=["MSL", "XMA", "RCL"],
                        help="Weapon group to fire (default: MSL)")
    parser.add_argument("--trials", type=int, default=10,
                        help="Number of engagements (default: 10)")
    parser.add_argument("--range", type=float, default=1500.0, dest="target_range",
                        help="Initial drone range in metres (default: 1500)")
    parser.add_argument("--target-speed", type=float, default=60.0,
                        help="Drone speed in m/s (default: 60)")
    parser.add_argument("--crossing-angle", type=float, default=60.0,
                        help="Drone heading off head-on in degrees (default: 60)")
    parser.add_argument("--carrier-speed", type=float, default=50.0,
                        help="Launch aircraft speed in m/s (default: 50)")
    parser.add_argument("--duration", type=float, default=25.0,
                        help="Seconds per engagement (default: 25)")
    parser.add_argument("--hold-fire", action="store_true",
                        help="Keep the trigger held (rocket groups only)")
    parser.add_argument("--seed", type=int, default=1,
                        help="Base random seed (default: 1)")
    parser.add_argument("--verbose", action="store_true",
                        help="Debug logging")
    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else "WARNING")

    results = [
        run_trial(
            group=args.group,
            target_range=args.target_range,
            target_speed=args.target_speed,
            crossing_angle_deg=args.crossing_angle,
            carrier_speed=args.carrier_speed,
            duration=args.duration,
            seed=args.seed + trial,
            hold_fire=args.hold_fire,
        )
        for trial in range(args.trials)
    ]

    hits = np.array([r["hit"] for r in results], dtype=bool)
    times = np.array([r["time_to_kill"] for r in results], dtype=float)
    launches = np.array([r["launches"] for r in results], dtype=float)

    print("=" * 60)
    print(f"ENGAGEMENT SUMMARY: {args.group} x {args.trials}")
    print("=" * 60)
    print(f"Hit rate:           {hits.mean():.0%}")
    print(f"Rounds per trial:   {launches.mean():.1f}")
    if hits.any():
        print(f"Time to kill:       {np.nanmean(times):.2f} s "
              f"(min {np.nanmin(times):.2f}, max {np.nanmax(times):.2f})")
    else:
        print("Time to kill:       n/a")
    print(f"Self destructs:     {sum(r['self_destructs'] for r in results)}")


if __name__ == "__main__":
    main()
