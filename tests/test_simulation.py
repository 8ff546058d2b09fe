#!/usr/bin/env python3
"""
End-to-end tests for the reference simulation loop.

Scenarios:
- Pursuit and lead missiles intercepting moving drones
- Self destruct on timeout
- Dropped munitions passing through a wingman without detonating
- Launch aircraft never hit by its own missiles
"""

import pytest

from arcade_missiles.guidance import GuidanceType
from arcade_missiles.interfaces import EffectsRecorder
from arcade_missiles.launcher import HardpointLauncher, HardpointSpec, LaunchPoint
from arcade_missiles.missile import Missile, MissileSpec
from arcade_missiles.physics import Vector3D
from arcade_missiles.simulation import (
    MissileSimulation,
    SimulationClock,
    SimulationEventType,
    Target,
)


def interceptor_spec(guidance_type=GuidanceType.PURSUIT, **overrides):
    kwargs = dict(
        guidance_type=guidance_type,
        initial_speed=150.0,
        acceleration=50.0,
        motor_lifetime=2.0,
        turn_rate_deg_s=90.0,
        seeker_cone_deg=60.0,
        time_to_live=10.0,
    )
    kwargs.update(overrides)
    return MissileSpec(**kwargs)


def setup_engagement(spec, drone_position, drone_velocity, time_step=0.01):
    effects = EffectsRecorder()
    sim = MissileSimulation(time_step=time_step, seed=1, effects=effects)
    carrier = Target(name="carrier", radius=4.0, destroy_on_impact=False)
    drone = Target(name="drone", position=drone_position, velocity=drone_velocity, radius=5.0)
    launcher = HardpointLauncher(
        spec, HardpointSpec(missile_count=1), [LaunchPoint(name="Hp1")],
        owner=carrier, name="MSL-L", effects=effects
    )
    sim.add_body(carrier)
    sim.add_body(drone)
    sim.add_launcher(launcher)
    return sim, carrier, drone, launcher


# =============================================================================
# CLOCK
# =============================================================================

class TestSimulationClock:
    """Fixed-step time source."""

    def test_ticks(self):
        clock = SimulationClock(time_step=0.25)
        assert clock.now() == 0.0
        assert clock.delta_time() == 0.0
        clock.tick()
        clock.tick()
        assert clock.now() == 0.5
        assert clock.delta_time() == 0.25

    def test_no_drift(self):
        clock = SimulationClock(time_step=0.02)
        for _ in range(5000):
            clock.tick()
        assert clock.now() == 5000 * 0.02

    def test_rejects_non_positive_step(self):
        with pytest.raises(ValueError):
            SimulationClock(time_step=0.0)


# =============================================================================
# INTERCEPTS
# =============================================================================

class TestIntercepts:
    """Guided missiles hit moving drones."""

    @pytest.mark.parametrize(
        "guidance_type",
        [GuidanceType.PURSUIT, GuidanceType.LEAD],
        ids=["pursuit", "lead"]
    )
    def test_crossing_drone_destroyed(self, guidance_type):
        sim, carrier, drone, launcher = setup_engagement(
            interceptor_spec(guidance_type),
            drone_position=Vector3D(800.0, 0.0, 50.0),
            drone_velocity=Vector3D(0.0, 40.0, 0.0)
        )
        assert sim.launch(launcher, drone)
        sim.run(10.0)

        assert drone.is_destroyed
        impacts = sim.events_of_type(SimulationEventType.IMPACT)
        assert [e.target for e in impacts] == ["drone"]
        assert len(sim.events_of_type(SimulationEventType.TARGET_DESTROYED)) == 1
        assert not carrier.is_destroyed
        assert sim.effects.count("explosion") == 1

    def test_launch_event(self):
        sim, _, drone, launcher = setup_engagement(
            interceptor_spec(), Vector3D(800.0, 0.0, 0.0), Vector3D.zero()
        )
        sim.launch(launcher, drone)
        assert sim.launch(launcher, drone) is False

        launches = sim.events_of_type(SimulationEventType.LAUNCH)
        assert len(launches) == 1
        assert launches[0].source == "MSL-L"
        assert launches[0].target == "drone"
        assert launches[0].data["ammo_remaining"] == 0

    def test_event_callbacks(self):
        sim, _, drone, launcher = setup_engagement(
            interceptor_spec(), Vector3D(500.0, 0.0, 0.0), Vector3D.zero()
        )
        seen = []
        sim.add_event_callback(lambda event: seen.append(event.event_type))
        sim.launch(launcher, drone)
        sim.run(5.0)
        assert seen == [
            SimulationEventType.LAUNCH,
            SimulationEventType.IMPACT,
            SimulationEventType.TARGET_DESTROYED,
        ]

    def test_surviving_target_not_removed(self):
        sim, _, drone, launcher = setup_engagement(
            interceptor_spec(), Vector3D(500.0, 0.0, 0.0), Vector3D.zero()
        )
        drone.destroy_on_impact = False
        sim.launch(launcher, drone)
        sim.run(5.0)
        assert not drone.is_destroyed
        assert len(sim.events_of_type(SimulationEventType.IMPACT)) == 1
        assert sim.events_of_type(SimulationEventType.TARGET_DESTROYED) == []


# =============================================================================
# SELF DESTRUCT AND SAFETY
# =============================================================================

class TestSelfDestructAndSafety:
    """Timeouts and launch safety."""

    def test_unguided_missile_self_destructs(self):
        sim, _, _, launcher = setup_engagement(
            interceptor_spec(time_to_live=1.0), Vector3D(0.0, 800.0, 0.0), Vector3D.zero()
        )
        sim.launch(launcher, None)
        sim.run(2.0)

        events = sim.events_of_type(SimulationEventType.SELF_DESTRUCT)
        assert len(events) == 1
        assert events[0].timestamp == pytest.approx(1.0)
        assert sim.all_missiles() == []
        assert sim.effects.count("fizzle") == 1

    def test_destroyed_free_missile_is_dropped(self):
        sim = MissileSimulation(time_step=0.25)
        missile = Missile(interceptor_spec(time_to_live=0.5), name="stray")
        sim.add_missile(missile)
        missile.launch(now=sim.now)

        sim.run(1.0)

        assert sim.missiles == []
        assert sim.all_missiles() == []
        events = sim.events_of_type(SimulationEventType.SELF_DESTRUCT)
        assert [e.source for e in events] == ["stray"]

    def test_missile_leaving_seeker_cone_flies_on(self):
        sim, _, drone, launcher = setup_engagement(
            interceptor_spec(seeker_cone_deg=10.0), Vector3D(0.0, 800.0, 0.0), Vector3D.zero()
        )
        sim.launch(launcher, drone)
        sim.run(1.0)
        missile = sim.all_missiles()[0]
        assert not missile.target_tracking
        assert missile.forward == Vector3D.unit_x()

    def test_drop_passes_through_wingman(self):
        """A dropped munition overlapping another body only detonates after drop_delay."""
        sim = MissileSimulation(time_step=0.02)
        wingman = Target(name="wingman", position=Vector3D(0.0, 0.0, -1.0), radius=3.0)
        sim.add_body(wingman)

        missile = Missile(MissileSpec(
            drop_delay=0.5,
            eject_velocity=Vector3D(0.0, 0.0, -4.0),
            initial_speed=0.0,
            acceleration=0.0
        ), name="bomb")
        sim.add_missile(missile)
        missile.launch(now=sim.now)
        sim.run(1.0)

        impacts = sim.events_of_type(SimulationEventType.IMPACT)
        assert len(impacts) == 1
        assert impacts[0].timestamp >= 0.5 - 1e-9

    def test_carrier_never_hit(self):
        sim, carrier, _, launcher = setup_engagement(
            interceptor_spec(initial_speed=0.0, acceleration=1.0, time_to_live=2.0),
            Vector3D(0.0, 800.0, 0.0), Vector3D.zero()
        )
        carrier.destroy_on_impact = True
        sim.launch(launcher, None)
        sim.run(3.0)
        assert not carrier.is_destroyed
        assert sim.events_of_type(SimulationEventType.IMPACT) == []
        assert len(sim.events_of_type(SimulationEventType.SELF_DESTRUCT)) == 1
