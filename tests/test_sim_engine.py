"""
Tests for SimulationEngine.

Covers:
- Long-run stability: finite state, population bounds, valid links
- Determinism for a fixed seed
- Density target reinitialization
- Terrain hysteresis through the tick
- Pause / resume / reset
- Frame snapshots
"""

import numpy as np
import pytest

from particlescape.config import CHANNEL_INDEX
from particlescape.sim import SimulationEngine, SimulationSettings, RunState
from particlescape.sim.connections import connections_valid


def positions(engine):
    return np.array([p.position for p in engine.state.particles])


class TestStability:

    def test_long_run_at_midpoint(self, engine):
        """600 ticks with every control at 0.5 stays finite and bounded."""
        engine.surface.set_all(0.5)
        target = engine.particle_system.target_count(0.6)
        for _ in range(600):
            assert engine.tick()
            state = engine.state
            n = len(state.particles)
            assert engine.settings.min_particles <= n <= target
            assert connections_valid(state.connections, n)

        pos = positions(engine)
        assert np.all(np.isfinite(pos))
        assert np.all(np.isfinite([p.velocity for p in engine.state.particles]))
        assert engine.state.tick == 600
        assert engine.state.time == pytest.approx(6.0)


class TestDeterminism:

    def test_same_seed_same_run(self):
        runs = []
        for _ in range(2):
            eng = SimulationEngine(SimulationSettings(seed=77))
            eng.initialize()
            eng.surface.on_manual_input(CHANNEL_INDEX['tilt_front'], 0.8)
            for _ in range(60):
                eng.tick()
            runs.append(positions(eng))
        np.testing.assert_array_equal(runs[0], runs[1])

    def test_different_seeds_differ(self):
        a = SimulationEngine(SimulationSettings(seed=1))
        b = SimulationEngine(SimulationSettings(seed=2))
        a.initialize()
        b.initialize()
        assert not np.allclose(positions(a), positions(b))

    def test_explicit_seed_overrides(self, engine):
        engine.initialize(seed=42)
        assert engine.settings.seed == 42


class TestPopulation:

    def test_initial_population_matches_density(self, engine):
        # Density knob defaults to the middle: 0.2 + 0.8 * 0.5
        assert len(engine.state.particles) == 60
        assert engine.state.population_target == 60

    def test_full_density_reinitializes(self, stable_engine):
        stable_engine.surface.on_manual_input(CHANNEL_INDEX['particle_density'], 1.0)
        stable_engine.tick()
        assert stable_engine.state.population_target == 100
        assert len(stable_engine.state.particles) == 100

    def test_connection_density_zero_clears_links(self, stable_engine):
        assert stable_engine.state.connections
        stable_engine.surface.on_manual_input(CHANNEL_INDEX['connection_density'], 0.0)
        stable_engine.tick()
        assert stable_engine.state.connections == []
        assert stable_engine.state.connection_k == 0

    def test_connection_density_change_rebuilds(self, stable_engine):
        stable_engine.surface.on_manual_input(CHANNEL_INDEX['connection_density'], 1.0)
        stable_engine.tick()
        assert stable_engine.state.connection_k == 5


class TestTerrain:

    def test_small_height_change_keeps_terrain(self, engine):
        generation = engine.state.terrain.generation
        # 0.51 -> 111.8, inside the 5 unit hysteresis band around 110
        engine.surface.on_manual_input(CHANNEL_INDEX['terrain_height'], 0.51)
        engine.tick()
        assert engine.state.terrain.generation == generation

    def test_large_height_change_rebuilds(self, engine):
        generation = engine.state.terrain.generation
        engine.surface.on_manual_input(CHANNEL_INDEX['terrain_height'], 1.0)
        engine.tick()
        assert engine.state.terrain.generation == generation + 1
        assert engine.state.terrain.heights.max() == pytest.approx(100.0)

    def test_regeneration_regrounds_particles(self, stable_engine, monkeypatch):
        ps = stable_engine.particle_system
        calls = []
        original = ps.reground

        def counting_reground(state):
            calls.append(state.terrain.generation)
            return original(state)

        monkeypatch.setattr(ps, "reground", counting_reground)
        stable_engine.tick()
        assert calls == []

        stable_engine.surface.on_manual_input(CHANNEL_INDEX['terrain_height'], 1.0)
        stable_engine.tick()
        assert calls == [stable_engine.state.terrain.generation]


class TestRunState:

    def test_uninitialized_tick_is_noop(self):
        assert SimulationEngine().tick() is False

    def test_pause_stops_ticks(self, engine):
        engine.pause()
        before = positions(engine).copy()
        assert engine.tick() is False
        assert engine.state.tick == 0
        np.testing.assert_array_equal(positions(engine), before)

    def test_toggle_pause(self, engine):
        assert engine.toggle_pause() == RunState.PAUSED
        assert engine.toggle_pause() == RunState.RUNNING
        assert engine.tick()

    def test_reset_returns_to_running(self, engine):
        for _ in range(5):
            engine.tick()
        engine.pause()
        engine.reset()
        assert not engine.state.paused
        assert engine.state.tick == 0

    def test_reset_keeps_zoom_and_pointer_mode(self, engine):
        engine.camera_rig.scroll(400)
        engine.camera_rig.set_pointer_control(True)
        zoom = engine.camera_rig.state.zoom_radius
        engine.reset()
        assert engine.camera_rig.state.zoom_radius == zoom
        assert engine.camera_rig.state.pointer_control_enabled
        assert engine.state.camera is engine.camera_rig.state


class TestSnapshot:

    def test_shapes(self, engine):
        engine.tick()
        frame = engine.snapshot()
        n = frame.particle_count
        assert frame.positions.shape == (n, 3)
        assert frame.colors.shape == (n, 4)
        assert frame.sizes.shape == (n,)
        assert frame.connections.shape[1] == 2
        assert frame.terrain_vertices.shape == (40 * 40, 3)
        assert frame.terrain_colors.shape == (40 * 40, 4)
        assert frame.view_matrix.shape == (4, 4)
        assert frame.tick == 1

    def test_snapshot_is_a_copy(self, engine):
        frame = engine.snapshot()
        frame.positions[:] = 0.0
        assert not np.allclose(positions(engine), 0.0)
