"""
Simulation Engine - one deterministic tick of the whole scene

Pipeline per tick:
    control surface -> gesture smoother -> parameter mapper
        -> terrain (hysteresis rebuild)
        -> particles (physics + batched population changes)
        -> connection constraints
        -> camera

No Qt timers and no I/O here; SimulationController drives tick() and
forwards snapshots to renderers. Every random draw goes through the one
XorShift32 owned by the engine, so a fixed seed replays the same run.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from particlescape.config import NOISE_TIME_STEP
from particlescape.control import GestureSmoother, MappedParameters, map_parameters
from particlescape.midi import ControlSurface
from particlescape.utils.logger import logger
from .camera import CameraRig, CameraState
from .connections import apply_constraints, neighbour_count
from .noise import PerlinNoise
from .particles import ParticleSystem
from .prng import XorShift32
from .sim_state import RunState, SimulationSettings, SimulationState
from .terrain import Terrain

# Particle noise is decorrelated from terrain noise sharing the same seed
PARTICLE_NOISE_SALT = 0x9E3779B9


@dataclass
class FrameSnapshot:
    """Render-ready copy of the scene for one frame."""
    tick: int
    run_state: RunState
    positions: np.ndarray           # (N, 3)
    colors: np.ndarray              # (N, 4)
    sizes: np.ndarray               # (N,)
    connections: np.ndarray         # (M, 2) particle indices
    terrain_vertices: np.ndarray    # (R*R, 3)
    terrain_colors: np.ndarray      # (R*R, 4)
    terrain_resolution: int
    terrain_generation: int
    camera_position: np.ndarray     # (3,)
    view_matrix: np.ndarray         # (4, 4)

    @property
    def particle_count(self) -> int:
        return len(self.positions)


class SimulationEngine:
    """
    Owns SimulationState and advances it.

    Usage:
        engine = SimulationEngine(SimulationSettings(seed=7))
        engine.initialize()
        engine.surface.on_control_event(34, 0.8)
        engine.tick()
        frame = engine.snapshot()
    """

    def __init__(self, settings: Optional[SimulationSettings] = None,
                 surface: Optional[ControlSurface] = None):
        self.settings = settings if settings is not None else SimulationSettings()
        self.surface = surface if surface is not None else ControlSurface()
        self.smoother = GestureSmoother()
        self.particle_system = ParticleSystem(self.settings)
        self.camera_rig = CameraRig(CameraState(auto_rotate=self.settings.auto_rotate))

        self.state = SimulationState()
        self._rng: Optional[XorShift32] = None
        self._noise: Optional[PerlinNoise] = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def rng(self) -> Optional[XorShift32]:
        return self._rng

    @property
    def noise(self) -> Optional[PerlinNoise]:
        return self._noise

    # === Lifecycle ===

    def initialize(self, seed: Optional[int] = None) -> None:
        """Build terrain and particles from scratch and start running."""
        if seed is None:
            seed = self.settings.get_active_seed()
        else:
            self.settings.seed = seed

        self._rng = XorShift32(seed)
        self._noise = PerlinNoise(seed ^ PARTICLE_NOISE_SALT)

        smoothed = self.smoother.snap(self.surface.raw_values())
        self.surface.store_smoothed(smoothed)
        mapped = map_parameters(smoothed)

        terrain = Terrain(self.settings.terrain_resolution,
                          self.settings.terrain_size, seed)
        terrain.regenerate(mapped.terrain_height)

        # Pointer mode and zoom survive a reset; orientation does not
        old = self.camera_rig.state
        self.camera_rig = CameraRig(CameraState(
            zoom_radius=old.zoom_radius,
            auto_rotate=self.settings.auto_rotate,
            pointer_control_enabled=old.pointer_control_enabled,
        ))

        self.state = SimulationState(
            terrain=terrain,
            camera=self.camera_rig.state,
            mapped=mapped,
        )
        self.particle_system.initialize(self.state, self._rng, self._noise, mapped)
        self._initialized = True
        logger.info(f"Simulation initialized (seed {seed}, "
                    f"{len(self.state.particles)} particles)", component="SIM")

    def reset(self) -> None:
        """Reinitialize terrain and particles and return to running."""
        self.initialize()

    def pause(self) -> None:
        self.state.run_state = RunState.PAUSED

    def resume(self) -> None:
        self.state.run_state = RunState.RUNNING

    def toggle_pause(self) -> RunState:
        if self.state.paused:
            self.resume()
        else:
            self.pause()
        return self.state.run_state

    # === Tick ===

    def tick(self) -> bool:
        """Advance one frame.

        Returns:
            False if paused or not initialized
        """
        if not self._initialized or self.state.paused:
            return False

        state = self.state
        ps = self.particle_system

        smoothed = self.smoother.step(self.surface.raw_values(),
                                      self.surface.smoothed_values())
        self.surface.store_smoothed(smoothed)
        mapped = map_parameters(smoothed)
        state.mapped = mapped

        if state.terrain.update(mapped.terrain_height):
            moved = ps.reground(state)
            logger.info(f"Terrain regenerated at height {mapped.terrain_height:.0f}",
                        component="TERRAIN", details=f"{moved} particles re-grounded")

        target = ps.target_count(mapped.particle_density)
        if target != state.population_target:
            logger.sim(f"Density target {state.population_target} -> {target}")
            ps.initialize(state, self._rng, self._noise, mapped)

        changed = ps.step(state, self._rng, self._noise, mapped)

        if not changed:
            k = neighbour_count(len(state.particles), mapped.connection_density,
                                self.settings.connection_rounding)
            if k != state.connection_k:
                ps.rebuild_connections(state, mapped)

        apply_constraints(state.particles, state.connections)

        self.camera_rig.apply_gestures(mapped)
        self.camera_rig.step()

        state.tick += 1
        state.time += NOISE_TIME_STEP
        return True

    # === Output ===

    @property
    def mapped(self) -> MappedParameters:
        return self.state.mapped

    def snapshot(self) -> FrameSnapshot:
        particles = self.state.particles
        terrain = self.state.terrain
        if particles:
            positions = np.array([p.position for p in particles])
            colors = np.array([p.color for p in particles])
            sizes = np.array([p.size for p in particles])
        else:
            positions = np.zeros((0, 3))
            colors = np.zeros((0, 4))
            sizes = np.zeros(0)
        links = np.array([(c.from_index, c.to_index) for c in self.state.connections],
                         dtype=int).reshape(-1, 2)

        return FrameSnapshot(
            tick=self.state.tick,
            run_state=self.state.run_state,
            positions=positions,
            colors=colors,
            sizes=sizes,
            connections=links,
            terrain_vertices=terrain.vertices(),
            terrain_colors=terrain.colors(),
            terrain_resolution=terrain.resolution,
            terrain_generation=terrain.generation,
            camera_position=self.camera_rig.position(),
            view_matrix=self.camera_rig.view_matrix(),
        )
