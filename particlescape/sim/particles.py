"""
Particle System - population, physics and lifecycle

Each tick every particle goes through, in order:
    1. contact handling (repel or despawn, per settings)
    2. turbulence + randomness jitter (heavier on Y)
    3. central gravity
    4. vortex around the vertical axis
    5. elastic pull toward its anchor
    6. occasional large random impulse
    7. damping + integration
    8. world walls (bounce or wrap) and ceiling
    9. terrain collision with debounced hit counting
   10. bezier drift
   11. coherent-noise drift

Spawns and removals requested during the tick are queued and applied once
at the end: adds first, then removals by descending index with duplicates
collapsed. Any change rebuilds the connection graph.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from particlescape.config import (
    MIN_DENSITY, MAX_DENSITY, BASE_PARTICLE_SIZE, DAMPING, ELASTIC_COEFF,
    REPEL_DISTANCE, REPEL_IMPULSE, VERTICAL_JITTER_WEIGHT, IMPULSE_PROBABILITY,
    WALL_RESTITUTION, CEILING_FACTOR, BOUNCINESS, NORMAL_IMPULSE,
    SURFACE_CLEARANCE, HIT_DEBOUNCE_TICKS, BEZIER_CHANCE, BEZIER_BLEND,
    BEZIER_STEP,
)
from particlescape.utils.logger import logger
from .connections import build_connections, neighbour_count
from .sim_state import BoundaryPolicy, CollisionPolicy, SimulationSettings

EPS = 1e-6
UP = np.array([0.0, 1.0, 0.0])

# Altitude palette: low particles warm, high particles cool
LOW_COLOR = np.array([1.0, 0.55, 0.25, 0.9])
HIGH_COLOR = np.array([0.55, 0.8, 1.0, 0.9])


@dataclass
class Particle:
    """Single particle. Vectors are float arrays of shape (3,)."""
    position: np.ndarray
    velocity: np.ndarray
    original_position: np.ndarray
    base_size: float
    size: float
    noise_phase: float
    bezier_points: np.ndarray                 # (4, 3) cubic control points
    color: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 0.9)
    bezier_t: float = 0.0
    bezier_direction: int = 1
    terrain_hit_count: int = 0
    last_collision_tick: int = -HIT_DEBOUNCE_TICKS
    marked_for_removal: bool = False


def bezier_point(points: np.ndarray, t: float) -> np.ndarray:
    """Point on a cubic Bezier curve."""
    u = 1.0 - t
    return (u * u * u * points[0] + 3 * u * u * t * points[1]
            + 3 * u * t * t * points[2] + t * t * t * points[3])


def altitude_color(y: float, terrain_height: float) -> Tuple[float, float, float, float]:
    ceiling = CEILING_FACTOR * terrain_height
    f = max(0.0, min(1.0, (y + terrain_height / 2) / (ceiling + terrain_height / 2)))
    return tuple(float(c) for c in LOW_COLOR + (HIGH_COLOR - LOW_COLOR) * f)


@dataclass
class PendingBatch:
    """Population changes requested during a tick."""
    spawns: List[Optional[np.ndarray]] = field(default_factory=list)
    removals: List[int] = field(default_factory=list)

    def clear(self):
        self.spawns.clear()
        self.removals.clear()

    def __bool__(self):
        return bool(self.spawns or self.removals)


class ParticleSystem:
    """
    Physics and lifecycle for the particle population.

    Operates on SimulationState.particles; the state is passed in on every
    call and the system keeps only its settings and the pending batch.
    """

    def __init__(self, settings: SimulationSettings):
        self.settings = settings
        self._pending = PendingBatch()

    # === Population ===

    def target_count(self, particle_density: float) -> int:
        """Population cap for a mapped density."""
        density = max(MIN_DENSITY, min(MAX_DENSITY, particle_density))
        return max(self.settings.min_particles,
                   math.floor(self.settings.num_particles * density))

    def create_particle(self, state, rng, noise, mapped,
                        position=None) -> Particle:
        """Create a particle at position, or at a random spot above the terrain."""
        terrain = state.terrain
        half = terrain.size / 2
        h = mapped.terrain_height

        if position is None:
            x = rng.next_float_range(-half * 0.9, half * 0.9)
            z = rng.next_float_range(-half * 0.9, half * 0.9)
            ground = terrain.height_at(x, z)
            if ground is None:
                ground = 0.0
            lift = noise.noise2(x * 0.01, z * 0.01) * h * 2.0
            position = np.array([x, ground + h * 0.25 + lift, z])
        else:
            position = np.array(position, dtype=float)

        base_size = rng.next_float_range(*BASE_PARTICLE_SIZE)
        points = np.stack([position] + [
            position + rng.next_vec3(-100.0, 100.0) for _ in range(3)
        ])

        return Particle(
            position=position.copy(),
            velocity=rng.next_vec3(-1.0, 1.0),
            original_position=position.copy(),
            base_size=base_size,
            size=base_size * mapped.size,
            noise_phase=rng.next_float_range(0.0, 1000.0),
            bezier_points=points,
            bezier_t=rng.next_float(),
            bezier_direction=1 if rng.chance(0.5) else -1,
            color=altitude_color(position[1], h),
        )

    def initialize(self, state, rng, noise, mapped) -> None:
        """Replace the population with target_count fresh particles."""
        self._pending.clear()
        count = self.target_count(mapped.particle_density)
        state.particles = [self.create_particle(state, rng, noise, mapped)
                           for _ in range(count)]
        state.population_target = count
        self.rebuild_connections(state, mapped)
        logger.sim(f"Population initialized: {count}")

    def queue_spawn(self, position=None) -> None:
        self._pending.spawns.append(None if position is None else np.array(position, dtype=float))

    def queue_removal(self, index: int) -> None:
        self._pending.removals.append(index)

    @property
    def pending(self) -> PendingBatch:
        return self._pending

    def apply_batch(self, state, rng, noise, mapped) -> bool:
        """Apply queued adds, then removals, then top up to the minimum.

        Returns:
            True if the population changed
        """
        particles = state.particles
        changed = False
        cap = state.population_target
        if cap is None:
            cap = self.target_count(mapped.particle_density)

        for position in self._pending.spawns:
            if len(particles) >= cap:
                break
            particles.append(self.create_particle(state, rng, noise, mapped, position))
            changed = True

        # Descending so earlier indices stay valid while deleting
        for index in sorted(set(self._pending.removals), reverse=True):
            if 0 <= index < len(particles):
                del particles[index]
                changed = True

        self._pending.clear()

        while len(particles) < self.settings.min_particles:
            particles.append(self.create_particle(state, rng, noise, mapped))
            changed = True

        if changed:
            self.rebuild_connections(state, mapped)
        return changed

    def rebuild_connections(self, state, mapped) -> None:
        density = mapped.connection_density
        n = len(state.particles)
        state.connection_k = neighbour_count(n, density, self.settings.connection_rounding)
        if density <= 0 or n < 2:
            state.connections = []
            return
        positions = np.array([p.position for p in state.particles])
        state.connections = build_connections(positions, density,
                                              self.settings.connection_rounding)

    # === Physics ===

    def step(self, state, rng, noise, mapped) -> bool:
        """Advance every particle one tick and apply the queued batch.

        Returns:
            True if the population changed
        """
        particles = state.particles
        if particles:
            self._handle_contacts(particles, rng)
            for index, p in enumerate(particles):
                self._integrate(p, rng, mapped)
                self._apply_boundary(p, state.terrain.size, mapped.terrain_height)
                self.collide_terrain(index, p, state, mapped)
                self._bezier_drift(p, rng)
                p.size = p.base_size * mapped.size
                p.color = altitude_color(p.position[1], mapped.terrain_height)
            self._noise_drift(particles, noise, state.time, mapped.randomness)
        return self.apply_batch(state, rng, noise, mapped)

    def _handle_contacts(self, particles, rng) -> None:
        positions = np.array([p.position for p in particles])
        sizes = np.array([p.size for p in particles])
        diff = positions[:, None, :] - positions[None, :, :]
        dist = np.sqrt((diff ** 2).sum(axis=2))
        reach = REPEL_DISTANCE * (sizes[:, None] + sizes[None, :])
        close = np.argwhere(np.triu(dist < reach, k=1))

        despawn = self.settings.collision_policy == CollisionPolicy.DESPAWN
        for i, j in close:
            if despawn:
                for k in (int(i), int(j)):
                    particles[k].marked_for_removal = True
                    self.queue_removal(k)
                continue
            d = dist[i, j]
            axis = diff[i, j] / d if d > EPS else rng.next_unit_vector()
            particles[i].velocity += axis * REPEL_IMPULSE
            particles[j].velocity -= axis * REPEL_IMPULSE

    def _integrate(self, p: Particle, rng, mapped) -> None:
        v = p.velocity
        pos = p.position

        jitter = mapped.turbulence + mapped.randomness
        v[0] += rng.next_float_range(-jitter, jitter)
        v[1] += rng.next_float_range(-jitter, jitter) * VERTICAL_JITTER_WEIGHT
        v[2] += rng.next_float_range(-jitter, jitter)

        gravity = mapped.gravity + mapped.gravity_strength
        dist = float(np.linalg.norm(pos))
        if dist > EPS:
            v -= pos / dist * gravity

        if mapped.vortex_strength > 0:
            radial = math.hypot(pos[0], pos[2])
            if radial > EPS:
                v[0] += -pos[2] / radial * mapped.vortex_strength
                v[2] += pos[0] / radial * mapped.vortex_strength

        v += (p.original_position - pos) * ELASTIC_COEFF

        if rng.chance(mapped.randomness * IMPULSE_PROBABILITY):
            v += rng.next_unit_vector() * mapped.speed * 2.0

        v *= DAMPING
        pos += v * mapped.speed

    def _apply_boundary(self, p: Particle, world_size: float, terrain_height: float) -> None:
        pos, v = p.position, p.velocity
        half = world_size / 2
        wrap = self.settings.boundary_policy == BoundaryPolicy.WRAP

        for axis in (0, 2):
            if wrap:
                if pos[axis] > half:
                    pos[axis] -= world_size
                elif pos[axis] < -half:
                    pos[axis] += world_size
            elif pos[axis] > half:
                pos[axis] = half
                v[axis] *= WALL_RESTITUTION
            elif pos[axis] < -half:
                pos[axis] = -half
                v[axis] *= WALL_RESTITUTION

        ceiling = CEILING_FACTOR * terrain_height
        if pos[1] > ceiling:
            pos[1] = ceiling
            v[1] *= WALL_RESTITUTION

    def resolve_terrain(self, p: Particle, terrain, terrain_height: float) -> bool:
        """Push a penetrating particle back above the terrain surface.

        Off-grid positions only collide with the floor at -terrain_height.

        Returns:
            True if the particle was in contact and got resolved
        """
        pos, v = p.position, p.velocity
        clearance = p.size * SURFACE_CLEARANCE
        surface = terrain.surface_at(pos[0], pos[2])

        if surface is None:
            if pos[1] >= -terrain_height:
                return False
            height, normal = -terrain_height, UP
        else:
            height, normal = surface
            if pos[1] >= height + clearance and pos[1] >= -terrain_height:
                return False

        pos[1] = height + clearance
        into = float(v @ normal)
        if into < 0:
            v -= 2.0 * into * normal
        v *= BOUNCINESS
        v += normal * NORMAL_IMPULSE
        return True

    def reground(self, state) -> int:
        """Lift particles left under a freshly rebuilt terrain.

        Only the height changes: velocity and hit counts are untouched.

        Returns:
            Number of particles moved
        """
        moved = 0
        for p in state.particles:
            surface = state.terrain.surface_at(p.position[0], p.position[2])
            if surface is None:
                continue
            floor = surface[0] + p.size * SURFACE_CLEARANCE
            if p.position[1] < floor:
                p.position[1] = floor
                moved += 1
        return moved

    def collide_terrain(self, index: int, p: Particle, state, mapped) -> None:
        if not self.resolve_terrain(p, state.terrain, mapped.terrain_height):
            return

        # Debounced hit counting
        if state.tick - p.last_collision_tick < HIT_DEBOUNCE_TICKS:
            return
        p.terrain_hit_count += 1
        p.last_collision_tick = state.tick

        if p.terrain_hit_count == 1 and self.settings.spawn_on_first_hit:
            self.queue_spawn(p.position + UP * p.size * 2.0)

        threshold = self.settings.removal_hit_threshold
        if threshold > 0 and p.terrain_hit_count >= threshold:
            p.marked_for_removal = True
            self.queue_removal(index)

    def _bezier_drift(self, p: Particle, rng) -> None:
        if rng.chance(BEZIER_CHANCE):
            target = bezier_point(p.bezier_points, p.bezier_t)
            p.position += (target - p.position) * BEZIER_BLEND

        p.bezier_t += BEZIER_STEP * p.bezier_direction
        if p.bezier_t >= 1.0:
            p.bezier_t = 1.0
            p.bezier_direction = -1
        elif p.bezier_t <= 0.0:
            p.bezier_t = 0.0
            p.bezier_direction = 1

    def _noise_drift(self, particles, noise, time: float, randomness: float) -> None:
        phases = np.array([p.noise_phase for p in particles])
        offsets = np.stack([
            noise.noise3(phases, time, axis * 10.0 + 0.5) for axis in range(3)
        ], axis=1)
        offsets = (offsets - 0.5) * randomness * 2.0
        for p, offset in zip(particles, offsets):
            p.position += offset
