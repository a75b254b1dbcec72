"""
Simulation State - explicit state record and variant settings

SimulationSettings holds the tuning surface. It covers the behaviours that
differ between revisions of the piece: wrap vs bounce at the walls, repel
vs despawn on particle contact, connection rounding and spawn-on-hit.
SimulationState is the one mutable record the engine threads through every
component step.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional

from particlescape.config import (
    DEFAULT_NUM_PARTICLES, DEFAULT_MIN_PARTICLES, DEFAULT_REMOVAL_HITS,
    DEFAULT_TERRAIN_RESOLUTION, DEFAULT_TERRAIN_SIZE,
)
from .prng import generate_random_seed


class BoundaryPolicy(str, Enum):
    BOUNCE = 'bounce'
    WRAP = 'wrap'


class CollisionPolicy(str, Enum):
    REPEL = 'repel'
    DESPAWN = 'despawn'


class ConnectionRounding(str, Enum):
    FLOOR = 'floor'
    MIN_ONE = 'min_one'


class RunState(str, Enum):
    RUNNING = 'running'
    PAUSED = 'paused'


# Variant presets: policy overrides applied on top of the defaults
VARIANT_PRESETS = {
    'custom': None,
    # Walls bounce, contacts repel, particles multiply on first landing
    'classic': {
        'boundary_policy': BoundaryPolicy.BOUNCE,
        'collision_policy': CollisionPolicy.REPEL,
        'connection_rounding': ConnectionRounding.FLOOR,
        'spawn_on_first_hit': True,
        'removal_hit_threshold': DEFAULT_REMOVAL_HITS,
    },
    # Endless field: wrap at the walls, always keep at least one link
    'swarm': {
        'boundary_policy': BoundaryPolicy.WRAP,
        'collision_policy': CollisionPolicy.REPEL,
        'connection_rounding': ConnectionRounding.MIN_ONE,
        'spawn_on_first_hit': False,
        'removal_hit_threshold': 0,
    },
    # Contacts and repeated landings consume particles
    'erosion': {
        'boundary_policy': BoundaryPolicy.BOUNCE,
        'collision_policy': CollisionPolicy.DESPAWN,
        'connection_rounding': ConnectionRounding.FLOOR,
        'spawn_on_first_hit': True,
        'removal_hit_threshold': 2,
    },
}

_ENUM_FIELDS = {
    'boundary_policy': BoundaryPolicy,
    'collision_policy': CollisionPolicy,
    'connection_rounding': ConnectionRounding,
}


@dataclass
class SimulationSettings:
    """
    Tuning and variant configuration.

    Applied at construction/reset; not persisted.
    """

    boundary_policy: BoundaryPolicy = BoundaryPolicy.BOUNCE
    collision_policy: CollisionPolicy = CollisionPolicy.REPEL
    connection_rounding: ConnectionRounding = ConnectionRounding.FLOOR
    spawn_on_first_hit: bool = True
    removal_hit_threshold: int = DEFAULT_REMOVAL_HITS  # 0 disables removal

    # Population
    num_particles: int = DEFAULT_NUM_PARTICLES
    min_particles: int = DEFAULT_MIN_PARTICLES

    # Terrain
    terrain_resolution: int = DEFAULT_TERRAIN_RESOLUTION
    terrain_size: float = DEFAULT_TERRAIN_SIZE

    # Seed state
    seed: int = 0
    seed_locked: bool = True

    # Camera
    auto_rotate: bool = True

    variant_preset: str = 'custom'

    def __post_init__(self):
        for key, enum_cls in _ENUM_FIELDS.items():
            setattr(self, key, _coerce(enum_cls, getattr(self, key), key))
        if self.min_particles < 0:
            raise ValueError(f"min_particles must be >= 0, got {self.min_particles}")
        if self.num_particles < self.min_particles:
            raise ValueError(
                f"num_particles ({self.num_particles}) must be >= "
                f"min_particles ({self.min_particles})")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to plain values (CLI echo, debugging)."""
        return {
            "boundary_policy": self.boundary_policy.value,
            "collision_policy": self.collision_policy.value,
            "connection_rounding": self.connection_rounding.value,
            "spawn_on_first_hit": self.spawn_on_first_hit,
            "removal_hit_threshold": self.removal_hit_threshold,
            "num_particles": self.num_particles,
            "min_particles": self.min_particles,
            "terrain_resolution": self.terrain_resolution,
            "terrain_size": self.terrain_size,
            "seed": self.seed,
            "seed_locked": self.seed_locked,
            "auto_rotate": self.auto_rotate,
            "variant_preset": self.variant_preset,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationSettings":
        """Build settings from plain values; unknown policy names raise ValueError."""
        return cls(
            boundary_policy=data.get("boundary_policy", BoundaryPolicy.BOUNCE),
            collision_policy=data.get("collision_policy", CollisionPolicy.REPEL),
            connection_rounding=data.get("connection_rounding", ConnectionRounding.FLOOR),
            spawn_on_first_hit=bool(data.get("spawn_on_first_hit", True)),
            removal_hit_threshold=int(data.get("removal_hit_threshold", DEFAULT_REMOVAL_HITS)),
            num_particles=int(data.get("num_particles", DEFAULT_NUM_PARTICLES)),
            min_particles=int(data.get("min_particles", DEFAULT_MIN_PARTICLES)),
            terrain_resolution=int(data.get("terrain_resolution", DEFAULT_TERRAIN_RESOLUTION)),
            terrain_size=float(data.get("terrain_size", DEFAULT_TERRAIN_SIZE)),
            seed=int(data.get("seed", 0)),
            seed_locked=bool(data.get("seed_locked", True)),
            auto_rotate=bool(data.get("auto_rotate", True)),
            variant_preset=str(data.get("variant_preset", "custom")),
        )

    def get_active_seed(self) -> int:
        """
        Get the seed to use for a (re)initialization.

        If seed_locked, returns stored seed.
        Otherwise, generates and stores a new random seed.
        """
        if self.seed_locked:
            return self.seed
        self.seed = generate_random_seed()
        return self.seed

    def apply_variant_preset(self, preset_name: str) -> bool:
        """
        Apply a variant preset.

        Returns True if preset was applied, False if invalid preset.
        """
        if preset_name not in VARIANT_PRESETS:
            return False

        values = VARIANT_PRESETS[preset_name]
        if values:
            for key, value in values.items():
                setattr(self, key, value)
        self.variant_preset = preset_name
        return True

    def get_preset_names(self) -> List[str]:
        return list(VARIANT_PRESETS.keys())


def _coerce(enum_cls, value, key):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Unknown {key} {value!r} (expected one of: {choices})") from None


@dataclass
class SimulationState:
    """Everything the tick mutates. Owned by SimulationEngine."""
    particles: list = field(default_factory=list)
    connections: list = field(default_factory=list)
    terrain: Any = None
    camera: Any = None
    mapped: Any = None
    tick: int = 0
    time: float = 0.0
    run_state: RunState = RunState.RUNNING
    population_target: Optional[int] = None
    connection_k: Optional[int] = None

    @property
    def paused(self) -> bool:
        return self.run_state == RunState.PAUSED
