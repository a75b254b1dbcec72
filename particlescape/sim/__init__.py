"""
Particle/terrain simulation core.

Terrain heightfield, particle physics, connection graph and camera,
advanced once per frame by SimulationEngine.
"""

from .sim_state import (
    SimulationSettings, SimulationState, BoundaryPolicy, CollisionPolicy,
    ConnectionRounding, RunState,
)
from .sim_engine import SimulationEngine, FrameSnapshot
from .sim_controller import SimulationController

__all__ = [
    'SimulationSettings',
    'SimulationState',
    'BoundaryPolicy',
    'CollisionPolicy',
    'ConnectionRounding',
    'RunState',
    'SimulationEngine',
    'FrameSnapshot',
    'SimulationController',
]
