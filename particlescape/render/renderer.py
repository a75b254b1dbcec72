"""
Renderer interface.

Drawing is done outside the core: a renderer receives one FrameSnapshot
per frame (particle positions/colours/sizes, connection index pairs,
terrain mesh, camera) and draws it however it likes. LoggingRenderer is
the headless stand-in used by the CLI.
"""

from abc import ABC, abstractmethod

import numpy as np

from particlescape.config import SIM_HZ
from particlescape.utils.logger import logger


class Renderer(ABC):
    """Consumes frame snapshots."""

    @abstractmethod
    def render(self, snapshot) -> None:
        """Draw one frame."""

    def resize(self, width: int, height: int) -> None:
        """Viewport changed. Idempotent; default does nothing."""


class LoggingRenderer(Renderer):
    """Logs a one-line scene summary every `every` frames."""

    def __init__(self, every: int = SIM_HZ):
        self.every = max(1, every)
        self.frames = 0
        self.last_snapshot = None

    def render(self, snapshot) -> None:
        self.frames += 1
        self.last_snapshot = snapshot
        if self.frames % self.every:
            return

        if snapshot.particle_count:
            centroid = snapshot.positions.mean(axis=0)
            spread = float(np.linalg.norm(snapshot.positions - centroid, axis=1).mean())
        else:
            centroid, spread = np.zeros(3), 0.0

        logger.info(
            f"Frame {snapshot.tick}: {snapshot.particle_count} particles, "
            f"{len(snapshot.connections)} links, terrain gen {snapshot.terrain_generation}, "
            f"centroid ({centroid[0]:.0f}, {centroid[1]:.0f}, {centroid[2]:.0f}), "
            f"spread {spread:.0f}",
            component="RENDER",
        )
