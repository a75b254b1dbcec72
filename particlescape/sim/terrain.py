"""
Terrain Generator - layered-noise heightfield and collision queries.

The heightfield is a fixed resolution x resolution grid spanning
[-size/2, size/2] on X and Z. Heights combine four noise terms (base,
3x detail, 8x micro-detail, ridge) and are stretched to
[-terrain_height/2, terrain_height/2].

Rebuilds are wholesale and only happen when the requested height drifts
more than TERRAIN_HYSTERESIS from the baked one, so noisy knob input
does not regenerate every tick.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from particlescape.config import (
    DEFAULT_TERRAIN_RESOLUTION, DEFAULT_TERRAIN_SIZE, TERRAIN_HYSTERESIS,
    TERRAIN_NOISE_SCALE, TERRAIN_OCTAVES, TERRAIN_RIDGE_WEIGHT,
    TERRAIN_BAND_THRESHOLDS,
)
from particlescape.utils.logger import logger
from .noise import PerlinNoise


class ColorBand(Enum):
    """Altitude bands, lowest first."""
    DEEP_WATER = 0
    SHALLOW_WATER = 1
    LOWLAND = 2
    MIDLAND = 3
    HIGHLAND = 4


BAND_COLORS = {
    ColorBand.DEEP_WATER: (0.05, 0.15, 0.45, 1.0),
    ColorBand.SHALLOW_WATER: (0.15, 0.40, 0.70, 1.0),
    ColorBand.LOWLAND: (0.25, 0.55, 0.25, 1.0),
    ColorBand.MIDLAND: (0.50, 0.45, 0.30, 1.0),
    ColorBand.HIGHLAND: (0.92, 0.92, 0.95, 1.0),
}


def band_for(normalized: float) -> ColorBand:
    """Colour band for a normalized height in [0, 1]."""
    for i, threshold in enumerate(TERRAIN_BAND_THRESHOLDS):
        if normalized < threshold:
            return ColorBand(i)
    return ColorBand.HIGHLAND


@dataclass
class TerrainCell:
    """One grid vertex of the terrain mesh."""
    position: Tuple[float, float, float]
    color_band: ColorBand


class Terrain:
    """
    Heightfield terrain.

    Usage:
        terrain = Terrain(seed=7)
        terrain.update(mapped.terrain_height)     # no-op inside hysteresis
        hit = terrain.surface_at(x, z)            # None off the grid
    """

    def __init__(self, resolution: int = DEFAULT_TERRAIN_RESOLUTION,
                 size: float = DEFAULT_TERRAIN_SIZE, seed: int = 0):
        if resolution < 2:
            raise ValueError(f"Terrain resolution must be >= 2, got {resolution}")
        self.resolution = resolution
        self.size = float(size)
        self.spacing = self.size / (resolution - 1)
        self.seed = seed
        self._noise = PerlinNoise(seed)

        self._axis = np.linspace(-self.size / 2, self.size / 2, resolution)
        self._heights = np.zeros((resolution, resolution))   # [ix, iz]
        self._normalized = np.full((resolution, resolution), 0.5)
        self._baked_height: Optional[float] = None
        self.generation = 0
        self._colors: Optional[np.ndarray] = None
        self._colors_generation = -1

    # === Generation ===

    def reseed(self, seed: int) -> None:
        """Switch noise seed; the next update() rebuilds."""
        self.seed = seed
        self._noise = PerlinNoise(seed)
        self._baked_height = None

    @property
    def baked_height(self) -> Optional[float]:
        return self._baked_height

    def needs_regeneration(self, terrain_height: float) -> bool:
        if self._baked_height is None:
            return True
        return abs(terrain_height - self._baked_height) > TERRAIN_HYSTERESIS

    def update(self, terrain_height: float) -> bool:
        """Regenerate if the height moved past the hysteresis threshold.

        Returns:
            True if the heightfield was rebuilt
        """
        if not self.needs_regeneration(terrain_height):
            return False
        self.regenerate(terrain_height)
        return True

    def regenerate(self, terrain_height: float) -> None:
        """Rebuild the whole heightfield for the given relief."""
        xs, zs = np.meshgrid(self._axis, self._axis, indexing='ij')
        nx = xs * TERRAIN_NOISE_SCALE
        nz = zs * TERRAIN_NOISE_SCALE

        field = np.zeros_like(xs)
        base = None
        for i, (frequency, weight) in enumerate(TERRAIN_OCTAVES):
            # Offset each octave so they do not share lattice points
            layer = self._noise.noise2(nx * frequency + i * 17.3, nz * frequency + i * 31.7)
            if base is None:
                base = layer
            field += layer * weight

        # Ridge term |n - 0.5|, stretched to [0, 1]
        ridge = np.abs(base - 0.5) * 2.0
        field += ridge * TERRAIN_RIDGE_WEIGHT

        lo, hi = field.min(), field.max()
        if hi - lo > 1e-12:
            normalized = (field - lo) / (hi - lo)
        else:
            normalized = np.full_like(field, 0.5)

        self._normalized = normalized
        self._heights = (normalized - 0.5) * terrain_height
        self._baked_height = float(terrain_height)
        self.generation += 1
        logger.debug(f"Terrain rebuilt at height {terrain_height:.1f}", component="TERRAIN")

    # === Queries ===

    @property
    def heights(self) -> np.ndarray:
        """Height grid indexed [ix, iz] (read-only view)."""
        view = self._heights.view()
        view.flags.writeable = False
        return view

    def contains(self, x: float, z: float) -> bool:
        half = self.size / 2
        return -half <= x <= half and -half <= z <= half

    def surface_at(self, x: float, z: float) -> Optional[Tuple[float, np.ndarray]]:
        """Interpolated height and upward unit normal at (x, z).

        Returns:
            (height, normal) or None if (x, z) is outside the grid
        """
        if not self.contains(x, z):
            return None

        fx = (x + self.size / 2) / self.spacing
        fz = (z + self.size / 2) / self.spacing
        i = min(int(fx), self.resolution - 2)
        j = min(int(fz), self.resolution - 2)
        tx = fx - i
        tz = fz - j

        h = self._heights
        h00, h10 = h[i, j], h[i + 1, j]
        h01, h11 = h[i, j + 1], h[i + 1, j + 1]

        height = (h00 * (1 - tx) * (1 - tz) + h10 * tx * (1 - tz)
                  + h01 * (1 - tx) * tz + h11 * tx * tz)

        edge_x = np.array([self.spacing, h10 - h00, 0.0])
        edge_z = np.array([0.0, h01 - h00, self.spacing])
        normal = np.cross(edge_x, edge_z)
        if normal[1] < 0:
            normal = -normal
        normal = normal / np.linalg.norm(normal)

        return float(height), normal

    def height_at(self, x: float, z: float) -> Optional[float]:
        """Interpolated height at (x, z), or None outside the grid."""
        hit = self.surface_at(x, z)
        return None if hit is None else hit[0]

    # === Mesh export ===

    def vertices(self) -> np.ndarray:
        """Grid vertices as (R*R, 3) array, x-major."""
        xs, zs = np.meshgrid(self._axis, self._axis, indexing='ij')
        return np.stack([xs.ravel(), self._heights.ravel(), zs.ravel()], axis=1)

    def bands(self) -> List[ColorBand]:
        return [band_for(v) for v in self._normalized.ravel()]

    def colors(self) -> np.ndarray:
        """RGBA per vertex, matching vertices(). Cached per generation."""
        if self._colors_generation != self.generation:
            self._colors = np.array([BAND_COLORS[b] for b in self.bands()])
            self._colors_generation = self.generation
        return self._colors

    def cells(self) -> List[TerrainCell]:
        """Grid as TerrainCell records, x-major."""
        return [
            TerrainCell(position=tuple(float(c) for c in v), color_band=b)
            for v, b in zip(self.vertices(), self.bands())
        ]
