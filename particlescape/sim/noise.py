"""
Coherent noise for terrain relief and particle drift.

Improved Perlin gradient noise over a seeded permutation table, vectorized
with NumPy so a whole terrain grid (or every particle) is sampled in one
call. Output is remapped to [0, 1].
"""

import numpy as np

from .prng import XorShift32


class PerlinNoise:
    """
    Seeded 3D Perlin noise.

    Usage:
        noise = PerlinNoise(seed)
        h = noise.noise2(xs, zs)          # arrays or scalars, values in [0, 1]
        d = noise.noise3(phase, t, 2.0)
    """

    def __init__(self, seed: int):
        rng = XorShift32(seed)
        perm = list(range(256))
        # Fisher-Yates
        for i in range(255, 0, -1):
            j = rng.next_int(i + 1)
            perm[i], perm[j] = perm[j], perm[i]
        self._perm = np.array(perm + perm, dtype=np.int64)

    @staticmethod
    def _fade(t):
        """Smooth fade function: 6t^5 - 15t^4 + 10t^3"""
        return t * t * t * (t * (t * 6 - 15) + 10)

    @staticmethod
    def _lerp(a, b, t):
        return a + t * (b - a)

    @staticmethod
    def _grad(h, x, y, z):
        h = h & 15
        u = np.where(h < 8, x, y)
        v = np.where(h < 4, y, np.where((h == 12) | (h == 14), x, z))
        return np.where(h & 1, -u, u) + np.where(h & 2, -v, v)

    def _raw(self, x, y, z):
        """Signed noise, roughly in [-1, 1]."""
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        z = np.asarray(z, dtype=float)
        x, y, z = np.broadcast_arrays(x, y, z)

        xf, yf, zf = np.floor(x), np.floor(y), np.floor(z)
        xi = xf.astype(np.int64) & 255
        yi = yf.astype(np.int64) & 255
        zi = zf.astype(np.int64) & 255
        x, y, z = x - xf, y - yf, z - zf

        u, v, w = self._fade(x), self._fade(y), self._fade(z)
        p = self._perm

        a = p[xi] + yi
        aa = p[a] + zi
        ab = p[a + 1] + zi
        b = p[xi + 1] + yi
        ba = p[b] + zi
        bb = p[b + 1] + zi

        grad, lerp = self._grad, self._lerp
        x1 = lerp(grad(p[aa], x, y, z), grad(p[ba], x - 1, y, z), u)
        x2 = lerp(grad(p[ab], x, y - 1, z), grad(p[bb], x - 1, y - 1, z), u)
        y1 = lerp(x1, x2, v)
        x3 = lerp(grad(p[aa + 1], x, y, z - 1), grad(p[ba + 1], x - 1, y, z - 1), u)
        x4 = lerp(grad(p[ab + 1], x, y - 1, z - 1), grad(p[bb + 1], x - 1, y - 1, z - 1), u)
        y2 = lerp(x3, x4, v)
        return lerp(y1, y2, w)

    def noise3(self, x, y, z):
        """3D noise in [0, 1]. Scalars in give a float out."""
        result = np.clip((self._raw(x, y, z) + 1.0) * 0.5, 0.0, 1.0)
        if result.ndim == 0:
            return float(result)
        return result

    def noise2(self, x, y):
        """2D noise in [0, 1], sampled off the z=0 lattice plane."""
        return self.noise3(x, y, 0.5)
