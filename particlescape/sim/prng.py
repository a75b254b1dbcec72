"""
Deterministic PRNG shared by every random draw in the simulation.

One generator is owned by the engine and passed explicitly to the code
that needs it, so a fixed seed replays the same run.
"""

import math
import random

import numpy as np


class XorShift32:
    """Deterministic PRNG using xorshift32 algorithm."""

    def __init__(self, seed: int):
        self._state = (seed & 0xFFFFFFFF) or 1

    def next_uint32(self) -> int:
        x = self._state
        x ^= (x << 13) & 0xFFFFFFFF
        x ^= (x >> 17) & 0xFFFFFFFF
        x ^= (x << 5) & 0xFFFFFFFF
        self._state = x
        return x

    def next_float(self) -> float:
        """Random float in [0, 1)."""
        return self.next_uint32() * 2.3283064365386963e-10

    def next_float_range(self, lo: float, hi: float) -> float:
        """Random float in [lo, hi)."""
        return lo + self.next_float() * (hi - lo)

    def next_int(self, n: int) -> int:
        """Random int in [0, n)."""
        return self.next_uint32() % n

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self.next_float() < probability

    def next_vec3(self, lo: float, hi: float) -> np.ndarray:
        """Vector with each component uniform in [lo, hi)."""
        return np.array([
            self.next_float_range(lo, hi),
            self.next_float_range(lo, hi),
            self.next_float_range(lo, hi),
        ])

    def next_unit_vector(self) -> np.ndarray:
        """Uniformly distributed direction on the unit sphere."""
        z = self.next_float_range(-1.0, 1.0)
        theta = self.next_float_range(0.0, 2.0 * math.pi)
        r = math.sqrt(max(0.0, 1.0 - z * z))
        return np.array([r * math.cos(theta), z, r * math.sin(theta)])


def generate_random_seed() -> int:
    """Generate a random seed value."""
    return random.randint(0, 0x7FFFFFFF)
