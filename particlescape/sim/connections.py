"""
Connection Graph Builder

Nearest-neighbour links between particles. Each link remembers 1.5x the
distance it was created at and only resists stretching past that length.
The graph is a derived view: any add/remove batch shifts particle indices,
so it is rebuilt from scratch rather than patched.
"""

import math
from dataclasses import dataclass
from typing import List

import numpy as np

from particlescape.config import (
    MAX_NEIGHBOURS, REST_LENGTH_FACTOR, CONNECTION_STRENGTH,
)
from .sim_state import ConnectionRounding

EPS = 1e-9


@dataclass(frozen=True)
class Connection:
    """Soft spring between two particle indices."""
    from_index: int
    to_index: int
    rest_length: float
    correction_strength: float = CONNECTION_STRENGTH


def neighbour_count(n: int, density: float,
                    rounding: ConnectionRounding = ConnectionRounding.FLOOR) -> int:
    """Links per particle for a population of n."""
    if n < 2 or density <= 0:
        return 0
    density = min(1.0, density)
    k = math.floor(min(MAX_NEIGHBOURS, n - 1) * density)
    if rounding == ConnectionRounding.MIN_ONE:
        k = max(1, k)
    return k


def build_connections(positions, density: float,
                      rounding: ConnectionRounding = ConnectionRounding.FLOOR) -> List[Connection]:
    """Connect every particle to its k nearest neighbours.

    Args:
        positions: (N, 3) array of particle positions
        density: Mapped connection density in [0, 1]
        rounding: How fractional neighbour counts are rounded

    Returns:
        Undirected connections, duplicates collapsed
    """
    positions = np.asarray(positions, dtype=float).reshape(-1, 3)
    n = len(positions)
    k = neighbour_count(n, density, rounding)
    if k == 0:
        return []

    diff = positions[:, None, :] - positions[None, :, :]
    dist = np.sqrt((diff ** 2).sum(axis=2))
    np.fill_diagonal(dist, np.inf)
    # Stable sort keeps tie order deterministic
    order = np.argsort(dist, axis=1, kind='stable')[:, :k]

    connections = []
    seen = set()
    for i in range(n):
        for j in order[i]:
            j = int(j)
            key = (min(i, j), max(i, j))
            if key in seen:
                continue
            seen.add(key)
            connections.append(Connection(
                from_index=i,
                to_index=j,
                rest_length=float(dist[i, j]) * REST_LENGTH_FACTOR,
            ))
    return connections


def apply_constraints(particles, connections: List[Connection]) -> int:
    """Pull over-stretched links back toward their rest length.

    Returns:
        Number of links that were corrected
    """
    corrected = 0
    for c in connections:
        a = particles[c.from_index]
        b = particles[c.to_index]
        delta = b.position - a.position
        d = float(np.linalg.norm(delta))
        if d <= c.rest_length or d < EPS:
            continue
        shift = delta / d * (d - c.rest_length) * c.correction_strength * 0.5
        a.position += shift
        b.position -= shift
        corrected += 1
    return corrected


def connections_valid(connections: List[Connection], n: int) -> bool:
    """True if every endpoint indexes into a population of n."""
    return all(0 <= c.from_index < n and 0 <= c.to_index < n
               and c.from_index != c.to_index for c in connections)
