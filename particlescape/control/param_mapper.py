"""
Parameter Mapper

Pure mapping from the 14 smoothed control values to the physical
parameters consumed by terrain, particles, connections and camera.
"""

from dataclasses import dataclass

from particlescape.config import (
    CONTROL_PARAMS_BY_KEY, CHANNEL_INDEX, NUM_CHANNELS, map_value,
    MAX_TILT, YAW_DEADZONE, GESTURE_FORCE_SCALE,
)


@dataclass(frozen=True)
class MappedParameters:
    """Physical parameters for one tick."""
    size: float = 1.0
    speed: float = 1.0
    gravity: float = 0.1
    turbulence: float = 0.1
    randomness: float = 0.1
    particle_density: float = 0.6
    connection_density: float = 0.5
    terrain_height: float = 110.0
    tilt: float = 0.0             # pitch, radians in [-pi/4, pi/4]
    lift: float = 0.0             # roll, radians in [-pi/4, pi/4]
    yaw_step: int = 0             # -1, 0 or +1 detent
    gravity_strength: float = 0.0
    vortex_strength: float = 0.0


def _pair_to_angle(positive: float, negative: float) -> float:
    """Map a difference in [-1, 1] linearly onto [-MAX_TILT, MAX_TILT]."""
    diff = max(-1.0, min(1.0, positive - negative))
    return diff * MAX_TILT


def yaw_detent(rotate_left: float, rotate_right: float) -> int:
    """Discrete rotation step, outside the deadzone only."""
    diff = rotate_right - rotate_left
    if abs(diff) > YAW_DEADZONE:
        return 1 if diff > 0 else -1
    return 0


def map_parameters(smoothed) -> MappedParameters:
    """Map smoothed control values to physical parameters.

    Args:
        smoothed: Sequence of NUM_CHANNELS values in [0, 1]

    Returns:
        MappedParameters with every field inside its documented range
    """
    if len(smoothed) != NUM_CHANNELS:
        raise ValueError(f"Expected {NUM_CHANNELS} control values, got {len(smoothed)}")

    def ranged(key):
        return map_value(float(smoothed[CHANNEL_INDEX[key]]), CONTROL_PARAMS_BY_KEY[key])

    tilt_front = ranged('tilt_front')
    tilt_back = ranged('tilt_back')
    lift_left = ranged('lift_left')
    lift_right = ranged('lift_right')
    rotate_left = ranged('rotate_left')
    rotate_right = ranged('rotate_right')

    return MappedParameters(
        size=ranged('size'),
        speed=ranged('speed'),
        gravity=ranged('gravity'),
        turbulence=ranged('turbulence'),
        randomness=ranged('randomness'),
        particle_density=ranged('particle_density'),
        connection_density=ranged('connection_density'),
        terrain_height=ranged('terrain_height'),
        tilt=_pair_to_angle(tilt_front, tilt_back),
        lift=_pair_to_angle(lift_right, lift_left),
        yaw_step=yaw_detent(rotate_left, rotate_right),
        gravity_strength=(tilt_front + tilt_back) * GESTURE_FORCE_SCALE,
        vortex_strength=(lift_left + lift_right) * GESTURE_FORCE_SCALE,
    )
