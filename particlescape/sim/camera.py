"""
Camera Rig - orbit camera driven by gestures, pointer drag and scroll.

Yaw comes from three places: auto-rotation, pointer drag (through a lagged
target) and 15 degree detents from the rotate gesture pair. Pitch and roll
follow the tilt and lift gestures directly. Position is the base offset
(0, 0, zoom) rotated by yaw, then pitch, then roll.
"""

import math
from dataclasses import dataclass

import numpy as np

from particlescape.config import (
    ZOOM_MIN, ZOOM_MAX, DEFAULT_ZOOM, AUTO_ROTATE_RATE, YAW_LAG,
    YAW_STEP, DRAG_SENSITIVITY, SCROLL_SENSITIVITY,
)


@dataclass
class CameraState:
    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0
    target_yaw: float = 0.0
    zoom_radius: float = DEFAULT_ZOOM
    auto_rotate: bool = True
    pointer_control_enabled: bool = False
    manual_override: bool = False


def rotation_y(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def rotation_x(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def rotation_z(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def look_at(eye, target, up) -> np.ndarray:
    """Right-handed 4x4 view matrix."""
    eye = np.asarray(eye, dtype=float)
    forward = np.asarray(target, dtype=float) - eye
    forward /= np.linalg.norm(forward)
    side = np.cross(forward, up)
    side /= np.linalg.norm(side)
    true_up = np.cross(side, forward)

    view = np.identity(4)
    view[0, :3] = side
    view[1, :3] = true_up
    view[2, :3] = -forward
    view[:3, 3] = -view[:3, :3] @ eye
    return view


class CameraRig:
    """
    Owns a CameraState and advances it once per tick.

    Usage:
        rig = CameraRig(CameraState())
        rig.apply_gestures(mapped)
        rig.step()
        eye = rig.position()
    """

    def __init__(self, state: CameraState = None):
        self.state = state if state is not None else CameraState()
        self._last_yaw_step = 0

    # === Inputs ===

    def apply_gestures(self, mapped) -> None:
        """Feed tilt/lift into pitch/roll; rotate pair yaws in detents."""
        s = self.state
        s.pitch = mapped.tilt
        s.roll = mapped.lift

        # Edge-triggered: one detent each time the pair leaves the deadzone
        step = mapped.yaw_step
        if step != 0 and step != self._last_yaw_step:
            s.yaw += step * YAW_STEP
            s.target_yaw += step * YAW_STEP
        self._last_yaw_step = step

    def pointer_drag(self, dx: float) -> bool:
        """Horizontal drag moves the yaw target. Ignored unless enabled."""
        s = self.state
        if not s.pointer_control_enabled:
            return False
        s.target_yaw += dx * DRAG_SENSITIVITY
        s.manual_override = True
        return True

    def end_drag(self) -> None:
        self.state.manual_override = False

    def scroll(self, delta: float) -> float:
        s = self.state
        s.zoom_radius = max(ZOOM_MIN, min(ZOOM_MAX, s.zoom_radius + delta * SCROLL_SENSITIVITY))
        return s.zoom_radius

    def set_pointer_control(self, enabled: bool) -> None:
        s = self.state
        s.pointer_control_enabled = enabled
        if not enabled:
            s.manual_override = False
        s.target_yaw = s.yaw

    # === Tick ===

    def step(self) -> None:
        s = self.state
        if s.pointer_control_enabled and s.manual_override:
            s.yaw += (s.target_yaw - s.yaw) * YAW_LAG
        elif s.auto_rotate:
            s.yaw += AUTO_ROTATE_RATE
            s.target_yaw = s.yaw
        # Keep yaw bounded without disturbing the lag
        if abs(s.yaw) > 4 * math.pi:
            wrap = math.copysign(2 * math.pi, s.yaw)
            s.yaw -= wrap
            s.target_yaw -= wrap

    # === Output ===

    def orientation(self) -> np.ndarray:
        """Yaw, then pitch, then roll."""
        s = self.state
        return rotation_z(s.roll) @ rotation_x(s.pitch) @ rotation_y(s.yaw)

    def position(self) -> np.ndarray:
        base = np.array([0.0, 0.0, self.state.zoom_radius])
        return self.orientation() @ base

    def up_vector(self) -> np.ndarray:
        return self.orientation() @ np.array([0.0, 1.0, 0.0])

    def view_matrix(self) -> np.ndarray:
        return look_at(self.position(), np.zeros(3), self.up_vector())
