"""
Gesture Smoother - adaptive exponential smoothing for gesture channels.

Discrete channels (0-7) pass straight through so a size knob never lags.
Gesture channels (8-13) follow their raw value with a gain that grows with
the raw value itself:

    smoothed += (raw - smoothed) * factor * (1 + raw * 2)

Full deflection converges about three times faster than rest. The gain is
capped at 1 so a step never overshoots the target. Pure NumPy, no Qt.
"""

import numpy as np

from particlescape.config import (
    NUM_CHANNELS, GESTURE_CHANNELS, GESTURE_SMOOTHING,
)


class GestureSmoother:
    """Per-tick smoothing of the control vector."""

    def __init__(self, smoothing_factor: float = GESTURE_SMOOTHING):
        self.smoothing_factor = smoothing_factor
        self._gesture_mask = np.zeros(NUM_CHANNELS, dtype=bool)
        self._gesture_mask[GESTURE_CHANNELS.start:GESTURE_CHANNELS.stop] = True

    def step(self, raw: np.ndarray, smoothed: np.ndarray) -> np.ndarray:
        """Advance smoothing by one tick.

        Args:
            raw: Raw control values (14,), each in [0, 1]
            smoothed: Previous smoothed values (14,)

        Returns:
            New smoothed values (14,), each in [0, 1]
        """
        raw = np.clip(np.asarray(raw, dtype=float), 0.0, 1.0)
        smoothed = np.clip(np.asarray(smoothed, dtype=float), 0.0, 1.0)

        gain = np.minimum(self.smoothing_factor * (1.0 + raw * 2.0), 1.0)
        followed = smoothed + (raw - smoothed) * gain

        result = np.where(self._gesture_mask, followed, raw)
        return np.clip(result, 0.0, 1.0)

    def snap(self, raw: np.ndarray) -> np.ndarray:
        """Jump straight to the raw values (used on reset)."""
        return np.clip(np.asarray(raw, dtype=float), 0.0, 1.0).copy()
