"""
Control Surface
Holds the 14 control channels and their controller bindings

- Binding key: controller id (CC number 0-127), one per channel
- Rebinding at runtime swaps with whichever channel held the id
- Unbound controller ids are ignored
- Manual slider input writes the same raw value as a controller event
"""

import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from PyQt5.QtCore import QObject, pyqtSignal

from particlescape.config import (
    CONTROL_PARAMS, NUM_CHANNELS, DEFAULT_CC_BINDINGS, CC_MIN, CC_MAX,
    map_value, format_value,
)
from particlescape.utils.logger import logger


class BindingError(ValueError):
    """Raised when a channel binding request is malformed."""


def _clamp_unit(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def _is_channel_index(index) -> bool:
    """True for a plain int in 0-13 (bools and floats rejected)."""
    return isinstance(index, int) and not isinstance(index, bool) \
        and 0 <= index < NUM_CHANNELS


@dataclass
class ControlChannel:
    """One logical control slot."""
    name: str
    label: str
    cc_binding: int
    raw_value: float = 0.0
    smoothed_value: float = 0.0


class ControlSurface(QObject):
    """Maps controller events onto control channels."""

    # Signals
    parameter_changed = pyqtSignal(int, float)  # channel, value
    binding_changed = pyqtSignal(int, int)      # channel, controller id

    def __init__(self, parent=None):
        super().__init__(parent)
        self._channels: List[ControlChannel] = []
        for i, param in enumerate(CONTROL_PARAMS):
            default = param.get('default', 0.0)
            self._channels.append(ControlChannel(
                name=param['key'],
                label=param['label'],
                cc_binding=DEFAULT_CC_BINDINGS[i],
                raw_value=default,
                smoothed_value=default,
            ))

    @property
    def channels(self) -> List[ControlChannel]:
        return self._channels

    def channel(self, index: int) -> ControlChannel:
        return self._channels[index]

    # === Bindings ===

    def bind_channel(self, index, controller_id):
        """Bind a channel to a controller id.

        Args:
            index: Channel index (0-13)
            controller_id: CC number (0-127); numeric strings accepted

        Raises:
            BindingError: if either argument is invalid. The previous
                binding is left in place.
        """
        if not _is_channel_index(index):
            raise BindingError(f"Unknown channel: {index!r}")

        if isinstance(controller_id, bool):
            raise BindingError(f"Controller id must be numeric: {controller_id!r}")
        if isinstance(controller_id, str):
            text = controller_id.strip()
            if not text.isdigit():
                raise BindingError(f"Controller id must be numeric: {controller_id!r}")
            controller_id = int(text)
        elif isinstance(controller_id, float):
            if not controller_id.is_integer():
                raise BindingError(f"Controller id must be an integer: {controller_id!r}")
            controller_id = int(controller_id)
        elif not isinstance(controller_id, int):
            raise BindingError(f"Controller id must be numeric: {controller_id!r}")

        if not CC_MIN <= controller_id <= CC_MAX:
            raise BindingError(f"Controller id out of range 0-127: {controller_id}")

        channel = self._channels[index]
        if channel.cc_binding == controller_id:
            return

        # Keep ids unique: the previous holder takes over our old id
        holder = self.channel_for_controller(controller_id)
        if holder is not None:
            self._channels[holder].cc_binding = channel.cc_binding
            self.binding_changed.emit(holder, channel.cc_binding)

        channel.cc_binding = controller_id
        logger.info(f"CC{controller_id} -> {channel.name}", component="MIDI")
        self.binding_changed.emit(index, controller_id)

    def try_bind_channel(self, index, controller_id) -> bool:
        """bind_channel for text input: logs and returns False on bad input."""
        try:
            self.bind_channel(index, controller_id)
        except BindingError as e:
            logger.warning("Binding rejected", component="MIDI", details=str(e))
            return False
        return True

    def channel_for_controller(self, controller_id: int) -> Optional[int]:
        """Get channel bound to a controller id, or None."""
        for i, channel in enumerate(self._channels):
            if channel.cc_binding == controller_id:
                return i
        return None

    def reset_bindings(self):
        """Restore default CC bindings."""
        for i, channel in enumerate(self._channels):
            if channel.cc_binding != DEFAULT_CC_BINDINGS[i]:
                channel.cc_binding = DEFAULT_CC_BINDINGS[i]
                self.binding_changed.emit(i, channel.cc_binding)

    def get_bindings(self) -> List[int]:
        return [c.cc_binding for c in self._channels]

    # === Input ===

    def on_control_event(self, controller_id, normalized_value):
        """Handle a controller change.

        Args:
            controller_id: CC number (0-127)
            normalized_value: Value scaled to 0.0-1.0

        Returns:
            Channel index that was updated, or None if unbound
        """
        index = self.channel_for_controller(controller_id)
        if index is None:
            logger.midi(f"Ignoring unbound CC{controller_id}")
            return None
        self._set_raw(index, normalized_value)
        return index

    def on_manual_input(self, index, normalized_value):
        """Handle slider drag for a channel (same effect as a CC event)."""
        if not _is_channel_index(index):
            logger.midi(f"Ignoring manual input for channel {index!r}")
            return
        self._set_raw(index, normalized_value)

    def _set_raw(self, index, value):
        value = _clamp_unit(float(value))
        channel = self._channels[index]
        channel.raw_value = value
        param = CONTROL_PARAMS[index]
        logger.midi(f"{channel.label} = {format_value(map_value(value, param), param)}")
        self.parameter_changed.emit(index, value)

    # === Bulk access ===

    def raw_values(self) -> np.ndarray:
        return np.array([c.raw_value for c in self._channels], dtype=float)

    def smoothed_values(self) -> np.ndarray:
        return np.array([c.smoothed_value for c in self._channels], dtype=float)

    def store_smoothed(self, values) -> None:
        """Write back smoothed values computed for this tick."""
        for channel, value in zip(self._channels, values):
            channel.smoothed_value = _clamp_unit(float(value))

    def set_all(self, value: float) -> None:
        """Set every channel's raw and smoothed value (tests, reset)."""
        value = _clamp_unit(value)
        for i, channel in enumerate(self._channels):
            channel.raw_value = value
            channel.smoothed_value = value
            self.parameter_changed.emit(i, value)
