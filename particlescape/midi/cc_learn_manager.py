"""
Control Learn Manager
Handles learn mode - arming a channel and capturing the next controller id

- One channel armed at a time
- First controller event received creates the binding
- Cancel by arming again or explicit cancel
- Learn replaces the existing binding on that channel
"""

from PyQt5.QtCore import QObject, pyqtSignal

from particlescape.utils.logger import logger


class ControlLearnManager(QObject):
    """Manages learn mode for channel bindings."""

    # Signals
    learn_started = pyqtSignal(int)          # channel
    learn_completed = pyqtSignal(int, int)   # channel, controller id
    learn_cancelled = pyqtSignal(object)     # channel (or None)

    def __init__(self, control_surface, parent=None):
        """Initialize learn manager.

        Args:
            control_surface: ControlSurface instance
            parent: Parent QObject
        """
        super().__init__(parent)
        self._surface = control_surface
        self._armed_channel = None

    def start_learn(self, channel):
        """Arm a channel for learn.

        Args:
            channel: Channel index to arm
        """
        if self._armed_channel is not None:
            self.cancel_learn()

        self._armed_channel = channel
        logger.info(f"Learn armed: {self._surface.channel(channel).name}", component="MIDI")
        self.learn_started.emit(channel)

    def cancel_learn(self):
        """Cancel current learn operation."""
        channel = self._armed_channel
        self._armed_channel = None
        self.learn_cancelled.emit(channel)

    def is_learning(self):
        return self._armed_channel is not None

    def get_armed_channel(self):
        return self._armed_channel

    def on_cc_received(self, controller_id, value):
        """Handle controller event during learn mode.

        Args:
            controller_id: CC number (0-127)
            value: Normalized value - ignored for learn

        Returns:
            True if the event was consumed by learn mode
        """
        if not self.is_learning():
            return False

        channel = self._armed_channel
        self._armed_channel = None

        if not self._surface.try_bind_channel(channel, controller_id):
            self.learn_cancelled.emit(channel)
            return True

        self.learn_completed.emit(channel, controller_id)
        return True
