"""
MIDI input adapter for hardware control surfaces.

Reads control-change messages from a mido input port and turns them into
(controller_id, normalized_value) events for the ControlSurface.

- Port auto-detection with a priority list of name fragments
- Missing port is not an error: the app runs from manual input only
- CC flood control: pending messages are coalesced per controller id,
  last value wins, and drained once per frame
"""

from typing import Dict, List, Optional, Tuple

import mido

from particlescape.config import PREFERRED_MIDI_PORTS, CC_MAX
from particlescape.utils.logger import logger


def find_preferred_input(preferred_substrings: List[str] = None) -> Optional[str]:
    """
    Find MIDI input port matching preferred substrings.

    Args:
        preferred_substrings: Priority list (default: PREFERRED_MIDI_PORTS)

    Returns:
        First matching port name, else the first available port, else None
    """
    if preferred_substrings is None:
        preferred_substrings = PREFERRED_MIDI_PORTS

    inputs = mido.get_input_names()

    for substring in preferred_substrings:
        matches = [p for p in inputs if substring in p]
        if matches:
            logger.info(f"Found input matching '{substring}': {matches[0]}", component="MIDI")
            return matches[0]

    if inputs:
        logger.info(f"No preferred input found, using {inputs[0]}", component="MIDI")
        return inputs[0]

    return None


class MidiInput:
    """
    Polling MIDI input.

    Usage:
        midi = MidiInput()
        midi.open()
        for cc, value in midi.poll():
            surface.on_control_event(cc, value)
    """

    def __init__(self, port_name: Optional[str] = None):
        self.port_name = port_name
        self.port = None

    @property
    def is_open(self) -> bool:
        return self.port is not None

    def open(self) -> bool:
        """Open the MIDI input port.

        Returns:
            True if a port was opened, False when running in manual mode
        """
        if self.port is not None:
            return True

        try:
            name = self.port_name or find_preferred_input()
        except (IOError, OSError, ImportError) as e:
            logger.info("MIDI backend unavailable, manual input mode",
                        component="MIDI", details=str(e))
            return False

        if name is None:
            logger.info("No MIDI controller detected, manual input mode", component="MIDI")
            return False

        try:
            self.port = mido.open_input(name)
        except (IOError, OSError) as e:
            logger.info(f"Could not open {name}, manual input mode",
                        component="MIDI", details=str(e))
            return False

        self.port_name = name
        logger.info(f"Opened {name}", component="MIDI")
        return True

    def close(self):
        """Close MIDI port."""
        if self.port is not None:
            self.port.close()
            self.port = None

    def poll(self) -> List[Tuple[int, float]]:
        """Drain pending CC messages.

        Returns:
            List of (controller_id, normalized_value), one per controller id
        """
        if self.port is None:
            return []

        pending: Dict[int, int] = {}
        for msg in self.port.iter_pending():
            if msg.type != 'control_change':
                continue
            pending[msg.control] = msg.value

        return [(cc, value / CC_MAX) for cc, value in pending.items()]
