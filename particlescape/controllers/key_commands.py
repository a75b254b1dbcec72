"""
KeyCommands - keyboard shortcuts for the simulation controller.

Each key maps to a single controller command. Key events from any
presentation layer (Qt widget, terminal) are routed through handle_key().
"""
from __future__ import annotations

from typing import Callable, Dict

from particlescape.utils.logger import logger

# key -> (command name, description)
KEY_COMMANDS: Dict[str, tuple] = {
    's': ('toggle_settings', 'Show/hide settings'),
    'r': ('reset', 'Reset simulation'),
    ' ': ('toggle_pause', 'Pause/resume'),
    'c': ('toggle_pointer_control', 'Pointer camera control'),
    'h': ('toggle_sliders', 'Show/hide control sliders'),
}


def command_for_key(controller, key: str) -> Callable | None:
    """Resolve a key to a bound controller method, or None."""
    entry = KEY_COMMANDS.get(key.lower())
    if entry is None:
        return None
    return getattr(controller, entry[0])


def handle_key(controller, key: str) -> bool:
    """Run the command bound to key.

    Returns:
        True if the key was handled
    """
    if not key:
        return False
    command = command_for_key(controller, key)
    if command is None:
        return False
    logger.debug(f"Key {key!r} -> {command.__name__}", component="CTRL")
    command()
    return True


def describe_keys() -> str:
    """One line per shortcut, for help output."""
    lines = []
    for key, (_, description) in KEY_COMMANDS.items():
        label = 'space' if key == ' ' else key
        lines.append(f"  {label:<6} {description}")
    return "\n".join(lines)
