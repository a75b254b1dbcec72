"""Input controllers for the simulation."""

from .key_commands import KEY_COMMANDS, command_for_key, handle_key, describe_keys

__all__ = ['KEY_COMMANDS', 'command_for_key', 'handle_key', 'describe_keys']
