"""Control surface and MIDI input components."""
from .control_surface import ControlSurface, ControlChannel, BindingError
from .cc_learn_manager import ControlLearnManager
from .midi_input import MidiInput, find_preferred_input

__all__ = [
    'ControlSurface',
    'ControlChannel',
    'BindingError',
    'ControlLearnManager',
    'MidiInput',
    'find_preferred_input',
]
