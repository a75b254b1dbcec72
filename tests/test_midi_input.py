"""
Tests for the mido-backed MIDI input adapter.

No hardware needed: mido port discovery and opening are patched.
"""

from unittest.mock import MagicMock, patch

import mido

from particlescape.midi import MidiInput, find_preferred_input


def fake_port(messages):
    port = MagicMock()
    port.iter_pending.return_value = iter(messages)
    return port


class TestFindPreferredInput:

    def test_preferred_match(self):
        names = ['Some Synth', 'nanoKONTROL2 MIDI 1']
        with patch('mido.get_input_names', return_value=names):
            assert find_preferred_input(['nanoKONTROL']) == 'nanoKONTROL2 MIDI 1'

    def test_falls_back_to_first(self):
        with patch('mido.get_input_names', return_value=['Other']):
            assert find_preferred_input(['nanoKONTROL']) == 'Other'

    def test_none_when_empty(self):
        with patch('mido.get_input_names', return_value=[]):
            assert find_preferred_input() is None


class TestOpen:

    def test_no_ports_is_manual_mode(self):
        midi = MidiInput()
        with patch('mido.get_input_names', return_value=[]):
            assert midi.open() is False
        assert not midi.is_open
        assert midi.poll() == []

    def test_open_failure_is_manual_mode(self):
        midi = MidiInput('Broken')
        with patch('mido.open_input', side_effect=OSError("busy")):
            assert midi.open() is False
        assert not midi.is_open

    def test_backend_failure_is_manual_mode(self):
        midi = MidiInput()
        with patch('mido.get_input_names', side_effect=ImportError("no rtmidi")):
            assert midi.open() is False

    def test_open_and_close(self):
        port = fake_port([])
        midi = MidiInput('Pad')
        with patch('mido.open_input', return_value=port):
            assert midi.open() is True
        assert midi.is_open
        midi.close()
        port.close.assert_called_once()
        assert not midi.is_open


class TestPoll:

    def test_filters_and_normalizes(self):
        port = fake_port([
            mido.Message('note_on', note=60, velocity=100),
            mido.Message('control_change', control=34, value=127),
            mido.Message('control_change', control=35, value=0),
        ])
        midi = MidiInput('Pad')
        with patch('mido.open_input', return_value=port):
            midi.open()
        assert sorted(midi.poll()) == [(34, 1.0), (35, 0.0)]

    def test_coalesces_last_value_wins(self):
        port = fake_port([
            mido.Message('control_change', control=40, value=10),
            mido.Message('control_change', control=40, value=20),
            mido.Message('control_change', control=40, value=127),
        ])
        midi = MidiInput('Pad')
        with patch('mido.open_input', return_value=port):
            midi.open()
        assert midi.poll() == [(40, 1.0)]
