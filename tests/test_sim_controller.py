"""
Tests for SimulationController and keyboard commands.

The frame timer is never left running: tests drive _tick() directly.
"""

import pytest

from particlescape.controllers import KEY_COMMANDS, handle_key, command_for_key, describe_keys
from particlescape.sim import SimulationController, SimulationSettings, RunState


class FakeMidi:
    """Stands in for MidiInput: one batch of events, then nothing."""

    def __init__(self, events):
        self.events = list(events)
        self.opened = False
        self.closed = False

    def open(self):
        self.opened = True
        return True

    def close(self):
        self.closed = True

    def poll(self):
        events, self.events = self.events, []
        return events


@pytest.fixture
def controller():
    ctrl = SimulationController(SimulationSettings(seed=21))
    ctrl.engine.initialize()
    return ctrl


class TestLifecycle:

    def test_start_and_stop(self):
        midi = FakeMidi([])
        ctrl = SimulationController(SimulationSettings(seed=3), midi_input=midi)
        seeds = []
        ctrl.seed_changed.connect(seeds.append)
        ctrl.start()
        assert ctrl.running
        assert midi.opened
        assert seeds == [3]
        ctrl.stop()
        assert not ctrl.running
        assert midi.closed

    def test_tick_emits_frame(self, controller):
        frames = []
        controller.frame_ready.connect(frames.append)
        controller._tick()
        assert len(frames) == 1
        assert frames[0].tick == 1

    def test_paused_tick_emits_nothing(self, controller):
        frames = []
        controller.frame_ready.connect(frames.append)
        controller.toggle_pause()
        controller._tick()
        assert frames == []


class TestInputRouting:

    def test_midi_events_reach_surface(self):
        midi = FakeMidi([(34, 0.9), (99, 0.1)])
        ctrl = SimulationController(SimulationSettings(seed=3), midi_input=midi)
        ctrl.engine.initialize()
        assert ctrl.poll_input() == 2
        assert ctrl.surface.channel(0).raw_value == 0.9

    def test_no_midi(self, controller):
        assert controller.poll_input() == 0

    def test_learn_consumes_event(self, controller):
        controller.learn_manager.start_learn(2)
        raw = controller.surface.channel(2).raw_value
        controller.on_control_event(100, 1.0)
        assert controller.surface.channel(2).cc_binding == 100
        assert controller.surface.channel(2).raw_value == raw

        controller.on_control_event(100, 1.0)
        assert controller.surface.channel(2).raw_value == 1.0

    def test_slider(self, controller):
        controller.on_slider(5, 0.25)
        assert controller.surface.channel(5).raw_value == 0.25


class TestCommands:

    def test_toggle_pause_signal(self, controller):
        states = []
        controller.state_changed.connect(states.append)
        assert controller.toggle_pause() == RunState.PAUSED
        assert controller.toggle_pause() == RunState.RUNNING
        assert states == ['paused', 'running']

    def test_reset_resumes(self, controller):
        controller.toggle_pause()
        controller.reset()
        assert not controller.engine.state.paused

    def test_reseed_changes_seed(self, controller):
        seeds = []
        controller.seed_changed.connect(seeds.append)
        controller.reseed()
        assert len(seeds) == 1
        assert controller.engine.settings.seed == seeds[0]

    def test_views(self, controller):
        toggled = []
        controller.view_toggled.connect(lambda name, visible: toggled.append((name, visible)))
        assert controller.toggle_settings() is True
        assert controller.toggle_sliders() is False
        assert controller.is_view_visible('settings')
        assert toggled == [('settings', True), ('sliders', False)]

    def test_pointer_control(self, controller):
        assert controller.pointer_drag(20) is False
        assert controller.toggle_pointer_control() is True
        assert controller.pointer_drag(20) is True
        controller.end_drag()
        assert controller.toggle_pointer_control() is False

    def test_scroll(self, controller):
        assert controller.scroll(-1e6) == 300.0


class TestKeyCommands:

    def test_every_key_resolves(self, controller):
        for key in KEY_COMMANDS:
            assert command_for_key(controller, key) is not None

    def test_space_pauses(self, controller):
        assert handle_key(controller, ' ')
        assert controller.engine.state.paused

    def test_uppercase(self, controller):
        assert handle_key(controller, 'S')
        assert controller.is_view_visible('settings')

    def test_unknown_key(self, controller):
        assert handle_key(controller, 'q') is False
        assert handle_key(controller, '') is False

    def test_reset_key(self, controller):
        controller.engine.tick()
        handle_key(controller, 'r')
        assert controller.engine.state.tick == 0

    def test_describe(self):
        text = describe_keys()
        assert 'space' in text
        assert len(text.splitlines()) == len(KEY_COMMANDS)
