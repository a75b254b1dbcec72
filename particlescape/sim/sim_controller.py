"""
Simulation Controller - frame loop, commands and signals

Connects:
- SimulationEngine (deterministic tick)
- ControlSurface + ControlLearnManager (parameter input, rebinding)
- MidiInput (optional hardware, polled once per frame)

Runs the simulation at SIM_HZ via QTimer. Presentation layers subscribe
to the signals below and never touch simulation state directly.
"""

from typing import Optional

from PyQt5.QtCore import QObject, QTimer, pyqtSignal

from particlescape.config import SIM_HZ, STATS_LOG_INTERVAL
from particlescape.midi import ControlLearnManager, MidiInput
from particlescape.utils.logger import logger
from .prng import generate_random_seed
from .sim_engine import SimulationEngine
from .sim_state import RunState, SimulationSettings


class SimulationController(QObject):
    """
    Controller for the particle/terrain scene.

    Owns the engine and the frame timer. Commands map one-to-one onto the
    keyboard surface (see controllers.key_commands).
    """

    # Signals for presentation layers
    frame_ready = pyqtSignal(object)          # FrameSnapshot
    state_changed = pyqtSignal(str)           # RunState value
    view_toggled = pyqtSignal(str, bool)      # view name, visible
    pointer_control_changed = pyqtSignal(bool)
    seed_changed = pyqtSignal(int)

    def __init__(self, settings: Optional[SimulationSettings] = None,
                 midi_input: Optional[MidiInput] = None, parent=None):
        super().__init__(parent)

        self._engine = SimulationEngine(settings)
        self._learn = ControlLearnManager(self._engine.surface, self)
        self._midi = midi_input

        # Presentation-only flags
        self._views = {'settings': False, 'sliders': True}

        self._timer = QTimer(self)
        self._timer.setInterval(1000 // SIM_HZ)
        self._timer.timeout.connect(self._tick)

    @property
    def engine(self) -> SimulationEngine:
        return self._engine

    @property
    def surface(self):
        return self._engine.surface

    @property
    def learn_manager(self) -> ControlLearnManager:
        return self._learn

    @property
    def running(self) -> bool:
        return self._timer.isActive()

    # === Lifecycle ===

    def start(self) -> None:
        """Initialize the scene and start the frame timer."""
        if self._midi is not None:
            self._midi.open()
        self._engine.initialize()
        self.seed_changed.emit(self._engine.settings.seed)
        self._timer.start()
        self.state_changed.emit(self._engine.state.run_state.value)

    def stop(self) -> None:
        self._timer.stop()
        if self._midi is not None:
            self._midi.close()

    def _tick(self) -> None:
        """Frame tick (called at SIM_HZ)."""
        self.poll_input()

        if not self._engine.tick():
            return

        state = self._engine.state
        if state.tick % STATS_LOG_INTERVAL == 0:
            logger.sim(f"Tick {state.tick}: {len(state.particles)} particles, "
                       f"{len(state.connections)} links")

        self.frame_ready.emit(self._engine.snapshot())

    def poll_input(self) -> int:
        """Route pending hardware events. Returns number handled."""
        if self._midi is None:
            return 0
        events = self._midi.poll()
        for controller_id, value in events:
            self.on_control_event(controller_id, value)
        return len(events)

    def on_control_event(self, controller_id: int, value: float) -> None:
        """Controller event entry point (hardware or bridged)."""
        if self._learn.on_cc_received(controller_id, value):
            return
        self._engine.surface.on_control_event(controller_id, value)

    def on_slider(self, channel: int, value: float) -> None:
        """Manual slider entry point."""
        self._engine.surface.on_manual_input(channel, value)

    # === Commands ===

    def reset(self) -> None:
        """Reinitialize terrain and particles and return to running."""
        self._engine.reset()
        self.seed_changed.emit(self._engine.settings.seed)
        self.state_changed.emit(RunState.RUNNING.value)
        logger.info("Simulation reset", component="CTRL")

    def reseed(self) -> None:
        """Pick a new random seed and reset."""
        self._engine.settings.seed = generate_random_seed()
        self._engine.initialize(self._engine.settings.seed)
        self.seed_changed.emit(self._engine.settings.seed)
        self.state_changed.emit(self._engine.state.run_state.value)

    def toggle_pause(self) -> RunState:
        run_state = self._engine.toggle_pause()
        logger.info(f"Simulation {run_state.value}", component="CTRL")
        self.state_changed.emit(run_state.value)
        return run_state

    def toggle_pointer_control(self) -> bool:
        rig = self._engine.camera_rig
        enabled = not rig.state.pointer_control_enabled
        rig.set_pointer_control(enabled)
        logger.info(f"Pointer camera control {'on' if enabled else 'off'}", component="CTRL")
        self.pointer_control_changed.emit(enabled)
        return enabled

    def toggle_settings(self) -> bool:
        return self._toggle_view('settings')

    def toggle_sliders(self) -> bool:
        return self._toggle_view('sliders')

    def is_view_visible(self, name: str) -> bool:
        return self._views[name]

    def _toggle_view(self, name: str) -> bool:
        visible = not self._views[name]
        self._views[name] = visible
        self.view_toggled.emit(name, visible)
        return visible

    def pointer_drag(self, dx: float) -> bool:
        return self._engine.camera_rig.pointer_drag(dx)

    def end_drag(self) -> None:
        self._engine.camera_rig.end_drag()

    def scroll(self, delta: float) -> float:
        return self._engine.camera_rig.scroll(delta)
