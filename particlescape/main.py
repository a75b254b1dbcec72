"""
Main entry point for Particlescape.

Runs the simulation loop on a Qt event loop and feeds frames to a
renderer. Without a drawing front end attached, frames go to the
LoggingRenderer.

Examples:
    particlescape --seed 7 --frames 600
    particlescape --preset swarm --no-midi
    particlescape --boundary wrap --collision despawn
"""

import argparse
import sys

from PyQt5.QtCore import QCoreApplication

from particlescape.controllers import describe_keys
from particlescape.midi import MidiInput
from particlescape.render import LoggingRenderer
from particlescape.sim import (
    SimulationController, SimulationSettings, BoundaryPolicy,
    CollisionPolicy, ConnectionRounding,
)
from particlescape.sim.sim_state import VARIANT_PRESETS
from particlescape.utils.logger import logger, LOG_LEVEL_NAMES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Controller-driven particle and terrain simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__ + "\nKeys:\n" + describe_keys(),
    )

    # Simulation
    parser.add_argument('--seed', type=int,
                        help='Random seed (default: random each reset)')
    parser.add_argument('--preset', choices=list(VARIANT_PRESETS), default='custom',
                        help='Variant preset applied before other overrides')
    parser.add_argument('--boundary', choices=[p.value for p in BoundaryPolicy],
                        help='World edge behaviour')
    parser.add_argument('--collision', choices=[p.value for p in CollisionPolicy],
                        help='Particle contact behaviour')
    parser.add_argument('--connections', choices=[p.value for p in ConnectionRounding],
                        help='Neighbour count rounding')
    parser.add_argument('--particles', type=int,
                        help='Particle budget at full density')
    parser.add_argument('--frames', type=int, default=0,
                        help='Quit after this many frames (default: run forever)')

    # MIDI
    parser.add_argument('--midi-port', type=str,
                        help='MIDI input port name')
    parser.add_argument('--no-midi', action='store_true',
                        help='Manual input only, do not open a MIDI port')

    parser.add_argument('--log-level', choices=list(LOG_LEVEL_NAMES), default='info',
                        help='Console log level (default: info)')
    parser.add_argument('--log-file', type=str,
                        help='Also write the full debug log to this file')
    return parser


def settings_from_args(args) -> SimulationSettings:
    """Preset first, then explicit flags."""
    settings = SimulationSettings()
    settings.apply_variant_preset(args.preset)

    overrides = settings.to_dict()
    if args.seed is not None:
        overrides['seed'] = args.seed
        overrides['seed_locked'] = True
    else:
        overrides['seed_locked'] = False
    if args.boundary:
        overrides['boundary_policy'] = args.boundary
    if args.collision:
        overrides['collision_policy'] = args.collision
    if args.connections:
        overrides['connection_rounding'] = args.connections
    if args.particles is not None:
        overrides['num_particles'] = args.particles
        overrides['min_particles'] = min(overrides['min_particles'], args.particles)
    return SimulationSettings.from_dict(overrides)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logger.set_level(LOG_LEVEL_NAMES[args.log_level])
    if args.log_file:
        logger.enable_file_logging(args.log_file)

    try:
        settings = settings_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    logger.info("=" * 40, component="APP")
    logger.info("Particlescape starting", component="APP")
    logger.info(f"Settings: {settings.to_dict()}", component="APP")
    logger.info("=" * 40, component="APP")

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    midi = None if args.no_midi else MidiInput(args.midi_port)
    controller = SimulationController(settings, midi_input=midi)
    renderer = LoggingRenderer()

    def on_frame(snapshot):
        renderer.render(snapshot)
        if args.frames and renderer.frames >= args.frames:
            controller.stop()
            app.quit()

    controller.frame_ready.connect(on_frame)
    controller.start()

    code = app.exec_()
    controller.stop()
    logger.info(f"Stopped after {renderer.frames} frames", component="APP")
    logger.disable_file_logging()
    return code


if __name__ == "__main__":
    sys.exit(main())
