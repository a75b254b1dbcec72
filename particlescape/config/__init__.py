"""
Central Configuration
All constants, mappings, and settings in one place
"""

import math

# === CONTROL CHANNELS ===
# Single source of truth for the 14 control channels.
# Order determines channel index and UI slider order.
CONTROL_PARAMS = [
    # Discrete channels (0-7): passed through unsmoothed
    {
        'key': 'size',
        'label': 'SIZE',
        'tooltip': 'Particle size scale',
        'default': 0.5,
        'min': 0.5,
        'max': 2.0,
        'unit': 'x',
    },
    {
        'key': 'speed',
        'label': 'SPD',
        'tooltip': 'Integration speed',
        'default': 0.5,
        'min': 0.1,
        'max': 2.0,
        'unit': 'x',
    },
    {
        'key': 'gravity',
        'label': 'GRAV',
        'tooltip': 'Central gravity',
        'default': 0.5,
        'min': 0.01,
        'max': 0.2,
        'unit': '',
    },
    {
        'key': 'turbulence',
        'label': 'TURB',
        'tooltip': 'Velocity jitter',
        'default': 0.5,
        'min': 0.01,
        'max': 0.3,
        'unit': '',
    },
    {
        'key': 'randomness',
        'label': 'RAND',
        'tooltip': 'Random impulses and noise drift',
        'default': 0.5,
        'min': 0.01,
        'max': 0.2,
        'unit': '',
    },
    {
        'key': 'particle_density',
        'label': 'DENS',
        'tooltip': 'Share of the particle budget in use',
        'default': 0.5,
        'min': 0.2,
        'max': 1.0,
        'unit': '',
    },
    {
        'key': 'connection_density',
        'label': 'CONN',
        'tooltip': 'Neighbour links per particle',
        'default': 0.5,
        'min': 0.0,
        'max': 1.0,
        'unit': '',
    },
    {
        'key': 'terrain_height',
        'label': 'HGT',
        'tooltip': 'Terrain relief',
        'default': 0.5,
        'min': 20.0,
        'max': 200.0,
        'unit': 'u',
    },
    # Gesture channels (8-13): adaptive smoothing
    {
        'key': 'tilt_front',
        'label': 'TF',
        'tooltip': 'Tilt front',
        'default': 0.0,
        'min': 0.0,
        'max': 1.0,
        'unit': '',
    },
    {
        'key': 'tilt_back',
        'label': 'TB',
        'tooltip': 'Tilt back',
        'default': 0.0,
        'min': 0.0,
        'max': 1.0,
        'unit': '',
    },
    {
        'key': 'lift_left',
        'label': 'LL',
        'tooltip': 'Lift left',
        'default': 0.0,
        'min': 0.0,
        'max': 1.0,
        'unit': '',
    },
    {
        'key': 'lift_right',
        'label': 'LR',
        'tooltip': 'Lift right',
        'default': 0.0,
        'min': 0.0,
        'max': 1.0,
        'unit': '',
    },
    {
        'key': 'rotate_left',
        'label': 'RL',
        'tooltip': 'Rotate left',
        'default': 0.0,
        'min': 0.0,
        'max': 1.0,
        'unit': '',
    },
    {
        'key': 'rotate_right',
        'label': 'RR',
        'tooltip': 'Rotate right',
        'default': 0.0,
        'min': 0.0,
        'max': 1.0,
        'unit': '',
    },
]

# Build lookup dicts for quick access
CONTROL_PARAMS_BY_KEY = {p['key']: p for p in CONTROL_PARAMS}
CHANNEL_INDEX = {p['key']: i for i, p in enumerate(CONTROL_PARAMS)}

NUM_CHANNELS = len(CONTROL_PARAMS)  # 14
DISCRETE_CHANNELS = range(0, 8)
GESTURE_CHANNELS = range(8, NUM_CHANNELS)

# === CONTROLLER BINDINGS ===
CC_MIN = 0
CC_MAX = 127
DEFAULT_CC_BASE = 34  # Channels 0-13 <-> CC 34-47
DEFAULT_CC_BINDINGS = [DEFAULT_CC_BASE + i for i in range(NUM_CHANNELS)]

# Port name fragments tried in order when auto-selecting a MIDI input
PREFERRED_MIDI_PORTS = ["nanoKONTROL", "MIDI Mix", "Launch Control", "X-TOUCH"]


def map_value(normalized, param):
    """
    Map normalized 0-1 control value to real parameter value.
    NaN reads as 0; the result never leaves [min, max].
    """
    if math.isnan(normalized):
        normalized = 0.0
    normalized = max(0.0, min(1.0, normalized))

    min_val = param.get('min', 0.0)
    max_val = param.get('max', 1.0)
    result = min_val + (max_val - min_val) * normalized
    return max(min_val, min(max_val, result))


def format_value(value, param):
    """
    Format a real value with its unit for display.
    """
    unit = param.get('unit', '')

    if unit == 'x':
        return f"{value:.2f}x"
    elif unit == 'u':
        return f"{value:.0f}"
    return f"{value:.2f}"


# === SIMULATION ===
SIM_HZ = 60

# Gesture smoothing
GESTURE_SMOOTHING = 0.15

# Camera gesture mapping
MAX_TILT = math.pi / 4
YAW_STEP = math.radians(15)
YAW_DEADZONE = 0.5
GESTURE_FORCE_SCALE = 0.05  # gravity/vortex strength per unit of gesture pair

# Particles
DEFAULT_NUM_PARTICLES = 100
DEFAULT_MIN_PARTICLES = 10
MIN_DENSITY = 0.2
MAX_DENSITY = 1.0
BASE_PARTICLE_SIZE = (4.0, 12.0)   # base size drawn uniformly from this range
DAMPING = 0.98
ELASTIC_COEFF = 0.01
REPEL_DISTANCE = 0.8               # x (sizeA + sizeB)
REPEL_IMPULSE = 0.05
VERTICAL_JITTER_WEIGHT = 1.5
IMPULSE_PROBABILITY = 0.5          # x randomness
WALL_RESTITUTION = -0.8
CEILING_FACTOR = 6.0               # x terrain height
BOUNCINESS = 0.7
NORMAL_IMPULSE = 0.5
SURFACE_CLEARANCE = 0.8            # x particle size
HIT_DEBOUNCE_TICKS = 10
DEFAULT_REMOVAL_HITS = 3
BEZIER_CHANCE = 0.05
BEZIER_BLEND = 0.1
BEZIER_STEP = 0.01
NOISE_TIME_STEP = 0.01

# Connections
MAX_NEIGHBOURS = 5
REST_LENGTH_FACTOR = 1.5
CONNECTION_STRENGTH = 0.1

# Terrain
DEFAULT_TERRAIN_RESOLUTION = 40
DEFAULT_TERRAIN_SIZE = 1000.0
TERRAIN_HYSTERESIS = 5.0
TERRAIN_NOISE_SCALE = 0.003        # world units -> noise coordinates
# (frequency multiplier, weight) per octave; ridge term handled separately
TERRAIN_OCTAVES = [(1.0, 0.5), (3.0, 0.25), (8.0, 0.1)]
TERRAIN_RIDGE_WEIGHT = 0.15
# Normalized height thresholds between colour bands
TERRAIN_BAND_THRESHOLDS = [0.2, 0.35, 0.55, 0.75]

# Camera
ZOOM_MIN = 300.0
ZOOM_MAX = 2000.0
DEFAULT_ZOOM = 800.0
AUTO_ROTATE_RATE = 0.002           # rad per tick
YAW_LAG = 0.1
DRAG_SENSITIVITY = 0.01            # rad per pointer pixel
SCROLL_SENSITIVITY = 0.5           # zoom units per wheel unit

# Logging cadence
STATS_LOG_INTERVAL = SIM_HZ        # ticks between SIM stats lines
