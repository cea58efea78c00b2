# Simulation Configuration

# Road Geometry
MAIN_ROAD_LENGTH = 1400.0
RAMP_LENGTH = 500.0
MERGE_POINT = 500.0
EXIT_POINT = 1300.0
MAIN_LANES = 2

# Timing
DT = 0.03                # Fixed simulation step (seconds)
TICK_RATE_HZ = 30.0      # Service loop rate

# Vehicle Set
DEFAULT_VEHICLE_COUNT = 80
MIN_VEHICLE_COUNT = 50
MAX_VEHICLE_COUNT = 120
MAIN_FRACTION = 0.65
MAIN_CAR_FRACTION = 0.65
RAMP_CAR_FRACTION = 0.75
MAIN_SPACING = 30.0
RAMP_SPACING = 25.0
MAIN_INITIAL_SPEED_MIN = 0.4   # Fraction of max speed
MAIN_INITIAL_SPEED_SPREAD = 0.2

# Signals (band end, stop line)
RAMP_ENTRY_BAND_END = 150.0
RAMP_ENTRY_STOP_LINE = 140.0
RAMP_MIDDLE_BAND_END = 300.0
RAMP_MIDDLE_STOP_LINE = 290.0
MAIN_MERGE_BAND_OFFSET = 100.0    # Band ends at MERGE_POINT + offset
MAIN_MERGE_STOP_OFFSET = 50.0     # Stop line at MERGE_POINT - offset

SIGNAL_BRAKE_ZONE = 80.0
SIGNAL_HARD_BRAKE_ZONE = 5.0
SIGNAL_BRAKE_FACTOR = 1.5
SIGNAL_HARD_BRAKE_FACTOR = 3.0

# Car Following
STOPPED_SPEED = 0.5          # Below this a vehicle counts as stopped
MIN_GAP_DENOMINATOR = 0.1
BRAKE_FRICTION_FACTOR = 0.5
SPEED_CAP_FRICTION_FACTOR = 2.0
FREE_ROAD_EXPONENT = 4

# Merging
MERGE_WINDOW = 80.0          # Merge allowed from MERGE_POINT - window
MERGE_TARGET_LANE = 1
MERGE_MIN_GAP = 25.0
MERGE_STIFF_GAP = 35.0
MERGE_STUCK_TICKS = 20
OPEN_GAP = 1000.0            # Gap reported when no neighbour exists

# Congestion
SLOW_SPEED_FRACTION = 0.3
CONGESTED_LEVEL = 75.0
MODERATE_LEVEL = 50.0
