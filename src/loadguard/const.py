"""Constants for loadguard."""

MINUTES_PER_DAY = 24 * 60

# Capacity simulation
DEFAULT_SIMULATION_STEP_MIN = 5
DEFAULT_SEARCH_STEP_MIN = 15

# Safe share of nameplate capacity
DEFAULT_CAPACITY_DERATING = 0.8

# Priority classification
CENTROID_RESOLUTION = 1000
LOW_PRIORITY_MAX = 0.4
MEDIUM_PRIORITY_MAX = 0.7

# Quota bookkeeping
QUOTA_DECIMALS = 2

# Minutes offered to the operator when pausing devices for an immediate-on request
PAUSE_DURATION_OPTIONS_MIN = (15, 30, 45, 60)
