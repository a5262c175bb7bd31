# -----------------------
# Domain / spatial grid
# -----------------------
DEFAULT_CELL_SIZE = 15.0     # spatial grid cell edge length
DEFAULT_WIDTH = 1000.0
DEFAULT_HEIGHT = 720.0
DEFAULT_DEPTH = 1000.0

# -----------------------
# Integration
# -----------------------
RESTITUTION = 0.8            # velocity kept after bouncing off a wall
DAMPING = 0.999              # per-tick viscous drag
MAX_DT = 0.05                # callers cap dt to this on frame stalls
MAX_FORCE_SPEED = 5.0        # speed cap after apply_force_to_region
MAX_BOND_SPEED = 3.0         # speed cap after bond constraints
BOND_RELAXATION = 0.5        # half-strength correction per tick

# -----------------------
# Disulfide bridging
# -----------------------
DISULFIDE_DISTANCE = 8.0
DISULFIDE_BASE_PROB = 0.20
DISULFIDE_REFERENCE_TEMP = 25.0
DISULFIDE_SALT_FACTOR = 1.2
DISULFIDE_THROTTLE = 0.1
MIN_RATE_FACTOR = 0.1

# -----------------------
# Yeast metabolism
# -----------------------
METABOLISM_DISTANCE = 5.0
METABOLISM_BASE_RATE = 0.01
METABOLISM_REFERENCE_TEMP = 20.0
ETHANOL_CHANCE = 0.3
CO2_JITTER = 3.0
CO2_SPEED = 0.2
ETHANOL_JITTER = 2.0
ETHANOL_SPEED = 0.1
CO2_BUOYANCY = 0.05          # subtracted from vel.y every tick
CO2_WOBBLE = 0.02
SUGAR_SPAWN_BOX = 20.0

# -----------------------
# Classic recipe
# -----------------------
DEFAULT_TEMPERATURE = 25.0   # Celsius
DEFAULT_HYDRATION = 0.72
DEFAULT_SALT = 0.02
DEFAULT_YEAST = 0.20
DEFAULT_AUTOLYSE_TIME = 1800.0
FLOUR_PROTEINS = 200
GLIADIN_FRACTION = 0.4
WATER_MOLECULES = 200
PROTEIN_SPEED = 0.1
WATER_SPEED = 0.2
SALT_SPEED = 0.2
YEAST_SPEED = 0.1
SUGAR_SPEED = 0.1
SALT_DENSITY = 0.00005       # salt particles per unit volume per unit recipe_salt
YEAST_DENSITY = 0.00002

# -----------------------
# Fold command
# -----------------------
FOLD_RADIUS = 200.0
FOLD_FORCE = (0.0, 30.0, 0.0)

# -----------------------
# Metrics
# -----------------------
DEFAULT_METRICS_HISTORY = 1000

# -----------------------
# Misc
# -----------------------
EPSILON = 1e-12
