"""Named constants for every vectorizer heuristic.

Grouped by stage so the auto-threshold, region selection and refinement
heuristics can be audited (and overridden in tests) in one place.
"""

# ============================================================================
# BINARIZATION
# ============================================================================

# Ink ratio window for accepting Otsu's split as-is (0.05 % .. 50 %)
INK_RATIO_MIN = 0.0005
INK_RATIO_MAX = 0.5

# Fallback: threshold = background percentile - offset, pick polarity whose
# ink ratio lands closest to the target
BACKGROUND_PERCENTILE = 0.95
BACKGROUND_OFFSET = 25
TARGET_INK_RATIO = 0.02

LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)

# ============================================================================
# MORPHOLOGY
# ============================================================================

DESPECKLE_MIN_NEIGHBORS = 2    # ink pixel with fewer ink neighbours is dropped
DESPECKLE_FILL_NEIGHBORS = 6   # background pixel with this many is filled

MIN_COMPONENT_FLOOR = 10
MIN_COMPONENT_FRACTION = 0.002

# ============================================================================
# REGION SELECTION
# ============================================================================

CENTRALITY_BASE = 0.4
CENTRALITY_WEIGHT = 0.6
MIDDLE_BAND = (0.2, 0.8)
MIDDLE_BONUS = 1.2
OFF_MIDDLE_PENALTY = 0.7
BORDER_PENALTY = 0.7
DENSITY_SCALE = 8.0
DENSITY_BONUS_RANGE = (0.5, 1.2)

MERGE_GAP_FLOOR = 10
MERGE_GAP_IMAGE_FRACTION = 0.12
MERGE_GAP_SEED_FRACTION = 0.2

CROP_MARGIN_FLOOR = 5
CROP_MARGIN_FRACTION = 0.02

# ============================================================================
# POLYLINES
# ============================================================================

RDP_DEGENERATE_CHORD = 1e-4
RESAMPLE_END_TOLERANCE = 0.01

# ============================================================================
# PIPELINE CONFIG DEFAULTS
# ============================================================================

MAX_SIZE = 1200
SIMPLIFY_EPSILON = 1.5
RESAMPLE_SPACING = 2.0
CLOSE_RADIUS = 0
SMOOTH_ITERATIONS = 0
ROTATION_TOLERANCE_DEG = 0.01

# ============================================================================
# REPLAY
# ============================================================================

REPLAY_DELAY_S = 10.0
REPLAY_SPEED_PX_S = 3000.0
REPLAY_FALLBACK_SPEED_PX_S = 800.0
REPLAY_STEP_PX = 2.0
REPLAY_PADDING = 0.10
REPLAY_MAX_PADDING = 0.45
