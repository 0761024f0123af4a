"""
Global Configuration for EGA Analysis Framework
================================================

Central location for default parameters used across all analysis steps.
Override these per call (keyword arguments) or per run (walkthrough params).
"""

# =============================================================================
# DATA CONFIGURATION
# =============================================================================
DEFAULT_DATA_FILE = None  # None = bundled Holzinger-Swineford (1939) sample

# Nine cognitive ability tests from the Holzinger-Swineford study
DEFAULT_ITEMS = ['x1', 'x2', 'x3', 'x4', 'x5', 'x6', 'x7', 'x8', 'x9']

ITEM_LABELS = {
    'x1': 'Visual perception',
    'x2': 'Cubes',
    'x3': 'Lozenges',
    'x4': 'Paragraph comprehension',
    'x5': 'Sentence completion',
    'x6': 'Word meaning',
    'x7': 'Speeded addition',
    'x8': 'Speeded counting of dots',
    'x9': 'Speeded discrimination of capitals',
}

# Three-factor structure reported in the literature
THEORETICAL_DIMENSIONS = {
    'visual': ['x1', 'x2', 'x3'],
    'textual': ['x4', 'x5', 'x6'],
    'speed': ['x7', 'x8', 'x9'],
}

# =============================================================================
# CORRELATION CONFIGURATION
# =============================================================================
DEFAULT_CORR_METHOD = 'pearson'
CORR_METHODS = ('pearson', 'spearman', 'kendall')

# =============================================================================
# NETWORK (EBICglasso) CONFIGURATION
# =============================================================================
GLASSO_GAMMA = 0.5              # EBIC hyperparameter
GLASSO_NLAMBDA = 100            # Lambda values along the path
GLASSO_LAMBDA_MIN_RATIO = 0.1   # lambda_min = ratio * lambda_max
GLASSO_MAX_ITER = 500
GLASSO_TOL = 1e-4
EDGE_TOLERANCE = 1e-10          # |precision| below this counts as no edge

# =============================================================================
# COMMUNITY DETECTION CONFIGURATION
# =============================================================================
WALKTRAP_STEPS = 4

# =============================================================================
# EGA CONFIGURATION
# =============================================================================
DEFAULT_EGA_MODEL = 'glasso'
EGA_MODELS = ('glasso', 'tmfg')

# Unidimensionality check: orthogonal block appended to the correlation matrix
UNIDIM_EXPAND_VARS = 4
UNIDIM_EXPAND_CORR = 0.5

# =============================================================================
# DIMENSIONALITY CONFIGURATION
# =============================================================================
PA_REPS = 100          # Parallel analysis simulation repetitions
PA_QUANTILE = 0.95     # Reference eigenvalue percentile
KAISER_THRESHOLD = 1.0
RANDOM_STATE = 42

# =============================================================================
# EFA CONFIGURATION
# =============================================================================
DEFAULT_FA_METHOD = 'ml'
DEFAULT_ROTATION = 'varimax'
LOADING_THRESHOLD = 0.3       # Threshold for a salient factor loading
COMMUNALITY_THRESHOLD = 0.4

# =============================================================================
# OUTPUT CONFIGURATION
# =============================================================================
DEFAULT_OUTPUT_BASE = 'outputs'
DEFAULT_DPI = 150

# =============================================================================
# KMO INTERPRETATION LABELS
# =============================================================================
KMO_THRESHOLDS = {
    0.9: "Marvelous",
    0.8: "Meritorious",
    0.7: "Middling",
    0.6: "Mediocre",
    0.5: "Miserable",
    0.0: "Unacceptable",
}


def get_kmo_label(kmo_value: float) -> str:
    """Return human-readable KMO interpretation."""
    for threshold, label in sorted(KMO_THRESHOLDS.items(), reverse=True):
        if kmo_value >= threshold:
            return label
    return "Unacceptable"


def get_item_label(item: str) -> str:
    """Return the test name for an item, falling back to the column name."""
    return ITEM_LABELS.get(item, item)
