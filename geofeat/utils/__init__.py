"""
Common utilities and configuration.
"""

# ============================================================================
# Configuration
# ============================================================================
from .config import (
    # Config functions
    default_cfg,
    load_cfg,
    extract_config_params,

    # Numerical constants
    EPS_EIGENENTROPY,
    EPS_DIMENSIONALITY,
    EPS_SURFACE,
    EPS_VOLUME,
    EPS_CURVATURE,
    EPS_NORMALIZE,

    # Feature layout
    NUM_FEATURES,
    FEATURE_NAMES,

    # Config dictionaries
    DEFAULT_CONFIG,
)

# ============================================================================
# Utilities
# ============================================================================
from .utils import (
    ensure_torch,
    as_numpy,
    normalize,
)


__all__ = [
    # Configuration
    "default_cfg",
    "load_cfg",
    "extract_config_params",

    # Constants - Epsilon
    "EPS_EIGENENTROPY",
    "EPS_DIMENSIONALITY",
    "EPS_SURFACE",
    "EPS_VOLUME",
    "EPS_CURVATURE",
    "EPS_NORMALIZE",

    # Constants - Feature layout
    "NUM_FEATURES",
    "FEATURE_NAMES",

    # Config dictionaries
    "DEFAULT_CONFIG",

    # Utilities - Conversion
    "ensure_torch",
    "as_numpy",

    # Utilities - Math
    "normalize",
]
