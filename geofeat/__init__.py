"""
geofeat - Local Geometric Features for Point Clouds

Computes, for every point of a 3D point cloud, 11 descriptors of its local
neighborhood (linearity, planarity, scattering, verticality, normal,
length, surface, volume, curvature) from a PCA of its neighbors, with an
optional eigenentropy-driven choice of the neighborhood size.

Neighbors are an input: a flat array of neighbor indices and CSR offsets,
as produced by any k-NN or radius search.

Components:
    - Geometry: Point cloud / CSR neighbor index views, neighborhood gathering
    - Analysis: Local PCA, neighborhood size search, feature derivation
    - Core: Parallel driver and entry points
    - Utils: Configuration and helper functions

Example:
    >>> from geofeat import compute_geometric_features
    >>>
    >>> # xyz: (N, 3) float32, nn: (M,) neighbor ids, nn_ptr: (N + 1,) offsets
    >>> features = compute_geometric_features(xyz, nn, nn_ptr, k_min=5, k_step=1, k_min_search=10)
    >>> features.shape
    (N, 11)
"""

__version__ = "1.0.0"

# ============================================================================
# Core
# ============================================================================
from .core import (
    compute_geometric_features,
    extract_geometric_features,
    partition_points,
    ProgressCounter,
)

# ============================================================================
# Geometry
# ============================================================================
from .geometry import (
    PointCloud,
    NeighborIndex,
    gather_neighborhood,
    gather_neighborhoods,
)

# ============================================================================
# Analysis
# ============================================================================
from .analysis import (
    # PCA
    PCAResult,
    local_pca,
    compute_eigenentropy,

    # Search
    candidate_sizes,
    search_optimal_neighborhood,
    search_optimal_neighborhoods,

    # Features
    derive_features,
)

# ============================================================================
# Utils
# ============================================================================
from .utils import (
    # Configuration
    default_cfg,
    load_cfg,
    extract_config_params,

    # Constants
    NUM_FEATURES,
    FEATURE_NAMES,
    DEFAULT_CONFIG,
)


__all__ = [
    "__version__",

    # ========================================================================
    # Core
    # ========================================================================
    "compute_geometric_features",
    "extract_geometric_features",
    "partition_points",
    "ProgressCounter",

    # ========================================================================
    # Geometry
    # ========================================================================
    "PointCloud",
    "NeighborIndex",
    "gather_neighborhood",
    "gather_neighborhoods",

    # ========================================================================
    # Analysis
    # ========================================================================
    "PCAResult",
    "local_pca",
    "compute_eigenentropy",
    "candidate_sizes",
    "search_optimal_neighborhood",
    "search_optimal_neighborhoods",
    "derive_features",

    # ========================================================================
    # Utils
    # ========================================================================
    "default_cfg",
    "load_cfg",
    "extract_config_params",
    "NUM_FEATURES",
    "FEATURE_NAMES",
    "DEFAULT_CONFIG",
]
