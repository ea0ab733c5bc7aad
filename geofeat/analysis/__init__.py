"""
Neighborhood analysis.

Includes:
- Local PCA and eigenentropy
- Eigenentropy-driven neighborhood size search
- Geometric descriptors from eigenvalues/eigenvectors
"""

# ============================================================================
# PCA
# ============================================================================
from .pca import (
    PCAResult,
    compute_centroid,
    compute_covariance,
    sort_eigenpairs,
    orient_eigenvectors,
    compute_eigenentropy,
    local_pca,
)

# ============================================================================
# Search (Optimal Neighborhood Size)
# ============================================================================
from .search import (
    initial_neighborhood_size,
    candidate_sizes,
    search_optimal_neighborhoods,
    search_optimal_neighborhood,
)

# ============================================================================
# Features
# ============================================================================
from .features import (
    is_degenerate,
    compute_dimensionality,
    compute_shape_descriptors,
    compute_verticality,
    derive_features,
)


__all__ = [
    # PCA
    "PCAResult",
    "compute_centroid",
    "compute_covariance",
    "sort_eigenpairs",
    "orient_eigenvectors",
    "compute_eigenentropy",
    "local_pca",

    # Search
    "initial_neighborhood_size",
    "candidate_sizes",
    "search_optimal_neighborhoods",
    "search_optimal_neighborhood",

    # Features
    "is_degenerate",
    "compute_dimensionality",
    "compute_shape_descriptors",
    "compute_verticality",
    "derive_features",
]
