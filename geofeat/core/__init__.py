"""
Core feature extraction.

Includes:
- Static partitioning of points across worker threads
- Approximate progress reporting
- Main entry points (array-based and config-driven)
"""

from .driver import (
    # Main entry points
    compute_geometric_features,
    extract_geometric_features,

    # Helpers
    partition_points,
    resolve_dtype,
    ProgressCounter,
)

__all__ = [
    "compute_geometric_features",
    "extract_geometric_features",
    "partition_points",
    "resolve_dtype",
    "ProgressCounter",
]
