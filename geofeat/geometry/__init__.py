"""
Point cloud and neighbor index views.
"""

from .neighborhood import (
    PointCloud,
    NeighborIndex,
    gather_neighborhood,
    gather_neighborhoods,
)

__all__ = [
    "PointCloud",
    "NeighborIndex",
    "gather_neighborhood",
    "gather_neighborhoods",
]
