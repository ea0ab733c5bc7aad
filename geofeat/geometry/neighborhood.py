"""Point cloud and CSR neighbor index views, and neighborhood gathering."""

import numpy as np
import torch
from typing import Optional, Union

from ..utils.utils import ensure_torch


def _as_index_tensor(x, name: str) -> torch.Tensor:
    """Convert an integer array-like (uint32 included) to a 1-D int64 tensor."""
    if torch.is_tensor(x):
        if x.is_floating_point() or x.is_complex():
            raise TypeError(f"{name} must hold integers, got {x.dtype}")
        t = x.detach().to(device='cpu', dtype=torch.int64)
    else:
        arr = np.asarray(x)
        if arr.dtype.kind not in "iu":
            raise TypeError(f"{name} must hold integers, got {arr.dtype}")
        t = torch.from_numpy(arr.astype(np.int64))
    return t.reshape(-1).contiguous()


class PointCloud:
    """
    Read-only (N, 3) view over point coordinates.

    Accepts a flat buffer of 3N interleaved x, y, z values or an (N, 3)
    array, as numpy or torch.
    """

    def __init__(self, xyz, dtype: torch.dtype = torch.float32, device: Union[str, torch.device] = 'cpu'):
        xyz = ensure_torch(xyz, device=device, dtype=dtype)

        if xyz.dim() == 1:
            if xyz.numel() % 3 != 0:
                raise ValueError(f"Flat xyz buffer length must be a multiple of 3, got {xyz.numel()}")
            xyz = xyz.reshape(-1, 3)
        elif xyz.dim() != 2 or xyz.shape[1] != 3:
            raise ValueError(f"xyz must have shape (N, 3) or (3N,), got {tuple(xyz.shape)}")

        self.xyz = xyz.contiguous()

    @property
    def num_points(self) -> int:
        return self.xyz.shape[0]

    @property
    def dtype(self) -> torch.dtype:
        return self.xyz.dtype

    def __len__(self):
        return self.num_points

    def __repr__(self):
        return f"PointCloud(num_points={self.num_points}, dtype={self.dtype})"


class NeighborIndex:
    """
    Compressed (CSR) adjacency: `offsets[i]:offsets[i+1]` delimits the
    neighbors of point i inside the flat `neighbors` array.

    Layout invariants are checked once here so that gathering code can
    index without re-deriving them.
    """

    def __init__(self, neighbors, offsets, num_points: Optional[int] = None):
        neighbors = _as_index_tensor(neighbors, "neighbors")
        offsets = _as_index_tensor(offsets, "offsets")

        if offsets.numel() < 1:
            raise ValueError("offsets must hold at least one entry (N + 1 values)")

        if offsets[0] < 0:
            raise ValueError(f"offsets must be non-negative, got offsets[0]={int(offsets[0])}")

        counts = offsets[1:] - offsets[:-1]
        if counts.numel() > 0 and bool((counts < 0).any()):
            bad = int(torch.nonzero(counts < 0)[0])
            raise ValueError(f"offsets must be non-decreasing (offsets[{bad}] > offsets[{bad + 1}])")

        if int(offsets[-1]) > neighbors.numel():
            raise ValueError(
                f"offsets[-1]={int(offsets[-1])} exceeds the number of neighbors ({neighbors.numel()})"
            )

        if neighbors.numel() > 0:
            lo, hi = int(neighbors.min()), int(neighbors.max())
            if lo < 0:
                raise ValueError(f"neighbor indices must be non-negative, got {lo}")
            if num_points is not None and hi >= num_points:
                raise ValueError(f"neighbor index {hi} out of range for {num_points} points")

        self.neighbors = neighbors
        self.offsets = offsets
        self._counts = counts

    @property
    def num_points(self) -> int:
        return self.offsets.numel() - 1

    def counts(self) -> torch.Tensor:
        """Total number of neighbors (k_nn) of every point, shape (N,)."""
        return self._counts

    def neighbors_of(self, i: int) -> torch.Tensor:
        """Neighbor indices of point i."""
        if not 0 <= i < self.num_points:
            raise IndexError(f"point index {i} out of range for {self.num_points} points")
        return self.neighbors[int(self.offsets[i]):int(self.offsets[i + 1])]

    def __len__(self):
        return self.num_points

    def __repr__(self):
        return f"NeighborIndex(num_points={self.num_points}, num_neighbors={self.neighbors.numel()})"


def gather_neighborhood(cloud: PointCloud, index: NeighborIndex, i: int, k: int) -> torch.Tensor:
    """Coordinates of the first k neighbors of point i, shape (k, 3)."""
    ids = index.neighbors_of(i)
    if not 1 <= k <= ids.numel():
        raise ValueError(f"k={k} outside [1, {ids.numel()}] for point {i}")
    return cloud.xyz[ids[:k].to(cloud.xyz.device)]


def gather_neighborhoods(cloud: PointCloud, index: NeighborIndex, points: torch.Tensor, k: int) -> torch.Tensor:
    """
    Batched gather of the first k neighbors of each point in `points`.

    Returns:
        (P, k, 3) neighbor coordinates
    """
    points = points.reshape(-1).to(torch.int64)
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    if points.numel() == 0:
        return cloud.xyz.new_empty((0, k, 3))

    if bool((index.counts()[points] < k).any()):
        raise ValueError(f"some points have fewer than k={k} neighbors")

    cols = index.offsets[points].unsqueeze(1) + torch.arange(k, dtype=torch.int64)
    ids = index.neighbors[cols]
    return cloud.xyz[ids.to(cloud.xyz.device)]
