"""Eigenentropy-driven neighborhood size selection."""

import torch
from typing import List, Tuple

from .pca import PCAResult, local_pca
from ..geometry.neighborhood import PointCloud, NeighborIndex, gather_neighborhoods


def initial_neighborhood_size(k_nn: int, k_min: int, k_min_search: int) -> int:
    """
    Smallest neighborhood size considered by the search.

    Too-small neighborhoods tend to have a low eigenentropy despite noisy
    geometry, hence the `k_min_search` floor.
    """
    return max(1, min(max(k_min, k_min_search), k_nn))


def candidate_sizes(k_nn: int, k_min: int, k_step: int, k_min_search: int) -> List[int]:
    """Neighborhood sizes evaluated for a point with `k_nn` neighbors, ascending."""
    if k_nn < 1:
        return []
    if k_step < 1:
        return [k_nn]
    k0 = initial_neighborhood_size(k_nn, k_min, k_min_search)
    return list(range(k0, k_nn, k_step)) + [k_nn]


def _candidate_mask(k: int, k0: torch.Tensor, k_nn: torch.Tensor, k_step: int) -> torch.Tensor:
    """Points for which `k` is one of their candidate sizes."""
    if k_step < 1:
        return k_nn == k
    in_range = (k >= k0) & (k <= k_nn)
    on_grid = ((k - k0) % k_step == 0) | (k_nn == k)
    return in_range & on_grid


def search_optimal_neighborhoods(
    cloud: PointCloud,
    index: NeighborIndex,
    points: torch.Tensor,
    k_min: int = 1,
    k_step: int = -1,
    k_min_search: int = 1
) -> Tuple[PCAResult, torch.Tensor]:
    """
    Pick, for each point, the neighborhood size with the lowest eigenentropy.

    Candidate sizes are evaluated in increasing order. The first candidate
    is always kept, later ones replace it only with a strictly lower
    eigenentropy, so ties resolve to the smaller k. With `k_step < 1` the
    full neighborhood is used.

    Returns:
        pca: PCAResult batched over `points`
        k_optimal: (P,) selected neighborhood sizes
    """
    points = points.reshape(-1).to(torch.int64)
    device, dtype = cloud.xyz.device, cloud.dtype
    P = points.numel()

    evals = torch.zeros(P, 3, device=device, dtype=dtype)
    evecs = torch.zeros(P, 3, 3, device=device, dtype=dtype)
    entropy = torch.zeros(P, device=device, dtype=dtype)
    k_optimal = torch.zeros(P, dtype=torch.int64)
    has_best = torch.zeros(P, dtype=torch.bool)

    if P == 0:
        return PCAResult(evals, evecs, entropy), k_optimal

    k_nn = index.counts()[points]
    if bool((k_nn < 1).any()):
        raise ValueError("every searched point needs at least one neighbor")

    k0 = torch.clamp(torch.clamp(k_nn, max=max(k_min, k_min_search)), min=1)
    k_lo = int(k_nn.min()) if k_step < 1 else int(k0.min())

    for k in range(k_lo, int(k_nn.max()) + 1):
        sel = torch.nonzero(_candidate_mask(k, k0, k_nn, k_step)).reshape(-1)
        if sel.numel() == 0:
            continue

        pca_k = local_pca(gather_neighborhoods(cloud, index, points[sel], k))

        lower = (pca_k.eigenentropy < entropy[sel.to(device)]).cpu()
        better = ~has_best[sel] | lower
        upd = sel[better]
        if upd.numel() == 0:
            continue

        better_dev, upd_dev = better.to(device), upd.to(device)
        evals[upd_dev] = pca_k.eigenvalues[better_dev]
        evecs[upd_dev] = pca_k.eigenvectors[better_dev]
        entropy[upd_dev] = pca_k.eigenentropy[better_dev]
        k_optimal[upd] = k
        has_best[upd] = True

    return PCAResult(evals, evecs, entropy), k_optimal


def search_optimal_neighborhood(
    cloud: PointCloud,
    index: NeighborIndex,
    i: int,
    k_min: int = 1,
    k_step: int = -1,
    k_min_search: int = 1
) -> Tuple[PCAResult, int]:
    """Single-point version of `search_optimal_neighborhoods`."""
    if not 0 <= i < index.num_points:
        raise IndexError(f"point index {i} out of range for {index.num_points} points")

    pca, k_optimal = search_optimal_neighborhoods(
        cloud, index, torch.tensor([i], dtype=torch.int64),
        k_min=k_min, k_step=k_step, k_min_search=k_min_search
    )
    return PCAResult(pca.eigenvalues[0], pca.eigenvectors[0], pca.eigenentropy[0]), int(k_optimal[0])
