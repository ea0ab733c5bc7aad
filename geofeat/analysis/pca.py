"""Local PCA of point neighborhoods."""

import torch
from typing import NamedTuple, Tuple
from ..utils.config import EPS_EIGENENTROPY


class PCAResult(NamedTuple):
    """
    PCA of one or a batch of neighborhoods.

    eigenvalues:  (..., 3) descending, clamped to >= 0
    eigenvectors: (..., 3, 3) row j is the unit eigenvector of eigenvalue j,
                  oriented towards Z+
    eigenentropy: (...) eigenentropy of the normalized eigenvalues
    """
    eigenvalues: torch.Tensor
    eigenvectors: torch.Tensor
    eigenentropy: torch.Tensor


def compute_centroid(neighbors: torch.Tensor) -> torch.Tensor:
    """Column-wise mean of (..., k, 3) neighbors."""
    return neighbors.mean(dim=-2)


def compute_covariance(neighbors: torch.Tensor) -> torch.Tensor:
    """(3, 3) covariance of centered neighbors, normalized by k (not k - 1)."""
    centered = neighbors - compute_centroid(neighbors).unsqueeze(-2)
    k = neighbors.shape[-2]
    return torch.matmul(centered.transpose(-2, -1), centered) / float(k)


def sort_eigenpairs(evals: torch.Tensor, evecs: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Reorder `torch.linalg.eigh` output (ascending, eigenvectors as columns)
    into descending eigenvalues with eigenvectors as rows.
    """
    evals = torch.clamp(evals.flip(-1), min=0.0)
    evecs = evecs.flip(-1).transpose(-2, -1)
    return evals, evecs


def orient_eigenvectors(evecs: torch.Tensor) -> torch.Tensor:
    """Flip every eigenvector with a negative Z component into the Z+ half-space."""
    sign = 1.0 - 2.0 * (evecs[..., 2:3] < 0).to(evecs.dtype)
    return evecs * sign


def compute_eigenentropy(evals: torch.Tensor, eps: float = EPS_EIGENENTROPY) -> torch.Tensor:
    """
    Eigenentropy as defined in Weinmann et al. (ISPRS 2015).

    `eps` keeps the log and the normalization finite for all-zero
    eigenvalues, so values are only comparable to other eps-biased
    entropies.
    """
    val_sum = evals.sum(dim=-1, keepdim=True) + eps
    e = evals / val_sum
    return -(e * torch.log(e + eps)).sum(dim=-1)


def local_pca(neighbors: torch.Tensor) -> PCAResult:
    """
    PCA of (k, 3) or (..., k, 3) neighbor coordinates, k >= 1.

    Returns:
        PCAResult with matching batch dimensions
    """
    cov = compute_covariance(neighbors)
    evals, evecs = torch.linalg.eigh(cov)
    evals, evecs = sort_eigenpairs(evals, evecs)
    evecs = orient_eigenvectors(evecs)
    entropy = compute_eigenentropy(evals)
    return PCAResult(evals, evecs, entropy)
