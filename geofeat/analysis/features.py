"""Geometric descriptors derived from neighborhood PCA."""

import torch
from ..utils.config import (
    EPS_DIMENSIONALITY,
    EPS_SURFACE,
    EPS_VOLUME,
    EPS_CURVATURE,
)
from ..utils.utils import normalize
from .pca import PCAResult


def is_degenerate(k_nn, k_min: int):
    """Points with too few neighbors get an all-zero feature vector."""
    return (k_nn < k_min) | (k_nn <= 0)


def compute_dimensionality(a: torch.Tensor) -> torch.Tensor:
    """Linearity, planarity, scattering from sqrt-eigenvalues (..., 3)."""
    a0, a1, a2 = a.unbind(-1)
    denom = a0 + EPS_DIMENSIONALITY
    return torch.stack([(a0 - a1) / denom, (a1 - a2) / denom, a2 / denom], dim=-1)


def compute_shape_descriptors(a: torch.Tensor) -> torch.Tensor:
    """Length, surface, volume, curvature from sqrt-eigenvalues (..., 3)."""
    a0, a1, a2 = a.unbind(-1)
    length = a0
    surface = torch.sqrt(a0 * a1 + EPS_SURFACE)
    volume = torch.pow(a0 * a1 * a2 + EPS_VOLUME, 1.0 / 3.0)
    curvature = a2 / (a0 + a1 + a2 + EPS_CURVATURE)
    return torch.stack([length, surface, volume, curvature], dim=-1)


def compute_verticality(evals: torch.Tensor, evecs: torch.Tensor) -> torch.Tensor:
    """
    Z component of the normalized eigenvalue-weighted sum of absolute
    eigenvectors. Zero when all eigenvalues vanish.
    """
    unary = (evals.unsqueeze(-1) * evecs.abs()).sum(dim=-2)
    verticality = normalize(unary)[..., 2]
    return torch.where(evals[..., 0] > 0, verticality, torch.zeros_like(verticality))


def derive_features(pca: PCAResult) -> torch.Tensor:
    """
    Build the feature vectors of a (batched) PCA result.

    Eigenvalues are variances, so descriptors use their square roots to
    stay in length units.

    Returns:
        (..., 11) features in FEATURE_NAMES order
    """
    a = torch.sqrt(pca.eigenvalues)
    normal = pca.eigenvectors[..., 2, :]

    features = torch.cat([
        compute_dimensionality(a),
        compute_verticality(pca.eigenvalues, pca.eigenvectors).unsqueeze(-1),
        normal,
        compute_shape_descriptors(a),
    ], dim=-1)
    return features
