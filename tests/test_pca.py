import math

import numpy as np
import torch

from geofeat.analysis import (
    compute_covariance,
    compute_eigenentropy,
    local_pca,
    orient_eigenvectors,
)
from conftest import plane_grid, line_points, cube_corners


def test_covariance_is_normalized_by_k(rng):
    pts = rng.normal(size=(12, 3))

    cov = compute_covariance(torch.from_numpy(pts))

    expected = np.cov(pts, rowvar=False, bias=True)
    assert np.allclose(cov.numpy(), expected, atol=1e-12)


def test_eigenvalues_sorted_nonnegative_and_vectors_oriented(rng):
    batch = torch.from_numpy(rng.normal(size=(64, 10, 3)).astype(np.float32))
    batch[:8] = batch[:8, :1]  # fully degenerate neighborhoods

    pca = local_pca(batch)

    assert pca.eigenvalues.shape == (64, 3)
    assert pca.eigenvectors.shape == (64, 3, 3)
    assert pca.eigenentropy.shape == (64,)
    assert bool((pca.eigenvalues >= 0).all())
    assert bool((pca.eigenvalues[:, 0] >= pca.eigenvalues[:, 1]).all())
    assert bool((pca.eigenvalues[:, 1] >= pca.eigenvalues[:, 2]).all())
    assert bool((pca.eigenvectors[..., 2] >= 0).all())
    assert bool(torch.isfinite(pca.eigenentropy).all())


def test_eigenvectors_are_orthonormal_eigenpairs(rng):
    pts = torch.from_numpy(rng.normal(size=(30, 3)) * np.array([3.0, 1.0, 0.2]))

    pca = local_pca(pts)
    cov = compute_covariance(pts)

    gram = pca.eigenvectors @ pca.eigenvectors.T
    assert torch.allclose(gram, torch.eye(3, dtype=gram.dtype), atol=1e-10)
    for j in range(3):
        v = pca.eigenvectors[j]
        assert torch.allclose(cov @ v, pca.eigenvalues[j] * v, atol=1e-10)


def test_orientation_flips_only_negative_z():
    evecs = torch.tensor([[[1.0, 0.0, -0.5], [0.0, 1.0, 0.0], [0.5, 0.0, 2.0]]])

    oriented = orient_eigenvectors(evecs)

    assert oriented[0, 0].tolist() == [-1.0, 0.0, 0.5]
    assert oriented[0, 1].tolist() == [0.0, 1.0, 0.0]
    assert oriented[0, 2].tolist() == [0.5, 0.0, 2.0]


def test_single_point_neighborhood_is_finite():
    pca = local_pca(torch.tensor([[1.0, 2.0, 3.0]]))

    assert pca.eigenvalues.tolist() == [0.0, 0.0, 0.0]
    assert float(pca.eigenentropy) == 0.0


def test_eigenentropy_matches_formula():
    evals = torch.tensor([4.0, 1.0, 0.25], dtype=torch.float64)

    s = 5.25 + 1e-3
    e = [4.0 / s, 1.0 / s, 0.25 / s]
    expected = -sum(x * math.log(x + 1e-3) for x in e)

    assert abs(float(compute_eigenentropy(evals)) - expected) < 1e-12


def test_planar_neighborhood():
    pts, normal = plane_grid([1.0, 2.0, 3.0], center=(5.0, -2.0, 1.0))

    pca = local_pca(torch.from_numpy(pts))

    assert float(pca.eigenvalues[2]) < 1e-12
    assert abs(float(pca.eigenvalues[0] - pca.eigenvalues[1])) < 1e-10
    assert abs(float(pca.eigenvectors[2] @ torch.from_numpy(normal))) > 1 - 1e-9


def test_linear_neighborhood():
    pca = local_pca(torch.from_numpy(line_points([0.0, 1.0, 1.0])))

    assert float(pca.eigenvalues[0]) > 0.1
    assert float(pca.eigenvalues[1]) < 1e-12
    assert float(pca.eigenvalues[2]) < 1e-12


def test_isotropic_neighborhood_has_maximal_entropy():
    pca = local_pca(torch.from_numpy(cube_corners()))

    assert torch.allclose(pca.eigenvalues, torch.ones(3, dtype=torch.float64), atol=1e-12)
    assert abs(float(pca.eigenentropy) - math.log(3)) < 0.01

    flat = local_pca(torch.from_numpy(plane_grid([0.0, 0.0, 1.0])[0]))
    line = local_pca(torch.from_numpy(line_points([1.0, 0.0, 0.0])))
    assert float(pca.eigenentropy) > float(flat.eigenentropy) > float(line.eigenentropy)
