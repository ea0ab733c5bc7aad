# Shared helpers for the geofeat test suite
import numpy as np
import pytest
import torch


def build_knn_csr(xyz, k):
    """Brute-force k-NN (self included) in CSR layout: (nn uint32, nn_ptr uint32)."""
    x = torch.as_tensor(np.asarray(xyz), dtype=torch.float64).reshape(-1, 3)
    n = x.shape[0]
    k = min(k, n)
    idx = torch.topk(torch.cdist(x, x), k, dim=1, largest=False).indices
    nn = idx.reshape(-1).numpy().astype(np.uint32)
    nn_ptr = np.arange(0, n * k + 1, k, dtype=np.uint32)
    return nn, nn_ptr


def orthonormal_frame(normal):
    """Two unit vectors spanning the plane orthogonal to `normal`."""
    n = np.asarray(normal, dtype=np.float64)
    n = n / np.linalg.norm(n)
    a = np.array([1.0, 0.0, 0.0]) if abs(n[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
    t1 = a - a.dot(n) * n
    t1 /= np.linalg.norm(t1)
    t2 = np.cross(n, t1)
    return n, t1, t2


def plane_grid(normal, size=7, spacing=0.1, center=(0.0, 0.0, 0.0)):
    """Square grid of points on the plane through `center` with the given normal."""
    n, t1, t2 = orthonormal_frame(normal)
    u = (np.arange(size) - (size - 1) / 2) * spacing
    uu, vv = np.meshgrid(u, u, indexing="ij")
    pts = np.asarray(center) + uu.reshape(-1, 1) * t1 + vv.reshape(-1, 1) * t2
    return pts, n


def line_points(direction, count=21, length=2.0, center=(0.0, 0.0, 0.0)):
    d = np.asarray(direction, dtype=np.float64)
    d = d / np.linalg.norm(d)
    t = np.linspace(-length / 2, length / 2, count)
    return np.asarray(center) + t.reshape(-1, 1) * d


def cube_corners(scale=1.0):
    """The 8 corners of a cube: an exactly isotropic point set."""
    s = np.array([-1.0, 1.0]) * scale
    return np.array([[x, y, z] for x in s for y in s for z in s])


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_cloud(rng):
    """Noisy 3D cloud with a 16-NN neighbor index."""
    xyz = rng.normal(size=(300, 3)).astype(np.float32)
    nn, nn_ptr = build_knn_csr(xyz, 16)
    return xyz, nn, nn_ptr
