"""Parallel per-point geometric feature computation."""

import os
import sys
import time
import numpy as np
import torch
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple, Union

from ..utils.config import NUM_FEATURES, default_cfg, extract_config_params
from ..utils.utils import as_numpy
from ..geometry.neighborhood import PointCloud, NeighborIndex
from ..analysis.search import search_optimal_neighborhoods
from ..analysis.features import is_degenerate, derive_features

_DTYPES = {
    "float32": torch.float32,
    "float64": torch.float64,
}


def resolve_dtype(dtype: Union[str, torch.dtype]) -> torch.dtype:
    """Map a config dtype name to a torch dtype."""
    if isinstance(dtype, torch.dtype):
        if dtype not in _DTYPES.values():
            raise ValueError(f"Unsupported dtype {dtype}")
        return dtype
    if dtype not in _DTYPES:
        raise ValueError(f"Unsupported dtype {dtype!r}, expected one of {sorted(_DTYPES)}")
    return _DTYPES[dtype]


def partition_points(n_points: int, num_workers: int, align: int = 1) -> List[Tuple[int, int]]:
    """
    Split [0, n_points) into at most `num_workers` contiguous ranges of near-equal size.

    Range boundaries fall on multiples of `align`, so batches of `align` points
    cut from the start of each range are the same for any worker count.
    """
    if n_points <= 0:
        return []
    align = max(1, int(align))
    n_chunks = -(-n_points // align)
    num_workers = max(1, min(int(num_workers), n_chunks))
    base, rem = divmod(n_chunks, num_workers)

    bounds, start = [], 0
    for w in range(num_workers):
        stop = start + base + (1 if w < rem else 0)
        bounds.append((start * align, min(stop * align, n_points)))
        start = stop
    return bounds


class ProgressCounter:
    """
    Approximate count of processed points, for human-readable progress only.

    Worker threads update it without any synchronization, so increments can
    be lost and the printed percentage is a best-effort estimate. Nothing
    reads it for correctness.
    """

    def __init__(self, total: int, verbose: bool = False, every: int = 10_000, stream=None):
        self.total = max(int(total), 1)
        self.verbose = bool(verbose)
        self.every = max(int(every), 1)
        self.stream = stream if stream is not None else sys.stderr
        self.count = 0

    def update(self, n: int):
        before = self.count
        self.count = before + n
        if self.verbose and before // self.every != self.count // self.every:
            self.report()

    def report(self):
        pct = min(100, int(np.ceil(self.count * 100 / self.total)))
        print(f"{pct}% done          ", end="\r", file=self.stream, flush=True)

    def close(self):
        # Final newline so the next print starts on a fresh line
        if self.verbose:
            print(file=self.stream, flush=True)


def _prepare_output(out, n_points: int) -> torch.Tensor:
    """Wrap a caller-allocated buffer as an (N, 11) tensor sharing its memory."""
    size = n_points * NUM_FEATURES

    if torch.is_tensor(out):
        if out.device.type != "cpu" or not out.is_contiguous():
            raise ValueError("out must be a contiguous CPU tensor")
        if not out.is_floating_point():
            raise TypeError(f"out must be a floating point buffer, got {out.dtype}")
        flat = out.view(-1)
    elif isinstance(out, np.ndarray):
        if not out.flags.c_contiguous or not out.flags.writeable:
            raise ValueError("out must be a writable C-contiguous array")
        if out.dtype not in (np.float32, np.float64):
            raise TypeError(f"out must be float32 or float64, got {out.dtype}")
        flat = torch.from_numpy(out.reshape(-1))
    else:
        raise TypeError(f"out must be a numpy array or torch tensor, got {type(out).__name__}")

    if flat.numel() < size:
        raise ValueError(f"out holds {flat.numel()} values, need at least {size} (11 * {n_points})")
    return flat[:size].view(n_points, NUM_FEATURES)


def _process_range(
    cloud: PointCloud,
    index: NeighborIndex,
    start: int,
    stop: int,
    out_rows: torch.Tensor,
    k_rows: torch.Tensor,
    params: Dict,
    progress: ProgressCounter
):
    """Compute features of points [start, stop) into this worker's own rows."""
    counts = index.counts()
    batch_size = params['batch_size']

    for b in range(start, stop, batch_size):
        e = min(b + batch_size, stop)
        points = torch.arange(b, e, dtype=torch.int64)

        # Rows are filled locally and only copied out once the batch succeeded
        local = torch.zeros(e - b, NUM_FEATURES, dtype=out_rows.dtype)
        local_k = torch.zeros(e - b, dtype=torch.int64)

        valid = torch.nonzero(~is_degenerate(counts[b:e], params['k_min'])).reshape(-1)
        if valid.numel() > 0:
            pca, k_optimal = search_optimal_neighborhoods(
                cloud, index, points[valid],
                k_min=params['k_min'],
                k_step=params['k_step'],
                k_min_search=params['k_min_search'],
            )
            local[valid] = derive_features(pca).detach().cpu().to(local.dtype)
            local_k[valid] = k_optimal

        out_rows[b - start:e - start] = local
        k_rows[b - start:e - start] = local_k
        progress.update(e - b)


def compute_geometric_features(
    xyz,
    nn,
    nn_ptr,
    k_min: int = 1,
    k_step: int = -1,
    k_min_search: int = 1,
    verbose: bool = False,
    out=None,
    num_workers: Optional[int] = None,
    batch_size: int = 4096,
    dtype: Union[str, torch.dtype] = "float32",
    return_torch: bool = False,
    return_optimal_k: bool = False,
    progress_every: int = 10_000,
    stream=None
):
    """
    Compute the 11 geometric features of every point of a cloud.

    Args:
        xyz: (N, 3) or flat (3N,) point coordinates
        nn: flat neighbor indices
        nn_ptr: (N + 1,) CSR offsets into `nn`
        k_min: points with fewer neighbors get all-zero features
        k_step: stride of the eigenentropy neighborhood search, < 1 disables it
        k_min_search: smallest neighborhood size considered by the search
        verbose: print approximate progress to `stream` (stderr by default)
        out: optional caller-allocated buffer of at least 11N floats, filled in place
        num_workers: worker threads, defaults to the CPU count
        batch_size: points processed per vectorized batch. Rounding may depend on it,
            never on `num_workers`
        dtype: computation precision, "float32" or "float64"
        return_torch: return torch tensors instead of numpy arrays
        return_optimal_k: also return the selected neighborhood size per point
        progress_every: points between two progress prints

    Returns:
        features: (N, 11) in FEATURE_NAMES order
        k_optimal: (N,) selected sizes, 0 for zero-filled points (if requested)
    """
    if int(batch_size) < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    cloud = PointCloud(xyz, dtype=resolve_dtype(dtype))
    index = NeighborIndex(nn, nn_ptr, num_points=cloud.num_points)
    n_points = index.num_points

    if n_points > cloud.num_points:
        raise ValueError(f"nn_ptr describes {n_points} points but xyz holds only {cloud.num_points}")

    if out is None:
        features = torch.zeros(n_points, NUM_FEATURES, dtype=torch.float32)
    else:
        features = _prepare_output(out, n_points)
    k_optimal = torch.zeros(n_points, dtype=torch.int64)

    num_workers = int(num_workers) if num_workers is not None else (os.cpu_count() or 1)
    # Batches sit on a global grid of `batch_size` points, so the rows a batch
    # holds (and their rounding) do not depend on the worker count
    parts = partition_points(n_points, num_workers, align=int(batch_size))

    params = {
        'k_min': int(k_min),
        'k_step': int(k_step),
        'k_min_search': int(k_min_search),
        'batch_size': int(batch_size),
    }

    if verbose:
        print(f"[geofeat] {n_points} points, {len(parts)} workers, "
              f"k_min={k_min} k_step={k_step} k_min_search={k_min_search}",
              file=stream if stream is not None else sys.stderr)

    progress = ProgressCounter(n_points, verbose=verbose, every=progress_every, stream=stream)

    # Each worker owns a disjoint block of output rows
    if parts:
        with ThreadPoolExecutor(max_workers=len(parts)) as executor:
            futures = [
                executor.submit(
                    _process_range, cloud, index, start, stop,
                    features[start:stop], k_optimal[start:stop], params, progress
                )
                for start, stop in parts
            ]
        errors = [f.exception() for f in futures]
        for err in errors:
            if err is not None:
                raise err

    progress.close()

    if not return_torch:
        # Shares memory with `out` when a numpy buffer was supplied
        features, k_optimal = as_numpy(features), as_numpy(k_optimal)

    if return_optimal_k:
        return features, k_optimal
    return features


def extract_geometric_features(xyz, nn, nn_ptr, cfg: Optional[Dict] = None, return_torch: bool = False, stream=None) -> Dict:
    """
    Config-driven entry point.

    Returns:
        dict with "features" (N, 11), "k_optimal" (N,) and "debug" statistics
    """
    if cfg is None:
        cfg = default_cfg()
    params = extract_config_params(cfg)

    t0 = time.time()
    features, k_optimal = compute_geometric_features(
        xyz, nn, nn_ptr,
        k_min=params['k_min'],
        k_step=params['k_step'],
        k_min_search=params['k_min_search'],
        verbose=params['verbose'],
        num_workers=params['num_workers'],
        batch_size=params['batch_size'],
        dtype=params['dtype'],
        return_torch=True,
        return_optimal_k=True,
        progress_every=params['progress_every'],
        stream=stream,
    )
    elapsed = time.time() - t0

    valid = k_optimal > 0
    debug = {
        "num_points": int(k_optimal.shape[0]),
        "num_degenerate": int((~valid).sum()),
        "mean_k_optimal": float(k_optimal[valid].double().mean()) if bool(valid.any()) else 0.0,
        "num_workers": params['num_workers'] or (os.cpu_count() or 1),
        "elapsed_s": elapsed,
    }

    if params['verbose']:
        stream = stream if stream is not None else sys.stderr
        print(f"[geofeat] Done in {elapsed:.2f}s", file=stream)
        if debug['num_degenerate'] > 0:
            print(f"[WARN] {debug['num_degenerate']} points have fewer than k_min={params['k_min']} "
                  f"neighbors, their features are zero", file=stream)

    if not return_torch:
        features, k_optimal = as_numpy(features), as_numpy(k_optimal)

    return {
        "features": features,
        "k_optimal": k_optimal,
        "debug": debug,
    }
