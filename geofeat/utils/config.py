"""Configuration management for geometric feature extraction."""

import warnings
from pathlib import Path
from typing import Dict, Optional

import yaml

# Numerical constants
EPS_EIGENENTROPY = 1e-3
EPS_DIMENSIONALITY = 1e-3
EPS_SURFACE = 1e-6
EPS_VOLUME = 1e-9
EPS_CURVATURE = 1e-3
EPS_NORMALIZE = 1e-12

NUM_FEATURES = 11
FEATURE_NAMES = (
    "linearity",
    "planarity",
    "scattering",
    "verticality",
    "normal_x",
    "normal_y",
    "normal_z",
    "length",
    "surface",
    "volume",
    "curvature",
)

DEFAULT_CONFIG = {
    "k_min": 1,
    "k_step": -1,
    "k_min_search": 1,
    "verbose": False,
    "num_workers": None,
    "batch_size": 4096,
    "dtype": "float32",
    "progress_every": 10_000,
}


def default_cfg() -> Dict:
    """Default configuration: full neighborhoods, no adaptive search."""
    return DEFAULT_CONFIG.copy()


def load_cfg(path, base: Optional[Dict] = None) -> Dict:
    """Load a YAML config and merge it over `base` (or the defaults)."""
    path = Path(path)
    with path.open("r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")

    # Allow the settings to live under a "features" section
    if "features" in data and isinstance(data["features"], dict):
        data = data["features"]

    config = default_cfg() if base is None else dict(base)
    unknown = sorted(set(data) - set(DEFAULT_CONFIG))
    if unknown:
        warnings.warn(f"Ignoring unknown config keys in {path}: {', '.join(unknown)}")

    config.update({k: v for k, v in data.items() if k in DEFAULT_CONFIG})
    return config


def extract_config_params(cfg: Dict) -> Dict:
    """Extract and validate config parameters."""
    num_workers = cfg.get("num_workers", None)
    batch_size = int(cfg.get("batch_size", 4096))
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    dtype = str(cfg.get("dtype", "float32"))
    if dtype not in ("float32", "float64"):
        raise ValueError(f"dtype must be 'float32' or 'float64', got {dtype!r}")

    return {
        'k_min': int(cfg.get("k_min", 1)),
        'k_step': int(cfg.get("k_step", -1)),
        'k_min_search': int(cfg.get("k_min_search", 1)),
        'verbose': bool(cfg.get("verbose", False)),
        'num_workers': None if num_workers is None else int(num_workers),
        'batch_size': batch_size,
        'dtype': dtype,
        'progress_every': int(cfg.get("progress_every", 10_000)),
    }
