#!/usr/bin/env python3
"""
Setup script for geofeat (local geometric features of point clouds).

- Pure Python package, numerical work runs on PyTorch.
- Install with test dependencies: pip install -e ".[test]"
"""

from pathlib import Path
from setuptools import setup, find_packages

project_root = Path(__file__).parent

setup(
    name="geofeat",
    version="1.0.0",
    description="Per-point geometric descriptors (PCA, eigenentropy-optimal neighborhoods) for 3D point clouds",
    long_description=(project_root / "README.md").read_text(encoding="utf-8") if (project_root / "README.md").exists() else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["geofeat", "geofeat.*"]),
    zip_safe=False,
    python_requires=">=3.8",
    install_requires=["numpy", "torch", "pyyaml"],
    extras_require={
        "test": ["pytest"],
    },
)
