"""Sensitivity and noise calibration helpers for CDP aggregations."""

from .noise_calibrator import (
    calibrate_gaussian,
    calibrate_laplace,
    compute_l1_sensitivity,
    compute_l2_sensitivity,
    gaussian_delta,
    gaussian_threshold,
    laplace_threshold,
)

__all__ = [
    "calibrate_gaussian",
    "calibrate_laplace",
    "compute_l1_sensitivity",
    "compute_l2_sensitivity",
    "gaussian_delta",
    "gaussian_threshold",
    "laplace_threshold",
]
