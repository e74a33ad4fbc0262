"""
Noise calibration formulas based on sensitivity and privacy budget.

Responsibilities
  - Derive L1 / L2 sensitivities from contribution bounds (L0, Linf).
  - Calibrate the Laplace scale and the analytic Gaussian sigma.
  - Compute the keep-thresholds used by noisy partition selection.

Usage Context
  - Called by the mechanism factory and the partition selector before any
    data is touched; all functions are pure.

Limitations
  - Gaussian calibration is numerical (bisection) and returns a sigma that is
    conservative up to the bisection tolerance.
"""
# 说明：基于贡献界与隐私预算为 Laplace / Gaussian 机制计算噪声参数与分区选择阈值的校准工具。
# 职责：
# - 由 L0（最大贡献分区数）与 Linf（单分区最大贡献）推导 L1 / L2 敏感度
# - Laplace 尺度 b = L1 / ε；Gaussian 使用解析高斯机制（Balle & Wang 2018）二分求 σ
# - 计算分区选择的保留阈值：仅含 1 个标识符的分区被保留的概率不超过 δ / L0

from __future__ import annotations

import math

import numpy as np
from scipy.stats import norm

from dpagg.core.utils.param_validation import ParamValidationError, ensure

# 二分求解 σ 的相对精度与最大迭代次数
_SIGMA_TOLERANCE = 1e-12
_MAX_ITERATIONS = 1000


def compute_l1_sensitivity(l0_sensitivity: float, linf_sensitivity: float) -> float:
    """Sensitivity when one identifier moves every one of its partitions by Linf."""
    return float(l0_sensitivity) * float(linf_sensitivity)


def compute_l2_sensitivity(l0_sensitivity: float, linf_sensitivity: float) -> float:
    return math.sqrt(float(l0_sensitivity)) * float(linf_sensitivity)


def calibrate_laplace(epsilon: float, *, sensitivity: float) -> float:
    """Return Laplace scale (b) for given epsilon and L1 sensitivity."""
    ensure(epsilon > 0, "epsilon must be positive")
    ensure(sensitivity > 0, "sensitivity must be positive")
    return float(sensitivity) / float(epsilon)


def gaussian_delta(sigma: float, epsilon: float, *, sensitivity: float = 1.0) -> float:
    """
    Smallest delta for which Gaussian noise of std ``sigma`` is (epsilon, delta)-DP.

    Uses the exact characterisation of the Gaussian mechanism:
        δ(ε) = Φ(Δ/2σ - εσ/Δ) - e^ε Φ(-Δ/2σ - εσ/Δ)
    """
    ensure(sigma > 0, f"sigma must be > 0, got {sigma}")
    ratio = float(sensitivity) / float(sigma)
    first = norm.cdf(ratio / 2.0 - epsilon / ratio)
    # e^ε 可能溢出，改在对数域计算第二项
    second = np.exp(epsilon + norm.logcdf(-ratio / 2.0 - epsilon / ratio))
    return float(max(first - second, 0.0))


def calibrate_gaussian(epsilon: float, delta: float, *, sensitivity: float) -> float:
    """Return the analytic Gaussian sigma for (epsilon, delta)-DP and L2 sensitivity."""
    ensure(epsilon > 0, "epsilon must be positive")
    ensure(0 < delta < 1, "delta must be in (0,1)")
    ensure(sensitivity > 0, "sensitivity must be positive")
    # δ(σ) 关于 σ 单调递减：先倍增找到上界，再二分
    upper = float(sensitivity)
    iterations = 0
    while gaussian_delta(upper, epsilon, sensitivity=sensitivity) > delta:
        upper *= 2.0
        iterations += 1
        if iterations > _MAX_ITERATIONS:
            raise ParamValidationError("could not bracket gaussian sigma")
    lower = 0.0
    while upper - lower > _SIGMA_TOLERANCE * upper and iterations < _MAX_ITERATIONS:
        middle = (lower + upper) / 2.0
        if gaussian_delta(middle, epsilon, sensitivity=sensitivity) > delta:
            lower = middle
        else:
            upper = middle
        iterations += 1
    return upper


def laplace_threshold(epsilon: float, delta: float, *, l0_sensitivity: int) -> float:
    """
    Keep-threshold for a Laplace-noised distinct identifier count.

    The count has L1 sensitivity ``l0_sensitivity`` (each identifier adds 1 to
    at most that many partitions). A partition with a single identifier passes
    with probability ``delta / l0_sensitivity``.
    """
    ensure(epsilon > 0, "epsilon must be positive")
    ensure(0 < delta < 1, "delta must be in (0,1) for thresholding")
    ensure(l0_sensitivity >= 1, "l0 sensitivity must be >= 1")
    scale = calibrate_laplace(epsilon, sensitivity=compute_l1_sensitivity(l0_sensitivity, 1.0))
    partition_delta = delta / l0_sensitivity
    if partition_delta <= 0.5:
        return 1.0 + scale * math.log(1.0 / (2.0 * partition_delta))
    return 1.0 + scale * math.log(2.0 * (1.0 - partition_delta))


def gaussian_threshold(sigma: float, delta: float, *, l0_sensitivity: int) -> float:
    """Keep-threshold for a Gaussian-noised distinct identifier count."""
    ensure(sigma > 0, "sigma must be positive")
    ensure(0 < delta < 1, "delta must be in (0,1) for thresholding")
    ensure(l0_sensitivity >= 1, "l0 sensitivity must be >= 1")
    partition_delta = delta / l0_sensitivity
    return 1.0 + float(sigma) * float(norm.isf(partition_delta))
