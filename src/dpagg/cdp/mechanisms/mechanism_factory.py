"""
Factory helpers to build calibrated additive mechanisms from contribution bounds.

Responsibilities
  - Turn (noise kind, ε, δ, L0, Linf) into a calibrated mechanism.
  - Pick the sensitivity norm each distribution is calibrated on.

Usage Context
  - The single "draw noise" capability of the aggregation combiners and the
    partition selector; the noise kind is chosen once at configuration time.
"""
# 说明：根据噪声类型与贡献界（L0, Linf）创建并校准加性噪声机制实例的工厂函数。
# 职责：
# - Laplace 使用 L1 敏感度 L0·Linf；Gaussian 使用 L2 敏感度 sqrt(L0)·Linf
# - 对 Laplace 忽略 δ，对 Gaussian 要求 δ > 0

from __future__ import annotations

from typing import Any, Optional

from dpagg.core.privacy.base_mechanism import BaseMechanism
from dpagg.cdp.sensitivity.noise_calibrator import compute_l1_sensitivity, compute_l2_sensitivity

from .gaussian import GaussianMechanism
from .laplace import LaplaceMechanism
from .mechanism_registry import NoiseKind, normalize_noise_kind


def create_additive_mechanism(
    noise_kind: "str | NoiseKind",
    *,
    epsilon: float,
    delta: float = 0.0,
    l0_sensitivity: float,
    linf_sensitivity: float,
    rng: Optional[Any] = None,
    name: Optional[str] = None,
) -> BaseMechanism:
    """
    Create and calibrate the mechanism for one noisy release.

    Args:
        noise_kind: NoiseKind or its string value.
        epsilon: Privacy budget ε for this release.
        delta: δ for Gaussian noise; ignored for Laplace.
        l0_sensitivity: Maximum number of releases one identifier touches.
        linf_sensitivity: Maximum change one identifier causes in one release.
        rng: Optional seed or Generator.
        name: Optional human readable name.
    """
    kind = normalize_noise_kind(noise_kind)
    if kind is NoiseKind.LAPLACE:
        mechanism: BaseMechanism = LaplaceMechanism(
            epsilon=epsilon,
            sensitivity=compute_l1_sensitivity(l0_sensitivity, linf_sensitivity),
            rng=rng,
            name=name,
        )
    else:
        mechanism = GaussianMechanism(
            epsilon=epsilon,
            delta=delta,
            sensitivity=compute_l2_sensitivity(l0_sensitivity, linf_sensitivity),
            rng=rng,
            name=name,
        )
    return mechanism.calibrate()
