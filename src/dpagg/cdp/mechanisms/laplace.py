"""
Laplace noise for pure epsilon-DP releases.

The scale is ``b = L1 sensitivity / epsilon``; delta is fixed at zero.
"""
# 说明：纯 ε-DP 的拉普拉斯噪声，尺度 b = L1 敏感度 / ε。

from __future__ import annotations

import math
from typing import Any, Optional

from dpagg.core.privacy.base_mechanism import BaseMechanism
from dpagg.cdp.sensitivity.noise_calibrator import calibrate_laplace


class LaplaceMechanism(BaseMechanism):
    distribution = "laplace"

    def __init__(
        self,
        epsilon: float = 1.0,
        sensitivity: float = 1.0,
        rng: Optional[Any] = None,
        name: Optional[str] = None,
    ):
        super().__init__(epsilon, 0.0, sensitivity=sensitivity, rng=rng, name=name)

    def _noise_scale(self) -> float:
        return calibrate_laplace(self.epsilon, sensitivity=self.sensitivity)

    def _std_for_scale(self, scale: float) -> float:
        return math.sqrt(2.0) * scale

    @property
    def scale(self) -> Optional[float]:
        return self._scale
