"""
Gaussian noise for (epsilon, delta)-DP releases.

Responsibilities
  - Find the smallest sigma meeting (epsilon, delta) for a given L2
    sensitivity with the analytic Gaussian mechanism.
  - Allow delta to be replaced at calibration time.

Limitations
  - delta must be strictly positive; there is no pure-DP Gaussian.
"""
# 说明：(ε, δ)-DP 高斯噪声；σ 由解析高斯机制按 L2 敏感度求得。
# 职责：
# - calibrate(delta=...) 可在校准时改写 δ
# - δ 必须严格为正

from __future__ import annotations

from typing import Any, Optional

from dpagg.core.privacy.base_mechanism import BaseMechanism, ValidationError
from dpagg.cdp.sensitivity.noise_calibrator import calibrate_gaussian


class GaussianMechanism(BaseMechanism):
    """Analytic Gaussian mechanism; ``std`` equals ``sigma``."""

    distribution = "gaussian"

    def __init__(
        self,
        epsilon: float = 1.0,
        delta: float = 1e-5,
        sensitivity: float = 1.0,
        rng: Optional[Any] = None,
        name: Optional[str] = None,
    ):
        super().__init__(epsilon, delta, sensitivity=sensitivity, rng=rng, name=name)
        if self.delta == 0.0:
            raise ValidationError("Gaussian noise needs delta > 0")

    def calibrate(self, sensitivity: Optional[float] = None, *, delta: Optional[float] = None) -> "GaussianMechanism":
        if delta is not None:
            delta = self._checked_delta(delta)
            if delta == 0.0:
                raise ValidationError("Gaussian noise needs delta > 0")
            self.delta = delta
        super().calibrate(sensitivity)
        return self

    def _noise_scale(self) -> float:
        return calibrate_gaussian(self.epsilon, self.delta, sensitivity=self.sensitivity)

    def _std_for_scale(self, scale: float) -> float:
        return scale

    @property
    def sigma(self) -> Optional[float]:
        return self._scale
