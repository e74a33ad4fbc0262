"""
Additive noise mechanisms used to release noisy per-partition aggregates.

Responsibilities
  - Hold the (epsilon, delta, sensitivity) triple a release is calibrated on.
  - Turn that triple into a noise scale once, then draw noise on demand.
  - Raise mechanism specific errors for bad parameters or early use.

Usage Context
  - Subclasses only name their distribution and map the triple to a scale;
    drawing, shape handling and the lifecycle checks live here.

Limitations
  - Noise is drawn from numpy's floating point samplers; no secure
    (discrete or snapping) noise is attempted.
"""
# 说明：聚合结果加噪所用的加性噪声机制基类。
# 职责：
# - 保存 (ε, δ, 敏感度) 并在 calibrate() 时一次性换算为噪声尺度
# - 统一处理标量/数组输入的加噪与未校准调用的报错
# - 子类只需给出分布名称、尺度公式与标准差公式

from __future__ import annotations

import math
import numbers
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import numpy as np

from dpagg.core.utils.random import create_rng, sample_noise


class MechanismError(Exception):
    """Root of every error raised by a noise mechanism."""


class ValidationError(MechanismError):
    """A privacy parameter or noised value is out of its domain."""


class CalibrationError(MechanismError):
    """The noise scale could not be derived from the parameters."""


class NotCalibratedError(MechanismError):
    """Noise was requested before ``calibrate()`` ran."""


def _real(value: Any, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or math.isnan(value):
        raise ValidationError(f"{label} must be a real number")
    return float(value)


class BaseMechanism(ABC):
    """Calibrate-then-randomise additive noise over a fixed sensitivity."""

    #: Name passed to ``sample_noise``; also reported by ``describe()``.
    distribution: str = ""

    def __init__(
        self,
        epsilon: float,
        delta: float = 0.0,
        *,
        sensitivity: float = 1.0,
        rng: Optional[Any] = None,
        name: Optional[str] = None,
    ):
        epsilon = _real(epsilon, "epsilon")
        if not math.isfinite(epsilon) or epsilon <= 0:
            raise ValidationError("epsilon must be finite and > 0")
        self.epsilon = epsilon
        self.delta = self._checked_delta(delta)
        self.sensitivity = self._checked_sensitivity(sensitivity)
        self.name = name or type(self).__name__
        self._rng: np.random.Generator = create_rng(rng)
        self._scale: Optional[float] = None

    @staticmethod
    def _checked_delta(delta: Any) -> float:
        delta = _real(delta, "delta")
        if not 0.0 <= delta < 1.0:
            raise ValidationError("delta must lie in [0, 1)")
        return delta

    @staticmethod
    def _checked_sensitivity(sensitivity: Any) -> float:
        sensitivity = _real(sensitivity, "sensitivity")
        if not math.isfinite(sensitivity) or sensitivity <= 0:
            raise ValidationError("sensitivity must be finite and > 0")
        return sensitivity

    # lifecycle ---------------------------------------------------------------
    def calibrate(self, sensitivity: Optional[float] = None) -> "BaseMechanism":
        """Derive the noise scale; an explicit ``sensitivity`` replaces the stored one."""
        if sensitivity is not None:
            self.sensitivity = self._checked_sensitivity(sensitivity)
        scale = float(self._noise_scale())
        if not math.isfinite(scale) or scale <= 0:
            raise CalibrationError(f"{self.name}: derived scale {scale!r} is not a positive number")
        self._scale = scale
        return self

    @abstractmethod
    def _noise_scale(self) -> float:
        """Scale parameter of the noise distribution for the current triple."""

    @abstractmethod
    def _std_for_scale(self, scale: float) -> float:
        """Standard deviation of one draw at the given scale."""

    @property
    def calibrated(self) -> bool:
        return self._scale is not None

    def require_calibrated(self) -> float:
        if self._scale is None:
            raise NotCalibratedError(f"{self.name} has not been calibrated")
        return self._scale

    @property
    def std(self) -> float:
        return self._std_for_scale(self.require_calibrated())

    # noise -------------------------------------------------------------------
    def randomise(self, value: Any) -> Any:
        """Return ``value`` plus independent noise per element, keeping its container type."""
        scale = self.require_calibrated()
        arr, was_scalar = self._as_array(value)
        noise = sample_noise(self._rng, self.distribution, scale=scale, size=None if was_scalar else arr.shape)
        noisy = arr + noise
        if was_scalar:
            return float(noisy)
        if isinstance(value, list):
            return noisy.tolist()
        if isinstance(value, tuple):
            return tuple(noisy.tolist())
        return noisy

    add_noise = randomise

    @staticmethod
    def _as_array(value: Any) -> Tuple[np.ndarray, bool]:
        if isinstance(value, (str, bytes)):
            raise ValidationError("only numeric values can be noised")
        try:
            arr = np.asarray(value, dtype=float)
        except (TypeError, ValueError) as exc:
            raise ValidationError("only numeric values can be noised") from exc
        return arr, arr.ndim == 0

    def reseed(self, seed: Optional[Any]) -> None:
        self._rng = create_rng(seed)

    # reporting ---------------------------------------------------------------
    @property
    def mechanism_id(self) -> str:
        """Lower-case class name without the ``Mechanism`` suffix."""
        ident = type(self).__name__.lower()
        if ident.endswith("mechanism") and ident != "mechanism":
            ident = ident[: -len("mechanism")]
        return ident

    def describe(self) -> Dict[str, Any]:
        return {
            "mechanism": self.mechanism_id,
            "name": self.name,
            "distribution": self.distribution,
            "epsilon": self.epsilon,
            "delta": self.delta,
            "sensitivity": self.sensitivity,
            "scale": self._scale,
            "calibrated": self.calibrated,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(eps={self.epsilon}, delta={self.delta}, scale={self._scale})"
