"""
Registry mapping noise kinds to concrete additive mechanisms.

Responsibilities
  - Provide the closed set of noise kinds an aggregation can request.
  - Normalise string identifiers to NoiseKind.
  - Resolve a NoiseKind to its implementation class.
"""
# 说明：维护 NoiseKind 与具体加性噪声机制实现类映射关系的轻量级注册表模块。
# 职责：
# - NoiseKind：聚合可选的噪声类型（Laplace | Gaussian），在配置阶段一次性选定
# - normalize_noise_kind：将字符串或枚举形式的标识符规一化，对未知值抛出校验错误
# - get_mechanism_class：按 NoiseKind 查找实现类

from __future__ import annotations

import enum
from typing import Dict, Type

from dpagg.core.privacy.base_mechanism import BaseMechanism
from dpagg.core.utils.param_validation import ParamValidationError

from .gaussian import GaussianMechanism
from .laplace import LaplaceMechanism


class NoiseKind(enum.Enum):
    """Additive noise distributions supported by the aggregations."""

    LAPLACE = "laplace"
    GAUSSIAN = "gaussian"

    @classmethod
    def from_str(cls, name: str) -> "NoiseKind":
        try:
            return cls(name.strip().lower())
        except ValueError as exc:
            raise ParamValidationError(f"unknown noise kind '{name}'") from exc

    @property
    def requires_delta(self) -> bool:
        return self is NoiseKind.GAUSSIAN


MECHANISM_REGISTRY: Dict[NoiseKind, Type[BaseMechanism]] = {
    NoiseKind.LAPLACE: LaplaceMechanism,
    NoiseKind.GAUSSIAN: GaussianMechanism,
}


def normalize_noise_kind(noise_kind: "str | NoiseKind") -> NoiseKind:
    """Coerce string or enum to NoiseKind, raising on unknown identifiers."""
    if isinstance(noise_kind, NoiseKind):
        return noise_kind
    if not isinstance(noise_kind, str):
        raise ParamValidationError(f"noise kind must be a NoiseKind or string, got {type(noise_kind).__name__}")
    return NoiseKind.from_str(noise_kind)


def get_mechanism_class(noise_kind: "str | NoiseKind") -> Type[BaseMechanism]:
    return MECHANISM_REGISTRY[normalize_noise_kind(noise_kind)]
