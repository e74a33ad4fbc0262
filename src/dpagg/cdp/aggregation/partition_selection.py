"""
Differentially private partition selection by thresholding.

Responsibilities
  - Noise the distinct-identifier count of a partition with the configured
    mechanism and keep the partition iff the noisy count reaches a threshold.
  - Split an aggregation's (ε, δ) between the aggregate noise and selection.

Usage Context
  - Active only when no public partitions are supplied. A partition that is
    not kept produces no output row at all.

Limitations
  - Thresholds assume each identifier adds at most 1 to the count of at most
    ``max_partitions_contributed`` partitions.
"""
# 说明：基于噪声阈值的分区选择。对"贡献身份数"加噪并与阈值 τ 比较，决定是否发布该分区。
# 职责：
# - LaplaceThresholdingSelector / GaussianThresholdingSelector：两种噪声下的阈值化选择器
# - probability_of_keep：给定真实身份数时的保留概率（用于分析与测试）
# - split_aggregation_budget：有分区选择时 ε 对半分；Laplace 的 δ 全部给选择，Gaussian 的 δ 对半分
# 注意：单个身份的分区被保留的概率不超过 δ_sel / L0

from __future__ import annotations

import abc
import math
from typing import Any, NamedTuple, Optional

from scipy.stats import norm

from dpagg.cdp.mechanisms.mechanism_factory import create_additive_mechanism
from dpagg.cdp.mechanisms.mechanism_registry import NoiseKind, normalize_noise_kind
from dpagg.cdp.sensitivity.noise_calibrator import gaussian_threshold, laplace_threshold
from dpagg.core.privacy.base_mechanism import BaseMechanism
from dpagg.core.utils.param_validation import ensure


class BudgetSplit(NamedTuple):
    noise_epsilon: float
    noise_delta: float
    selection_epsilon: float
    selection_delta: float


def split_aggregation_budget(
    noise_kind: "str | NoiseKind", epsilon: float, delta: float, *, public_partitions: bool
) -> BudgetSplit:
    """Divide one aggregation's (ε, δ) between the noisy aggregate and partition selection."""
    kind = normalize_noise_kind(noise_kind)
    if public_partitions:
        return BudgetSplit(epsilon, delta, 0.0, 0.0)
    half_epsilon = epsilon / 2.0
    if kind is NoiseKind.LAPLACE:
        return BudgetSplit(half_epsilon, 0.0, half_epsilon, delta)
    return BudgetSplit(half_epsilon, delta / 2.0, half_epsilon, delta / 2.0)


class PartitionSelector(abc.ABC):
    """
    Keep/drop decision on a partition's distinct-identifier count.

    - Configuration
      - epsilon, delta: Budget spent on selection.
      - max_partitions_contributed: L0 bound of the identifier count.
      - rng: Seed or Generator for the count noise.
    """

    def __init__(
        self,
        epsilon: float,
        delta: float,
        max_partitions_contributed: int,
        rng: Optional[Any] = None,
    ):
        ensure(epsilon > 0, "selection epsilon must be positive")
        ensure(0 < delta < 1, "selection delta must be in (0, 1)")
        ensure(max_partitions_contributed >= 1, "max_partitions_contributed must be >= 1")
        self.epsilon = float(epsilon)
        self.delta = float(delta)
        self.max_partitions_contributed = int(max_partitions_contributed)
        self.mechanism = self._build_mechanism(rng)
        self.threshold = self._compute_threshold()

    @abc.abstractmethod
    def _build_mechanism(self, rng: Optional[Any]) -> BaseMechanism:
        ...

    @abc.abstractmethod
    def _compute_threshold(self) -> float:
        ...

    @abc.abstractmethod
    def probability_of_keep(self, num_privacy_ids: int) -> float:
        """Probability that a partition with ``num_privacy_ids`` identifiers is kept."""

    def should_keep(self, num_privacy_ids: int) -> bool:
        # 没有真实身份（只有公共占位）的分区不可能被选择
        if num_privacy_ids <= 0:
            return False
        return bool(self.mechanism.add_noise(float(num_privacy_ids)) >= self.threshold)

    def describe(self) -> str:
        return (
            f"{type(self).__name__}(eps={self.epsilon}, delta={self.delta}, "
            f"l0={self.max_partitions_contributed}, threshold={self.threshold:.4f})"
        )


class LaplaceThresholdingSelector(PartitionSelector):
    """Laplace noise on the count; the whole selection δ sets the threshold."""

    def _build_mechanism(self, rng):
        return create_additive_mechanism(
            NoiseKind.LAPLACE,
            epsilon=self.epsilon,
            l0_sensitivity=self.max_partitions_contributed,
            linf_sensitivity=1.0,
            rng=rng,
            name="partition_selection",
        )

    def _compute_threshold(self) -> float:
        return laplace_threshold(self.epsilon, self.delta, l0_sensitivity=self.max_partitions_contributed)

    def probability_of_keep(self, num_privacy_ids: int) -> float:
        if num_privacy_ids <= 0:
            return 0.0
        scale = self.mechanism.scale
        gap = self.threshold - num_privacy_ids
        if gap >= 0:
            return 0.5 * math.exp(-gap / scale)
        return 1.0 - 0.5 * math.exp(gap / scale)


class GaussianThresholdingSelector(PartitionSelector):
    """Gaussian noise on the count; half of δ calibrates σ, the other half the threshold."""

    def _build_mechanism(self, rng):
        return create_additive_mechanism(
            NoiseKind.GAUSSIAN,
            epsilon=self.epsilon,
            delta=self.delta / 2.0,
            l0_sensitivity=self.max_partitions_contributed,
            linf_sensitivity=1.0,
            rng=rng,
            name="partition_selection",
        )

    def _compute_threshold(self) -> float:
        return gaussian_threshold(
            self.mechanism.sigma, self.delta / 2.0, l0_sensitivity=self.max_partitions_contributed
        )

    def probability_of_keep(self, num_privacy_ids: int) -> float:
        if num_privacy_ids <= 0:
            return 0.0
        return float(norm.sf((self.threshold - num_privacy_ids) / self.mechanism.sigma))


def create_partition_selector(
    noise_kind: "str | NoiseKind",
    *,
    epsilon: float,
    delta: float,
    max_partitions_contributed: int,
    rng: Optional[Any] = None,
) -> PartitionSelector:
    """Selector using the same noise kind as the aggregate."""
    kind = normalize_noise_kind(noise_kind)
    cls = LaplaceThresholdingSelector if kind is NoiseKind.LAPLACE else GaussianThresholdingSelector
    return cls(epsilon, delta, max_partitions_contributed, rng=rng)
