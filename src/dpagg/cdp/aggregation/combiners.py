"""
Combiners run per partition by the execution substrate.

Responsibilities
  - BoundedSumCombiner: clamp per-identifier contributions, sum them, count
    contributing identifiers, then (optionally) run partition selection and
    add calibrated noise.
  - PartitionSelectionCombiner: count contributing identifiers and return the
    keep/drop decision only.

Usage Context
  - ``create_accumulator`` may be called on any chunk of a partition's values
    and accumulators merged in any order; the result only depends on the
    multiset of values.
"""
# 说明：由执行底座在每个分区上调用的合并器（create_accumulator / merge_accumulators / compute_metrics）。
# 职责：
# - BoundedSumCombiner：裁剪单身份贡献 → 求和 → 统计身份数 → 可选分区选择 → 加噪
# - PartitionSelectionCombiner：只统计身份数并返回是否保留该分区
# - 公共分区的空占位值（EmptyPartition）既不计入求和也不计入身份数
# 注意：累加器只依赖值的多重集合，与分块、合并顺序无关

from __future__ import annotations

import abc
from typing import Any, Iterable, Optional, Tuple

from dpagg.core.privacy.base_mechanism import BaseMechanism

from .contribution_bounding import clamp_contribution
from .partition_selection import PartitionSelector
from .public_partitions import is_empty_partition

SumAccumulator = Tuple[int, float]


class Combiner(abc.ABC):
    """Base class for per-partition aggregations."""

    @abc.abstractmethod
    def create_accumulator(self, values: Iterable[Any]) -> Any:
        """Build an accumulator from a chunk of one partition's values."""

    @abc.abstractmethod
    def merge_accumulators(self, accumulator1: Any, accumulator2: Any) -> Any:
        """Merge two accumulators of the same partition."""

    @abc.abstractmethod
    def compute_metrics(self, accumulator: Any) -> Any:
        """Turn the final accumulator into the released value."""

    @abc.abstractmethod
    def explain_computation(self) -> str:
        """Human readable description used in logs."""


class BoundedSumCombiner(Combiner):
    """
    Noisy sum of per-identifier contributions clamped to ``[min_value, max_value]``.

    ``compute_metrics`` returns ``None`` when ``selector`` drops the partition.
    Without a selector every partition is released.
    """

    def __init__(
        self,
        mechanism: BaseMechanism,
        *,
        min_value: float,
        max_value: float,
        selector: Optional[PartitionSelector] = None,
    ):
        mechanism.require_calibrated()
        self.mechanism = mechanism
        self.min_value = float(min_value)
        self.max_value = float(max_value)
        self.selector = selector

    def create_accumulator(self, values: Iterable[Any]) -> SumAccumulator:
        count, total = 0, 0.0
        for value in values:
            if is_empty_partition(value):
                continue
            count += 1
            total += clamp_contribution(value, self.min_value, self.max_value)
        return count, total

    def merge_accumulators(self, accumulator1: SumAccumulator, accumulator2: SumAccumulator) -> SumAccumulator:
        return accumulator1[0] + accumulator2[0], accumulator1[1] + accumulator2[1]

    def compute_metrics(self, accumulator: SumAccumulator) -> Optional[float]:
        count, total = accumulator
        if self.selector is not None and not self.selector.should_keep(count):
            return None
        return float(self.mechanism.add_noise(total))

    def explain_computation(self) -> str:
        selection = self.selector.describe() if self.selector is not None else "public partitions"
        return (
            f"bounded sum clamped to [{self.min_value}, {self.max_value}] with "
            f"{self.mechanism.mechanism_id} noise (std={self.mechanism.std:.4f}); selection: {selection}"
        )


class PartitionSelectionCombiner(Combiner):
    """Counts contributing identifiers and returns the selector's decision."""

    def __init__(self, selector: PartitionSelector):
        self.selector = selector

    def create_accumulator(self, values: Iterable[Any]) -> int:
        return sum(1 for value in values if not is_empty_partition(value))

    def merge_accumulators(self, accumulator1: int, accumulator2: int) -> int:
        return accumulator1 + accumulator2

    def compute_metrics(self, accumulator: int) -> bool:
        return self.selector.should_keep(accumulator)

    def explain_computation(self) -> str:
        return f"partition selection: {self.selector.describe()}"
