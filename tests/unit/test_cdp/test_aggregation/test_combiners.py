"""
Unit tests for the per-partition combiners.
"""
# 说明：每分区合并器的单元测试。
# 覆盖：
# - BoundedSumCombiner：贡献裁剪、身份计数、空占位值跳过、累加器合并
# - 选择器丢弃分区时返回 None；无选择器时总是发布
# - PartitionSelectionCombiner 的计数与判定
# - 未校准机制被拒绝

import pytest

from dpagg.cdp.aggregation.combiners import BoundedSumCombiner, PartitionSelectionCombiner
from dpagg.cdp.aggregation.partition_selection import LaplaceThresholdingSelector
from dpagg.cdp.aggregation.public_partitions import EMPTY_PARTITION
from dpagg.cdp.mechanisms import LaplaceMechanism, create_additive_mechanism
from dpagg.core.privacy.base_mechanism import NotCalibratedError


@pytest.fixture
def near_noiseless():
    # 夹具：ε 极大、噪声可忽略的 Laplace 机制
    return create_additive_mechanism("laplace", epsilon=1e9, l0_sensitivity=1, linf_sensitivity=10, rng=0)


def test_accumulator_clamps_and_counts(near_noiseless) -> None:
    # 每个值被裁剪到 [0, 10]，空占位值既不计入和也不计入身份数
    combiner = BoundedSumCombiner(near_noiseless, min_value=0, max_value=10)
    assert combiner.create_accumulator([-3, 5, 20, EMPTY_PARTITION]) == (3, 15.0)
    assert combiner.create_accumulator([EMPTY_PARTITION]) == (0, 0.0)


def test_merge_is_order_independent(near_noiseless) -> None:
    # 分块后合并与整体计算结果一致
    combiner = BoundedSumCombiner(near_noiseless, min_value=1, max_value=4)
    values = [0, 2, 9, 3, 1]
    whole = combiner.create_accumulator(values)
    left, right = combiner.create_accumulator(values[:2]), combiner.create_accumulator(values[2:])
    assert combiner.merge_accumulators(left, right) == whole
    assert combiner.merge_accumulators(right, left) == whole


def test_compute_metrics_without_selector_always_releases(near_noiseless) -> None:
    # 无选择器（公共分区）时，即使没有身份也发布加噪结果
    combiner = BoundedSumCombiner(near_noiseless, min_value=0, max_value=10)
    assert combiner.compute_metrics((0, 0.0)) == pytest.approx(0.0, abs=1e-6)
    assert combiner.compute_metrics((3, 15.0)) == pytest.approx(15.0, abs=1e-6)
    assert "public partitions" in combiner.explain_computation()


def test_compute_metrics_with_selector_drops_partition(near_noiseless) -> None:
    # 选择器判定丢弃时返回 None
    selector = LaplaceThresholdingSelector(1.0, 1e-5, 1, rng=0)
    combiner = BoundedSumCombiner(near_noiseless, min_value=0, max_value=10, selector=selector)
    assert combiner.compute_metrics((0, 0.0)) is None
    assert combiner.compute_metrics((10000, 5.0)) == pytest.approx(5.0, abs=1e-6)


def test_partition_selection_combiner() -> None:
    # 只统计真实身份数并返回是否保留
    selector = LaplaceThresholdingSelector(1.0, 1e-5, 1, rng=0)
    combiner = PartitionSelectionCombiner(selector)
    acc = combiner.merge_accumulators(combiner.create_accumulator([0, 0]), combiner.create_accumulator([EMPTY_PARTITION]))
    assert acc == 2
    assert combiner.compute_metrics(10000) is True
    assert combiner.compute_metrics(0) is False


def test_uncalibrated_mechanism_rejected() -> None:
    # 合并器要求机制已校准
    with pytest.raises(NotCalibratedError):
        BoundedSumCombiner(LaplaceMechanism(epsilon=1.0), min_value=0, max_value=1)
