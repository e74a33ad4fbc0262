"""
Unit tests for thresholding partition selection.
"""
# 说明：阈值化分区选择的单元测试。
# 覆盖：
# - 有/无公共分区、Laplace/Gaussian 下的预算拆分
# - 单个身份的分区被保留的概率不超过 δ_sel / L0
# - 远高于阈值的分区几乎总被保留，远低于阈值的几乎总被丢弃
# - 无真实身份的分区永不保留

import math

import pytest

from dpagg.cdp.aggregation.partition_selection import (
    GaussianThresholdingSelector,
    LaplaceThresholdingSelector,
    create_partition_selector,
    split_aggregation_budget,
)
from dpagg.cdp.mechanisms import NoiseKind
from dpagg.cdp.sensitivity.noise_calibrator import laplace_threshold


def test_budget_split() -> None:
    # 公共分区：全部给噪声；Laplace：ε 对半、δ 全给选择；Gaussian：ε、δ 均对半
    assert split_aggregation_budget("laplace", 1.0, 0.0, public_partitions=True) == (1.0, 0.0, 0.0, 0.0)
    assert split_aggregation_budget("laplace", 1.0, 1e-5, public_partitions=False) == (0.5, 0.0, 0.5, 1e-5)
    assert split_aggregation_budget(NoiseKind.GAUSSIAN, 1.0, 1e-5, public_partitions=False) == (
        0.5,
        5e-6,
        0.5,
        5e-6,
    )


def test_factory_picks_selector_for_noise_kind() -> None:
    # 选择器与聚合使用同一种噪声
    laplace = create_partition_selector("laplace", epsilon=1.0, delta=1e-5, max_partitions_contributed=1)
    gaussian = create_partition_selector("gaussian", epsilon=1.0, delta=1e-5, max_partitions_contributed=1)
    assert isinstance(laplace, LaplaceThresholdingSelector)
    assert isinstance(gaussian, GaussianThresholdingSelector)


@pytest.mark.parametrize("l0", [1, 3])
def test_laplace_single_identifier_keep_probability(l0: int) -> None:
    # Laplace：阈值与公式一致，单身份保留概率恰为 δ / L0
    selector = LaplaceThresholdingSelector(1.0, 1e-5, l0)
    assert selector.threshold == pytest.approx(laplace_threshold(1.0, 1e-5, l0_sensitivity=l0))
    assert selector.probability_of_keep(1) == pytest.approx(1e-5 / l0)


def test_gaussian_single_identifier_keep_probability() -> None:
    # Gaussian：一半 δ 用于阈值，单身份保留概率为 (δ/2) / L0
    selector = GaussianThresholdingSelector(1.0, 1e-5, 2)
    assert selector.probability_of_keep(1) == pytest.approx(1e-5 / 4, rel=1e-6)


@pytest.mark.parametrize("noise_kind", ["laplace", "gaussian"])
def test_keep_probability_is_monotone(noise_kind: str) -> None:
    # 保留概率随身份数单调不减，且远高于阈值时趋近 1
    selector = create_partition_selector(noise_kind, epsilon=1.0, delta=1e-5, max_partitions_contributed=1)
    probabilities = [selector.probability_of_keep(n) for n in (0, 1, 5, 10, 20, 50, 200)]
    assert probabilities == sorted(probabilities)
    assert probabilities[0] == 0.0
    assert probabilities[-1] == pytest.approx(1.0)


@pytest.mark.parametrize("noise_kind", ["laplace", "gaussian"])
def test_should_keep_suppresses_small_and_keeps_large(noise_kind: str) -> None:
    # 重复试验：1 个身份几乎总被丢弃，1000 个身份总被保留，0 个身份永不保留
    selector = create_partition_selector(
        noise_kind, epsilon=1.0, delta=1e-5, max_partitions_contributed=1, rng=2024
    )
    assert sum(selector.should_keep(1) for _ in range(500)) <= 2
    assert all(selector.should_keep(1000) for _ in range(500))
    assert not selector.should_keep(0)


def test_describe_mentions_threshold() -> None:
    # describe 输出包含阈值信息，便于日志记录
    selector = LaplaceThresholdingSelector(1.0, 1e-5, 1)
    assert "threshold=" in selector.describe()
    assert math.isfinite(selector.threshold)
