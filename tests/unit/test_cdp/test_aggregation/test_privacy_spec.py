"""
Unit tests for PrivacySpec and PrivateCollection.
"""
# 说明：PrivacySpec 与 PrivateCollection 的单元测试。
# 覆盖：
# - 非法总预算与默认 L0 报 ConfigurationError
# - consume_budget 委托给记账器并更新剩余预算
# - 固定种子时每次聚合的随机源可复现；种子默认取自 RuntimeConfig
# - PrivateCollection 推断分区类型、物化迭代器、拒绝非法记录

import pytest

from dpagg.cdp.aggregation.backend import LocalBackend
from dpagg.cdp.aggregation.exceptions import BudgetExceeded, ConfigurationError, DataShapeError
from dpagg.cdp.aggregation.privacy_spec import PrivacySpec, PrivateCollection, make_private, split_record
from dpagg.core.utils import configure, get_config


@pytest.mark.parametrize(
    "args,kwargs",
    [((0.0,), {}), ((float("inf"),), {}), ((1.0, 1.0), {}), ((1.0,), {"max_partitions_contributed": 0})],
)
def test_invalid_spec_rejected(args, kwargs) -> None:
    # ε 必须有限且为正，δ 在 [0, 1)，默认 L0 为正整数
    with pytest.raises(ConfigurationError):
        PrivacySpec(*args, **kwargs)


def test_consume_budget_delegates_to_accountant() -> None:
    # 预算分配通过内部记账器完成，剩余预算同步更新
    spec = PrivacySpec(1.0, 1e-5)
    assert spec.consume_budget(0.4, 0.0, description="count") == (0.4, 0.0)
    assert spec.remaining.epsilon == pytest.approx(0.6)
    assert spec.accountant.events[0].description == "count"
    with pytest.raises(BudgetExceeded):
        spec.consume_budget()


def test_aggregation_randomness_is_reproducible() -> None:
    # 相同种子的两个 spec 依次派生出相同的随机源，不同聚合之间互不相同
    first, second = PrivacySpec(1.0, seed=3), PrivacySpec(1.0, seed=3)
    noise_a, selection_a, sampling_a = first.aggregation_randomness()
    noise_b, selection_b, sampling_b = second.aggregation_randomness()
    assert noise_a.normal() == noise_b.normal()
    assert selection_a.normal() == selection_b.normal()
    assert sampling_a == sampling_b
    assert first.aggregation_randomness()[2] != sampling_a


def test_unseeded_spec_has_no_sampling_seed() -> None:
    # 未设种子时跨分区抽样使用系统熵
    assert PrivacySpec(1.0).aggregation_randomness()[2] is None


def test_seed_defaults_to_runtime_config() -> None:
    # 未显式给出种子时使用 RuntimeConfig.rng_seed
    saved = get_config().rng_seed
    configure(rng_seed=99)
    try:
        assert PrivacySpec(1.0).seed == 99
    finally:
        configure(rng_seed=saved)


def test_private_collection_infers_partition_type() -> None:
    # 分区类型从第一条记录推断，迭代器被物化以便多次聚合
    spec = PrivacySpec(1.0)
    collection = make_private(((f"u{i}", i % 3) for i in range(6)), spec)
    assert collection.partition_type is int
    assert isinstance(collection.records, list) and len(collection.records) == 6
    assert isinstance(collection.backend, LocalBackend)
    assert PrivateCollection([], spec).partition_type is None
    assert PrivateCollection([], spec, partition_type=str).partition_type is str


def test_private_collection_rejects_bad_inputs() -> None:
    # 非法记录报 DataShapeError，spec 类型错误报 ConfigurationError
    spec = PrivacySpec(1.0)
    with pytest.raises(DataShapeError):
        PrivateCollection(["not-a-tuple"], spec)
    with pytest.raises(ConfigurationError):
        PrivateCollection([("u", "A")], object())


def test_split_record_shapes() -> None:
    # 支持 (身份, 分区) 与 (身份, 分区, 值) 两种记录形态
    assert split_record(("u", "A")) == ("u", "A", None)
    assert split_record(["u", "A", 2.5]) == ("u", "A", 2.5)
    with pytest.raises(DataShapeError):
        split_record(("u",))
