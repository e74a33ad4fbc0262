"""
Unit tests for the execution substrate adapter.
"""
# 说明：LocalBackend（进程内执行底座）的单元测试。
# 覆盖：
# - map / flat_map / filter / map_values / keys / flatten / distinct 等逐记录原语
# - group_by_key 与 reduce_per_key 的分组语义
# - combine_per_key 在分块、打乱 key 顺序时结果不变

import pytest

from dpagg.cdp.aggregation.backend import LocalBackend, PipelineBackend
from dpagg.core.utils.param_validation import ParamValidationError


class _SumAndCount:
    # 简单合并器：累加器为 (元素个数, 和)
    def create_accumulator(self, values):
        values = list(values)
        return len(values), sum(values)

    def merge_accumulators(self, a, b):
        return a[0] + b[0], a[1] + b[1]

    def compute_metrics(self, acc):
        return acc


def test_per_record_primitives() -> None:
    # 逐记录变换与过滤原语立即返回物化的列表
    backend = LocalBackend()
    assert backend.map([1, 2], lambda x: x * 2) == [2, 4]
    assert backend.flat_map([1, 2], lambda x: [x] * x) == [1, 2, 2]
    assert backend.filter([1, 2, 3], lambda x: x > 1) == [2, 3]
    assert backend.map_values([("a", 1)], lambda v: v + 1) == [("a", 2)]
    assert backend.keys([("a", 1), ("b", 2)]) == ["a", "b"]
    assert backend.flatten([[1], [2, 3]]) == [1, 2, 3]
    assert backend.distinct(["b", "a", "b"]) == ["b", "a"]
    assert isinstance(backend, PipelineBackend)


def test_group_and_reduce_per_key() -> None:
    # group_by_key 收集同 key 的值，reduce_per_key 用二元函数折叠
    backend = LocalBackend()
    pairs = [("a", 1), ("b", 2), ("a", 3)]
    assert dict(backend.group_by_key(pairs)) == {"a": [1, 3], "b": [2]}
    assert dict(backend.reduce_per_key(pairs, lambda x, y: x + y)) == {"a": 4, "b": 2}


@pytest.mark.parametrize("chunk_size,shuffle_seed", [(None, None), (1, None), (2, 3), (None, 11)])
def test_combine_per_key_independent_of_chunking_and_order(chunk_size, shuffle_seed) -> None:
    # 分块与打乱顺序不影响 combine_per_key 的结果
    pairs = [(key, value) for key in "abcd" for value in range(5)]
    backend = LocalBackend(chunk_size=chunk_size, shuffle_seed=shuffle_seed)
    result = dict(backend.combine_per_key(pairs, _SumAndCount()))
    assert result == {key: (5, 10) for key in "abcd"}


def test_invalid_chunk_size_rejected() -> None:
    # chunk_size 必须为正整数
    with pytest.raises(ParamValidationError):
        LocalBackend(chunk_size=0)
