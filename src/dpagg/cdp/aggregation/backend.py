"""
Execution substrate adapter for the aggregation pipeline.

Responsibilities
  - Define the group-by / combine-per-key / flatten / per-record transform
    primitives the aggregations are written against.
  - Provide an in-process implementation that materialises every stage.

Usage Context
  - Aggregations only talk to a PipelineBackend, so the same code runs on a
    single-threaded reducer or on a distributed engine wrapped in an adapter.

Limitations
  - LocalBackend keeps every stage in memory.
"""
# 说明：聚合流水线所依赖的执行底座（substrate）适配层。
# 职责：
# - PipelineBackend：声明 map / flat_map / filter / group_by_key / combine_per_key / flatten 等原语
# - LocalBackend：进程内实现，每个阶段立即物化为 list，保证"全部完成或整体失败"
# - 可选 chunk_size / shuffle_seed：把同一 key 的值切块后再合并、打乱 key 顺序，
#   用于验证结果与合并顺序、处理顺序无关

from __future__ import annotations

import abc
import collections
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Tuple

import numpy as np

from dpagg.core.utils.param_validation import ParamValidationError, ensure

KeyValue = Tuple[Hashable, Any]


class PipelineBackend(abc.ABC):
    """Primitives of the execution substrate consumed by the aggregations."""

    @abc.abstractmethod
    def map(self, col: Iterable[Any], fn: Callable[[Any], Any], stage_name: str = "") -> Iterable[Any]:
        """Apply ``fn`` to every element."""

    @abc.abstractmethod
    def flat_map(self, col: Iterable[Any], fn: Callable[[Any], Iterable[Any]], stage_name: str = "") -> Iterable[Any]:
        """Apply ``fn`` to every element and concatenate the results."""

    @abc.abstractmethod
    def filter(self, col: Iterable[Any], fn: Callable[[Any], bool], stage_name: str = "") -> Iterable[Any]:
        """Keep elements for which ``fn`` is true."""

    @abc.abstractmethod
    def group_by_key(self, col: Iterable[KeyValue], stage_name: str = "") -> Iterable[Tuple[Hashable, List[Any]]]:
        """Group ``(key, value)`` pairs into ``(key, [values])``."""

    @abc.abstractmethod
    def reduce_per_key(
        self, col: Iterable[KeyValue], fn: Callable[[Any, Any], Any], stage_name: str = ""
    ) -> Iterable[KeyValue]:
        """Fold the values of every key with an associative binary ``fn``."""

    @abc.abstractmethod
    def combine_per_key(self, col: Iterable[KeyValue], combiner: Any, stage_name: str = "") -> Iterable[KeyValue]:
        """Aggregate the values of every key with a Combiner."""

    @abc.abstractmethod
    def flatten(self, cols: Iterable[Iterable[Any]], stage_name: str = "") -> Iterable[Any]:
        """Union of several collections."""

    @abc.abstractmethod
    def distinct(self, col: Iterable[Hashable], stage_name: str = "") -> Iterable[Hashable]:
        """Remove duplicate elements."""

    def map_values(self, col: Iterable[KeyValue], fn: Callable[[Any], Any], stage_name: str = "") -> Iterable[KeyValue]:
        return self.map(col, lambda kv: (kv[0], fn(kv[1])), stage_name)

    def keys(self, col: Iterable[KeyValue], stage_name: str = "") -> Iterable[Hashable]:
        return self.map(col, lambda kv: kv[0], stage_name)


class LocalBackend(PipelineBackend):
    """
    In-memory backend; every stage returns a fully materialised list.

    - Configuration
      - chunk_size: When set, the values of one key are split into chunks of
        this size, one accumulator per chunk, then merged pairwise.
      - shuffle_seed: When set, grouped keys and their values are emitted in a
        pseudo-random order.
    """

    def __init__(self, *, chunk_size: Optional[int] = None, shuffle_seed: Optional[int] = None):
        if chunk_size is not None:
            ensure(
                isinstance(chunk_size, int) and not isinstance(chunk_size, bool) and chunk_size > 0,
                "chunk_size must be a positive integer",
                error=ParamValidationError,
            )
        self.chunk_size = chunk_size
        self.shuffle_seed = shuffle_seed
        self._rng = np.random.default_rng(shuffle_seed) if shuffle_seed is not None else None

    def map(self, col, fn, stage_name=""):
        return [fn(x) for x in col]

    def flat_map(self, col, fn, stage_name=""):
        return [y for x in col for y in fn(x)]

    def filter(self, col, fn, stage_name=""):
        return [x for x in col if fn(x)]

    def group_by_key(self, col, stage_name=""):
        groups: Dict[Hashable, List[Any]] = collections.defaultdict(list)
        for key, value in col:
            groups[key].append(value)
        items = list(groups.items())
        if self._rng is not None:
            order = self._rng.permutation(len(items))
            items = [items[i] for i in order]
            for _, values in items:
                values[:] = [values[i] for i in self._rng.permutation(len(values))]
        return items

    def reduce_per_key(self, col, fn, stage_name=""):
        result = []
        for key, values in self.group_by_key(col, stage_name):
            acc = values[0]
            for value in values[1:]:
                acc = fn(acc, value)
            result.append((key, acc))
        return result

    def combine_per_key(self, col, combiner, stage_name=""):
        result = []
        for key, values in self.group_by_key(col, stage_name):
            accumulators = [combiner.create_accumulator(chunk) for chunk in self._chunks(values)]
            acc = accumulators[0]
            for other in accumulators[1:]:
                acc = combiner.merge_accumulators(acc, other)
            result.append((key, combiner.compute_metrics(acc)))
        return result

    def flatten(self, cols, stage_name=""):
        return [x for col in cols for x in col]

    def distinct(self, col, stage_name=""):
        # 保持首次出现顺序
        return list(dict.fromkeys(col))

    def _chunks(self, values: List[Any]) -> List[List[Any]]:
        if self.chunk_size is None:
            return [values]
        return [values[i : i + self.chunk_size] for i in range(0, len(values), self.chunk_size)]
