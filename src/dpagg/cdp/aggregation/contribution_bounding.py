"""
Contribution bounding for the private aggregations.

Responsibilities
  - Collapse an identifier's repeated records in one partition into a single
    contribution.
  - Cross-partition bounding: keep at most ``max_partitions_contributed``
    partitions per identifier, sampled uniformly without replacement.
  - Per-partition clamping of an identifier's summed contribution.

Usage Context
  - The bounded stream is the input of the combiners; the noise calibration
    assumes both bounds hold.

Limitations
  - All of one identifier's partitions are grouped on a single worker.
  - Partition keys only need to be hashable. Before sampling they are put in
    a fixed order by their xxhash digest, never compared with ``<``.
"""
# 说明：贡献界定。先跨分区界定（每个身份最多保留 L0 个分区），再在合并器中对单分区贡献做区间裁剪。
# 职责：
# - sum_per_privacy_id_and_partition：将同一 (身份, 分区) 的多条记录汇总为一条贡献
# - CrossPartitionSampler：按身份对分区做无放回均匀抽样；分区按稳定摘要排序，不要求键可比较大小
# - bound_cross_partition_contributions：按身份分组并调用抽样器，超出部分直接丢弃（不并入其他分区）
# - clamp_contribution：把单个身份在单个分区的汇总贡献裁剪到 [lower, upper]

from __future__ import annotations

import operator
from typing import Any, Hashable, Iterable, List, Optional, Tuple

import numpy as np

from dpagg.core.utils.random import create_rng, derive_rng, stable_digest, stable_encoding

from .params import validate_max_partitions_contributed

Contribution = Tuple[Hashable, Hashable, float]


def clamp_contribution(value: float, lower: float, upper: float) -> float:
    """Clamp one identifier's summed contribution to a partition."""
    return float(min(max(value, lower), upper))


def _partition_order(entry: Tuple[Hashable, Any]) -> Tuple[int, bytes]:
    return stable_digest(entry[0]), stable_encoding(entry[0])


class CrossPartitionSampler:
    """
    Pick which partitions an identifier keeps.

    - Behavior
      - Identifiers within the bound keep every partition.
      - Otherwise ``max_partitions`` partitions are drawn uniformly without
        replacement from the identifier's partitions, taken in digest order.
      - With a seed, the generator for an identifier is derived from
        ``(seed, privacy_id)``, so the choice does not depend on the order in
        which records or identifiers are processed.
    """

    def __init__(self, max_partitions: int, seed: Optional[int] = None):
        self.max_partitions = validate_max_partitions_contributed(max_partitions)
        self.seed = seed
        self._rng: Optional[np.random.Generator] = create_rng() if seed is None else None

    def _rng_for(self, privacy_id: Hashable) -> np.random.Generator:
        if self._rng is not None:
            return self._rng
        return derive_rng(self.seed, privacy_id)

    def sample(self, privacy_id: Hashable, entries: Iterable[Tuple[Hashable, Any]]) -> List[Tuple[Hashable, Any]]:
        entries = list(entries)
        if len(entries) <= self.max_partitions:
            return entries
        entries.sort(key=_partition_order)
        chosen = self._rng_for(privacy_id).choice(len(entries), size=self.max_partitions, replace=False)
        return [entries[i] for i in sorted(chosen)]


def sum_per_privacy_id_and_partition(backend: Any, contributions: Iterable[Contribution]):
    """``(privacy_id, partition, value)`` -> one record per (privacy_id, partition) with summed value."""
    keyed = backend.map(contributions, lambda c: ((c[0], c[1]), c[2]), "Key by (privacy_id, partition)")
    summed = backend.reduce_per_key(keyed, operator.add, "Sum per (privacy_id, partition)")
    return backend.map(summed, lambda kv: (kv[0][0], kv[0][1], kv[1]), "Unnest (privacy_id, partition)")


def bound_cross_partition_contributions(
    backend: Any,
    contributions: Iterable[Contribution],
    max_partitions: int,
    seed: Optional[int] = None,
):
    """
    Limit the number of partitions each identifier contributes to.

    ``contributions`` must hold at most one record per (privacy_id, partition).
    Dropped partitions are discarded, not merged elsewhere.
    """
    sampler = CrossPartitionSampler(max_partitions, seed)
    by_privacy_id = backend.map(contributions, lambda c: (c[0], (c[1], c[2])), "Key by privacy_id")
    grouped = backend.group_by_key(by_privacy_id, "Group by privacy_id")

    def _bound(item):
        privacy_id, entries = item
        return [(privacy_id, partition, value) for partition, value in sampler.sample(privacy_id, entries)]

    return backend.flat_map(grouped, _bound, "Sample partitions per privacy_id")


def bound_contributions(
    backend: Any,
    contributions: Iterable[Contribution],
    max_partitions: int,
    seed: Optional[int] = None,
):
    """Collapse repeated records, then bound cross-partition contributions."""
    collapsed = sum_per_privacy_id_and_partition(backend, contributions)
    return bound_cross_partition_contributions(backend, collapsed, max_partitions, seed)
