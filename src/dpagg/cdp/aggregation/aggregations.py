"""
Public differentially private aggregations.

Responsibilities
  - count: noisy number of records per partition.
  - sum_per_key: noisy sum of bounded values per partition.
  - select_partitions: private set of partitions, no aggregate value.

Usage Context
  - Every call validates its parameters, then allocates its (ε, δ) from the
    collection's PrivacySpec, then builds the pipeline on the collection's
    backend. Invalid parameters or an exhausted budget abort the call before
    any record is read.

Pipeline
  records -> [drop non-public partitions] -> collapse per (identifier,
  partition) -> cross-partition bounding -> [public placeholders] ->
  per-partition clamp, sum, [selection], noise -> clamp to >= 0
"""
# 说明：对外公开的差分隐私聚合操作：count / sum_per_key / select_partitions。
# 职责：
# - 参数校验（不触碰数据）→ 预算分配（锁内校验 δ 规则）→ 在 backend 上构建流水线
# - 贡献界定丢弃（隐私核算之前、静默）与分区选择抑制（计入 ε/δ）严格区分
# - 后处理：加噪之后将结果裁剪为非负；count 额外取整

from __future__ import annotations

from typing import Any, Iterable

from dpagg.cdp.mechanisms.mechanism_factory import create_additive_mechanism
from dpagg.core.utils.logging import get_logger
from dpagg.core.utils.param_validation import ensure_finite

from .combiners import BoundedSumCombiner, PartitionSelectionCombiner
from .contribution_bounding import bound_contributions
from .exceptions import DataShapeError
from .params import (
    CountParams,
    ResolvedParams,
    SelectPartitionsParams,
    SumParams,
    resolve_count_params,
    resolve_select_partitions_params,
    resolve_sum_params,
)
from .partition_selection import create_partition_selector, split_aggregation_budget
from .privacy_spec import PrivateCollection, split_record
from .public_partitions import add_empty_public_partitions, drop_non_public_partitions

logger = get_logger(__name__)


def clamp_non_negative(value: float) -> float:
    """Post-processing applied after noise; not a contribution bound."""
    return max(0.0, float(value))


def _count_contribution(record: Any):
    privacy_id, partition, _ = split_record(record)
    return privacy_id, partition, 1


def _sum_contribution(record: Any):
    privacy_id, partition, value = split_record(record)
    if value is None:
        raise DataShapeError("sum_per_key requires (privacy_id, partition, value) records")
    return privacy_id, partition, ensure_finite(value, label="record value", error=DataShapeError)


def _presence_contribution(record: Any):
    privacy_id, partition, _ = split_record(record)
    return privacy_id, partition, 0


def _allocate(collection: PrivateCollection, params: Any, resolved: ResolvedParams):
    epsilon, delta = collection.privacy_spec.consume_budget(
        params.epsilon,
        params.delta,
        description=resolved.aggregation,
        metadata=resolved.describe(),
        check=resolved.check_allocation,
    )
    logger.info(
        "%s: allocated eps=%s delta=%s (noise=%s, max_partitions_contributed=%s, public_partitions=%s)",
        resolved.aggregation,
        epsilon,
        delta,
        resolved.noise_kind.value,
        resolved.max_partitions_contributed,
        resolved.uses_public_partitions,
    )
    return epsilon, delta


def _noisy_bounded_sum(
    collection: PrivateCollection,
    resolved: ResolvedParams,
    epsilon: float,
    delta: float,
    contributions: Iterable[Any],
):
    backend = collection.backend
    noise_rng, selection_rng, sampling_seed = collection.privacy_spec.aggregation_randomness()
    public = resolved.uses_public_partitions
    budget = split_aggregation_budget(resolved.noise_kind, epsilon, delta, public_partitions=public)

    mechanism = create_additive_mechanism(
        resolved.noise_kind,
        epsilon=budget.noise_epsilon,
        delta=budget.noise_delta,
        l0_sensitivity=resolved.max_partitions_contributed,
        linf_sensitivity=resolved.linf_sensitivity,
        rng=noise_rng,
        name=resolved.aggregation,
    )
    selector = None
    if not public:
        selector = create_partition_selector(
            resolved.noise_kind,
            epsilon=budget.selection_epsilon,
            delta=budget.selection_delta,
            max_partitions_contributed=resolved.max_partitions_contributed,
            rng=selection_rng,
        )
    combiner = BoundedSumCombiner(
        mechanism, min_value=resolved.min_value, max_value=resolved.max_value, selector=selector
    )
    logger.debug("%s: %s", resolved.aggregation, combiner.explain_computation())

    if public:
        contributions = drop_non_public_partitions(backend, contributions, resolved.public_partitions)
    bounded = bound_contributions(backend, contributions, resolved.max_partitions_contributed, sampling_seed)
    per_partition = backend.map(bounded, lambda c: (c[1], c[2]), "Drop privacy_id")
    if public:
        per_partition = add_empty_public_partitions(backend, per_partition, resolved.public_partitions)
    noisy = backend.combine_per_key(per_partition, combiner, f"Noisy {resolved.aggregation}")
    if selector is not None:
        noisy = backend.filter(noisy, lambda kv: kv[1] is not None, "Drop unselected partitions")
    return backend.map_values(noisy, clamp_non_negative, "Clamp to non-negative")


def count(collection: PrivateCollection, params: CountParams):
    """
    Noisy count of records per partition.

    Each identifier adds at most ``max_value`` to at most
    ``max_partitions_contributed`` partitions. Returns ``(partition, int)``
    pairs; without public partitions, partitions that fail selection are
    absent.

    Raises:
        ConfigurationError: invalid parameters.
        DataShapeError: public partition type does not match the input.
        BudgetExceededError: the PrivacySpec cannot fund the call.
    """
    resolved = resolve_count_params(params, collection.privacy_spec, collection.partition_type)
    epsilon, delta = _allocate(collection, params, resolved)
    backend = collection.backend
    contributions = backend.map(collection.records, _count_contribution, "Extract count contributions")
    noisy = _noisy_bounded_sum(collection, resolved, epsilon, delta, contributions)
    return backend.map_values(noisy, lambda value: int(round(value)), "Round counts")


def sum_per_key(collection: PrivateCollection, params: SumParams):
    """
    Noisy sum of values per partition.

    An identifier's summed value in one partition is clamped to
    ``[min_value, max_value]``. Returns ``(partition, float)`` pairs.

    Raises:
        ConfigurationError: invalid parameters.
        DataShapeError: public partition type does not match the input.
        BudgetExceededError: the PrivacySpec cannot fund the call.
    """
    resolved = resolve_sum_params(params, collection.privacy_spec, collection.partition_type)
    epsilon, delta = _allocate(collection, params, resolved)
    contributions = collection.backend.map(collection.records, _sum_contribution, "Extract sum contributions")
    return _noisy_bounded_sum(collection, resolved, epsilon, delta, contributions)


def select_partitions(collection: PrivateCollection, params: SelectPartitionsParams):
    """
    Partitions that can be released under the allocated (ε, δ).

    The whole allocation is spent on thresholding the distinct identifier
    count. Returns a collection of partition keys.
    """
    resolved = resolve_select_partitions_params(params, collection.privacy_spec)
    epsilon, delta = _allocate(collection, params, resolved)
    backend = collection.backend
    _, selection_rng, sampling_seed = collection.privacy_spec.aggregation_randomness()
    selector = create_partition_selector(
        resolved.noise_kind,
        epsilon=epsilon,
        delta=delta,
        max_partitions_contributed=resolved.max_partitions_contributed,
        rng=selection_rng,
    )
    combiner = PartitionSelectionCombiner(selector)
    logger.debug("%s: %s", resolved.aggregation, combiner.explain_computation())

    contributions = backend.map(collection.records, _presence_contribution, "Extract (privacy_id, partition)")
    bounded = bound_contributions(backend, contributions, resolved.max_partitions_contributed, sampling_seed)
    per_partition = backend.map(bounded, lambda c: (c[1], c[2]), "Drop privacy_id")
    decisions = backend.combine_per_key(per_partition, combiner, "Select partitions")
    kept = backend.filter(decisions, lambda kv: kv[1], "Drop unselected partitions")
    return backend.keys(kept, "Partition keys")
