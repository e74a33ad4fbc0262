"""
Public partition handling.

Responsibilities
  - De-duplicate a caller-supplied partition universe and check its element
    type against the input partition keys.
  - Drop records whose partition is not public, before contribution bounding.
  - Inject one empty placeholder per public partition so every declared
    partition reaches the combiner and receives a noised draw around zero.

Usage Context
  - Used by Count and Sum when ``public_partitions`` is given. Partition
    selection is skipped in that mode: the output key set is a function of the
    public list only.
"""
# 说明：公共分区（由调用方在带外提供、与隐私数据无关的分区全集）的合并逻辑。
# 职责：
# - check_public_partitions：去重并校验元素类型与输入分区键类型一致（否则 DataShapeError）
# - drop_non_public_partitions：在贡献界定之前丢弃非公共分区的记录，避免占用身份的分区配额
# - add_empty_public_partitions：为每个公共分区注入空占位值，保证输出键集合恰为公共分区集合

from __future__ import annotations

from typing import Any, Hashable, Iterable, Optional, Tuple

from .exceptions import DataShapeError


class EmptyPartition:
    """
    Placeholder contribution for a public partition.

    Combiners skip it: it adds nothing to the sum and is not counted as a
    contributing identifier.
    """

    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, EmptyPartition)

    def __hash__(self) -> int:
        return hash(EmptyPartition)

    def __repr__(self) -> str:
        return "EMPTY_PARTITION"


EMPTY_PARTITION = EmptyPartition()


def is_empty_partition(value: Any) -> bool:
    return isinstance(value, EmptyPartition)


def check_public_partitions(
    public_partitions: Iterable[Hashable], partition_type: Optional[type] = None
) -> Tuple[Hashable, ...]:
    """
    Return the de-duplicated public partitions in first-seen order.

    Raises:
        DataShapeError: an element is unhashable, or is not an instance of
            ``partition_type`` when the input partition type is known.
    """
    if isinstance(public_partitions, (str, bytes)):
        raise DataShapeError("public_partitions must be a collection of partition keys, not a single string")
    try:
        unique = tuple(dict.fromkeys(public_partitions))
    except TypeError as exc:
        raise DataShapeError(f"public partitions must be hashable and iterable: {exc}") from exc
    if partition_type is not None:
        for partition in unique:
            if not isinstance(partition, partition_type):
                raise DataShapeError(
                    f"public partition {partition!r} has type {type(partition).__name__}, "
                    f"input partitions have type {partition_type.__name__}"
                )
    return unique


def drop_non_public_partitions(backend: Any, contributions: Iterable[Any], public_partitions: Iterable[Hashable]):
    """Keep ``(privacy_id, partition, value)`` records whose partition is public."""
    allowed = frozenset(public_partitions)
    return backend.filter(contributions, lambda c: c[1] in allowed, "Drop non-public partitions")


def add_empty_public_partitions(backend: Any, per_partition: Iterable[Any], public_partitions: Iterable[Hashable]):
    """Union ``(partition, value)`` pairs with one empty placeholder per public partition."""
    placeholders = backend.map(
        backend.distinct(public_partitions, "Deduplicate public partitions"),
        lambda partition: (partition, EMPTY_PARTITION),
        "Build empty public partitions",
    )
    return backend.flatten([per_partition, placeholders], "Add empty public partitions")
