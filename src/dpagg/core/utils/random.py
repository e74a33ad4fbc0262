"""
Random number generation helpers.

Responsibilities
  - Centralize RNG creation and seeding.
  - Provide reproducible splits for parallel workloads.
  - Derive per-token generators that do not depend on processing order.
  - Offer noise sampling helpers used by mechanisms and tests.

Usage Context
  - Use when a consistent RNG interface is needed across modules.
  - Contribution bounding derives one generator per privacy identifier so a
    distributed run samples the same partitions as a single-threaded one.

Limitations
  - Relies on numpy Generator behavior for reproducibility.
  - Identifiers hashed through the repr fallback of stable_encoding are only
    reproducible across processes when their type defines __repr__.
  - Distribution support is limited to the implemented options.
"""
# 说明：随机数生成与噪声采样辅助工具，用于在库中统一管理 RNG 的创建、复用与分配。
# 职责：
# - create_rng：集中封装 numpy Generator 的创建逻辑，支持显式种子与已有生成器
# - split_rng：从单一 RNG 派生出多个独立生成器，便于并行或多通道采样
# - stable_encoding / stable_digest：跨进程稳定的键编码与 xxhash 摘要
# - derive_rng：由 (seed, token) 派生确定性的生成器，与数据处理顺序无关
# - sample_noise：按分布名称统一调度到拉普拉斯 / 高斯噪声采样接口

from __future__ import annotations

import dataclasses
import enum
import numbers
from typing import Any, List, Optional, Sequence

import numpy as np
import xxhash


def create_rng(seed: Optional[Any] = None) -> np.random.Generator:
    """Create a numpy Generator from a seed, SeedSequence, or existing generator."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def split_rng(rng: np.random.Generator, num: int) -> List[np.random.Generator]:
    """Split an RNG into `num` independent generators."""
    if num <= 0:
        raise ValueError("num must be positive")
    seeds = rng.bit_generator._seed_seq.spawn(num)  # type: ignore[attr-defined]
    return [np.random.default_rng(seed) for seed in seeds]


def _framed(part: bytes) -> bytes:
    return len(part).to_bytes(8, "little") + part


def stable_encoding(token: Any) -> bytes:
    """
    Byte encoding of ``token`` that is the same in every process.

    Numbers that compare equal (``1``, ``1.0``, ``True``) encode equally, as
    they are one key to a dict. Tuples, lists, sets and dataclass instances
    are encoded field by field; other objects fall back to ``repr``, which is
    only stable when the type defines its own ``__repr__``.
    """
    if token is None:
        return b"N"
    if isinstance(token, enum.Enum):
        return b"E" + _framed(type(token).__qualname__.encode("utf-8")) + stable_encoding(token.value)
    if isinstance(token, numbers.Integral):
        return b"I" + str(int(token)).encode("ascii")
    if isinstance(token, numbers.Real):
        value = float(token)
        # 与相等的整数键保持一致
        if value.is_integer():
            return b"I" + str(int(value)).encode("ascii")
        return b"F" + repr(value).encode("ascii")
    if isinstance(token, str):
        return b"S" + token.encode("utf-8")
    if isinstance(token, (bytes, bytearray)):
        return b"Y" + bytes(token)
    if isinstance(token, (tuple, list)):
        return b"(" + b"".join(_framed(stable_encoding(item)) for item in token) + b")"
    if isinstance(token, (set, frozenset)):
        return b"{" + b"".join(_framed(part) for part in sorted(stable_encoding(item) for item in token)) + b"}"
    if dataclasses.is_dataclass(token) and not isinstance(token, type):
        values = tuple(getattr(token, f.name) for f in dataclasses.fields(token))
        return b"D" + _framed(type(token).__qualname__.encode("utf-8")) + stable_encoding(values)
    return b"R" + _framed(type(token).__qualname__.encode("utf-8")) + repr(token).encode("utf-8")


def stable_digest(token: Any, seed: int = 0) -> int:
    """64-bit xxhash of ``stable_encoding(token)``; unaffected by ``PYTHONHASHSEED``."""
    return xxhash.xxh64(stable_encoding(token), seed=seed).intdigest()


def derive_rng(seed: Optional[int], token: Any) -> np.random.Generator:
    """
    Return a generator keyed by ``(seed, token)``.

    With ``seed=None`` a fresh, OS-entropy generator is returned and the token
    is ignored.
    """
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng(np.random.SeedSequence([int(seed), stable_digest(token)]))


def sample_noise(
    rng: np.random.Generator,
    distribution: str,
    size: Optional[Sequence[int]] = None,
    **kwargs,
) -> np.ndarray:
    """Sample noise for a given distribution with named parameters."""
    distribution = distribution.lower()
    if distribution == "laplace":
        return rng.laplace(kwargs.get("loc", 0.0), kwargs["scale"], size=size)
    if distribution == "gaussian" or distribution == "normal":
        return rng.normal(kwargs.get("loc", 0.0), kwargs["scale"], size=size)
    raise ValueError(f"unsupported distribution '{distribution}'")
