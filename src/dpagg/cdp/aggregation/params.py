"""
Per-call aggregation parameters and their validation.

Responsibilities
  - Describe the knobs of Count, Sum and partition selection as dataclasses.
  - Resolve defaults (noise kind, per-spec contribution bound) and validate the
    effective values before the budget is touched.
  - Provide the check that runs on the allocated (ε, δ) inside the accountant
    lock, so a rejected call never consumes budget.

Usage Context
  - Called by the public operations in :mod:`aggregations` as their first step.

Limitations
  - Public partitions are materialised in memory for de-duplication and the
    type check.
"""
# 说明：聚合调用的参数定义与校验，在读取任何数据、消耗任何预算之前执行。
# 职责：
# - CountParams / SumParams / SelectPartitionsParams：调用级配置（噪声类型、ε/δ、贡献界、公共分区）
# - resolve_*：解析默认值（默认 Laplace、从 PrivacySpec 继承 MaxPartitionsContributed）并校验有效值
# - ResolvedParams.check_allocation：在记账器锁内对实际分配到的 (ε, δ) 校验 δ 规则
# 约定：
# - Laplace + 公共分区 → δ 必须为 0；其余情况（阈值化或 Gaussian）→ δ 必须 > 0

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, Optional, Tuple, Union

from dpagg.cdp.mechanisms.mechanism_registry import NoiseKind, normalize_noise_kind
from dpagg.core.utils.logging import get_logger
from dpagg.core.utils.param_validation import ParamValidationError, ensure, ensure_finite, ensure_type

from .exceptions import ConfigurationError
from .public_partitions import check_public_partitions

logger = get_logger(__name__)

COUNT = "count"
SUM = "sum"
SELECT_PARTITIONS = "select_partitions"


@dataclass
class _BudgetParams:
    # epsilon = delta = 0 表示占用整个 PrivacySpec 预算
    noise_kind: Optional[Union[str, NoiseKind]] = None
    epsilon: float = 0.0
    delta: float = 0.0
    max_partitions_contributed: Optional[int] = None


@dataclass
class AggregationParams(_BudgetParams):
    public_partitions: Optional[Iterable[Hashable]] = None


@dataclass
class CountParams(AggregationParams):
    """
    Parameters of a private Count.

    - Fields
      - max_value: Upper bound on the number of records one identifier may
        add to a single partition. Required, a positive integer.
      - max_partitions_contributed: Falls back to the PrivacySpec default.
      - public_partitions: When given, the output keys are exactly this set
        and partition selection is skipped.
    """

    max_value: Optional[int] = None


@dataclass
class SumParams(AggregationParams):
    """
    Parameters of a private Sum.

    An identifier's summed contribution to one partition is clamped to
    ``[min_value, max_value]``; ``0 <= min_value < max_value`` is required.
    """

    min_value: float = 0.0
    max_value: Optional[float] = None


@dataclass
class SelectPartitionsParams(_BudgetParams):
    """Parameters of a stand-alone private partition selection."""


@dataclass(frozen=True)
class ResolvedParams:
    """Effective, validated parameters of one aggregation call."""

    aggregation: str
    noise_kind: NoiseKind
    max_partitions_contributed: int
    min_value: float = 0.0
    max_value: float = 1.0
    public_partitions: Optional[Tuple[Hashable, ...]] = None

    @property
    def uses_public_partitions(self) -> bool:
        return self.public_partitions is not None

    @property
    def linf_sensitivity(self) -> float:
        """Largest change one identifier causes in a single partition."""
        return max(abs(self.min_value), abs(self.max_value))

    def check_allocation(self, epsilon: float, delta: float) -> None:
        """
        Validate the (ε, δ) granted by the accountant for this call.

        Raises:
            ConfigurationError: ε is not a positive finite number, or δ does
                not match the noise kind / partition mode combination.
        """
        ensure(math.isfinite(epsilon) and epsilon > 0, "epsilon must be finite and > 0", error=ConfigurationError)
        if self.uses_public_partitions and self.noise_kind is NoiseKind.LAPLACE:
            ensure(
                delta == 0,
                f"delta must be 0 for Laplace noise with public partitions, got {delta}",
                error=ConfigurationError,
            )
        else:
            reason = "Gaussian noise" if self.noise_kind is NoiseKind.GAUSSIAN else "partition selection"
            ensure(0 < delta < 1, f"delta must be in (0, 1) for {reason}, got {delta}", error=ConfigurationError)

    def describe(self) -> Dict[str, Any]:
        return {
            "aggregation": self.aggregation,
            "noise_kind": self.noise_kind.value,
            "max_partitions_contributed": self.max_partitions_contributed,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "public_partitions": None if self.public_partitions is None else len(self.public_partitions),
        }


# ---------------------------------------------------------------------- helpers
def validate_max_partitions_contributed(value: Any, *, label: str = "max_partitions_contributed") -> int:
    """Return ``value`` as ``int`` if it is a positive integer."""
    ensure(
        isinstance(value, numbers.Integral) and not isinstance(value, bool),
        f"{label} must be an integer, got {value!r}",
        error=ConfigurationError,
    )
    ensure(int(value) >= 1, f"{label} must be >= 1, got {value}", error=ConfigurationError)
    return int(value)


def _resolve_noise_kind(noise_kind: Optional[Union[str, NoiseKind]], aggregation: str) -> NoiseKind:
    if noise_kind is None:
        logger.info("%s: no noise kind given, defaulting to %s", aggregation, NoiseKind.LAPLACE.value)
        return NoiseKind.LAPLACE
    try:
        return normalize_noise_kind(noise_kind)
    except ParamValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


def _validate_requested_budget(params: _BudgetParams) -> None:
    epsilon = ensure_finite(params.epsilon, label="epsilon", error=ConfigurationError)
    delta = ensure_finite(params.delta, label="delta", error=ConfigurationError)
    ensure(epsilon >= 0, f"epsilon must be >= 0, got {epsilon}", error=ConfigurationError)
    ensure(0 <= delta < 1, f"delta must be in [0, 1), got {delta}", error=ConfigurationError)


def _effective_max_partitions(params: _BudgetParams, spec: Any) -> int:
    value = params.max_partitions_contributed
    if value is None:
        value = getattr(spec, "max_partitions_contributed", None)
    ensure(
        value is not None,
        "max_partitions_contributed must be set on the params or on the PrivacySpec",
        error=ConfigurationError,
    )
    return validate_max_partitions_contributed(value)


def _check_params_type(params: Any, expected: type) -> None:
    ensure_type(params, (expected,), label="params", error=ConfigurationError)


# --------------------------------------------------------------------- resolvers
def resolve_count_params(params: CountParams, spec: Any, partition_type: Optional[type] = None) -> ResolvedParams:
    """Validate Count parameters; nothing is consumed or read."""
    _check_params_type(params, CountParams)
    noise_kind = _resolve_noise_kind(params.noise_kind, COUNT)
    _validate_requested_budget(params)
    max_partitions = _effective_max_partitions(params, spec)
    ensure(params.max_value is not None, "max_value is required for count", error=ConfigurationError)
    ensure(
        isinstance(params.max_value, numbers.Integral) and not isinstance(params.max_value, bool),
        f"max_value must be an integer for count, got {params.max_value!r}",
        error=ConfigurationError,
    )
    ensure(params.max_value > 0, f"max_value must be > 0, got {params.max_value}", error=ConfigurationError)
    public = None
    if params.public_partitions is not None:
        public = check_public_partitions(params.public_partitions, partition_type)
    return ResolvedParams(
        aggregation=COUNT,
        noise_kind=noise_kind,
        max_partitions_contributed=max_partitions,
        min_value=0.0,
        max_value=float(params.max_value),
        public_partitions=public,
    )


def resolve_sum_params(params: SumParams, spec: Any, partition_type: Optional[type] = None) -> ResolvedParams:
    """Validate Sum parameters; nothing is consumed or read."""
    _check_params_type(params, SumParams)
    noise_kind = _resolve_noise_kind(params.noise_kind, SUM)
    _validate_requested_budget(params)
    max_partitions = _effective_max_partitions(params, spec)
    ensure(params.max_value is not None, "max_value is required for sum", error=ConfigurationError)
    min_value = ensure_finite(params.min_value, label="min_value", error=ConfigurationError)
    max_value = ensure_finite(params.max_value, label="max_value", error=ConfigurationError)
    ensure(max_value > 0, f"max_value must be > 0, got {max_value}", error=ConfigurationError)
    ensure(min_value >= 0, f"min_value must be >= 0, got {min_value}", error=ConfigurationError)
    ensure(min_value < max_value, "min_value must be smaller than max_value", error=ConfigurationError)
    public = None
    if params.public_partitions is not None:
        public = check_public_partitions(params.public_partitions, partition_type)
    return ResolvedParams(
        aggregation=SUM,
        noise_kind=noise_kind,
        max_partitions_contributed=max_partitions,
        min_value=min_value,
        max_value=max_value,
        public_partitions=public,
    )


def resolve_select_partitions_params(params: SelectPartitionsParams, spec: Any) -> ResolvedParams:
    """Validate partition selection parameters; the identifier count has Linf 1."""
    _check_params_type(params, SelectPartitionsParams)
    noise_kind = _resolve_noise_kind(params.noise_kind, SELECT_PARTITIONS)
    _validate_requested_budget(params)
    return ResolvedParams(
        aggregation=SELECT_PARTITIONS,
        noise_kind=noise_kind,
        max_partitions_contributed=_effective_max_partitions(params, spec),
        min_value=0.0,
        max_value=1.0,
    )
