"""
Privacy budget tracking and allocation.

Provides an accountant that hands out (ε, δ) allocations to aggregations
sharing one dataset, enforces the global budget, and keeps a serialisable
audit trail of every allocation.
"""
# 说明：隐私预算记账与分配工具，负责在同一数据集上的多个聚合之间统一分配与约束 (ε, δ)。
# 职责：
# - PrivacyBudget：封装不可变的 (epsilon, delta) 预算，并支持加减与字典导出
# - PrivacyEvent：记录单次预算分配事件及其审计元数据
# - PrivacyAccountant：维护总预算、累计花费与事件列表；consume_budget 在互斥锁内完成
#   "检查 → 校验回调 → 提交" 三步，失败时内部状态保持不变
# 约定：
# - 请求 (0, 0) 表示"取走全部剩余预算"，仅当此前没有任何花费时合法

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from dpagg.core.utils.config import get_config
from dpagg.core.utils.logging import get_logger

from .base_mechanism import MechanismError, ValidationError

logger = get_logger(__name__)

AllocationCheck = Callable[[float, float], None]


class BudgetExceededError(MechanismError):
    """Raised when an allocation would exceed the configured privacy budget."""


def _validate_budget_value(value: float, label: str) -> float:
    """Ensure epsilon/delta components are finite and non-negative."""
    try:
        numeric = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{label} must be convertible to float") from exc
    if numeric != numeric or numeric in (float("inf"), float("-inf")):
        raise ValidationError(f"{label} must be finite")
    if numeric < 0:
        raise ValidationError(f"{label} must be non-negative")
    return numeric


@dataclass(frozen=True)
class PrivacyBudget:
    """Simple container for epsilon/delta pairs."""

    epsilon: float = 0.0
    delta: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "epsilon", _validate_budget_value(self.epsilon, "epsilon"))
        object.__setattr__(self, "delta", _validate_budget_value(self.delta, "delta"))

    def __add__(self, other: "PrivacyBudget") -> "PrivacyBudget":
        return PrivacyBudget(self.epsilon + other.epsilon, self.delta + other.delta)

    def __sub__(self, other: "PrivacyBudget") -> "PrivacyBudget":
        # 减法结果下限为 0，避免出现负预算
        return PrivacyBudget(
            max(self.epsilon - other.epsilon, 0.0),
            max(self.delta - other.delta, 0.0),
        )

    @property
    def is_zero(self) -> bool:
        return self.epsilon == 0.0 and self.delta == 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"epsilon": float(self.epsilon), "delta": float(self.delta)}


@dataclass(frozen=True)
class PrivacyEvent:
    """Record for a single privacy allocation."""

    epsilon: float
    delta: float = 0.0
    description: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    whole_budget: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "epsilon": float(self.epsilon),
            "delta": float(self.delta),
            "description": self.description,
            "metadata": dict(self.metadata),
            "whole_budget": self.whole_budget,
        }


class PrivacyAccountant:
    """
    Hand out (ε, δ) allocations from a fixed total budget.

    The accountant is the only mutable object shared between aggregations on
    the same dataset. Every allocation goes through :meth:`consume_budget`,
    which serialises callers with a lock, so concurrent aggregation set-up
    cannot over-spend.
    """

    def __init__(
        self,
        total_epsilon: float,
        total_delta: float = 0.0,
        *,
        name: Optional[str] = None,
        slack: Optional[float] = None,
    ):
        """
        Args:
            total_epsilon: Global epsilon budget, strictly positive.
            total_delta: Global delta budget in [0, 1).
            name: Optional identifier used in logs or serialization.
            slack: Numerical tolerance when checking residual budget; defaults
                to ``RuntimeConfig.budget_slack``.
        """
        self.total_budget = PrivacyBudget(total_epsilon, total_delta)
        if self.total_budget.epsilon <= 0:
            raise ValidationError("total epsilon must be strictly positive")
        if self.total_budget.delta >= 1:
            raise ValidationError("total delta must be smaller than 1")
        self.name = name or "PrivacyAccountant"
        self.slack = float(get_config().budget_slack if slack is None else slack)
        if self.slack < 0:
            raise ValidationError("slack must be non-negative")
        self._events: List[PrivacyEvent] = []
        self._spent = PrivacyBudget(0.0, 0.0)
        self._lock = threading.Lock()

    # --------------------------------------------------------------------- queries
    @property
    def spent(self) -> PrivacyBudget:
        """Return the cumulative spending so far."""
        return self._spent

    @property
    def remaining(self) -> PrivacyBudget:
        """Return the budget that has not been allocated yet."""
        return self.total_budget - self._spent

    @property
    def events(self) -> Tuple[PrivacyEvent, ...]:
        """Expose immutable history of recorded events."""
        return tuple(self._events)

    def can_allocate(self, epsilon: float, delta: float = 0.0) -> bool:
        """Check availability without mutating internal state."""
        try:
            self._resolve_request(_validate_budget_value(epsilon, "epsilon"), _validate_budget_value(delta, "delta"))
        except (ValidationError, BudgetExceededError):
            return False
        return True

    # ----------------------------------------------------------------- mutations
    def consume_budget(
        self,
        requested_epsilon: float = 0.0,
        requested_delta: float = 0.0,
        *,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        check: Optional[AllocationCheck] = None,
    ) -> Tuple[float, float]:
        """
        Allocate budget to one aggregation and return the granted ``(ε, δ)``.

        A request of ``(0, 0)`` takes the entire remaining budget; it is only
        allowed while nothing has been spent yet, otherwise the split would be
        ambiguous. A non-zero request is granted as-is when it fits in the
        remaining budget.

        ``check`` receives the granted values before they are committed. If it
        raises, the exception propagates and the accountant is left untouched.

        Raises:
            BudgetExceededError: the request does not fit, or a zero request
                was made after a partial allocation.
            ValidationError: a negative or non-finite request.
        """
        epsilon = _validate_budget_value(requested_epsilon, "epsilon")
        delta = _validate_budget_value(requested_delta, "delta")
        with self._lock:
            granted_eps, granted_delta, whole = self._resolve_request(epsilon, delta)
            if check is not None:
                check(granted_eps, granted_delta)
            event = PrivacyEvent(
                epsilon=granted_eps,
                delta=granted_delta,
                description=description,
                metadata=dict(metadata or {}),
                whole_budget=whole,
            )
            self._events.append(event)
            if whole:
                self._spent = self.total_budget
            else:
                self._spent = PrivacyBudget(self._spent.epsilon + granted_eps, self._spent.delta + granted_delta)
        logger.debug(
            "%s allocated (eps=%s, delta=%s) for %s; remaining %s",
            self.name,
            granted_eps,
            granted_delta,
            description or "unnamed aggregation",
            self.remaining.to_dict(),
        )
        return granted_eps, granted_delta

    def _resolve_request(self, epsilon: float, delta: float) -> Tuple[float, float, bool]:
        # 解析一次请求：零请求 → 全部剩余；非零请求 → 校验不越界（含 slack）
        if epsilon == 0.0 and delta == 0.0:
            if not self._spent.is_zero:
                raise BudgetExceededError(
                    "a zero (eps, delta) request takes the whole budget and is only allowed for "
                    f"the sole aggregation; {self.name} already spent {self._spent.to_dict()}"
                )
            return self.total_budget.epsilon, self.total_budget.delta, True
        remaining = self.remaining
        if epsilon > remaining.epsilon + self.slack or delta > remaining.delta + self.slack:
            raise BudgetExceededError(
                "privacy budget exceeded: "
                f"requested (eps={epsilon}, delta={delta}) while remaining "
                f"(eps={remaining.epsilon}, delta={remaining.delta})"
            )
        return epsilon, delta, False

    # -------------------------------------------------------------- serialization
    def serialize(self) -> Dict[str, Any]:
        """Return a JSON-friendly snapshot of the accountant state."""
        return {
            "name": self.name,
            "total_budget": self.total_budget.to_dict(),
            "spent": self._spent.to_dict(),
            "events": [event.to_dict() for event in self._events],
            "slack": self.slack,
        }

    def __repr__(self) -> str:
        return (
            f"<PrivacyAccountant name={self.name!r} "
            f"total={self.total_budget.to_dict()} spent={self._spent.to_dict()} events={len(self._events)}>"
        )
