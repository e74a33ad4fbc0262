"""
Error hierarchy for the private aggregation pipeline.

Responsibilities
  - Separate configuration mistakes from budget exhaustion.
  - Give data-shape problems detected at setup their own type.

Usage Context
  - Raised by parameter validation and by the public operations before any
    record is processed. None of them is retryable: the caller must fix the
    parameters or use a fresh privacy spec.
"""
# 说明：隐私聚合流水线的异常体系，区分配置错误、数据形态错误与预算耗尽。
# 职责：
# - AggregationError：聚合子模块统一基类异常
# - ConfigurationError：ε/δ、贡献界、噪声类型等参数非法或相互矛盾
# - DataShapeError：公共分区类型与输入分区键类型不符，或记录形态不合法
# - BudgetExceeded：BudgetExceededError 的别名，便于从聚合模块直接捕获

from __future__ import annotations

from dpagg.core.privacy.privacy_accountant import BudgetExceededError
from dpagg.core.utils.param_validation import ParamValidationError


class AggregationError(RuntimeError):
    """
    Base error type for aggregation failures.

    - Behavior
      - Serves as the common ancestor for aggregation-specific exceptions.

    - Usage Notes
      - Catch to handle aggregation errors without mixing with core errors.
    """


class ConfigurationError(AggregationError, ParamValidationError):
    """
    Raised when aggregation parameters are invalid or contradictory.

    - Behavior
      - Detected eagerly, before the budget is consumed or data is read.

    - Usage Notes
      - Subclasses ParamValidationError so generic validation handlers see it.
    """


class DataShapeError(ConfigurationError):
    """
    Raised when the declared data shape does not match the input.

    - Behavior
      - Covers public partitions whose type differs from the input partition
        keys, and records that are not (identifier, partition[, value]) tuples.
    """


BudgetExceeded = BudgetExceededError

__all__ = [
    "AggregationError",
    "BudgetExceeded",
    "BudgetExceededError",
    "ConfigurationError",
    "DataShapeError",
]
