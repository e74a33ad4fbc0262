"""
Reusable validation helpers.
"""
# 说明：参数验证相关的辅助函数，用于在库内部统一进行轻量级参数检查。
# 职责：
# - ParamValidationError：专门用于参数校验失败的异常类型
# - ensure：基于布尔条件触发参数校验错误的轻量断言工具
# - ensure_type：检查参数是否属于指定类型集合，并在失败时给出带 label 的错误提示
# - ensure_finite：检查数值可转为有限浮点数

from __future__ import annotations

import math
from typing import Any, Tuple, Type


class ParamValidationError(ValueError):
    """Raised when parameter validation fails."""


def ensure(condition: bool, message: str, *, error: Type[Exception] = ParamValidationError) -> None:
    # 条件不满足时抛出指定的异常类型（默认使用 ParamValidationError）
    if not condition:
        raise error(message)


def ensure_type(
    value: Any,
    expected: Tuple[type, ...],
    *,
    label: str = "value",
    error: Type[Exception] = ParamValidationError,
) -> None:
    # 检查 value 是否为 expected 集合中的任意类型，否则抛出带字段标签的错误
    if not isinstance(value, expected):
        names = ", ".join(t.__name__ for t in expected)
        raise error(f"{label} must be instance of {names}, got {type(value).__name__}")


def ensure_finite(
    value: Any,
    *,
    label: str = "value",
    error: Type[Exception] = ParamValidationError,
) -> float:
    # 将输入转为 float，并拒绝 NaN / ±inf 以及布尔值
    if isinstance(value, bool):
        raise error(f"{label} must be a real number, got bool")
    try:
        numeric = float(value)
    except (TypeError, ValueError) as exc:
        raise error(f"{label} must be a real number") from exc
    if not math.isfinite(numeric):
        raise error(f"{label} must be finite, got {numeric}")
    return numeric
