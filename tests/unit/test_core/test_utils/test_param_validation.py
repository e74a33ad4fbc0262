"""
Unit tests for parameter validation helpers.
"""
# 说明：ensure / ensure_type / ensure_finite 的单元测试。
# 覆盖：
# - 条件失败时抛出默认或指定的异常类型
# - 类型检查错误信息中包含字段标签
# - 有限数值检查拒绝 NaN、inf、布尔值与非数值

import math

import pytest

from dpagg.core.utils.param_validation import (
    ParamValidationError,
    ensure,
    ensure_finite,
    ensure_type,
)


class _CustomError(ValueError):
    pass


def test_ensure_raises_default_and_custom_errors() -> None:
    # 默认抛 ParamValidationError，也可指定自定义异常类型
    ensure(True, "never raised")
    with pytest.raises(ParamValidationError, match="boom"):
        ensure(False, "boom")
    with pytest.raises(_CustomError):
        ensure(False, "boom", error=_CustomError)


def test_ensure_type_reports_label() -> None:
    # 错误信息应包含字段名与期望类型
    ensure_type(3, (int, float), label="bound")
    with pytest.raises(ParamValidationError, match="bound must be instance of int, float"):
        ensure_type("3", (int, float), label="bound")


def test_ensure_finite_accepts_numbers() -> None:
    # 整数与 numpy 标量都应被转为 float
    import numpy as np

    assert ensure_finite(3) == 3.0
    assert ensure_finite(np.float32(1.5)) == 1.5


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, True, "x", None])
def test_ensure_finite_rejects_invalid(value) -> None:
    # NaN、无穷、布尔值与非数值均应被拒绝
    with pytest.raises(ParamValidationError):
        ensure_finite(value, label="epsilon")
