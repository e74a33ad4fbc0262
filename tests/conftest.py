"""Shared pytest configuration and path setup for test modules."""
# 说明：测试公共配置。
# 职责：
# - 将仓库根目录与 src/ 加入 sys.path，免安装即可导入 dpagg
# - 每个测试结束后恢复全局 RuntimeConfig，避免测试之间相互影响

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_SRC = _ROOT / "src"
for p in (str(_ROOT), str(_SRC)):
    if p not in sys.path:
        sys.path.insert(0, p)

from dpagg.core.utils.config import get_config  # noqa: E402


@pytest.fixture(autouse=True)
def _restore_runtime_config():
    # 快照并恢复全局配置的可变字段
    cfg = get_config()
    saved = dict(vars(cfg))
    yield
    for key, value in saved.items():
        setattr(cfg, key, value)
