"""
Lightweight logging helpers with privacy-aware defaults.
"""
# 说明：轻量级日志工具，提供隐私友好的默认配置与统一的 logger 获取入口。
# 职责：
# - PrivacyFilter：根据运行时配置对日志记录中的敏感字段进行脱敏处理
# - configure_logging(...)：初始化 logging 基本配置（处理器、格式、级别）
# - get_logger(...)：按名称获取 logger；首次调用时初始化日志系统，并为每个 logger 挂载一次 PrivacyFilter
# - 过滤器挂在具名 logger 上：根 logger 的过滤器不会作用于子 logger 传播上来的记录
# 约定：
# - 是否掩码敏感字段由 RuntimeConfig.mask_sensitive_fields 控制
# - 日志级别优先级：显式参数 level > 环境变量 DPAGG_LOG_LEVEL > 运行时配置的 log_level

from __future__ import annotations

import logging
import os
from typing import Optional

from .config import get_config

SENSITIVE_ATTRIBUTES = ("privacy_id", "user_id", "pii", "payload")


class PrivacyFilter(logging.Filter):
    """Filter that strips sensitive fields from log records if configured."""

    def filter(self, record: logging.LogRecord) -> bool:
        config = get_config()
        if not config.mask_sensitive_fields:
            return True
        # 对约定的敏感属性进行覆盖，保留字段结构但隐藏具体内容
        for attr in SENSITIVE_ATTRIBUTES:
            if hasattr(record, attr):
                setattr(record, attr, "***")
        return True


_LOGGER_FILTER = PrivacyFilter()
_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    global _configured
    log_level = level or os.environ.get("DPAGG_LOG_LEVEL", get_config().log_level)
    logging.basicConfig(
        level=log_level,
        format="[%(levelname)s] %(name)s %(asctime)s | %(message)s",
    )
    _configured = True


def get_logger(name: str) -> logging.Logger:
    # 首次获取 logger 时懒加载初始化日志系统；同一 logger 只挂载一次过滤器
    logger = logging.getLogger(name)
    if not _configured:
        configure_logging()
    if _LOGGER_FILTER not in logger.filters:
        logger.addFilter(_LOGGER_FILTER)
    return logger

