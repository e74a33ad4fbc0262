"""
Unit tests for logging utilities.
"""
# 说明：日志配置与隐私脱敏过滤相关的单元测试。
# 覆盖：
# - get_logger(...)：获取带 PrivacyFilter 的 logger 实例，重复获取不重复挂载过滤器
# - 验证 privacy_id / user_id 等敏感字段被掩码，关闭掩码配置后保持原值

import logging

from dpagg.core.utils import PrivacyFilter, configure, configure_logging, get_logger


def test_get_logger_attaches_privacy_filter_once() -> None:
    # 多次获取同一 logger 时只挂载一个 PrivacyFilter，且根 logger 不再重复挂载
    configure_logging(level="INFO")
    get_logger("dpagg.test.once")
    logger = get_logger("dpagg.test.once")
    assert sum(isinstance(f, PrivacyFilter) for f in logger.filters) == 1
    assert not any(isinstance(f, PrivacyFilter) for f in logging.getLogger().filters)


def test_sensitive_fields_are_masked(caplog) -> None:
    # 验证日志配置后，敏感字段 privacy_id / user_id 会被 PrivacyFilter 掩码
    logger = get_logger("dpagg.test")
    with caplog.at_level(logging.INFO):
        logger.info("message", extra={"privacy_id": "alice", "user_id": "123"})
    record = caplog.records[-1]
    assert "message" in caplog.text
    assert record.privacy_id == "***"
    assert record.user_id == "***"


def test_masking_can_be_disabled(caplog) -> None:
    # mask_sensitive_fields=False 时字段保持原值
    logger = get_logger("dpagg.test.unmasked")
    configure(mask_sensitive_fields=False)
    try:
        with caplog.at_level(logging.INFO):
            logger.info("message", extra={"pii": "secret"})
    finally:
        configure(mask_sensitive_fields=True)
    assert caplog.records[-1].pii == "secret"
