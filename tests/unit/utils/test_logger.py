"""日志工具单元测试."""

import logging

import pytest

from caption_art.utils.logger import (
    PACKAGE_LOGGER,
    ColoredFormatter,
    get_log_level,
    get_log_level_name,
    set_log_level,
    setup_logger,
)


# ===================
# Fixtures
# ===================
@pytest.fixture
def restore_level():
    """测试结束后恢复全局日志级别."""
    previous = get_log_level()
    yield
    set_log_level(previous)


# ===================
# 日志级别测试
# ===================
class TestLogLevel:
    """测试全局日志级别管理."""

    def test_module_logger_inherits_package_level(self, restore_level):
        """测试模块记录器随包级别生效."""
        logger = setup_logger("caption_art.core.example")

        set_log_level("debug")

        assert logger.getEffectiveLevel() == logging.DEBUG
        assert get_log_level() == logging.DEBUG
        assert get_log_level_name() == "DEBUG"

    def test_level_can_be_lowered_again(self, restore_level):
        """测试设为 ERROR 后仍可降回 DEBUG."""
        set_log_level(logging.ERROR)
        set_log_level(logging.DEBUG)

        package = logging.getLogger(PACKAGE_LOGGER)
        levels = [handler.level for handler in package.handlers]
        assert logging.DEBUG in levels

    def test_unknown_name_falls_back_to_info(self, restore_level):
        """测试无法识别的级别名回退到 INFO."""
        set_log_level("chatty")

        assert get_log_level() == logging.INFO

    def test_explicit_level_only_affects_one_logger(self, restore_level):
        """测试显式级别只作用于单个记录器."""
        set_log_level(logging.INFO)

        quiet = setup_logger("caption_art.example.quiet", logging.ERROR)
        other = setup_logger("caption_art.example.other")

        assert quiet.getEffectiveLevel() == logging.ERROR
        assert other.getEffectiveLevel() == logging.INFO

    def test_root_logger_untouched(self):
        """测试不向根日志记录器添加处理器."""
        setup_logger("caption_art.example")

        assert logging.getLogger(PACKAGE_LOGGER).propagate is False
        assert not any(
            isinstance(handler.formatter, ColoredFormatter) for handler in logging.getLogger().handlers
        )


# ===================
# 格式化测试
# ===================
class TestColoredFormatter:
    """测试彩色格式化器."""

    def _record(self) -> logging.LogRecord:
        return logging.makeLogRecord({"name": "caption_art", "levelno": logging.WARNING, "levelname": "WARNING", "msg": "hi"})

    def test_colors_level_name(self):
        """测试着色时级别名带转义码且不修改原记录."""
        record = self._record()

        output = ColoredFormatter("%(levelname)s %(message)s", "%H:%M:%S").format(record)

        assert output == "\033[33mWARNING\033[0m hi"
        assert record.levelname == "WARNING"

    def test_plain_when_color_disabled(self):
        """测试关闭着色时输出纯文本."""
        formatter = ColoredFormatter("%(levelname)s %(message)s", "%H:%M:%S", use_color=False)

        assert formatter.format(self._record()) == "WARNING hi"
