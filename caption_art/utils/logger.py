"""日志工具模块.

所有模块的日志记录器都挂在 ``caption_art`` 包日志记录器之下，
由它统一持有处理器与级别；子记录器保持 NOTSET，随包级别生效。
不会改动根日志记录器，嵌入到其他应用时不影响宿主的日志配置。

处理器:
    - console: 标准输出，终端下按级别着色
    - app: LOG_DIR/app.log，轮转
    - error: LOG_DIR/error.log，只记录 ERROR 及以上，轮转
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from caption_art.utils.constants import LOG_DIR

PACKAGE_LOGGER = "caption_art"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%H:%M:%S"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 3

# (文件名, 固定级别)；固定级别为 None 时跟随全局级别
_FILE_TARGETS = (
    ("app.log", None),
    ("error.log", logging.ERROR),
)

_level: int = logging.INFO
_handlers: list[logging.Handler] = []
# 跟随全局级别的处理器
_following: list[logging.Handler] = []


class ColoredFormatter(logging.Formatter):
    """按级别给级别名着色，输出不是终端时不着色."""

    PALETTE = {
        logging.DEBUG: "2",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "1;31",
    }

    def __init__(self, fmt: str, datefmt: str, use_color: bool = True) -> None:
        super().__init__(fmt, datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        """格式化日志记录，不修改原记录."""
        code = self.PALETTE.get(record.levelno)
        if not self.use_color or code is None:
            return super().format(record)

        tinted = logging.makeLogRecord(record.__dict__)
        tinted.levelname = f"\033[{code}m{record.levelname}\033[0m"
        return super().format(tinted)


def _resolve_level(level: int | str) -> int:
    """把级别名或数值转换为数值级别，无法识别的名称回退到 INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _file_handler(filename: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        LOG_DIR / filename,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT, FILE_DATE_FORMAT))
    return handler


def _build_handlers() -> list[logging.Handler]:
    """创建控制台与文件处理器，日志目录不可写时只返回控制台处理器."""
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT, sys.stdout.isatty()))
    console.setLevel(_level)
    handlers: list[logging.Handler] = [console]
    _following.append(console)

    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        for filename, fixed_level in _FILE_TARGETS:
            handler = _file_handler(filename)
            if fixed_level is None:
                handler.setLevel(_level)
                _following.append(handler)
            else:
                handler.setLevel(fixed_level)
            handlers.append(handler)
    except OSError as e:
        console.handle(
            logging.makeLogRecord(
                {
                    "name": PACKAGE_LOGGER,
                    "levelno": logging.WARNING,
                    "levelname": "WARNING",
                    "msg": f"日志目录不可用，仅输出到控制台: {LOG_DIR} ({e})",
                }
            )
        )
    return handlers


def _package_logger() -> logging.Logger:
    """返回包日志记录器，首次调用时挂载处理器."""
    package = logging.getLogger(PACKAGE_LOGGER)
    if not _handlers:
        _handlers.extend(_build_handlers())
        for handler in _handlers:
            package.addHandler(handler)
        package.setLevel(_level)
        package.propagate = False
    return package


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """获取模块日志记录器.

    Args:
        name: 日志记录器名称，通常使用 __name__
        level: 仅对该记录器生效的级别；默认跟随全局级别

    Returns:
        日志记录器
    """
    _package_logger()
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def set_log_level(level: int | str) -> None:
    """设置全局日志级别（包记录器与非固定级别的处理器）."""
    global _level
    _level = _resolve_level(level)

    package = _package_logger()
    package.setLevel(_level)
    for handler in _following:
        handler.setLevel(_level)


def get_log_level() -> int:
    """获取当前全局日志级别."""
    return _level


def get_log_level_name() -> str:
    """获取当前日志级别名称."""
    return logging.getLevelName(_level)
