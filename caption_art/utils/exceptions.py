"""自定义异常类."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class AppException(Exception):
    """应用基础异常类.

    所有自定义异常都应继承此类。

    Attributes:
        message: 错误消息
        code: 错误代码
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        """初始化异常.

        Args:
            message: 错误消息
            code: 错误代码
        """
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """返回异常字符串表示."""
        return f"[{self.code}] {self.message}"


# ===================
# 配置相关异常
# ===================
class ConfigError(AppException):
    """配置错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


# ===================
# 合成器相关异常
# ===================
class CompositorError(AppException):
    """合成器构造错误异常.

    属于编程错误，调用方修正输入前不应重试。
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, "COMPOSITOR_ERROR")


class InvalidSurfaceError(CompositorError):
    """目标画布无效异常."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"目标画布无效: {reason}")


class InvalidImageError(CompositorError):
    """图片无效异常（未加载、尺寸为零或类型不支持）."""

    def __init__(self, role: str, reason: str) -> None:
        self.role = role
        super().__init__(f"{role}无效: {reason}")


class RenderError(AppException):
    """渲染错误异常.

    抛出前合成器已尝试将画布回滚到上一次成功渲染的状态。
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        msg = f"画布渲染失败: {message}"
        super().__init__(msg, "RENDER_ERROR")


# ===================
# 导出相关异常
# ===================
class ExportErrorKind(str, Enum):
    """导出错误阶段."""

    INVALID_SURFACE = "invalid-surface"
    ENCODE_FAILED = "encode-failed"
    DOWNLOAD_FAILED = "download-failed"
    WATERMARK_FAILED = "watermark-failed"


class ExportError(AppException):
    """导出错误异常.

    Attributes:
        kind: 出错阶段
        cause: 底层异常
    """

    def __init__(
        self,
        kind: ExportErrorKind,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.kind = kind
        self.cause = cause
        super().__init__(message, "EXPORT_ERROR")

    def __str__(self) -> str:
        """返回异常字符串表示."""
        return f"[{self.code}:{self.kind.value}] {self.message}"


# ===================
# 图片加载相关异常
# ===================
class ImageLoadError(AppException):
    """图片加载失败异常（重试耗尽后抛出）.

    Attributes:
        attempts: 已尝试次数
        cause: 最后一次失败的底层异常
    """

    def __init__(self, attempts: int, cause: Optional[BaseException] = None) -> None:
        self.attempts = attempts
        self.cause = cause
        detail = str(cause) if cause else "未知错误"
        super().__init__(f"图片加载失败，已尝试 {attempts} 次: {detail}", "IMAGE_LOAD_ERROR")


# ===================
# 预设相关异常
# ===================
class PresetError(AppException):
    """文字效果预设错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "PRESET_ERROR")
