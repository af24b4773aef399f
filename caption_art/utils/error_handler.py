"""错误处理工具模块.

提供统一的错误处理机制和用户友好的错误消息。
"""

from __future__ import annotations

from typing import Any

from caption_art.utils.exceptions import (
    AppException,
    CompositorError,
    ConfigError,
    ExportError,
    ExportErrorKind,
    ImageLoadError,
    PresetError,
    RenderError,
)
from caption_art.utils.logger import setup_logger

logger = setup_logger(__name__)


# 错误消息映射
ERROR_MESSAGES = {
    CompositorError: "无法初始化画布，请检查图片是否已正确加载",
    RenderError: "渲染失败，已恢复到上一次的画面",
    PresetError: "预设操作失败",
    ConfigError: "配置错误，请检查配置文件",
}

# 导出错误阶段对应的消息
EXPORT_ERROR_MESSAGES = {
    ExportErrorKind.INVALID_SURFACE: "无法导出：没有可导出的图片或画布无效",
    ExportErrorKind.ENCODE_FAILED: "图片编码失败，请重试",
    ExportErrorKind.DOWNLOAD_FAILED: "图片保存失败，请检查输出目录权限",
    ExportErrorKind.WATERMARK_FAILED: "水印添加失败，已导出无水印版本",
}


def get_export_error_message(error: ExportError) -> str:
    """获取导出错误的用户友好消息.

    Args:
        error: 导出异常

    Returns:
        用户友好的错误消息
    """
    if error.kind == ExportErrorKind.ENCODE_FAILED:
        detail = str(error.cause or error.message).lower()
        if "memory" in detail or "内存" in detail:
            return "无法导出：图片过大，请缩小尺寸后重试"
    return EXPORT_ERROR_MESSAGES.get(error.kind, error.message)


def get_image_load_error_message(error: BaseException) -> str:
    """获取图片加载错误的用户友好消息.

    Args:
        error: 异常对象

    Returns:
        用户友好的错误消息
    """
    if isinstance(error, ImageLoadError):
        return f"图片加载失败，已尝试 {error.attempts} 次，请检查网络连接后重试"

    message = str(error)
    if "timeout" in message.lower() or "超时" in message:
        return "图片加载超时，请重试或使用更小的图片"
    if "尺寸无效" in message:
        return "图片文件已损坏或无效"
    return f"图片加载失败: {message}"


def get_user_friendly_message(exception: BaseException) -> str:
    """获取用户友好的错误消息.

    Args:
        exception: 异常对象

    Returns:
        用户友好的错误消息
    """
    if isinstance(exception, ExportError):
        return get_export_error_message(exception)

    if isinstance(exception, ImageLoadError):
        return get_image_load_error_message(exception)

    # 检查是否是已知的应用异常
    for exc_type, message in ERROR_MESSAGES.items():
        if isinstance(exception, exc_type):
            return message

    # 如果是 AppException，使用其消息
    if isinstance(exception, AppException):
        return exception.message

    # 未知异常
    return "操作失败，请稍后重试"


def get_error_details(exception: BaseException) -> dict[str, Any]:
    """获取错误详细信息.

    Args:
        exception: 异常对象

    Returns:
        包含错误详情的字典
    """
    details: dict[str, Any] = {
        "type": type(exception).__name__,
        "message": str(exception),
        "user_message": get_user_friendly_message(exception),
    }

    # 添加应用异常的额外信息
    if isinstance(exception, AppException):
        details["code"] = exception.code

    if isinstance(exception, ExportError):
        details["kind"] = exception.kind.value

    if isinstance(exception, ImageLoadError):
        details["attempts"] = exception.attempts

    cause = getattr(exception, "cause", None)
    if cause is not None:
        details["cause"] = f"{type(cause).__name__}: {cause}"

    return details


def handle_exception(
    exception: BaseException,
    context: str = "",
    reraise: bool = True,
    log_traceback: bool = True,
) -> None:
    """统一异常处理.

    Args:
        exception: 异常对象
        context: 上下文描述
        reraise: 是否重新抛出异常
        log_traceback: 是否记录堆栈跟踪
    """
    msg = "异常发生"
    if context:
        msg = f"{context}: {msg}"

    if log_traceback:
        logger.error(f"{msg}: {exception}", exc_info=exception)
    else:
        logger.error(f"{msg}: {exception}")

    if reraise:
        raise exception
