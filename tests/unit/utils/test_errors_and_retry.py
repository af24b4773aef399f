"""异常、错误处理与重试单元测试."""

from unittest.mock import patch

import pytest

from caption_art.utils.error_handler import (
    get_error_details,
    get_image_load_error_message,
    get_user_friendly_message,
    handle_exception,
)
from caption_art.utils.exceptions import (
    AppException,
    CompositorError,
    ExportError,
    ExportErrorKind,
    ImageLoadError,
    InvalidImageError,
    PresetError,
    RenderError,
)
from caption_art.utils.retry import RetryContext


# ===================
# 异常测试
# ===================
class TestExceptions:
    """测试自定义异常."""

    def test_str_includes_code(self):
        """测试字符串表示包含错误代码."""
        assert str(PresetError("x")) == "[PRESET_ERROR] x"

    def test_export_error_str(self):
        """测试导出错误包含阶段."""
        error = ExportError(ExportErrorKind.DOWNLOAD_FAILED, "denied")

        assert str(error) == "[EXPORT_ERROR:download-failed] denied"

    def test_invalid_image_is_compositor_error(self):
        """测试图片无效属于合成器错误."""
        error = InvalidImageError("背景图", "尺寸为零")

        assert isinstance(error, CompositorError)
        assert error.message == "背景图无效: 尺寸为零"

    def test_image_load_error_message(self):
        """测试加载错误包含尝试次数和原因."""
        error = ImageLoadError(3, FileNotFoundError("bg.png"))

        assert "3 次" in error.message
        assert "bg.png" in error.message


# ===================
# 错误处理测试
# ===================
class TestErrorHandler:
    """测试用户友好消息."""

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (ExportErrorKind.INVALID_SURFACE, "没有可导出的图片"),
            (ExportErrorKind.DOWNLOAD_FAILED, "输出目录权限"),
            (ExportErrorKind.ENCODE_FAILED, "编码失败"),
        ],
    )
    def test_export_messages(self, kind, expected):
        """测试导出错误消息."""
        assert expected in get_user_friendly_message(ExportError(kind, "x"))

    def test_memory_error_message(self):
        """测试内存不足的编码错误."""
        error = ExportError(ExportErrorKind.ENCODE_FAILED, "x", cause=MemoryError("out of memory"))

        assert "图片过大" in get_user_friendly_message(error)

    def test_known_app_errors(self):
        """测试已知应用异常."""
        assert "已恢复" in get_user_friendly_message(RenderError("boom"))
        assert "画布" in get_user_friendly_message(CompositorError("bad"))

    def test_plain_app_exception(self):
        """测试其他应用异常使用原消息."""
        assert get_user_friendly_message(AppException("自定义")) == "自定义"

    def test_unknown_exception(self):
        """测试未知异常."""
        assert get_user_friendly_message(KeyError("k")) == "操作失败，请稍后重试"

    def test_image_load_messages(self):
        """测试图片加载错误消息."""
        assert "3 次" in get_image_load_error_message(ImageLoadError(3))
        assert "超时" in get_image_load_error_message(TimeoutError("图片加载超时"))
        assert "损坏" in get_image_load_error_message(ValueError("图片已加载但尺寸无效"))

    def test_error_details(self):
        """测试错误详情."""
        details = get_error_details(ExportError(ExportErrorKind.ENCODE_FAILED, "x", cause=ValueError("v")))

        assert details["type"] == "ExportError"
        assert details["code"] == "EXPORT_ERROR"
        assert details["kind"] == "encode-failed"
        assert details["cause"] == "ValueError: v"

    def test_error_details_attempts(self):
        """测试加载错误详情包含尝试次数."""
        assert get_error_details(ImageLoadError(2))["attempts"] == 2

    def test_handle_exception(self):
        """测试统一异常处理."""
        error = PresetError("x")

        with pytest.raises(PresetError):
            handle_exception(error, "保存预设")

        handle_exception(error, reraise=False, log_traceback=False)


# ===================
# 重试测试
# ===================
class TestRetryContext:
    """测试重试上下文."""

    def test_counts_attempts(self):
        """测试记录失败次数."""
        retry = RetryContext(max_attempts=2, delay=0)

        retry.record_failure(ValueError("a"))
        assert retry.should_retry
        retry.record_failure(ValueError("b"))

        assert not retry.should_retry
        assert retry.attempt == 2
        assert str(retry.last_exception) == "b"

    def test_minimum_one_attempt(self):
        """测试至少尝试一次."""
        assert RetryContext(max_attempts=0).max_attempts == 1

    @pytest.mark.asyncio
    async def test_backoff(self):
        """测试退避延迟."""
        retry = RetryContext(delay=1.0, backoff=2.0, max_delay=3.0)

        with patch("caption_art.utils.retry.asyncio.sleep") as sleep:
            await retry.wait()
            await retry.wait()
            await retry.wait()

        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0, 3.0]

    def test_wait_sync(self):
        """测试同步等待."""
        retry = RetryContext(delay=0.25)

        with patch("caption_art.utils.retry.time.sleep") as sleep:
            retry.wait_sync()

        sleep.assert_called_once_with(0.25)
