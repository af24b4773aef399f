"""导出器单元测试."""

import io
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from PIL import Image

from caption_art.canvas.surface import DrawingContext, Surface
from caption_art.core.exporter import (
    Exporter,
    FileDownloader,
    apply_watermark,
    export_surface,
    generate_filename,
    watermark_font_size,
)
from caption_art.models.export_options import ExportFormat, ExportMethod, ExportOptions
from caption_art.utils.exceptions import ExportError, ExportErrorKind


# ===================
# Fixtures
# ===================
@pytest.fixture
def opaque_surface() -> Surface:
    """不透明画布."""
    return Surface.from_image(Image.new("RGB", (400, 200), (30, 60, 90)))


# ===================
# 文件名与水印测试
# ===================
class TestFilenameAndWatermark:
    """测试文件名生成与水印."""

    def test_filename(self):
        """测试文件名格式."""
        stamp = datetime(2024, 5, 1, 12, 30, 45)

        assert generate_filename("png", False, stamp) == "caption-art-2024-05-01T12-30-45.png"
        assert generate_filename(ExportFormat.JPEG, True, stamp) == (
            "caption-art-2024-05-01T12-30-45-watermarked.jpeg"
        )

    @pytest.mark.parametrize("width,expected", [(200, 12), (800, 20), (4000, 24)])
    def test_watermark_font_size(self, width, expected):
        """测试水印字号钳制到 [12, 24]."""
        assert watermark_font_size(width) == expected

    def test_watermark_leaves_right_margin(self, opaque_surface):
        """测试水印右边缘距右边约 20 像素."""
        result = apply_watermark(opaque_surface, "caption-art.example")

        original = opaque_surface.image.crop((384, 0, 400, 200))
        assert result.image.crop((384, 0, 400, 200)).tobytes() == original.tobytes()
        assert result.image.crop((340, 150, 384, 200)).tobytes() != opaque_surface.image.crop(
            (340, 150, 384, 200)
        ).tobytes()

    def test_watermark_anchor_uses_advance_width(self, opaque_surface):
        """测试水印起点为 (宽 - 文字宽度 - 20, 高 - 20)."""
        ctx = Surface(1, 1).get_context()
        ctx.font = "12px sans-serif"
        expected_x = 400 - ctx.measure_text("demo").width - 20

        with patch.object(DrawingContext, "fill_text", autospec=True) as fill_text:
            apply_watermark(opaque_surface, "demo")

        _, text, x, y = fill_text.call_args.args
        assert text == "demo"
        assert x == pytest.approx(expected_x)
        assert y == 180

    def test_watermark_draws_bottom_right(self, opaque_surface):
        """测试水印位于右下角."""
        result = apply_watermark(opaque_surface, "demo")

        diff_left = result.image.crop((0, 0, 200, 200)).tobytes() == opaque_surface.image.crop(
            (0, 0, 200, 200)
        ).tobytes()
        diff_bottom_right = result.image.crop((200, 100, 400, 200)).tobytes() != opaque_surface.image.crop(
            (200, 100, 400, 200)
        ).tobytes()
        assert diff_left
        assert diff_bottom_right

    def test_watermark_does_not_modify_source(self, opaque_surface):
        """测试水印绘制在副本上."""
        before = opaque_surface.image.tobytes()

        apply_watermark(opaque_surface, "demo")

        assert opaque_surface.image.tobytes() == before


# ===================
# 导出测试
# ===================
class TestExporter:
    """测试导出流程."""

    @pytest.mark.asyncio
    async def test_export_png_bytes(self, opaque_surface):
        """测试无下载处理器时只返回数据."""
        result = await Exporter().export(opaque_surface)

        assert result.method == ExportMethod.BLOB
        assert result.path is None
        assert result.filename.endswith(".png")
        assert Image.open(io.BytesIO(result.data)).size == (400, 200)

    @pytest.mark.asyncio
    async def test_export_jpeg_to_directory(self, opaque_surface, temp_dir: Path):
        """测试导出 JPEG 到目录."""
        exporter = Exporter(FileDownloader(temp_dir))

        result = await exporter.export(opaque_surface, ExportOptions(format="jpg", quality=0.5))

        assert result.path.parent == temp_dir
        assert result.path.suffix == ".jpeg"
        assert result.path.read_bytes() == result.data
        assert Image.open(result.path).format == "JPEG"

    @pytest.mark.asyncio
    async def test_export_with_watermark(self, opaque_surface):
        """测试带水印导出."""
        result = await Exporter().export(opaque_surface, ExportOptions(watermark=True, watermark_text="demo"))

        assert result.watermarked is True
        assert "-watermarked" in result.filename

    @pytest.mark.asyncio
    async def test_watermark_flag_without_text(self, opaque_surface):
        """测试未提供水印文字时不添加水印."""
        result = await Exporter().export(opaque_surface, ExportOptions(watermark=True))

        assert result.watermarked is False
        assert "-watermarked" not in result.filename

    @pytest.mark.asyncio
    async def test_watermark_failure_absorbed(self, opaque_surface):
        """测试水印失败时导出无水印版本."""
        with patch("caption_art.core.exporter.apply_watermark", side_effect=OSError("font")):
            result = await Exporter().export(
                opaque_surface, ExportOptions(watermark=True, watermark_text="demo")
            )

        assert result.watermarked is False
        assert "-watermarked" not in result.filename

    @pytest.mark.asyncio
    async def test_invalid_surface(self):
        """测试零尺寸画布."""
        with pytest.raises(ExportError) as exc_info:
            await Exporter().export(Surface(0, 0))

        assert exc_info.value.kind == ExportErrorKind.INVALID_SURFACE

    @pytest.mark.asyncio
    async def test_falls_back_to_data_url(self, opaque_surface):
        """测试后台编码失败时改用 data URL."""
        with patch("caption_art.core.exporter.asyncio.to_thread", AsyncMock(side_effect=MemoryError())):
            result = await Exporter().export(opaque_surface)

        assert result.method == ExportMethod.DATA_URL
        assert Image.open(io.BytesIO(result.data)).size == (400, 200)

    @pytest.mark.asyncio
    async def test_all_tiers_fail(self, opaque_surface):
        """测试所有编码方式均失败."""
        with patch.object(opaque_surface, "to_blob", side_effect=ValueError("out of memory")):
            with pytest.raises(ExportError) as exc_info:
                await Exporter().export(opaque_surface)

        assert exc_info.value.kind == ExportErrorKind.ENCODE_FAILED
        assert isinstance(exc_info.value.cause, ValueError)
        assert "图片过大" in Exporter.get_error_message(exc_info.value)

    @pytest.mark.asyncio
    async def test_download_failure(self, opaque_surface):
        """测试下载处理器失败."""
        handler = MagicMock(side_effect=PermissionError("denied"))

        with pytest.raises(ExportError) as exc_info:
            await Exporter(handler).export(opaque_surface)

        assert exc_info.value.kind == ExportErrorKind.DOWNLOAD_FAILED
        # 两级编码各调用一次
        assert handler.call_count == 2

    @pytest.mark.asyncio
    async def test_async_download_handler(self, opaque_surface, temp_dir: Path):
        """测试协程下载处理器."""
        target = temp_dir / "out.png"

        async def handler(data: bytes, filename: str) -> Path:
            target.write_bytes(data)
            return target

        result = await Exporter(handler).export(opaque_surface)

        assert result.path == target
        assert target.exists()

    def test_export_surface_sync(self, opaque_surface, temp_dir: Path):
        """测试同步导出."""
        result = export_surface(opaque_surface, ExportOptions(), FileDownloader(temp_dir))

        assert result.path.exists()

    def test_generic_error_message(self):
        """测试非导出错误的消息."""
        assert Exporter.get_error_message(RuntimeError("x")) == "导出失败，请重试"
