"""图片导出.

Features:
    - PNG / JPEG 编码
    - 可选水印（失败时降级为无水印导出）
    - 两级编码：后台线程 Blob 编码 → 同步 data URL 编码
    - 按时间戳生成文件名
    - 可插拔的下载处理器（默认写入目录）
"""

from __future__ import annotations

import asyncio
import inspect
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from caption_art.canvas.surface import Surface
from caption_art.models.export_options import ExportFormat, ExportMethod, ExportOptions, ExportResult
from caption_art.utils.constants import (
    EXPORT_FILENAME_PREFIX,
    WATERMARK_FILL_COLOR,
    WATERMARK_MAX_FONT_SIZE,
    WATERMARK_MIN_FONT_SIZE,
    WATERMARK_PADDING,
    WATERMARK_STROKE_COLOR,
)
from caption_art.utils.error_handler import get_export_error_message
from caption_art.utils.exceptions import ExportError, ExportErrorKind
from caption_art.utils.helpers import clamp, get_iso_timestamp
from caption_art.utils.image_utils import data_url_to_bytes
from caption_art.utils.logger import setup_logger

logger = setup_logger(__name__)

# 下载处理器：接收编码数据和文件名，返回写入路径（可为协程）
DownloadHandler = Callable[[bytes, str], Union[Optional[Path], Awaitable[Optional[Path]]]]


class FileDownloader:
    """把导出数据写入目录的下载处理器.

    Attributes:
        output_dir: 输出目录
    """

    def __init__(self, output_dir: Union[str, Path]) -> None:
        self.output_dir = Path(output_dir)

    def __call__(self, data: bytes, filename: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        path.write_bytes(data)
        logger.info(f"已导出: {path} ({len(data)} 字节)")
        return path


def generate_filename(
    format: Union[ExportFormat, str],
    watermarked: bool = False,
    timestamp: Optional[datetime] = None,
) -> str:
    """生成导出文件名.

    Args:
        format: 导出格式
        watermarked: 是否带水印
        timestamp: 时间戳，默认当前 UTC 时间

    Returns:
        caption-art-<时间戳>[-watermarked].<扩展名>

    Example:
        >>> generate_filename("png", True, datetime(2024, 5, 1, 12, 30, 45))
        'caption-art-2024-05-01T12-30-45-watermarked.png'
    """
    extension = ExportFormat(format).value
    suffix = "-watermarked" if watermarked else ""
    return f"{EXPORT_FILENAME_PREFIX}-{get_iso_timestamp(timestamp)}{suffix}.{extension}"


def watermark_font_size(width: int) -> float:
    """水印字号 = clamp(12, 24, width / 40)."""
    return clamp(width / 40, WATERMARK_MIN_FONT_SIZE, WATERMARK_MAX_FONT_SIZE)


def apply_watermark(surface: Surface, text: str) -> Surface:
    """在画布副本右下角绘制水印.

    文字右边缘距右边 20px，基线距底边 20px。

    Args:
        surface: 原画布（不会被修改）
        text: 水印文字

    Returns:
        带水印的新画布
    """
    watermarked = surface.copy()
    ctx = watermarked.get_context()
    ctx.save()
    try:
        ctx.font = f"{watermark_font_size(surface.width):g}px sans-serif"
        ctx.text_align = "left"
        ctx.text_baseline = "alphabetic"
        ctx.fill_style = WATERMARK_FILL_COLOR
        ctx.stroke_style = WATERMARK_STROKE_COLOR
        ctx.line_width = 1

        x = surface.width - ctx.measure_text(text).width - WATERMARK_PADDING
        y = surface.height - WATERMARK_PADDING

        ctx.stroke_text(text, x, y)
        ctx.fill_text(text, x, y)
    finally:
        ctx.restore()
    return watermarked


class Exporter:
    """图片导出器.

    Example:
        >>> exporter = Exporter(FileDownloader("exports"))
        >>> result = await exporter.export(surface, ExportOptions(format="jpeg", quality=0.8))
        >>> result.filename
        'caption-art-2024-05-01T12-30-45.jpeg'
    """

    def __init__(self, download_handler: Optional[DownloadHandler] = None) -> None:
        """初始化导出器.

        Args:
            download_handler: 下载处理器，None 时只返回编码数据
        """
        self.download_handler = download_handler

    async def export(self, surface: Surface, options: Optional[ExportOptions] = None) -> ExportResult:
        """导出画布.

        Args:
            surface: 要导出的画布
            options: 导出选项

        Returns:
            导出结果

        Raises:
            ExportError: invalid-surface / encode-failed / download-failed
        """
        options = options or ExportOptions()

        if not isinstance(surface, Surface) or surface.width == 0 or surface.height == 0:
            raise ExportError(ExportErrorKind.INVALID_SURFACE, "画布无效或尺寸为零")

        export_surface = surface
        watermarked = False
        if options.wants_watermark:
            try:
                export_surface = apply_watermark(surface, options.watermark_text)
                watermarked = True
            except Exception as e:
                logger.warning(f"水印添加失败，导出无水印版本: {e}")

        filename = generate_filename(options.format, watermarked)
        fmt = options.format.value
        quality = options.quality if options.format == ExportFormat.JPEG else None

        # 第一级：后台线程编码
        try:
            data = await asyncio.to_thread(export_surface.to_blob, fmt, quality)
            path = await self._download(data, filename)
            return ExportResult(
                filename=filename,
                data=data,
                format=options.format,
                watermarked=watermarked,
                method=ExportMethod.BLOB,
                path=path,
            )
        except Exception as e:
            logger.warning(f"Blob 导出失败，改用 data URL: {e}")

        # 第二级：同步 data URL 编码
        try:
            data = data_url_to_bytes(export_surface.to_data_url(fmt, quality))
        except Exception as e:
            logger.error(f"data URL 导出失败: {e}")
            raise ExportError(
                ExportErrorKind.ENCODE_FAILED,
                "所有导出方式均失败，图片可能过大或内存不足",
                cause=e,
            ) from e

        path = await self._download(data, filename)
        return ExportResult(
            filename=filename,
            data=data,
            format=options.format,
            watermarked=watermarked,
            method=ExportMethod.DATA_URL,
            path=path,
        )

    async def _download(self, data: bytes, filename: str) -> Optional[Path]:
        """调用下载处理器."""
        if self.download_handler is None:
            return None
        try:
            result = self.download_handler(data, filename)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            raise ExportError(ExportErrorKind.DOWNLOAD_FAILED, f"保存文件失败: {filename}", cause=e) from e

    generate_filename = staticmethod(generate_filename)
    apply_watermark = staticmethod(apply_watermark)

    @staticmethod
    def get_error_message(error: BaseException) -> str:
        """获取导出错误的用户友好消息."""
        if isinstance(error, ExportError):
            return get_export_error_message(error)
        return "导出失败，请重试"


def export_surface(
    surface: Surface,
    options: Optional[ExportOptions] = None,
    download_handler: Optional[DownloadHandler] = None,
) -> ExportResult:
    """同步导出（内部运行事件循环，不能在已运行的事件循环中调用）."""
    return asyncio.run(Exporter(download_handler).export(surface, options))
