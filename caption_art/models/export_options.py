"""导出配置数据模型.

Features:
    - 导出格式 (PNG / JPEG)
    - JPEG 质量 (0, 1]
    - 可选水印
    - 导出结果描述
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from caption_art.utils.constants import DEFAULT_JPEG_QUALITY


class ExportFormat(str, Enum):
    """导出格式."""

    PNG = "png"
    JPEG = "jpeg"


class ExportMethod(str, Enum):
    """实际使用的编码路径."""

    BLOB = "blob"
    DATA_URL = "data_url"


class ExportOptions(BaseModel):
    """导出选项.

    Attributes:
        format: 导出格式
        quality: JPEG 质量，范围 (0, 1]，PNG 忽略
        watermark: 是否添加水印
        watermark_text: 水印文字，为空时不添加

    Example:
        >>> options = ExportOptions(format="jpeg", quality=0.8)
        >>> options.format
        <ExportFormat.JPEG: 'jpeg'>
    """

    format: ExportFormat = ExportFormat.PNG
    quality: float = Field(default=DEFAULT_JPEG_QUALITY, gt=0, le=1)
    watermark: bool = False
    watermark_text: Optional[str] = None

    @field_validator("format", mode="before")
    @classmethod
    def normalize_format(cls, v):
        """格式名不区分大小写，jpg 视为 jpeg."""
        if isinstance(v, str):
            v = v.lower()
            if v == "jpg":
                return "jpeg"
        return v

    @property
    def wants_watermark(self) -> bool:
        """是否需要绘制水印."""
        return self.watermark and bool(self.watermark_text)


class ExportResult(BaseModel):
    """导出结果.

    Attributes:
        filename: 生成的文件名
        data: 编码后的字节数据
        format: 导出格式
        watermarked: 水印是否实际绘制成功
        method: 使用的编码路径
        path: 下载处理器写入的文件路径
    """

    filename: str
    data: bytes
    format: ExportFormat
    watermarked: bool = False
    method: ExportMethod = ExportMethod.BLOB
    path: Optional[Path] = None

    @property
    def size(self) -> int:
        """数据字节数."""
        return len(self.data)
