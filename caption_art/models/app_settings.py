"""应用设置模型."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from caption_art.models.export_options import ExportFormat
from caption_art.utils.constants import (
    DEFAULT_GRID_SIZE,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_MAX_DIMENSION,
    EXPORT_DIR,
    IMAGE_LOAD_MAX_RETRIES,
    IMAGE_LOAD_RETRY_DELAY,
    IMAGE_LOAD_TIMEOUT,
    PRESETS_FILE,
)


class Settings(BaseSettings):
    """应用设置.

    支持从环境变量（前缀 CAPTION_ART_）和 .env 文件加载配置。

    Attributes:
        log_level: 日志级别
        max_dimension: 视口最大边长
        auto_place_grid_size: 自动布局网格大小
        export_format: 默认导出格式
        export_quality: 默认 JPEG 质量
        export_dir: 导出目录
        watermark_text: 水印文字
        image_load_max_retries: 图片加载最大尝试次数
        image_load_retry_delay: 重试间隔（秒）
        image_load_timeout: 单次加载超时（秒）
        presets_path: 预设存储文件路径
    """

    model_config = SettingsConfigDict(
        env_prefix="CAPTION_ART_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="日志级别",
    )

    # 合成配置
    max_dimension: int = Field(
        default=DEFAULT_MAX_DIMENSION,
        ge=16,
        le=8192,
        description="视口最大边长",
    )

    auto_place_grid_size: int = Field(
        default=DEFAULT_GRID_SIZE,
        ge=1,
        description="自动布局网格大小（像素）",
    )

    # 导出配置
    export_format: ExportFormat = Field(
        default=ExportFormat.PNG,
        description="默认导出格式",
    )

    export_quality: float = Field(
        default=DEFAULT_JPEG_QUALITY,
        gt=0,
        le=1,
        description="默认 JPEG 质量",
    )

    export_dir: Optional[Path] = Field(
        default=None,
        description="导出目录",
    )

    watermark_text: Optional[str] = Field(
        default=None,
        description="水印文字",
    )

    # 图片加载配置
    image_load_max_retries: int = Field(
        default=IMAGE_LOAD_MAX_RETRIES,
        ge=1,
        le=10,
        description="图片加载最大尝试次数",
    )

    image_load_retry_delay: float = Field(
        default=IMAGE_LOAD_RETRY_DELAY,
        ge=0,
        description="重试间隔（秒）",
    )

    image_load_timeout: float = Field(
        default=IMAGE_LOAD_TIMEOUT,
        gt=0,
        description="单次加载超时（秒）",
    )

    # 预设配置
    presets_path: Optional[Path] = Field(
        default=None,
        description="预设存储文件路径",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}，有效值: {valid_levels}")
        return upper_v

    @property
    def output_dir(self) -> Path:
        """获取导出目录."""
        return self.export_dir or EXPORT_DIR

    @property
    def preset_store(self) -> Path:
        """获取预设存储路径."""
        return self.presets_path or PRESETS_FILE


def load_settings(**overrides) -> Settings:
    """加载应用设置.

    Args:
        **overrides: 覆盖环境变量的设置项

    Returns:
        设置实例（每次调用都新建，不缓存）
    """
    return Settings(**overrides)
