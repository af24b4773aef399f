"""文字图层数据模型.

Features:
    - 归一化变换（位置、缩放、旋转），越界值钳制
    - 基础文字图层（样式预设）
    - 高级文字图层（多行、对齐、字体、效果）
    - 结构化缓存键
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from caption_art.models.text_effects import TextEffects, create_default_effects
from caption_art.utils.constants import (
    DEFAULT_FONT_FAMILY,
    DEFAULT_LINE_SPACING,
    MAX_SCALE,
    MIN_SCALE,
)
from caption_art.utils.helpers import clamp, finite_or, normalize_angle


# ===================
# 枚举定义
# ===================


class StylePresetId(str, Enum):
    """内置文字样式预设."""

    NEON = "neon"
    MAGAZINE = "magazine"
    BRUSH = "brush"
    EMBOSS = "emboss"


class TextAlignment(str, Enum):
    """文字对齐方式."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    JUSTIFY = "justify"


# ===================
# 变换
# ===================


class Transform(BaseModel):
    """文字变换（不可变快照）.

    位置为相对画布宽高的归一化坐标，与分辨率无关。

    Attributes:
        x: 水平位置 [0, 1]
        y: 垂直位置 [0, 1]
        scale: 缩放 [0.5, 3.0]
        rotation: 旋转角度 [0, 360)

    Example:
        >>> Transform(x=1.5, scale=5.0, rotation=-90)
        Transform(x=1.0, y=0.5, scale=3.0, rotation=270.0)
    """

    model_config = ConfigDict(frozen=True)

    x: float = 0.5
    y: float = 0.5
    scale: float = 1.0
    rotation: float = 0.0

    @field_validator("x", "y")
    @classmethod
    def clamp_position(cls, v: float) -> float:
        """位置钳制到 [0, 1]."""
        return clamp(finite_or(v, 0.5), 0.0, 1.0)

    @field_validator("scale")
    @classmethod
    def clamp_scale(cls, v: float) -> float:
        """缩放钳制到 [0.5, 3.0]."""
        return clamp(finite_or(v, 1.0), MIN_SCALE, MAX_SCALE)

    @field_validator("rotation")
    @classmethod
    def wrap_rotation(cls, v: float) -> float:
        """旋转角度取模到 [0, 360)."""
        return normalize_angle(finite_or(v, 0.0))

    def with_changes(self, **changes: float) -> "Transform":
        """返回修改后的新变换（经过同样的钳制）."""
        data = self.model_dump()
        data.update(changes)
        return Transform(**data)

    def as_tuple(self) -> tuple[float, float, float, float]:
        """结构化缓存键."""
        return (self.x, self.y, self.scale, self.rotation)


# ===================
# 文字图层
# ===================


class TextLayer(BaseModel):
    """基础文字图层.

    Attributes:
        text: 文字内容
        style_preset: 样式预设
        font_size: 字号（像素）
        transform: 变换
    """

    text: str = ""
    style_preset: StylePresetId = StylePresetId.NEON
    font_size: float = Field(default=48, gt=0)
    transform: Transform = Field(default_factory=Transform)

    def cache_key(self) -> tuple:
        """结构化缓存键."""
        return (
            "basic",
            self.text,
            self.style_preset.value,
            self.font_size,
            self.transform.as_tuple(),
        )


def _default_advanced_effects() -> TextEffects:
    """高级文字默认效果：白色填充、黑色描边（未启用）."""
    return create_default_effects(fill_color="#ffffff", outline_color="#000000")


class AdvancedTextLayer(BaseModel):
    """高级文字图层.

    Attributes:
        text: 文字内容，可包含换行符（\\n、\\r\\n、\\r）
        font_family: 字体族，逗号分隔的候选列表
        font_size: 字号（像素）
        line_spacing: 行距倍数
        alignment: 对齐方式
        effects: 文字效果
        transform: 变换

    Example:
        >>> layer = AdvancedTextLayer(text="Hello\\nWorld", font_size=40)
        >>> layer.alignment
        <TextAlignment.CENTER: 'center'>
    """

    text: str = ""
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: float = Field(default=48, gt=0)
    line_spacing: float = Field(default=DEFAULT_LINE_SPACING, gt=0)
    alignment: TextAlignment = TextAlignment.CENTER
    effects: TextEffects = Field(default_factory=_default_advanced_effects)
    transform: Transform = Field(default_factory=Transform)

    def cache_key(self) -> tuple:
        """结构化缓存键."""
        return (
            "advanced",
            self.text,
            self.font_family,
            self.font_size,
            self.line_spacing,
            self.alignment.value,
            self.effects.cache_key(),
            self.transform.as_tuple(),
        )
