"""文字效果数据模型.

描述文字的填充、描边、渐变和图案效果。

Features:
    - 描边 / 渐变 / 图案效果配置
    - 填充优先级：图案 > 渐变 > 纯色
    - 数值范围规范化（钳制而非拒绝）
    - 结构化缓存键
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from caption_art.utils.constants import (
    DEFAULT_OUTLINE_WIDTH,
    MAX_OUTLINE_WIDTH,
    MAX_PATTERN_SCALE,
    MIN_OUTLINE_WIDTH,
    MIN_PATTERN_SCALE,
)
from caption_art.utils.helpers import clamp, finite_or, normalize_angle
from caption_art.utils.image_utils import image_digest

# 颜色：CSS 风格字符串（#rrggbb、#rrggbbaa、颜色名）或 RGB/RGBA 元组
Color = Union[str, tuple[int, int, int], tuple[int, int, int, int]]


class GradientType(str, Enum):
    """渐变类型."""

    LINEAR = "linear"
    RADIAL = "radial"


class ColorStop(BaseModel):
    """渐变色标.

    色标按位置排序由调用方负责，渲染时会钳制越界的位置。
    """

    color: Color
    position: float = 0.0


class OutlineEffect(BaseModel):
    """描边效果."""

    enabled: bool = False
    width: float = DEFAULT_OUTLINE_WIDTH
    color: Color = "#ffffff"


class GradientEffect(BaseModel):
    """渐变填充效果."""

    enabled: bool = False
    type: GradientType = GradientType.LINEAR
    color_stops: list[ColorStop] = Field(
        default_factory=lambda: [
            ColorStop(color="#ff0000", position=0.0),
            ColorStop(color="#0000ff", position=1.0),
        ]
    )
    angle: float = 0.0

    @property
    def is_usable(self) -> bool:
        """渐变是否可用（已启用且至少两个色标）."""
        return self.enabled and len(self.color_stops) >= 2


class PatternEffect(BaseModel):
    """图案填充效果."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    enabled: bool = False
    image: Optional[Image.Image] = None
    scale: float = 1.0

    @property
    def is_usable(self) -> bool:
        """图案是否可用（已启用且设置了图片）."""
        return self.enabled and self.image is not None


class TextEffects(BaseModel):
    """文字效果集合.

    Attributes:
        fill_color: 纯色填充
        outline: 描边效果（启用时总是先于填充绘制）
        gradient: 渐变效果
        pattern: 图案效果

    Example:
        >>> effects = create_default_effects()
        >>> effects.outline.enabled = True
        >>> effects.fill_source
        'solid'
    """

    fill_color: Color = "#000000"
    outline: OutlineEffect = Field(default_factory=OutlineEffect)
    gradient: GradientEffect = Field(default_factory=GradientEffect)
    pattern: PatternEffect = Field(default_factory=PatternEffect)

    @property
    def fill_source(self) -> str:
        """当前生效的填充来源: pattern / gradient / solid."""
        if self.pattern.is_usable:
            return "pattern"
        if self.gradient.is_usable:
            return "gradient"
        return "solid"

    def cache_key(self) -> tuple:
        """结构化缓存键，覆盖所有影响渲染结果的字段."""
        pattern_image = self.pattern.image
        return (
            _color_key(self.fill_color),
            (self.outline.enabled, self.outline.width, _color_key(self.outline.color)),
            (
                self.gradient.enabled,
                self.gradient.type.value,
                tuple((_color_key(s.color), s.position) for s in self.gradient.color_stops),
                self.gradient.angle,
            ),
            (
                self.pattern.enabled,
                image_digest(pattern_image) if pattern_image is not None else None,
                self.pattern.scale,
            ),
        )


def _color_key(color: Color) -> Color:
    """颜色的可哈希表示."""
    if isinstance(color, list):
        return tuple(color)
    return color


def create_default_effects(
    fill_color: Color = "#000000",
    outline_color: Color = "#ffffff",
) -> TextEffects:
    """创建默认文字效果.

    Args:
        fill_color: 填充颜色
        outline_color: 描边颜色

    Returns:
        描边、渐变、图案均未启用的效果配置
    """
    return TextEffects(
        fill_color=fill_color,
        outline=OutlineEffect(enabled=False, width=DEFAULT_OUTLINE_WIDTH, color=outline_color),
    )


def validate_effects(effects: TextEffects) -> TextEffects:
    """规范化文字效果数值.

    纯函数，不修改输入：描边宽度钳制到 [1, 10]，渐变角度取模到 [0, 360)，
    图案缩放钳制到 [0.1, 2.0]，色标位置钳制到 [0, 1]。NaN 使用默认值。

    Args:
        effects: 原始效果

    Returns:
        规范化后的新效果对象
    """
    return TextEffects(
        fill_color=effects.fill_color,
        outline=OutlineEffect(
            enabled=effects.outline.enabled,
            width=clamp(
                finite_or(effects.outline.width, DEFAULT_OUTLINE_WIDTH),
                MIN_OUTLINE_WIDTH,
                MAX_OUTLINE_WIDTH,
            ),
            color=effects.outline.color,
        ),
        gradient=GradientEffect(
            enabled=effects.gradient.enabled,
            type=effects.gradient.type,
            color_stops=[
                ColorStop(color=stop.color, position=clamp(finite_or(stop.position, 0.0), 0.0, 1.0))
                for stop in effects.gradient.color_stops
            ],
            angle=normalize_angle(finite_or(effects.gradient.angle, 0.0)),
        ),
        pattern=PatternEffect(
            enabled=effects.pattern.enabled,
            image=effects.pattern.image,
            scale=clamp(
                finite_or(effects.pattern.scale, 1.0),
                MIN_PATTERN_SCALE,
                MAX_PATTERN_SCALE,
            ),
        ),
    )
