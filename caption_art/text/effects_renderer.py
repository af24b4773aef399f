"""文字效果渲染.

Features:
    - 描边（宽度钳制到 [1, 10]，圆角连接）
    - 线性/径向渐变，按文字包围盒计算端点
    - 图案填充（按缩放比例预先缩放后平铺）
    - 填充优先级：图案 > 渐变 > 纯色
    - 固定的描边 → 填充顺序
"""

from __future__ import annotations

import math
from typing import NamedTuple, Optional

from caption_art.canvas.paint import CanvasGradient, LinearGradient, Pattern, RadialGradient
from caption_art.canvas.surface import DrawingContext, Surface
from caption_art.models.text_effects import (
    GradientEffect,
    GradientType,
    OutlineEffect,
    PatternEffect,
    TextEffects,
    validate_effects,
)
from caption_art.utils.constants import (
    MAX_OUTLINE_WIDTH,
    MAX_PATTERN_SCALE,
    MIN_OUTLINE_WIDTH,
    MIN_PATTERN_SCALE,
)
from caption_art.utils.helpers import clamp
from caption_art.utils.logger import setup_logger

logger = setup_logger(__name__)


class EffectBounds(NamedTuple):
    """效果计算用的文字包围盒（局部坐标）."""

    x: float
    y: float
    width: float
    height: float


def calculate_text_bounds(
    ctx: DrawingContext,
    text: str,
    x: float,
    y: float,
    font_size: float,
) -> EffectBounds:
    """计算以 (x, y) 为中心的文字包围盒."""
    width = ctx.measure_text(text).width
    return EffectBounds(x=x - width / 2, y=y - font_size / 2, width=width, height=font_size)


class TextEffectsRenderer:
    """文字效果渲染器."""

    @staticmethod
    def apply_outline(ctx: DrawingContext, outline: OutlineEffect) -> None:
        """设置描边样式，未启用时不修改上下文."""
        if not outline.enabled:
            return
        ctx.line_width = clamp(outline.width, MIN_OUTLINE_WIDTH, MAX_OUTLINE_WIDTH)
        ctx.stroke_style = outline.color
        ctx.line_join = "round"

    @staticmethod
    def create_gradient(gradient: GradientEffect, bounds: EffectBounds) -> Optional[CanvasGradient]:
        """创建渐变.

        线性渐变端点 = 包围盒中心 ± (cos, sin)(angle) × L / 2；
        径向渐变以中心为圆心、半径 L / 2。L 为包围盒较长边。

        Returns:
            渐变对象，未启用或色标少于两个时返回 None
        """
        if not gradient.is_usable:
            return None

        center_x = bounds.x + bounds.width / 2
        center_y = bounds.y + bounds.height / 2
        length = max(bounds.width, bounds.height)

        if gradient.type == GradientType.LINEAR:
            angle = math.radians(gradient.angle)
            dx = math.cos(angle) * length / 2
            dy = math.sin(angle) * length / 2
            result: CanvasGradient = LinearGradient(
                center_x - dx, center_y - dy, center_x + dx, center_y + dy
            )
        else:
            result = RadialGradient(center_x, center_y, 0, center_x, center_y, length / 2)

        for stop in gradient.color_stops:
            result.add_color_stop(clamp(stop.position, 0.0, 1.0), stop.color)
        return result

    @staticmethod
    def create_pattern(pattern: PatternEffect) -> Optional[Pattern]:
        """创建平铺图案.

        图案先按缩放比例绘制到中间画布，保证平铺密度与分辨率无关。

        Returns:
            图案对象，未启用、未设置图片或缩放后尺寸为零时返回 None
        """
        if not pattern.is_usable:
            return None

        scale = clamp(pattern.scale, MIN_PATTERN_SCALE, MAX_PATTERN_SCALE)
        image = pattern.image
        width = int(image.width * scale)
        height = int(image.height * scale)
        if width <= 0 or height <= 0:
            logger.debug("图案缩放后尺寸为零，忽略图案填充")
            return None

        scratch = Surface(width, height)
        scratch.get_context().draw_image(image, 0, 0, width, height)
        return Pattern(scratch.image, "repeat")

    @staticmethod
    def apply_fill(ctx: DrawingContext, effects: TextEffects, bounds: EffectBounds) -> str:
        """按优先级设置填充样式.

        Returns:
            实际使用的填充来源: pattern / gradient / solid
        """
        if effects.pattern.is_usable:
            pattern = TextEffectsRenderer.create_pattern(effects.pattern)
            if pattern is not None:
                ctx.fill_style = pattern
                return "pattern"

        if effects.gradient.is_usable:
            gradient = TextEffectsRenderer.create_gradient(effects.gradient, bounds)
            if gradient is not None:
                ctx.fill_style = gradient
                return "gradient"

        ctx.fill_style = effects.fill_color
        return "solid"

    @staticmethod
    def render_text_with_effects(
        ctx: DrawingContext,
        text: str,
        x: float,
        y: float,
        effects: TextEffects,
        bounds: EffectBounds,
    ) -> None:
        """按固定顺序渲染文字：先描边，再填充."""
        ctx.save()
        try:
            if effects.outline.enabled:
                TextEffectsRenderer.apply_outline(ctx, effects.outline)
                ctx.stroke_text(text, x, y)

            TextEffectsRenderer.apply_fill(ctx, effects, bounds)
            ctx.fill_text(text, x, y)
        finally:
            ctx.restore()

    validate_effects = staticmethod(validate_effects)
