"""文字渲染.

Features:
    - 基础文字：预设样式（发光层、阴影、描边、填充）
    - 高级文字：多行、对齐、两端对齐、描边/渐变/图案效果
    - 文字块以变换锚点为中心布局
"""

from __future__ import annotations

from caption_art.canvas.fonts import format_css_font
from caption_art.canvas.surface import DrawingContext
from caption_art.canvas.transform_controller import TransformController
from caption_art.models.text_effects import TextEffects, validate_effects
from caption_art.models.text_layer import AdvancedTextLayer
from caption_art.text.alignment import AlignmentManager, split_words
from caption_art.text.effects_renderer import EffectBounds, TextEffectsRenderer
from caption_art.text.multi_line import TextBounds, calculate_bounds, get_line_height, split_lines
from caption_art.text.style_presets import TextStyle


# ===================
# 基础文字
# ===================


def render_text(
    ctx: DrawingContext,
    text: str,
    style: TextStyle,
    x: float = 0.0,
    y: float = 0.0,
) -> None:
    """按预设样式渲染单行文字，(x, y) 为文字中心.

    绘制顺序：发光层（带阴影重复填充）→ 单层阴影 → 描边 → 填充。

    Args:
        ctx: 绘图上下文（调用方已应用变换）
        text: 文字内容
        style: 样式描述
        x: 中心 x（局部坐标）
        y: 中心 y（局部坐标）
    """
    ctx.save()
    try:
        ctx.font = style.font
        ctx.text_align = "center"
        ctx.text_baseline = "middle"
        ctx.fill_style = style.fill_color

        if style.has_stroke:
            ctx.stroke_style = style.stroke_color
            ctx.line_width = style.stroke_width

        if style.glow_layers:
            for glow in style.glow_layers:
                ctx.shadow_blur = glow.blur
                ctx.shadow_color = glow.color
                ctx.fill_text(text, x, y)
            ctx.shadow_blur = 0
            ctx.shadow_color = (0, 0, 0, 0)

        if style.shadow is not None:
            ctx.shadow_offset_x = style.shadow.offset_x
            ctx.shadow_offset_y = style.shadow.offset_y
            ctx.shadow_blur = style.shadow.blur
            ctx.shadow_color = style.shadow.color

        # 先描边再填充，填充覆盖在描边之上
        if style.has_stroke:
            ctx.stroke_text(text, x, y)
        ctx.fill_text(text, x, y)
    finally:
        ctx.restore()


# ===================
# 高级文字
# ===================


def _advanced_font(layer: AdvancedTextLayer) -> str:
    return format_css_font(layer.font_family, layer.font_size)


def render_advanced(ctx: DrawingContext, layer: AdvancedTextLayer, width: float, height: float) -> None:
    """渲染高级文字图层.

    应用图层变换后，在局部坐标中以原点为中心布局整个文字块。
    非两端对齐的行从对齐起点左对齐绘制；两端对齐的行逐词绘制，
    先完成整行描边再整行填充。

    Args:
        ctx: 绘图上下文
        layer: 高级文字图层
        width: 画布宽度
        height: 画布高度
    """
    ctx.save()
    try:
        TransformController(layer.transform).apply_to_context(ctx, width, height)

        ctx.font = _advanced_font(layer)
        ctx.text_align = "left"
        ctx.text_baseline = "middle"

        effects = validate_effects(layer.effects)
        lines = split_lines(layer.text)
        bounds = calculate_bounds(ctx, layer.text, layer.font_size, layer.line_spacing)
        line_height = get_line_height(layer.font_size, layer.line_spacing)
        start_y = -(line_height * len(lines)) / 2 + line_height / 2

        for index, line in enumerate(lines):
            y = start_y + index * line_height
            result = AlignmentManager.calculate_alignment(ctx, line, 0.0, bounds.width, layer.alignment)
            line_width = ctx.measure_text(line).width
            effect_bounds = EffectBounds(
                x=result.x,
                y=y - layer.font_size / 2,
                width=line_width,
                height=layer.font_size,
            )

            if result.word_spacing is not None:
                _render_justified_line(ctx, line, result.x, y, result.word_spacing, effects, effect_bounds)
            else:
                TextEffectsRenderer.render_text_with_effects(ctx, line, result.x, y, effects, effect_bounds)
    finally:
        ctx.restore()


def _render_justified_line(
    ctx: DrawingContext,
    line: str,
    x: float,
    y: float,
    word_spacing: float,
    effects: TextEffects,
    bounds: EffectBounds,
) -> None:
    """逐词绘制两端对齐的行."""
    words = split_words(line)
    ctx.save()
    try:
        if effects.outline.enabled:
            TextEffectsRenderer.apply_outline(ctx, effects.outline)
            current_x = x
            for word in words:
                ctx.stroke_text(word, current_x, y)
                current_x += ctx.measure_text(word).width + word_spacing

        TextEffectsRenderer.apply_fill(ctx, effects, bounds)
        current_x = x
        for word in words:
            ctx.fill_text(word, current_x, y)
            current_x += ctx.measure_text(word).width + word_spacing
    finally:
        ctx.restore()


def calculate_advanced_bounds(ctx: DrawingContext, layer: AdvancedTextLayer) -> TextBounds:
    """计算高级文字块尺寸（未缩放的局部坐标）."""
    ctx.save()
    try:
        ctx.font = _advanced_font(layer)
        return calculate_bounds(ctx, layer.text, layer.font_size, layer.line_spacing)
    finally:
        ctx.restore()
