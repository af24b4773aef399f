"""文字样式与效果模块."""

from caption_art.text.alignment import AlignmentManager, AlignmentResult
from caption_art.text.effects_renderer import EffectBounds, TextEffectsRenderer, calculate_text_bounds
from caption_art.text.multi_line import (
    TextBounds,
    calculate_bounds,
    get_block_height,
    get_line_height,
    split_lines,
)
from caption_art.text.style_presets import ShadowSpec, TextStyle, get_style
from caption_art.text.text_renderer import calculate_advanced_bounds, render_advanced, render_text

__all__ = [
    # 样式预设
    "ShadowSpec",
    "TextStyle",
    "get_style",
    # 多行布局
    "TextBounds",
    "calculate_bounds",
    "get_block_height",
    "get_line_height",
    "split_lines",
    # 对齐
    "AlignmentManager",
    "AlignmentResult",
    # 效果
    "EffectBounds",
    "TextEffectsRenderer",
    "calculate_text_bounds",
    # 渲染
    "calculate_advanced_bounds",
    "render_advanced",
    "render_text",
]
