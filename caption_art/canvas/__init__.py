"""光栅画布模块."""

from caption_art.canvas.fonts import FontSpec, find_font, format_css_font, load_css_font, parse_css_font
from caption_art.canvas.paint import (
    CanvasGradient,
    LinearGradient,
    Pattern,
    RadialGradient,
    parse_color,
)
from caption_art.canvas.surface import DrawingContext, Matrix, Surface, TextMetrics
from caption_art.canvas.transform_controller import TransformController

__all__ = [
    # 画布
    "Surface",
    "DrawingContext",
    "Matrix",
    "TextMetrics",
    "TransformController",
    # 填充样式
    "CanvasGradient",
    "LinearGradient",
    "RadialGradient",
    "Pattern",
    "parse_color",
    # 字体
    "FontSpec",
    "find_font",
    "format_css_font",
    "load_css_font",
    "parse_css_font",
]
