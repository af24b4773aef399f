"""内置文字样式预设.

每个预设是 (preset_id, font_size) 的纯函数，返回不可变的样式描述。
相同输入返回同一个对象，便于缓存比较。
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Union

from caption_art.canvas.fonts import format_css_font
from caption_art.models.text_layer import StylePresetId


@dataclass(frozen=True)
class ShadowSpec:
    """阴影描述."""

    blur: float
    color: str
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass(frozen=True)
class TextStyle:
    """文字样式描述.

    Attributes:
        font: CSS 风格字体字符串
        fill_color: 填充颜色
        stroke_color: 描边颜色，None 表示不描边
        stroke_width: 描边宽度
        shadow: 单层阴影
        glow_layers: 发光层（按顺序带阴影重复填充）
    """

    font: str
    fill_color: str
    stroke_color: Optional[str] = None
    stroke_width: float = 0.0
    shadow: Optional[ShadowSpec] = None
    glow_layers: tuple[ShadowSpec, ...] = ()

    @property
    def has_stroke(self) -> bool:
        return bool(self.stroke_color) and self.stroke_width > 0


def _neon(font_size: float) -> TextStyle:
    return TextStyle(
        font=format_css_font("Arial, sans-serif", font_size, bold=True),
        fill_color="#ffffff",
        glow_layers=(
            ShadowSpec(blur=10, color="#00ffff"),
            ShadowSpec(blur=20, color="#00ffff"),
            ShadowSpec(blur=30, color="#00ffff"),
            ShadowSpec(blur=40, color="#0088ff"),
        ),
    )


def _magazine(font_size: float) -> TextStyle:
    return TextStyle(
        font=format_css_font("Georgia, serif", font_size, bold=True),
        fill_color="#000000",
        stroke_color="#ffffff",
        stroke_width=font_size * 0.15,
    )


def _brush(font_size: float) -> TextStyle:
    return TextStyle(
        font=format_css_font("'Brush Script MT', cursive", font_size, italic=True),
        fill_color="#2c3e50",
        stroke_color="#34495e",
        stroke_width=font_size * 0.02,
    )


def _emboss(font_size: float) -> TextStyle:
    return TextStyle(
        font=format_css_font("'Helvetica Neue', sans-serif", font_size, bold=True),
        fill_color="#e0e0e0",
        shadow=ShadowSpec(blur=2, color="#000000", offset_x=3, offset_y=3),
    )


_PRESET_BUILDERS = {
    StylePresetId.NEON: _neon,
    StylePresetId.MAGAZINE: _magazine,
    StylePresetId.BRUSH: _brush,
    StylePresetId.EMBOSS: _emboss,
}


@lru_cache(maxsize=256)
def _cached_style(preset: StylePresetId, font_size: float) -> TextStyle:
    return _PRESET_BUILDERS[preset](font_size)


def get_style(preset_id: Union[StylePresetId, str], font_size: float) -> TextStyle:
    """获取预设样式.

    Args:
        preset_id: 预设 ID，未知 ID 回退到 neon
        font_size: 字号（像素）

    Returns:
        样式描述（相同输入返回同一对象）

    Example:
        >>> get_style("magazine", 40).stroke_color
        '#ffffff'
        >>> get_style("unknown", 40) is get_style("neon", 40)
        True
    """
    try:
        preset = StylePresetId(preset_id)
    except ValueError:
        preset = StylePresetId.NEON
    return _cached_style(preset, float(font_size))
