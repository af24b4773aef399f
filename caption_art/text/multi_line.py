"""多行文字布局."""

from __future__ import annotations

import re
from typing import NamedTuple

from caption_art.canvas.surface import DrawingContext
from caption_art.utils.constants import DEFAULT_LINE_SPACING

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class TextBounds(NamedTuple):
    """多行文字块尺寸."""

    width: float
    height: float
    line_count: int


def split_lines(text: str) -> list[str]:
    """按 \\r\\n、\\r、\\n 拆分行，行数 = 换行符数 + 1.

    Example:
        >>> split_lines("a\\r\\nb\\rc\\nd")
        ['a', 'b', 'c', 'd']
        >>> split_lines("")
        ['']
    """
    return _LINE_BREAK.split(text)


def get_line_height(font_size: float, line_spacing: float = DEFAULT_LINE_SPACING) -> float:
    """行高 = 字号 × 行距."""
    return font_size * line_spacing


def get_block_height(text: str, font_size: float, line_spacing: float = DEFAULT_LINE_SPACING) -> float:
    """文字块总高度 = 行高 × 行数."""
    return get_line_height(font_size, line_spacing) * len(split_lines(text))


def calculate_bounds(
    ctx: DrawingContext,
    text: str,
    font_size: float,
    line_spacing: float = DEFAULT_LINE_SPACING,
) -> TextBounds:
    """计算文字块尺寸.

    宽度取最宽行（使用上下文当前字体测量）。

    Args:
        ctx: 绘图上下文
        text: 文字内容
        font_size: 字号
        line_spacing: 行距倍数

    Returns:
        文字块尺寸
    """
    lines = split_lines(text)
    width = max((ctx.measure_text(line).width for line in lines), default=0.0)
    height = get_line_height(font_size, line_spacing) * len(lines)
    return TextBounds(width=width, height=height, line_count=len(lines))
