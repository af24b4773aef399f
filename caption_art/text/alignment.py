"""行对齐计算.

文字块以 base_x 为水平中心，宽度为 max_width（最宽行宽度）。
"""

from __future__ import annotations

from typing import NamedTuple, Optional, Union

from caption_art.canvas.surface import DrawingContext
from caption_art.models.text_layer import TextAlignment
from caption_art.utils.constants import JUSTIFY_FILL_THRESHOLD


class AlignmentResult(NamedTuple):
    """对齐结果.

    Attributes:
        x: 行起点 x 坐标（左对齐绘制）
        word_spacing: 两端对齐时的词间距，其他对齐方式为 None
    """

    x: float
    word_spacing: Optional[float] = None


def split_words(line: str) -> list[str]:
    """按空白拆分单词."""
    return line.split()


class AlignmentManager:
    """行对齐计算器."""

    @staticmethod
    def calculate_alignment(
        ctx: DrawingContext,
        line: str,
        base_x: float,
        max_width: float,
        alignment: Union[TextAlignment, str],
    ) -> AlignmentResult:
        """计算单行的绘制起点.

        Args:
            ctx: 绘图上下文（已设置字体）
            line: 行文字
            base_x: 文字块中心 x
            max_width: 文字块宽度
            alignment: 对齐方式

        Returns:
            对齐结果
        """
        line_width = ctx.measure_text(line).width
        try:
            alignment = TextAlignment(alignment)
        except ValueError:
            alignment = TextAlignment.LEFT

        if alignment == TextAlignment.CENTER:
            return AlignmentResult(x=base_x - line_width / 2)
        if alignment == TextAlignment.RIGHT:
            return AlignmentResult(x=base_x + max_width / 2 - line_width)
        if alignment == TextAlignment.JUSTIFY:
            return AlignmentManager._justify(ctx, line, base_x, line_width, max_width)
        return AlignmentManager._left(base_x, max_width)

    @staticmethod
    def _left(base_x: float, max_width: float) -> AlignmentResult:
        return AlignmentResult(x=base_x - max_width / 2)

    @staticmethod
    def _justify(
        ctx: DrawingContext,
        line: str,
        base_x: float,
        line_width: float,
        max_width: float,
    ) -> AlignmentResult:
        words = split_words(line)
        # 单词、空行或接近满宽的行退回左对齐
        if len(words) <= 1 or line_width >= max_width * JUSTIFY_FILL_THRESHOLD:
            return AlignmentManager._left(base_x, max_width)

        total_word_width = sum(ctx.measure_text(word).width for word in words)
        spacing = (max_width - total_word_width) / (len(words) - 1)
        return AlignmentResult(x=base_x - max_width / 2, word_spacing=max(0.0, spacing))
