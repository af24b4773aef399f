"""多行布局与对齐单元测试."""

import pytest

from caption_art.canvas.surface import Surface
from caption_art.models.text_layer import TextAlignment
from caption_art.text.alignment import AlignmentManager, AlignmentResult, split_words
from caption_art.text.multi_line import (
    calculate_bounds,
    get_block_height,
    get_line_height,
    split_lines,
)


# ===================
# 多行布局测试
# ===================
class TestMultiLine:
    """测试多行布局."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("a", ["a"]),
            ("a\nb", ["a", "b"]),
            ("a\r\nb\rc", ["a", "b", "c"]),
            ("a\n\nb", ["a", "", "b"]),
            ("", [""]),
            ("a\n", ["a", ""]),
        ],
    )
    def test_split_lines(self, text, expected):
        """测试行数 = 换行符数 + 1."""
        assert split_lines(text) == expected

    def test_line_height(self):
        """测试行高."""
        assert get_line_height(40, 1.5) == 60

    def test_block_height(self):
        """测试文字块高度."""
        assert get_block_height("Hello\nWorld", 60, 1.2) == pytest.approx(144)

    def test_bounds_uses_widest_line(self, fixed_width_context):
        """测试宽度取最宽行."""
        bounds = calculate_bounds(fixed_width_context, "ab\nabcd\na", 20, 1.0)

        assert bounds.width == 40
        assert bounds.height == 60
        assert bounds.line_count == 3

    def test_bounds_with_real_font(self):
        """测试真实字体测量."""
        ctx = Surface(10, 10).get_context()
        ctx.font = "30px sans-serif"

        bounds = calculate_bounds(ctx, "Hi\nHello there", 30)

        assert bounds.width == ctx.measure_text("Hello there").width
        assert bounds.height == pytest.approx(72)


# ===================
# 对齐测试
# ===================
class TestAlignment:
    """测试行对齐（每个字符宽 10 像素）."""

    def test_left(self, fixed_width_context):
        """测试左对齐起点为块左边缘."""
        result = AlignmentManager.calculate_alignment(fixed_width_context, "abc", 100, 200, "left")

        assert result == AlignmentResult(x=0)

    def test_center(self, fixed_width_context):
        """测试居中."""
        result = AlignmentManager.calculate_alignment(fixed_width_context, "abcd", 100, 200, "center")

        assert result.x == 80
        assert result.word_spacing is None

    def test_right(self, fixed_width_context):
        """测试右对齐."""
        result = AlignmentManager.calculate_alignment(
            fixed_width_context, "abcd", 100, 200, TextAlignment.RIGHT
        )

        assert result.x == 160

    def test_justify_spreads_words(self, fixed_width_context):
        """测试两端对齐分配词间距."""
        result = AlignmentManager.calculate_alignment(fixed_width_context, "ab cd ef", 0, 200, "justify")

        assert result.x == -100
        assert result.word_spacing == pytest.approx((200 - 60) / 2)

    def test_justify_single_word_falls_back(self, fixed_width_context):
        """测试单个单词退回左对齐."""
        result = AlignmentManager.calculate_alignment(fixed_width_context, "word", 0, 200, "justify")

        assert result == AlignmentResult(x=-100)

    def test_justify_nearly_full_line_falls_back(self, fixed_width_context):
        """测试接近满宽的行退回左对齐."""
        line = "a" * 9 + " " + "b" * 9
        result = AlignmentManager.calculate_alignment(fixed_width_context, line, 0, 200, "justify")

        assert result.word_spacing is None

    def test_unknown_alignment_is_left(self, fixed_width_context):
        """测试未知对齐方式按左对齐处理."""
        result = AlignmentManager.calculate_alignment(fixed_width_context, "ab", 0, 100, "diagonal")

        assert result.x == -50

    def test_split_words(self):
        """测试按空白拆分单词."""
        assert split_words("  a  b\tc ") == ["a", "b", "c"]
