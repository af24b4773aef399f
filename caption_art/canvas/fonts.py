"""字体解析与查找.

Features:
    - 解析 CSS 风格字体字符串（"bold italic 48px Arial, sans-serif"）
    - 按候选字体族依次查找系统字体，支持粗体/斜体变体
    - 通用字体族（sans-serif、serif 等）映射到常见字体文件
    - 找不到字体时回退到 Pillow 内置可缩放字体
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from PIL import ImageFont

from caption_art.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# 常量定义
# ===================

DEFAULT_FONT_SIZE = 10

# 字体搜索路径
FONT_SEARCH_PATHS = [
    "/System/Library/Fonts/",
    "/System/Library/Fonts/Supplemental/",
    "/Library/Fonts/",
    "~/Library/Fonts/",
    "C:/Windows/Fonts/",
    "/usr/share/fonts/",
    "/usr/share/fonts/truetype/",
    "/usr/share/fonts/truetype/dejavu/",
    "/usr/share/fonts/truetype/liberation/",
    "/usr/share/fonts/TTF/",
]

# 通用字体族对应的字体文件名（不含扩展名）
GENERIC_FAMILIES = {
    "sans-serif": ["Arial", "Helvetica", "DejaVuSans", "LiberationSans-Regular"],
    "serif": ["Times New Roman", "Georgia", "DejaVuSerif", "LiberationSerif-Regular"],
    "monospace": ["Courier New", "Menlo", "DejaVuSansMono", "LiberationMono-Regular"],
    "cursive": ["Brush Script", "Comic Sans MS", "DejaVuSans"],
    "fantasy": ["Impact", "DejaVuSans"],
}

_FONT_PATTERN = re.compile(
    r"^\s*(?P<modifiers>(?:(?:normal|italic|oblique|bold|bolder|lighter|small-caps|\d{3})\s+)*)"
    r"(?P<size>\d+(?:\.\d+)?)px"
    r"(?:\s*/\s*\S+)?"
    r"\s+(?P<families>.+?)\s*$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class FontSpec:
    """解析后的字体描述.

    Attributes:
        families: 候选字体族，按优先级排列
        size: 字号（像素）
        bold: 是否粗体
        italic: 是否斜体
    """

    families: tuple[str, ...]
    size: float
    bold: bool = False
    italic: bool = False


def parse_css_font(font: str) -> FontSpec:
    """解析 CSS 风格字体字符串.

    无法解析时返回 10px sans-serif，与浏览器对非法 font 值的处理一致。

    Args:
        font: 字体字符串

    Returns:
        字体描述

    Example:
        >>> parse_css_font("bold 48px Georgia, serif")
        FontSpec(families=('Georgia', 'serif'), size=48.0, bold=True, italic=False)
    """
    match = _FONT_PATTERN.match(font or "")
    if not match:
        return FontSpec(families=("sans-serif",), size=float(DEFAULT_FONT_SIZE))

    modifiers = match.group("modifiers").lower().split()
    bold = any(m in ("bold", "bolder") or (m.isdigit() and int(m) >= 600) for m in modifiers)
    italic = any(m in ("italic", "oblique") for m in modifiers)

    families = tuple(
        name.strip().strip("'\"")
        for name in match.group("families").split(",")
        if name.strip().strip("'\"")
    )
    return FontSpec(
        families=families or ("sans-serif",),
        size=float(match.group("size")),
        bold=bold,
        italic=italic,
    )


def format_css_font(
    family: str,
    size: float,
    bold: bool = False,
    italic: bool = False,
) -> str:
    """构造 CSS 风格字体字符串."""
    parts = []
    if italic:
        parts.append("italic")
    if bold:
        parts.append("bold")
    size_text = f"{size:g}"
    parts.append(f"{size_text}px")
    parts.append(family)
    return " ".join(parts)


# ===================
# 字体查找
# ===================


def _font_variants(font_family: str, bold: bool, italic: bool) -> list[str]:
    """生成候选字体文件名."""
    variants = []
    # 粗体/斜体变体优先
    if bold and italic:
        variants.extend([
            f"{font_family}-BoldItalic.ttf",
            f"{font_family} Bold Italic.ttf",
            f"{font_family}-BoldOblique.ttf",
        ])
    elif bold:
        variants.extend([
            f"{font_family}-Bold.ttf",
            f"{font_family} Bold.ttf",
        ])
    elif italic:
        variants.extend([
            f"{font_family}-Italic.ttf",
            f"{font_family} Italic.ttf",
            f"{font_family}-Oblique.ttf",
        ])

    variants.extend([
        font_family,
        f"{font_family}.ttf",
        f"{font_family}.otf",
        f"{font_family}.ttc",
    ])
    return variants


def _lookup_font(
    font_family: str,
    font_size: int,
    bold: bool,
    italic: bool,
) -> Optional[ImageFont.FreeTypeFont]:
    """在搜索路径中查找单个字体族，找不到返回 None."""
    names = GENERIC_FAMILIES.get(font_family.lower(), [font_family])

    for name in names:
        variants = _font_variants(name, bold, italic)
        for search_path in FONT_SEARCH_PATHS:
            expanded_path = os.path.expanduser(search_path)
            if not os.path.isdir(expanded_path):
                continue

            for variant in variants:
                font_path = os.path.join(expanded_path, variant)
                if os.path.isfile(font_path):
                    try:
                        return ImageFont.truetype(font_path, font_size)
                    except (OSError, IOError):
                        continue

    return None


@lru_cache(maxsize=128)
def find_font(
    font_family: Optional[str],
    font_size: int,
    bold: bool = False,
    italic: bool = False,
) -> ImageFont.FreeTypeFont:
    """查找字体.

    font_family 可以是逗号分隔的候选列表，按顺序尝试。

    Args:
        font_family: 字体名称
        font_size: 字体大小
        bold: 是否粗体
        italic: 是否斜体

    Returns:
        ImageFont 对象
    """
    font_size = max(1, int(font_size))
    families = [f.strip().strip("'\"") for f in (font_family or "").split(",") if f.strip()]

    for family in families:
        font = _lookup_font(family, font_size, bold, italic)
        if font is not None:
            return font

    # 回退到内置字体
    if families:
        logger.warning(f"字体 '{font_family}' 未找到，使用默认字体")
    return ImageFont.load_default(font_size)


def load_css_font(font: str) -> ImageFont.FreeTypeFont:
    """按 CSS 风格字体字符串加载字体."""
    spec = parse_css_font(font)
    return find_font(
        ", ".join(spec.families),
        max(1, round(spec.size)),
        spec.bold,
        spec.italic,
    )
