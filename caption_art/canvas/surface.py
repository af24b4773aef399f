"""光栅画布与绘图上下文.

Surface 是基于 Pillow RGBA 图片的离屏画布，DrawingContext 提供合成引擎
需要的 2D 绘图接口子集。

Features:
    - 仿射变换矩阵与 save/restore 状态栈
    - 文字填充/描边，支持颜色、渐变、图案填充
    - 阴影（高斯模糊，设备坐标偏移）
    - source-over / destination-out 合成模式
    - 像素快照与恢复
    - PNG / JPEG 编码与 data URL
"""

from __future__ import annotations

import math
from typing import NamedTuple, Optional, Union

from PIL import Image, ImageChops, ImageDraw, ImageFilter

from caption_art.canvas.fonts import load_css_font
from caption_art.canvas.paint import PaintSource, parse_color, render_paint
from caption_art.utils.image_utils import bytes_to_data_url, encode_image, ensure_rgba
from caption_art.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# 常量定义
# ===================

# 支持的合成模式
COMPOSITE_OPERATIONS = ("source-over", "destination-out")

# 水平对齐到 Pillow 锚点
_ALIGN_ANCHORS = {
    "left": "l",
    "start": "l",
    "center": "m",
    "right": "r",
    "end": "r",
}

# 基线到 Pillow 锚点
_BASELINE_ANCHORS = {
    "alphabetic": "s",
    "middle": "m",
    "top": "a",
    "hanging": "a",
    "bottom": "d",
    "ideographic": "d",
}

# 可保存/恢复的绘图状态
_STATE_FIELDS = (
    "_matrix",
    "font",
    "text_align",
    "text_baseline",
    "fill_style",
    "stroke_style",
    "line_width",
    "line_join",
    "shadow_blur",
    "shadow_color",
    "shadow_offset_x",
    "shadow_offset_y",
    "global_composite_operation",
)

_IDENTITY = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
_TRANSPARENT = (0, 0, 0, 0)
_EPSILON = 1e-9


class Matrix(NamedTuple):
    """2D 仿射矩阵 [a c e; b d f; 0 0 1]."""

    a: float
    b: float
    c: float
    d: float
    e: float
    f: float

    def apply(self, x: float, y: float) -> tuple[float, float]:
        """将局部坐标映射到设备坐标."""
        return (self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f)


class TextMetrics(NamedTuple):
    """文字度量（局部坐标单位）.

    actual_bounding_box_left/right 为墨迹相对绘制锚点向左/向右的距离。
    """

    width: float
    ascent: float
    descent: float
    actual_bounding_box_left: float = 0.0
    actual_bounding_box_right: float = 0.0


def _multiply(m: tuple, n: tuple) -> tuple:
    """矩阵乘法 m · n."""
    a, b, c, d, e, f = m
    a2, b2, c2, d2, e2, f2 = n
    return (
        a * a2 + c * b2,
        b * a2 + d * b2,
        a * c2 + c * d2,
        b * c2 + d * d2,
        a * e2 + c * f2 + e,
        b * e2 + d * f2 + f,
    )


# ===================
# 绘图上下文
# ===================


class DrawingContext:
    """2D 绘图上下文.

    每个 Surface 只有一个上下文。颜色可以是 CSS 颜色字符串或 RGB(A) 元组，
    填充/描边样式还可以是 LinearGradient、RadialGradient 或 Pattern。

    Example:
        >>> surface = Surface(200, 100)
        >>> ctx = surface.get_context()
        >>> ctx.font = "bold 32px Arial, sans-serif"
        >>> ctx.text_align = "center"
        >>> ctx.text_baseline = "middle"
        >>> ctx.fill_style = "#ff0000"
        >>> ctx.fill_text("Hi", 100, 50)
    """

    def __init__(self, surface: "Surface") -> None:
        self._surface = surface
        self._stack: list[dict] = []
        self._reset_state()

    def _reset_state(self) -> None:
        self._matrix = _IDENTITY
        self.font = "10px sans-serif"
        self.text_align = "start"
        self.text_baseline = "alphabetic"
        self.fill_style: PaintSource = "#000000"
        self.stroke_style: PaintSource = "#000000"
        self.line_width = 1.0
        self.line_join = "miter"
        self.shadow_blur = 0.0
        self.shadow_color: Union[str, tuple] = (0, 0, 0, 0)
        self.shadow_offset_x = 0.0
        self.shadow_offset_y = 0.0
        self.global_composite_operation = "source-over"

    @property
    def surface(self) -> "Surface":
        """所属画布."""
        return self._surface

    # ========================
    # 状态栈
    # ========================

    def save(self) -> None:
        """保存当前绘图状态."""
        self._stack.append({name: getattr(self, name) for name in _STATE_FIELDS})

    def restore(self) -> None:
        """恢复最近保存的绘图状态，栈为空时无操作."""
        if not self._stack:
            return
        for name, value in self._stack.pop().items():
            setattr(self, name, value)

    def reset(self) -> None:
        """清空状态栈并恢复默认状态."""
        self._stack.clear()
        self._reset_state()

    # ========================
    # 变换
    # ========================

    def get_transform(self) -> Matrix:
        """获取当前变换矩阵."""
        return Matrix(*self._matrix)

    def set_transform(self, a: float, b: float, c: float, d: float, e: float, f: float) -> None:
        """直接设置变换矩阵."""
        self._matrix = (a, b, c, d, e, f)

    def reset_transform(self) -> None:
        """重置为单位矩阵."""
        self._matrix = _IDENTITY

    def transform(self, a: float, b: float, c: float, d: float, e: float, f: float) -> None:
        """右乘变换矩阵."""
        self._matrix = _multiply(self._matrix, (a, b, c, d, e, f))

    def translate(self, tx: float, ty: float) -> None:
        """平移."""
        self.transform(1.0, 0.0, 0.0, 1.0, tx, ty)

    def rotate(self, radians: float) -> None:
        """旋转（弧度，顺时针为正）."""
        cos, sin = math.cos(radians), math.sin(radians)
        self.transform(cos, sin, -sin, cos, 0.0, 0.0)

    def scale(self, sx: float, sy: float) -> None:
        """缩放."""
        self.transform(sx, 0.0, 0.0, sy, 0.0, 0.0)

    # ========================
    # 文字
    # ========================

    def _anchor(self) -> str:
        horizontal = _ALIGN_ANCHORS.get(self.text_align, "l")
        vertical = _BASELINE_ANCHORS.get(self.text_baseline, "s")
        return horizontal + vertical

    def measure_text(self, text: str) -> TextMetrics:
        """测量文字宽度（不受当前变换影响）."""
        font = load_css_font(self.font)
        text = _single_line(text)
        ascent, descent = font.getmetrics()
        left, _, right, _ = font.getbbox(text, anchor=self._anchor()) if text else (0, 0, 0, 0)
        return TextMetrics(
            width=float(font.getlength(text)),
            ascent=float(ascent),
            descent=float(descent),
            actual_bounding_box_left=float(-left),
            actual_bounding_box_right=float(right),
        )

    def fill_text(self, text: str, x: float, y: float) -> None:
        """填充文字."""
        self._draw_text(text, x, y, stroke=False)

    def stroke_text(self, text: str, x: float, y: float) -> None:
        """描边文字，描边沿轮廓居中，宽度为 line_width，内侧拐角形状由 line_join 决定."""
        self._draw_text(text, x, y, stroke=True)

    def _draw_text(self, text: str, x: float, y: float, stroke: bool) -> None:
        text = _single_line(text)
        if not text.strip():
            return

        font = load_css_font(self.font)
        anchor = self._anchor()
        stroke_width = max(1, round(self.line_width / 2)) if stroke else 0
        pad = 2 + stroke_width

        left, top, right, bottom = font.getbbox(text, anchor=anchor, stroke_width=stroke_width)
        width = int(math.ceil(right - left)) + pad * 2
        height = int(math.ceil(bottom - top)) + pad * 2
        if width <= 0 or height <= 0:
            return

        origin = (pad - left, pad - top)
        mask = Image.new("L", (width, height), 0)
        ImageDraw.Draw(mask).text(
            origin,
            text,
            font=font,
            fill=255,
            anchor=anchor,
            stroke_width=stroke_width,
            stroke_fill=255,
        )

        if stroke:
            # 轮廓内外各一半：外扩后的字形减去内缩后的字形
            glyph = Image.new("L", (width, height), 0)
            ImageDraw.Draw(glyph).text(origin, text, font=font, fill=255, anchor=anchor)
            inner = _erode(glyph, stroke_width, self.line_join)
            mask = ImageChops.subtract(mask, inner)

        local_x = x + left - pad
        local_y = y + top - pad
        paint = self.stroke_style if stroke else self.fill_style
        tile = render_paint(paint, width, height, local_x, local_y)
        tile.putalpha(ImageChops.multiply(tile.getchannel("A"), mask))
        self._draw_tile(tile, local_x, local_y)

    # ========================
    # 图片与矩形
    # ========================

    def draw_image(
        self,
        image: Union[Image.Image, "Surface"],
        dx: float,
        dy: float,
        dw: Optional[float] = None,
        dh: Optional[float] = None,
    ) -> None:
        """绘制图片，可缩放到 dw x dh."""
        if isinstance(image, Surface):
            image = image.image
        image = ensure_rgba(image)
        if image.width == 0 or image.height == 0:
            return

        target_w = image.width if dw is None else max(0, round(dw))
        target_h = image.height if dh is None else max(0, round(dh))
        if target_w == 0 or target_h == 0:
            return
        if (target_w, target_h) != image.size:
            image = image.resize((target_w, target_h), Image.Resampling.LANCZOS)

        self._draw_tile(image, dx, dy)

    def fill_rect(self, x: float, y: float, width: float, height: float) -> None:
        """填充矩形."""
        w, h = round(width), round(height)
        if w <= 0 or h <= 0:
            return
        self._draw_tile(render_paint(self.fill_style, w, h, x, y), x, y)

    def clear_rect(self, x: float, y: float, width: float, height: float) -> None:
        """清除矩形区域为全透明（受当前变换影响）."""
        m = self.get_transform()
        corners = [m.apply(px, py) for px, py in (
            (x, y), (x + width, y), (x + width, y + height), (x, y + height)
        )]
        target = self._surface.image

        if abs(m.b) < _EPSILON and abs(m.c) < _EPSILON:
            xs = [p[0] for p in corners]
            ys = [p[1] for p in corners]
            box = (
                max(0, round(min(xs))),
                max(0, round(min(ys))),
                min(target.width, round(max(xs))),
                min(target.height, round(max(ys))),
            )
            if box[2] > box[0] and box[3] > box[1]:
                target.paste(_TRANSPARENT, box)
            return

        mask = Image.new("L", target.size, 0)
        ImageDraw.Draw(mask).polygon(corners, fill=255)
        target.paste(_TRANSPARENT, (0, 0, target.width, target.height), mask)

    # ========================
    # 像素数据
    # ========================

    def get_image_data(self) -> Image.Image:
        """获取整个画布的像素快照."""
        return self._surface.image.copy()

    def put_image_data(self, image: Image.Image, dx: int = 0, dy: int = 0) -> None:
        """写回像素快照（直接替换像素，不受变换和合成模式影响）."""
        self._surface.image.paste(ensure_rgba(image), (int(dx), int(dy)))

    # ========================
    # 内部实现
    # ========================

    def _draw_tile(self, tile: Image.Image, local_x: float, local_y: float) -> None:
        """将局部坐标中的图块映射到设备坐标并合成（含阴影）."""
        shadow_rgba = parse_color(self.shadow_color)
        has_shadow = shadow_rgba[3] > 0 and (
            self.shadow_blur > 0 or self.shadow_offset_x != 0 or self.shadow_offset_y != 0
        )
        margin = int(math.ceil(max(0.0, self.shadow_blur) * 1.5)) + 2 if has_shadow else 0

        placed = self._to_device(tile, local_x, local_y, margin)
        if placed is None:
            return
        device_tile, left, top = placed

        if has_shadow:
            shadow = Image.new("RGBA", device_tile.size, shadow_rgba[:3] + (0,))
            alpha = device_tile.getchannel("A").point(lambda v: v * shadow_rgba[3] // 255)
            if self.shadow_blur > 0:
                alpha = alpha.filter(ImageFilter.GaussianBlur(self.shadow_blur / 2))
            shadow.putalpha(alpha)
            self._blend(
                shadow,
                left + round(self.shadow_offset_x),
                top + round(self.shadow_offset_y),
            )

        self._blend(device_tile, left, top)

    def _to_device(self, tile: Image.Image, local_x: float, local_y: float, margin: int):
        """返回 (设备图块, 左上角 x, 左上角 y)，矩阵退化时返回 None."""
        a, b, c, d, e, f = _multiply(self._matrix, (1.0, 0.0, 0.0, 1.0, local_x, local_y))

        # 纯平移：直接按整数像素放置
        if abs(a - 1) < _EPSILON and abs(d - 1) < _EPSILON and abs(b) < _EPSILON and abs(c) < _EPSILON:
            if margin == 0:
                return tile, round(e), round(f)
            padded = Image.new("RGBA", (tile.width + margin * 2, tile.height + margin * 2), _TRANSPARENT)
            padded.paste(tile, (margin, margin))
            return padded, round(e) - margin, round(f) - margin

        det = a * d - b * c
        if abs(det) < _EPSILON:
            return None

        w, h = tile.size
        corners = [(a * u + c * v + e, b * u + d * v + f) for u, v in ((0, 0), (w, 0), (w, h), (0, h))]
        surface_w, surface_h = self._surface.size
        limit = margin + max(abs(self.shadow_offset_x), abs(self.shadow_offset_y)) + 1
        left = max(math.floor(min(p[0] for p in corners)) - margin, -int(limit))
        top = max(math.floor(min(p[1] for p in corners)) - margin, -int(limit))
        right = min(math.ceil(max(p[0] for p in corners)) + margin, surface_w + int(limit))
        bottom = min(math.ceil(max(p[1] for p in corners)) + margin, surface_h + int(limit))
        if right <= left or bottom <= top:
            return None

        # 设备像素 (X, Y) 反算到图块坐标 (u, v)
        inverse = (
            d / det,
            -c / det,
            (d * (left - e) - c * (top - f)) / det,
            -b / det,
            a / det,
            (-b * (left - e) + a * (top - f)) / det,
        )
        device_tile = tile.convert("RGBa").transform(
            (right - left, bottom - top),
            Image.Transform.AFFINE,
            inverse,
            resample=Image.Resampling.BICUBIC,
        ).convert("RGBA")
        return device_tile, left, top

    def _blend(self, layer: Image.Image, left: int, top: int) -> None:
        """按当前合成模式把设备图块合成到画布."""
        target = self._surface.image
        x0, y0 = max(0, left), max(0, top)
        x1 = min(target.width, left + layer.width)
        y1 = min(target.height, top + layer.height)
        if x1 <= x0 or y1 <= y0:
            return

        source = layer.crop((x0 - left, y0 - top, x1 - left, y1 - top))
        operation = self.global_composite_operation

        if operation == "destination-out":
            region = target.crop((x0, y0, x1, y1))
            keep = ImageChops.invert(source.getchannel("A"))
            region.putalpha(ImageChops.multiply(region.getchannel("A"), keep))
            target.paste(region, (x0, y0))
            return

        if operation != "source-over":
            logger.warning(f"不支持的合成模式 '{operation}'，按 source-over 处理")
        target.alpha_composite(source, (x0, y0))


def _erode(mask: Image.Image, radius: int, line_join: str) -> Image.Image:
    """按连接方式内缩字形.

    miter/bevel 使用方形结构元素；round 交替方形与十字形 3x3 腐蚀，
    近似圆形结构元素，拐角处保留更多字形。
    """
    if line_join != "round":
        return mask.filter(ImageFilter.MinFilter(radius * 2 + 1))

    for step in range(radius):
        if step % 2 == 0:
            mask = mask.filter(ImageFilter.MinFilter(3))
        else:
            # 十字形: 与上下左右相邻像素取最小值（四周有空白边距，回绕不影响结果）
            cross = mask
            for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
                cross = ImageChops.darker(cross, ImageChops.offset(mask, dx, dy))
            mask = cross
    return mask


def _single_line(text: str) -> str:
    """换行等空白字符替换为空格."""
    return text.replace("\r\n", " ").replace("\r", " ").replace("\n", " ").replace("\t", " ")


# ===================
# 画布
# ===================


class Surface:
    """RGBA 离屏画布.

    Attributes:
        width: 宽度（像素）
        height: 高度（像素）
    """

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self._image = Image.new("RGBA", (max(0, int(width)), max(0, int(height))), _TRANSPARENT)
        self._context: Optional[DrawingContext] = None

    @classmethod
    def from_image(cls, image: Image.Image) -> "Surface":
        """从图片创建画布（复制像素）."""
        surface = cls(image.width, image.height)
        surface._image = ensure_rgba(image).copy()
        return surface

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def size(self) -> tuple[int, int]:
        return self._image.size

    @property
    def image(self) -> Image.Image:
        """底层 RGBA 图片（实时引用）."""
        return self._image

    def resize(self, width: int, height: int) -> None:
        """设置尺寸，内容清空，绘图状态重置."""
        self._image = Image.new("RGBA", (max(0, int(width)), max(0, int(height))), _TRANSPARENT)
        if self._context is not None:
            self._context.reset()

    def get_context(self) -> DrawingContext:
        """获取绘图上下文（每个画布唯一）."""
        if self._context is None:
            self._context = DrawingContext(self)
        return self._context

    def copy(self) -> "Surface":
        """复制画布像素到新画布."""
        return Surface.from_image(self._image)

    def to_image(self) -> Image.Image:
        """导出像素副本."""
        return self._image.copy()

    def to_blob(self, format: str = "png", quality: Optional[float] = None) -> bytes:
        """编码为字节数据.

        Raises:
            ValueError: 画布尺寸为零或格式不支持
        """
        if self.width == 0 or self.height == 0:
            raise ValueError("画布尺寸为零，无法编码")
        return encode_image(self._image, format, quality)

    def to_data_url(self, format: str = "png", quality: Optional[float] = None) -> str:
        """编码为 data URL."""
        return bytes_to_data_url(self.to_blob(format, quality), format)

    def __repr__(self) -> str:
        return f"Surface({self.width}x{self.height})"
