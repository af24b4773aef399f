"""填充样式: 颜色、线性渐变、径向渐变、图案.

渐变和图案在用户坐标系（当前变换之前的局部坐标）中求值，
由绘图上下文把结果映射到设备坐标。
"""

from __future__ import annotations

from functools import lru_cache
from typing import Sequence, Union

import numpy as np
from PIL import Image, ImageColor

RGBA = tuple[int, int, int, int]


@lru_cache(maxsize=256)
def _parse_color_string(color: str) -> RGBA:
    return ImageColor.getcolor(color, "RGBA")


def parse_color(color: Union[str, Sequence[int]]) -> RGBA:
    """解析颜色为 RGBA 元组.

    Args:
        color: 颜色字符串（#rrggbb、#rrggbbaa、颜色名、rgb()）或 RGB/RGBA 序列

    Returns:
        RGBA 元组

    Raises:
        ValueError: 无法识别的颜色
    """
    if isinstance(color, str):
        return _parse_color_string(color.strip())

    values = tuple(int(c) for c in color)
    if len(values) == 3:
        return (*values, 255)
    if len(values) == 4:
        return values
    raise ValueError(f"无法识别的颜色: {color!r}")


def _pixel_grid(width: int, height: int, origin_x: float, origin_y: float):
    """返回像素中心的局部坐标网格."""
    xs = origin_x + np.arange(width, dtype=np.float64) + 0.5
    ys = origin_y + np.arange(height, dtype=np.float64) + 0.5
    return np.meshgrid(xs, ys)


class CanvasGradient:
    """渐变基类.

    色标按 offset 稳定排序后在非预乘 RGBA 空间线性插值，
    参数 t 在 [0, 1] 之外取端点颜色。
    """

    def __init__(self) -> None:
        self.stops: list[tuple[float, RGBA]] = []

    def add_color_stop(self, offset: float, color) -> None:
        """添加色标.

        Raises:
            ValueError: offset 不在 [0, 1] 内
        """
        if not 0.0 <= offset <= 1.0:
            raise ValueError(f"色标位置必须在 [0, 1] 内: {offset}")
        self.stops.append((float(offset), parse_color(color)))

    def _parameter(self, px: np.ndarray, py: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def render(self, width: int, height: int, origin_x: float, origin_y: float) -> Image.Image:
        """渲染渐变到指定局部区域.

        Args:
            width: 区域宽度
            height: 区域高度
            origin_x: 区域左上角局部 x 坐标
            origin_y: 区域左上角局部 y 坐标

        Returns:
            RGBA 图片
        """
        if not self.stops:
            return Image.new("RGBA", (width, height), (0, 0, 0, 0))

        px, py = _pixel_grid(width, height, origin_x, origin_y)
        t = self._parameter(px, py)
        if t is None:
            return Image.new("RGBA", (width, height), (0, 0, 0, 0))

        stops = sorted(self.stops, key=lambda s: s[0])
        offsets = np.array([s[0] for s in stops])
        colors = np.array([s[1] for s in stops], dtype=np.float64)

        t = np.clip(t, 0.0, 1.0)
        out = np.empty((height, width, 4), dtype=np.uint8)
        for channel in range(4):
            values = np.interp(t, offsets, colors[:, channel])
            out[..., channel] = np.clip(np.rint(values), 0, 255).astype(np.uint8)
        return Image.fromarray(out, "RGBA")


class LinearGradient(CanvasGradient):
    """线性渐变，从 (x0, y0) 到 (x1, y1)."""

    def __init__(self, x0: float, y0: float, x1: float, y1: float) -> None:
        super().__init__()
        self.x0, self.y0, self.x1, self.y1 = x0, y0, x1, y1

    def _parameter(self, px, py):
        dx = self.x1 - self.x0
        dy = self.y1 - self.y0
        length_sq = dx * dx + dy * dy
        # 起止点重合时不绘制
        if length_sq == 0:
            return None
        return ((px - self.x0) * dx + (py - self.y0) * dy) / length_sq


class RadialGradient(CanvasGradient):
    """径向渐变.

    仅支持同心圆（起始圆与结束圆圆心相同），以结束圆圆心为准。
    """

    def __init__(self, x0: float, y0: float, r0: float, x1: float, y1: float, r1: float) -> None:
        super().__init__()
        if r0 < 0 or r1 < 0:
            raise ValueError("径向渐变半径不能为负数")
        self.x0, self.y0, self.r0 = x0, y0, r0
        self.x1, self.y1, self.r1 = x1, y1, r1

    def _parameter(self, px, py):
        if self.r1 == self.r0:
            return None
        distance = np.hypot(px - self.x1, py - self.y1)
        return (distance - self.r0) / (self.r1 - self.r0)


class Pattern:
    """平铺图案，图案原点位于局部坐标原点.

    Attributes:
        image: RGBA 图案图片
        repetition: 平铺方式，目前仅 repeat 生效
    """

    def __init__(self, image: Image.Image, repetition: str = "repeat") -> None:
        if image.width == 0 or image.height == 0:
            raise ValueError("图案图片尺寸无效")
        self.image = image.convert("RGBA") if image.mode != "RGBA" else image
        self.repetition = repetition
        self._pixels = np.asarray(self.image)

    def render(self, width: int, height: int, origin_x: float, origin_y: float) -> Image.Image:
        """渲染图案到指定局部区域."""
        px, py = _pixel_grid(width, height, origin_x, origin_y)
        tile_h, tile_w = self._pixels.shape[:2]
        ix = np.floor(px).astype(np.int64) % tile_w
        iy = np.floor(py).astype(np.int64) % tile_h
        return Image.fromarray(self._pixels[iy, ix], "RGBA")


PaintSource = Union[str, tuple, CanvasGradient, Pattern]


def render_paint(
    paint: PaintSource,
    width: int,
    height: int,
    origin_x: float,
    origin_y: float,
) -> Image.Image:
    """把任意填充样式渲染为局部区域的 RGBA 图片."""
    if isinstance(paint, (CanvasGradient, Pattern)):
        return paint.render(width, height, origin_x, origin_y)
    return Image.new("RGBA", (width, height), parse_color(paint))
