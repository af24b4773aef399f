"""文字变换控制器.

所有输入都被静默规范化（钳制或取模），从不抛出异常。
"""

from __future__ import annotations

import math
from typing import Optional

from caption_art.canvas.surface import DrawingContext
from caption_art.models.text_layer import Transform


class TransformController:
    """变换控制器.

    Example:
        >>> controller = TransformController()
        >>> controller.set_scale(5.0)
        >>> controller.set_rotation(-90)
        >>> controller.get_transform().as_tuple()
        (0.5, 0.5, 3.0, 270.0)
    """

    def __init__(self, transform: Optional[Transform] = None) -> None:
        self._transform = transform or Transform()

    def set_position(self, x: float, y: float) -> None:
        """设置位置，各分量钳制到 [0, 1]."""
        self._transform = self._transform.with_changes(x=x, y=y)

    def set_scale(self, scale: float) -> None:
        """设置缩放，钳制到 [0.5, 3.0]."""
        self._transform = self._transform.with_changes(scale=scale)

    def set_rotation(self, degrees: float) -> None:
        """设置旋转角度，取模到 [0, 360)."""
        self._transform = self._transform.with_changes(rotation=degrees)

    def get_transform(self) -> Transform:
        """获取不可变的变换快照."""
        return self._transform

    def to_pixels(self, width: float, height: float) -> tuple[float, float]:
        """归一化坐标转换为像素坐标."""
        return (self._transform.x * width, self._transform.y * height)

    def apply_to_context(self, ctx: DrawingContext, width: float, height: float) -> None:
        """按 平移 → 旋转 → 等比缩放 的顺序应用到绘图上下文.

        Args:
            ctx: 绘图上下文
            width: 画布宽度
            height: 画布高度
        """
        x, y = self.to_pixels(width, height)
        ctx.translate(x, y)
        ctx.rotate(math.radians(self._transform.rotation))
        ctx.scale(self._transform.scale, self._transform.scale)
