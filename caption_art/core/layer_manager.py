"""图层管理器.

每种图层（背景、文字、遮罩）最多一个，合成顺序固定：
背景 → 文字 → 遮罩（始终以 destination-out 抠除）。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from caption_art.canvas.surface import Surface
from caption_art.utils.logger import setup_logger

logger = setup_logger(__name__)


class LayerKind(str, Enum):
    """图层类型."""

    BACKGROUND = "background"
    TEXT = "text"
    MASK = "mask"


# 固定合成顺序
COMPOSITE_ORDER = (LayerKind.BACKGROUND, LayerKind.TEXT, LayerKind.MASK)

DEFAULT_BLEND_MODE = "source-over"
MASK_BLEND_MODE = "destination-out"


@dataclass
class Layer:
    """单次渲染使用的光栅图层.

    Attributes:
        kind: 图层类型
        surface: 图层画布
        blend_mode: 合成模式，遮罩层忽略该值
    """

    kind: LayerKind
    surface: Surface
    blend_mode: Optional[str] = None


class LayerManager:
    """图层管理器."""

    def __init__(self) -> None:
        self._layers: dict[LayerKind, Layer] = {}

    def add_layer(self, layer: Layer) -> None:
        """添加图层，同类型图层会被替换."""
        self._layers[LayerKind(layer.kind)] = layer

    def get_layer(self, kind: LayerKind) -> Optional[Layer]:
        return self._layers.get(LayerKind(kind))

    def remove_layer(self, kind: LayerKind) -> None:
        self._layers.pop(LayerKind(kind), None)

    def has_layer(self, kind: LayerKind) -> bool:
        return LayerKind(kind) in self._layers

    def clear(self) -> None:
        self._layers.clear()

    @property
    def layer_count(self) -> int:
        return len(self._layers)

    def composite(self, target: Surface) -> None:
        """清空目标画布并按固定顺序合成所有图层.

        Args:
            target: 目标画布
        """
        ctx = target.get_context()
        ctx.save()
        try:
            ctx.reset_transform()
            ctx.clear_rect(0, 0, target.width, target.height)

            for kind in COMPOSITE_ORDER:
                layer = self._layers.get(kind)
                if layer is None:
                    continue

                if kind == LayerKind.MASK:
                    ctx.global_composite_operation = MASK_BLEND_MODE
                else:
                    ctx.global_composite_operation = layer.blend_mode or DEFAULT_BLEND_MODE
                ctx.draw_image(layer.surface, 0, 0, target.width, target.height)
        finally:
            ctx.restore()

        logger.debug(f"图层合成完成: {[k.value for k in COMPOSITE_ORDER if k in self._layers]}")
