"""合成器.

编排图层构建、缓存、取消与错误回滚，把背景、文字和遮罩合成到目标画布。

Features:
    - 按最大边长等比缩放，尺寸在生命周期内固定
    - 背景/遮罩/文字三级缓存，文字缓存按结构化键失效
    - 渲染令牌：较新的渲染使较旧的渲染作废
    - 渲染失败时回滚到上一次成功的画面
    - 异步渲染变体（协作式让出控制权）
    - 自动布局建议
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from typing import Callable, Optional, Union

from PIL import Image

from caption_art.canvas.surface import Surface
from caption_art.canvas.transform_controller import TransformController
from caption_art.core.auto_placement import suggest_placement
from caption_art.core.layer_manager import Layer, LayerKind, LayerManager
from caption_art.models.text_layer import AdvancedTextLayer, TextLayer, Transform
from caption_art.text.style_presets import get_style
from caption_art.text.text_renderer import render_advanced, render_text
from caption_art.utils.constants import DEFAULT_GRID_SIZE, DEFAULT_MAX_DIMENSION
from caption_art.utils.exceptions import CompositorError, InvalidImageError, InvalidSurfaceError, RenderError
from caption_art.utils.logger import setup_logger

logger = setup_logger(__name__)

ImageSource = Union[Image.Image, Surface]
AnyTextLayer = Union[TextLayer, AdvancedTextLayer]


@dataclass
class CompositorConfig:
    """合成器配置.

    Attributes:
        target_surface: 目标画布（尺寸由合成器设置）
        background_image: 背景图
        mask_image: 主体遮罩（不透明处抠除文字和背景）
        text_behind_enabled: 是否启用文字在主体后方
        max_dimension: 视口最大边长
    """

    target_surface: Surface
    background_image: ImageSource
    mask_image: Optional[ImageSource] = None
    text_behind_enabled: bool = True
    max_dimension: int = DEFAULT_MAX_DIMENSION


def _validate_image(image: object, role: str) -> None:
    """校验图片已加载且尺寸有效."""
    if not isinstance(image, (Image.Image, Surface)):
        raise InvalidImageError(role, f"不支持的类型 {type(image).__name__}")
    if image.width == 0 or image.height == 0:
        raise InvalidImageError(role, "图片未加载或尺寸为零")


def _round_half_up(value: float) -> int:
    """四舍五入（.5 总是向上，内置 round 为银行家舍入）."""
    return int(math.floor(value + 0.5))


class Compositor:
    """合成器.

    状态: 已构造 → 渲染中 → 空闲 → 已释放。

    Example:
        >>> target = Surface()
        >>> compositor = Compositor(CompositorConfig(target, background))
        >>> compositor.render(TextLayer(text="Hello", style_preset="neon", font_size=48))
        True
        >>> data_url = compositor.get_data_url()
    """

    def __init__(self, config: CompositorConfig) -> None:
        """初始化合成器.

        Args:
            config: 合成器配置

        Raises:
            InvalidSurfaceError: 目标画布无效
            InvalidImageError: 背景或遮罩无效
        """
        if not isinstance(config.target_surface, Surface):
            raise InvalidSurfaceError("必须提供 Surface 类型的目标画布")
        _validate_image(config.background_image, "背景图")
        if config.mask_image is not None:
            _validate_image(config.mask_image, "遮罩图")
        if config.max_dimension <= 0:
            raise CompositorError(f"最大边长必须为正数: {config.max_dimension}")

        self._surface = config.target_surface
        self._background = config.background_image
        self._mask = config.mask_image
        self._text_behind_enabled = config.text_behind_enabled
        self._max_dimension = config.max_dimension
        self._layer_manager = LayerManager()

        # 缓存
        self._cached_background: Optional[Surface] = None
        self._cached_mask: Optional[Surface] = None
        self._cached_text: Optional[Surface] = None
        self._last_text_key: Optional[tuple] = None

        self._render_token = 0
        # 最近一次完成合成的渲染令牌
        self._committed_token = 0
        self._last_successful: Optional[Image.Image] = None
        self._disposed = False

        self._scale_factor = self._calculate_scale_factor()
        self._surface.resize(
            _round_half_up(self._background.width * self._scale_factor),
            _round_half_up(self._background.height * self._scale_factor),
        )
        logger.debug(
            f"合成器初始化: 背景 {self._background.width}x{self._background.height} → "
            f"画布 {self.width}x{self.height} (缩放 {self._scale_factor:.4f})"
        )

    def _calculate_scale_factor(self) -> float:
        longest = max(self._background.width, self._background.height)
        if longest > self._max_dimension:
            return self._max_dimension / longest
        return 1.0

    # ========================
    # 属性
    # ========================

    @property
    def width(self) -> int:
        return self._surface.width

    @property
    def height(self) -> int:
        return self._surface.height

    @property
    def surface(self) -> Surface:
        """目标画布."""
        return self._surface

    @property
    def text_behind_enabled(self) -> bool:
        return self._text_behind_enabled

    @property
    def render_token(self) -> int:
        """当前渲染令牌."""
        return self._render_token

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def get_scale_factor(self) -> float:
        """获取视口缩放比例."""
        return self._scale_factor

    # ========================
    # 渲染
    # ========================

    def render(self, text_layer: TextLayer) -> bool:
        """渲染基础文字.

        Args:
            text_layer: 基础文字图层

        Returns:
            是否完成合成（被更新的渲染取代时返回 False）

        Raises:
            RenderError: 渲染失败（已回滚到上一次成功的画面）
        """
        return self._render(text_layer, self._draw_basic_text)

    def render_advanced(self, text_layer: AdvancedTextLayer) -> bool:
        """渲染高级文字（多行、对齐、效果）.

        Returns:
            是否完成合成

        Raises:
            RenderError: 渲染失败（已回滚到上一次成功的画面）
        """
        return self._render(text_layer, self._draw_advanced_text)

    async def render_async(self, text_layer: TextLayer) -> bool:
        """异步渲染基础文字，构建图层后让出控制权再检查令牌."""
        return await self._render_async(text_layer, self._draw_basic_text)

    async def render_advanced_async(self, text_layer: AdvancedTextLayer) -> bool:
        """异步渲染高级文字."""
        return await self._render_async(text_layer, self._draw_advanced_text)

    def _begin(self) -> tuple[int, Image.Image]:
        """保存快照并递增令牌."""
        if self._disposed:
            raise CompositorError("合成器已释放，无法继续渲染")
        snapshot = self._surface.get_context().get_image_data()
        self._render_token += 1
        return self._render_token, snapshot

    def _render(self, text_layer: AnyTextLayer, draw_text: Callable) -> bool:
        token, snapshot = self._begin()
        try:
            self._build_layers(text_layer, draw_text)
            return self._commit(token, snapshot)
        except Exception as e:
            self._rollback(e)

    async def _render_async(self, text_layer: AnyTextLayer, draw_text: Callable) -> bool:
        token, snapshot = self._begin()
        try:
            self._build_layers(text_layer, draw_text)
            await asyncio.sleep(0)
            return self._commit(token, snapshot)
        except Exception as e:
            self._rollback(e)

    def _build_layers(self, text_layer: AnyTextLayer, draw_text: Callable) -> None:
        """清空画布并构建（或复用）各图层."""
        ctx = self._surface.get_context()
        ctx.save()
        ctx.reset_transform()
        ctx.clear_rect(0, 0, self.width, self.height)
        ctx.restore()
        self._layer_manager.clear()

        # 背景
        if self._cached_background is None:
            self._cached_background = self._scaled_copy(self._background)
            logger.debug("背景图层缓存未命中，已重建")
        self._layer_manager.add_layer(Layer(LayerKind.BACKGROUND, self._cached_background))

        # 文字
        if text_layer.text.strip():
            key = text_layer.cache_key()
            if self._cached_text is None or key != self._last_text_key:
                self._cached_text = self._create_text_layer(text_layer, draw_text)
                self._last_text_key = key
                logger.debug("文字图层缓存未命中，已重建")
            self._layer_manager.add_layer(Layer(LayerKind.TEXT, self._cached_text))

        # 遮罩
        if self._mask is not None and self._text_behind_enabled:
            if self._cached_mask is None:
                self._cached_mask = self._scaled_copy(self._mask)
                logger.debug("遮罩图层缓存未命中，已重建")
            self._layer_manager.add_layer(Layer(LayerKind.MASK, self._cached_mask))

    def _commit(self, token: int, snapshot: Image.Image) -> bool:
        """令牌仍有效时合成并记录成功快照.

        过期的渲染只在没有更新的渲染完成合成时恢复自己的快照，
        否则画布已是最新画面，保持不动。
        """
        ctx = self._surface.get_context()
        if token != self._render_token:
            if self._committed_token < token:
                ctx.put_image_data(snapshot)
            logger.debug(f"渲染 #{token} 已被 #{self._render_token} 取代，放弃合成")
            return False

        self._layer_manager.composite(self._surface)
        self._last_successful = ctx.get_image_data()
        self._committed_token = token
        return True

    def _rollback(self, error: Exception) -> None:
        """回滚到上一次成功的画面并抛出 RenderError."""
        logger.error(f"渲染失败: {error}", exc_info=error)
        if self._last_successful is not None:
            self._surface.get_context().put_image_data(self._last_successful)
            logger.warning("已恢复到上一次成功渲染的画面")
        raise RenderError(str(error), cause=error) from error

    def _scaled_copy(self, image: ImageSource) -> Surface:
        """把图片缩放绘制到目标尺寸的新画布."""
        layer = Surface(self.width, self.height)
        layer.get_context().draw_image(image, 0, 0, self.width, self.height)
        return layer

    def _create_text_layer(self, text_layer: AnyTextLayer, draw_text: Callable) -> Surface:
        layer = Surface(self.width, self.height)
        draw_text(layer, text_layer)
        return layer

    def _draw_basic_text(self, layer: Surface, text_layer: TextLayer) -> None:
        ctx = layer.get_context()
        style = get_style(text_layer.style_preset, text_layer.font_size)
        ctx.save()
        try:
            TransformController(text_layer.transform).apply_to_context(ctx, self.width, self.height)
            # 变换已定位，在原点绘制
            render_text(ctx, text_layer.text, style, 0.0, 0.0)
        finally:
            ctx.restore()

    def _draw_advanced_text(self, layer: Surface, text_layer: AdvancedTextLayer) -> None:
        render_advanced(layer.get_context(), text_layer, self.width, self.height)

    # ========================
    # 遮罩与缓存
    # ========================

    def set_mask_image(self, mask_image: Optional[ImageSource]) -> None:
        """替换遮罩，仅使遮罩缓存失效.

        Raises:
            InvalidImageError: 遮罩无效
        """
        if mask_image is not None:
            _validate_image(mask_image, "遮罩图")
        self._mask = mask_image
        self._cached_mask = None

    def set_text_behind_enabled(self, enabled: bool) -> None:
        """切换文字在主体后方效果，不使任何缓存失效."""
        self._text_behind_enabled = bool(enabled)

    def clear_cache(self) -> None:
        """清除所有图层缓存."""
        self._cached_background = None
        self._cached_mask = None
        self._cached_text = None
        self._last_text_key = None

    def clear(self) -> None:
        """清除缓存并清空目标画布."""
        self.clear_cache()
        self._layer_manager.clear()
        ctx = self._surface.get_context()
        ctx.save()
        ctx.reset_transform()
        ctx.clear_rect(0, 0, self.width, self.height)
        ctx.restore()

    def dispose(self) -> None:
        """释放合成器，之后不能再渲染."""
        self.clear_cache()
        self._layer_manager.clear()
        self._last_successful = None
        self._disposed = True
        logger.debug("合成器已释放")

    # ========================
    # 输出与布局
    # ========================

    def get_data_url(self, format: str = "png", quality: Optional[float] = None) -> str:
        """获取目标画布的 data URL."""
        return self._surface.to_data_url(format, quality)

    def auto_place(self, grid_size: int = DEFAULT_GRID_SIZE) -> Transform:
        """根据背景图建议文字位置.

        在一次性画布上采样背景，不修改合成器状态；调用方需用返回的
        变换再次渲染。

        Args:
            grid_size: 网格大小（像素）

        Returns:
            位置建议（采样失败时为画面中心）
        """
        try:
            sample = self._scaled_copy(self._background)
            return suggest_placement(sample.image, grid_size)
        except (ValueError, OSError) as e:
            logger.warning(f"自动布局采样失败，使用画面中心: {e}")
            return Transform(x=0.5, y=0.5, scale=1.0, rotation=0.0)
