"""合成引擎核心模块."""

from caption_art.core.auto_placement import (
    GridCell,
    Region,
    calculate_gradient_magnitude,
    find_contiguous_regions,
    image_to_grayscale,
    score_grid_cells,
    suggest_placement,
)
from caption_art.core.compositor import Compositor, CompositorConfig
from caption_art.core.exporter import (
    Exporter,
    FileDownloader,
    apply_watermark,
    export_surface,
    generate_filename,
)
from caption_art.core.layer_manager import Layer, LayerKind, LayerManager

__all__ = [
    # 自动布局
    "GridCell",
    "Region",
    "calculate_gradient_magnitude",
    "find_contiguous_regions",
    "image_to_grayscale",
    "score_grid_cells",
    "suggest_placement",
    # 合成器
    "Compositor",
    "CompositorConfig",
    # 导出
    "Exporter",
    "FileDownloader",
    "apply_watermark",
    "export_surface",
    "generate_filename",
    # 图层
    "Layer",
    "LayerKind",
    "LayerManager",
]
