"""服务层模块."""

from caption_art.services.image_loader import (
    is_image_loaded,
    load_image,
)
from caption_art.services.preset_manager import (
    PresetData,
    PresetManager,
    PresetPattern,
)

__all__ = [
    # 图片加载
    "is_image_loaded",
    "load_image",
    # 预设管理
    "PresetData",
    "PresetManager",
    "PresetPattern",
]
