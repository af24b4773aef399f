"""数据模型模块."""

from caption_art.models.app_settings import Settings, load_settings
from caption_art.models.export_options import (
    ExportFormat,
    ExportMethod,
    ExportOptions,
    ExportResult,
)
from caption_art.models.text_effects import (
    Color,
    ColorStop,
    GradientEffect,
    GradientType,
    OutlineEffect,
    PatternEffect,
    TextEffects,
    create_default_effects,
    validate_effects,
)
from caption_art.models.text_layer import (
    AdvancedTextLayer,
    StylePresetId,
    TextAlignment,
    TextLayer,
    Transform,
)

__all__ = [
    # 设置
    "Settings",
    "load_settings",
    # 导出
    "ExportFormat",
    "ExportMethod",
    "ExportOptions",
    "ExportResult",
    # 文字效果
    "Color",
    "ColorStop",
    "GradientEffect",
    "GradientType",
    "OutlineEffect",
    "PatternEffect",
    "TextEffects",
    "create_default_effects",
    "validate_effects",
    # 文字图层
    "AdvancedTextLayer",
    "StylePresetId",
    "TextAlignment",
    "TextLayer",
    "Transform",
]
