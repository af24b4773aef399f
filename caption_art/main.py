"""caption-art 命令行入口.

加载背景（和可选的主体遮罩），渲染文字并导出合成结果。

Example:
    caption-art photo.jpg --text "Hello\\nWorld" --preset neon --output exports
    caption-art photo.jpg --mask subject.png --text "SALE" --advanced --align justify --outline "#000000"
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

from caption_art.canvas.surface import Surface
from caption_art.core.compositor import Compositor, CompositorConfig
from caption_art.core.exporter import Exporter, FileDownloader
from caption_art.models.app_settings import Settings, load_settings
from caption_art.models.export_options import ExportOptions, ExportResult
from caption_art.models.text_effects import (
    ColorStop,
    GradientEffect,
    GradientType,
    OutlineEffect,
    TextEffects,
)
from caption_art.models.text_layer import (
    AdvancedTextLayer,
    StylePresetId,
    TextAlignment,
    TextLayer,
    Transform,
)
from caption_art.services.image_loader import load_image
from caption_art.services.preset_manager import PresetManager
from caption_art.utils.constants import APP_NAME, APP_VERSION, DEFAULT_FONT_FAMILY, DEFAULT_LINE_SPACING
from caption_art.utils.error_handler import get_user_friendly_message
from caption_art.utils.logger import set_log_level, setup_logger

logger = setup_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """构建命令行参数解析器."""
    parser = argparse.ArgumentParser(prog=APP_NAME, description="在图片上合成艺术文字")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")

    parser.add_argument("background", help="背景图片（路径、data URL 或 http(s) URL）")
    parser.add_argument("--mask", help="主体遮罩图片，不透明区域会抠除文字")
    parser.add_argument("--text", required=True, help="文字内容，\\n 表示换行")
    parser.add_argument("--no-text-behind", action="store_true", help="禁用文字在主体后方效果")
    parser.add_argument("--max-dimension", type=int, help="视口最大边长")

    # 位置
    position = parser.add_argument_group("位置")
    position.add_argument("--x", type=float, default=0.5, help="水平位置 [0, 1]")
    position.add_argument("--y", type=float, default=0.5, help="垂直位置 [0, 1]")
    position.add_argument("--scale", type=float, default=1.0, help="缩放 [0.5, 3]")
    position.add_argument("--rotation", type=float, default=0.0, help="旋转角度")
    position.add_argument("--auto-place", action="store_true", help="根据背景自动选择位置")

    # 基础文字
    basic = parser.add_argument_group("基础文字")
    basic.add_argument(
        "--preset",
        choices=[p.value for p in StylePresetId],
        default=StylePresetId.NEON.value,
        help="样式预设",
    )
    basic.add_argument("--font-size", type=float, default=48, help="字号（像素）")

    # 高级文字
    advanced = parser.add_argument_group("高级文字")
    advanced.add_argument("--advanced", action="store_true", help="使用高级文字渲染")
    advanced.add_argument("--font-family", default=DEFAULT_FONT_FAMILY, help="字体族（CSS 写法）")
    advanced.add_argument(
        "--align",
        choices=[a.value for a in TextAlignment],
        default=TextAlignment.CENTER.value,
        help="对齐方式",
    )
    advanced.add_argument("--line-spacing", type=float, default=DEFAULT_LINE_SPACING, help="行距倍数")
    advanced.add_argument("--fill", default="#ffffff", help="填充颜色")
    advanced.add_argument("--outline", metavar="COLOR", help="描边颜色（设置即启用）")
    advanced.add_argument("--outline-width", type=float, default=2, help="描边宽度 [1, 10]")
    advanced.add_argument("--gradient", nargs="+", metavar="COLOR", help="渐变颜色（至少两个）")
    advanced.add_argument(
        "--gradient-type",
        choices=[t.value for t in GradientType],
        default=GradientType.LINEAR.value,
    )
    advanced.add_argument("--gradient-angle", type=float, default=0.0, help="渐变角度")
    advanced.add_argument("--effects-preset", metavar="NAME", help="使用已保存的效果预设")
    advanced.add_argument("--save-preset", metavar="NAME", help="把本次效果保存为预设")

    # 导出
    export = parser.add_argument_group("导出")
    export.add_argument("--output", type=Path, help="输出目录")
    export.add_argument("--format", choices=["png", "jpeg", "jpg"], help="导出格式")
    export.add_argument("--quality", type=float, help="JPEG 质量 (0, 1]")
    export.add_argument("--watermark", metavar="TEXT", help="水印文字")

    parser.add_argument("--log-level", help="日志级别")
    return parser


def build_effects(args: argparse.Namespace) -> TextEffects:
    """由命令行参数构建文字效果."""
    effects = TextEffects(fill_color=args.fill)
    if args.outline:
        effects.outline = OutlineEffect(enabled=True, width=args.outline_width, color=args.outline)
    if args.gradient:
        colors = args.gradient
        last = max(1, len(colors) - 1)
        effects.gradient = GradientEffect(
            enabled=True,
            type=GradientType(args.gradient_type),
            color_stops=[ColorStop(color=c, position=i / last) for i, c in enumerate(colors)],
            angle=args.gradient_angle,
        )
    return effects


def _resolve_effects(args: argparse.Namespace, presets: PresetManager) -> TextEffects:
    if args.effects_preset:
        effects = presets.load_preset(args.effects_preset)
        if effects is None:
            logger.warning(f"预设不存在: {args.effects_preset}，使用命令行效果")
        else:
            return effects
    effects = build_effects(args)
    if args.save_preset:
        presets.save_preset(args.save_preset, effects)
    return effects


async def run(args: argparse.Namespace, settings: Settings) -> ExportResult:
    """执行一次加载、渲染、导出.

    Returns:
        导出结果
    """
    load_kwargs = dict(
        max_retries=settings.image_load_max_retries,
        retry_delay=settings.image_load_retry_delay,
        timeout=settings.image_load_timeout,
    )
    background = await load_image(args.background, **load_kwargs)
    mask = await load_image(args.mask, **load_kwargs) if args.mask else None

    compositor = Compositor(
        CompositorConfig(
            target_surface=Surface(),
            background_image=background,
            mask_image=mask,
            text_behind_enabled=not args.no_text_behind,
            max_dimension=args.max_dimension or settings.max_dimension,
        )
    )

    try:
        if args.auto_place:
            placement = compositor.auto_place(settings.auto_place_grid_size)
            transform = placement.with_changes(scale=args.scale, rotation=args.rotation)
            logger.info(f"自动布局位置: ({transform.x:.3f}, {transform.y:.3f})")
        else:
            transform = Transform(x=args.x, y=args.y, scale=args.scale, rotation=args.rotation)

        text = args.text.replace("\\n", "\n")
        if args.advanced:
            effects = _resolve_effects(args, PresetManager(settings.preset_store))
            compositor.render_advanced(
                AdvancedTextLayer(
                    text=text,
                    font_family=args.font_family,
                    font_size=args.font_size,
                    line_spacing=args.line_spacing,
                    alignment=args.align,
                    effects=effects,
                    transform=transform,
                )
            )
        else:
            compositor.render(
                TextLayer(
                    text=text,
                    style_preset=args.preset,
                    font_size=args.font_size,
                    transform=transform,
                )
            )

        watermark_text = args.watermark or settings.watermark_text
        options = ExportOptions(
            format=args.format or settings.export_format,
            quality=args.quality if args.quality is not None else settings.export_quality,
            watermark=bool(watermark_text),
            watermark_text=watermark_text,
        )
        exporter = Exporter(FileDownloader(args.output or settings.output_dir))
        return await exporter.export(compositor.surface, options)
    finally:
        compositor.dispose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """命令行主入口.

    Returns:
        退出码，0 表示成功
    """
    args = build_parser().parse_args(argv)

    try:
        overrides = {"log_level": args.log_level} if args.log_level else {}
        settings = load_settings(**overrides)
        set_log_level(settings.log_level)

        result = asyncio.run(run(args, settings))
        logger.info(f"导出完成: {result.path or result.filename} ({result.size} 字节)")
        return 0

    except Exception as e:
        logger.exception(f"运行失败: {e}")
        print(get_user_friendly_message(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
