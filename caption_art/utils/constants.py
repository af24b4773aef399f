"""应用常量定义."""

import os
from pathlib import Path

# ===================
# 应用信息
# ===================
APP_NAME = "caption-art"
APP_VERSION = "0.3.0"

# ===================
# 路径常量
# ===================
# 应用数据目录
APP_DATA_DIR = Path.home() / ".caption-art"

# 日志目录（可通过环境变量覆盖）
LOG_DIR = Path(os.environ.get("CAPTION_ART_LOG_DIR", APP_DATA_DIR / "logs"))

# 预设存储文件
PRESETS_FILE = APP_DATA_DIR / "text-effect-presets.json"

# 默认导出目录
EXPORT_DIR = APP_DATA_DIR / "exports"

# ===================
# 合成引擎常量
# ===================
# 视口最大边长
DEFAULT_MAX_DIMENSION = 1080

# 自动布局网格大小（像素）
DEFAULT_GRID_SIZE = 50

# 变换范围
MIN_SCALE = 0.5
MAX_SCALE = 3.0

# ===================
# 文字效果范围
# ===================
MIN_OUTLINE_WIDTH = 1
MAX_OUTLINE_WIDTH = 10
DEFAULT_OUTLINE_WIDTH = 2

MIN_PATTERN_SCALE = 0.1
MAX_PATTERN_SCALE = 2.0

DEFAULT_LINE_SPACING = 1.2
DEFAULT_FONT_FAMILY = "Arial, sans-serif"

# 两端对齐阈值：行宽达到块宽该比例时退回左对齐
JUSTIFY_FILL_THRESHOLD = 0.95

# ===================
# 导出常量
# ===================
DEFAULT_JPEG_QUALITY = 0.92
EXPORT_FILENAME_PREFIX = "caption-art"
WATERMARK_PADDING = 20
WATERMARK_MIN_FONT_SIZE = 12
WATERMARK_MAX_FONT_SIZE = 24
WATERMARK_FILL_COLOR = (255, 255, 255, 178)
WATERMARK_STROKE_COLOR = (0, 0, 0, 128)

# ===================
# 图片加载常量
# ===================
IMAGE_LOAD_MAX_RETRIES = 3
IMAGE_LOAD_RETRY_DELAY = 1.0  # 秒
IMAGE_LOAD_TIMEOUT = 30.0  # 秒
