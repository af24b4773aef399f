"""caption-art: 文字艺术合成与渲染引擎."""

from caption_art.utils.constants import APP_VERSION

__version__ = APP_VERSION
