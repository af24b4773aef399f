"""图片工具函数模块.

提供图片编码、data URL 转换、格式转换等工具函数。
"""

from __future__ import annotations

import base64
import binascii
import io
from typing import Optional

from PIL import Image

from caption_art.utils.helpers import calculate_bytes_hash
from caption_art.utils.logger import setup_logger

logger = setup_logger(__name__)

# 导出格式到 MIME 类型
MIME_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
}

# 导出格式到 PIL 格式名
PIL_FORMATS = {
    "png": "PNG",
    "jpeg": "JPEG",
}


def ensure_rgba(image: Image.Image) -> Image.Image:
    """确保图片为 RGBA 模式.

    Args:
        image: PIL Image 对象

    Returns:
        RGBA 模式的图片（已是 RGBA 时返回原对象）
    """
    if image.mode != "RGBA":
        return image.convert("RGBA")
    return image


def quality_to_pil(quality: Optional[float], default: float = 0.92) -> int:
    """将 (0, 1] 的质量参数转换为 PIL 的 1-100 质量值."""
    if quality is None or not 0 < quality <= 1:
        quality = default
    return max(1, min(100, int(round(quality * 100))))


def encode_image(
    image: Image.Image,
    format: str = "png",
    quality: Optional[float] = None,
) -> bytes:
    """将图片编码为字节数据.

    Args:
        image: PIL Image 对象
        format: 编码格式 (png, jpeg)
        quality: JPEG 质量 (0-1]，PNG 忽略该参数

    Returns:
        编码后的字节数据

    Raises:
        ValueError: 不支持的格式
    """
    format = format.lower()
    if format not in PIL_FORMATS:
        raise ValueError(f"不支持的导出格式: {format}")

    buffer = io.BytesIO()
    if format == "jpeg":
        # JPEG 不支持透明通道
        if image.mode in ("RGBA", "P", "LA"):
            image = image.convert("RGB")
        image.save(buffer, format="JPEG", quality=quality_to_pil(quality))
    else:
        image.save(buffer, format="PNG")
    return buffer.getvalue()


def bytes_to_data_url(data: bytes, format: str = "png") -> str:
    """字节数据转换为 data URL."""
    mime = MIME_TYPES.get(format.lower(), "application/octet-stream")
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def data_url_to_bytes(data_url: str) -> bytes:
    """解析 data URL 得到原始字节数据.

    Args:
        data_url: data URL 字符串

    Returns:
        解码后的字节数据

    Raises:
        ValueError: 不是合法的 base64 data URL
    """
    if not data_url.startswith("data:") or "," not in data_url:
        raise ValueError("不是合法的 data URL")

    header, payload = data_url.split(",", 1)
    if not header.endswith(";base64"):
        raise ValueError("仅支持 base64 编码的 data URL")

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"data URL 解码失败: {e}") from e


def image_to_data_url(image: Image.Image) -> str:
    """图片转换为 PNG data URL."""
    return bytes_to_data_url(encode_image(image, "png"), "png")


def bytes_to_image(data: bytes) -> Image.Image:
    """字节数据解码为图片（强制加载到内存）."""
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def data_url_to_image(data_url: str) -> Image.Image:
    """data URL 解码为图片."""
    return bytes_to_image(data_url_to_bytes(data_url))


def image_digest(image: Image.Image) -> str:
    """计算图片内容摘要，用于结构化缓存键.

    Args:
        image: PIL Image 对象

    Returns:
        包含尺寸、模式和像素哈希的字符串
    """
    pixels = calculate_bytes_hash(image.tobytes())
    return f"{image.mode}:{image.width}x{image.height}:{pixels}"
