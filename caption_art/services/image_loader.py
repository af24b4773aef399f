"""图片加载服务.

Features:
    - 支持本地路径、字节数据、data URL、http(s) URL
    - 单次加载超时
    - 失败重试（最后一次失败后不再等待）
    - 尺寸校验
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Union

import httpx
from PIL import Image

from caption_art.utils.constants import (
    IMAGE_LOAD_MAX_RETRIES,
    IMAGE_LOAD_RETRY_DELAY,
    IMAGE_LOAD_TIMEOUT,
)
from caption_art.utils.exceptions import ImageLoadError
from caption_art.utils.image_utils import bytes_to_image, data_url_to_bytes
from caption_art.utils.logger import setup_logger
from caption_art.utils.retry import RetryContext

logger = setup_logger(__name__)

ImageSource = Union[str, Path, bytes]

# 可重试的加载错误
RETRYABLE_ERRORS = (OSError, ValueError, httpx.HTTPError, Image.DecompressionBombError)


def is_image_loaded(image: object) -> bool:
    """图片是否已加载且尺寸有效."""
    return isinstance(image, Image.Image) and image.width > 0 and image.height > 0


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _decode(data: bytes) -> Image.Image:
    image = bytes_to_image(data)
    if not is_image_loaded(image):
        raise ValueError("图片已加载但尺寸无效")
    return image


async def _fetch(url: str, client: Optional[httpx.AsyncClient], timeout: float) -> bytes:
    """通过 HTTP 下载图片数据."""
    if client is not None:
        response = await client.get(url)
        response.raise_for_status()
        return response.content

    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
        response = await own_client.get(url)
        response.raise_for_status()
        return response.content


async def _load_once(
    source: ImageSource,
    client: Optional[httpx.AsyncClient],
    timeout: float,
) -> Image.Image:
    """单次加载尝试."""
    if isinstance(source, (bytes, bytearray)):
        return _decode(bytes(source))

    if isinstance(source, str) and source.startswith("data:"):
        return _decode(data_url_to_bytes(source))

    if isinstance(source, str) and _is_url(source):
        data = await _fetch(source, client, timeout)
        return _decode(data)

    path = Path(source)
    data = await asyncio.to_thread(path.read_bytes)
    return _decode(data)


async def load_image(
    source: ImageSource,
    max_retries: int = IMAGE_LOAD_MAX_RETRIES,
    retry_delay: float = IMAGE_LOAD_RETRY_DELAY,
    timeout: float = IMAGE_LOAD_TIMEOUT,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Image.Image:
    """加载图片（带超时和重试）.

    Args:
        source: 本地路径、字节数据、data URL 或 http(s) URL
        max_retries: 总尝试次数
        retry_delay: 两次尝试之间的等待时间（秒）
        timeout: 单次尝试超时（秒）
        http_client: 可选的共享 HTTP 客户端

    Returns:
        已加载的 PIL Image

    Raises:
        ImageLoadError: 所有尝试均失败

    Example:
        >>> image = await load_image("photo.jpg", max_retries=2, retry_delay=0.5)
    """
    retry = RetryContext(max_attempts=max_retries, delay=retry_delay, label="图片加载")

    while retry.should_retry:
        try:
            image = await asyncio.wait_for(_load_once(source, http_client, timeout), timeout)
            logger.debug(f"图片加载成功: {image.width}x{image.height} ({image.mode})")
            return image
        except asyncio.TimeoutError:
            retry.record_failure(TimeoutError(f"图片加载超时（{timeout} 秒）"))
        except RETRYABLE_ERRORS as e:
            retry.record_failure(e)

        if retry.should_retry:
            await retry.wait()

    logger.error(f"图片加载失败，已尝试 {retry.attempt} 次")
    raise ImageLoadError(retry.attempt, retry.last_exception) from retry.last_exception
