"""图片加载服务单元测试."""

import asyncio
import io
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
from PIL import Image

from caption_art.services.image_loader import is_image_loaded, load_image
from caption_art.utils.exceptions import ImageLoadError
from caption_art.utils.image_utils import image_to_data_url


def _png_bytes(size=(30, 20), color=(255, 0, 0)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


# ===================
# 加载来源测试
# ===================
class TestLoadSources:
    """测试各种加载来源."""

    @pytest.mark.asyncio
    async def test_load_from_path(self, temp_dir: Path):
        """测试从本地路径加载."""
        path = temp_dir / "bg.png"
        path.write_bytes(_png_bytes())

        image = await load_image(path)

        assert image.size == (30, 20)

    @pytest.mark.asyncio
    async def test_load_from_str_path(self, temp_dir: Path):
        """测试字符串路径."""
        path = temp_dir / "bg.png"
        path.write_bytes(_png_bytes())

        image = await load_image(str(path))

        assert is_image_loaded(image)

    @pytest.mark.asyncio
    async def test_load_from_bytes(self):
        """测试从字节数据加载."""
        image = await load_image(_png_bytes((7, 9)))

        assert image.size == (7, 9)

    @pytest.mark.asyncio
    async def test_load_from_data_url(self):
        """测试从 data URL 加载."""
        data_url = image_to_data_url(Image.new("RGBA", (5, 6), (0, 0, 255, 128)))

        image = await load_image(data_url)

        assert image.size == (5, 6)
        assert image.getpixel((0, 0)) == (0, 0, 255, 128)

    @pytest.mark.asyncio
    async def test_load_from_url(self):
        """测试通过 HTTP 加载."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=_png_bytes()))

        async with httpx.AsyncClient(transport=transport) as client:
            image = await load_image("https://example.com/bg.png", http_client=client)

        assert image.size == (30, 20)


# ===================
# 重试测试
# ===================
class TestRetry:
    """测试失败重试."""

    @pytest.mark.asyncio
    async def test_missing_file_exhausts_retries(self, temp_dir: Path):
        """测试文件不存在时重试耗尽."""
        with pytest.raises(ImageLoadError) as exc_info:
            await load_image(temp_dir / "missing.png", retry_delay=0)

        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    @pytest.mark.asyncio
    async def test_corrupt_data(self):
        """测试无法解码的数据."""
        with pytest.raises(ImageLoadError) as exc_info:
            await load_image(b"not an image", max_retries=1, retry_delay=0)

        assert exc_info.value.attempts == 1

    @pytest.mark.asyncio
    async def test_invalid_data_url(self):
        """测试非 base64 的 data URL."""
        with pytest.raises(ImageLoadError) as exc_info:
            await load_image("data:image/png,abc", max_retries=2, retry_delay=0)

        assert isinstance(exc_info.value.cause, ValueError)

    @pytest.mark.asyncio
    async def test_server_error_then_success(self):
        """测试服务器错误后重试成功."""
        statuses = iter([500, 500, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            if status == 200:
                return httpx.Response(200, content=_png_bytes())
            return httpx.Response(status)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            image = await load_image("https://example.com/bg.png", retry_delay=0, http_client=client)

        assert image.size == (30, 20)

    @pytest.mark.asyncio
    async def test_server_error_exhausts_retries(self):
        """测试持续的服务器错误."""
        transport = httpx.MockTransport(lambda request: httpx.Response(503))

        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(ImageLoadError) as exc_info:
                await load_image(
                    "https://example.com/bg.png", max_retries=2, retry_delay=0, http_client=client
                )

        assert exc_info.value.attempts == 2
        assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_timeout(self):
        """测试单次加载超时."""

        async def slow_load(*args, **kwargs):
            await asyncio.sleep(1)

        with patch("caption_art.services.image_loader._load_once", side_effect=slow_load):
            with pytest.raises(ImageLoadError) as exc_info:
                await load_image("slow.png", max_retries=2, retry_delay=0, timeout=0.01)

        assert exc_info.value.attempts == 2
        assert isinstance(exc_info.value.cause, TimeoutError)

    @pytest.mark.asyncio
    async def test_no_wait_after_last_attempt(self, temp_dir: Path):
        """测试最后一次失败后不再等待."""
        with patch("caption_art.utils.retry.asyncio.sleep") as sleep:
            with pytest.raises(ImageLoadError):
                await load_image(temp_dir / "missing.png", max_retries=3, retry_delay=0.5)

        assert sleep.await_count == 2


# ===================
# 加载状态测试
# ===================
class TestIsImageLoaded:
    """测试加载状态判断."""

    def test_loaded(self):
        """测试有效图片."""
        assert is_image_loaded(Image.new("RGB", (1, 1)))

    def test_zero_size(self):
        """测试零尺寸图片."""
        assert not is_image_loaded(Image.new("RGB", (0, 5)))

    def test_not_image(self):
        """测试非图片对象."""
        assert not is_image_loaded("bg.png")
        assert not is_image_loaded(None)
