"""Pytest 配置和共享 fixtures."""

import tempfile
from pathlib import Path
from typing import Generator

import numpy as np
import pytest
from PIL import Image

from caption_art.canvas.surface import DrawingContext, Surface, TextMetrics


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录 fixture."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def solid_background() -> Image.Image:
    """纯色不透明背景."""
    return Image.new("RGB", (400, 200), (40, 80, 120))


@pytest.fixture
def noisy_left_background() -> Image.Image:
    """左半边噪点、右半边纯色的背景."""
    rng = np.random.default_rng(0)
    pixels = np.full((200, 200, 3), 128, dtype=np.uint8)
    pixels[:, :100] = rng.integers(0, 256, size=(200, 100, 3), dtype=np.uint8)
    return Image.fromarray(pixels, "RGB")


@pytest.fixture
def left_half_mask() -> Image.Image:
    """左半边不透明的主体遮罩（400x200）."""
    mask = Image.new("RGBA", (400, 200), (0, 0, 0, 0))
    mask.paste((255, 255, 255, 255), (0, 0, 200, 200))
    return mask


@pytest.fixture
def surface() -> Surface:
    """400x200 透明画布."""
    return Surface(400, 200)


class RecordingContext(DrawingContext):
    """记录文字绘制调用顺序的绘图上下文."""

    def __init__(self, surface: Surface) -> None:
        super().__init__(surface)
        self.calls: list[tuple[str, str]] = []

    def stroke_text(self, text: str, x: float, y: float) -> None:
        self.calls.append(("stroke", text))
        super().stroke_text(text, x, y)

    def fill_text(self, text: str, x: float, y: float) -> None:
        self.calls.append(("fill", text))
        super().fill_text(text, x, y)


class FixedWidthContext:
    """每个字符宽 10 像素的测量桩."""

    def measure_text(self, text: str) -> TextMetrics:
        return TextMetrics(
            width=10.0 * len(text),
            ascent=8.0,
            descent=2.0,
            actual_bounding_box_left=0.0,
            actual_bounding_box_right=10.0 * len(text),
        )


@pytest.fixture
def recording_context() -> RecordingContext:
    """记录调用的绘图上下文（400x200）."""
    return RecordingContext(Surface(400, 200))


@pytest.fixture
def fixed_width_context() -> FixedWidthContext:
    """固定字宽的测量桩."""
    return FixedWidthContext()