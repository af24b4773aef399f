"""集成测试配置和共享 fixtures."""

from pathlib import Path

import pytest
from PIL import Image, ImageDraw


@pytest.fixture
def hd_background_path(temp_dir: Path) -> Path:
    """1920x1080 渐变背景."""
    img = Image.new("RGB", (1920, 1080), color=(20, 40, 60))
    draw = ImageDraw.Draw(img)
    for x in range(0, 1920, 8):
        draw.line([(x, 0), (x, 1079)], fill=(x % 256, 80, 160))
    path = temp_dir / "background.jpg"
    img.save(path, quality=90)
    return path


@pytest.fixture
def subject_mask_path(temp_dir: Path) -> Path:
    """中间矩形主体的遮罩（1920x1080）."""
    img = Image.new("RGBA", (1920, 1080), color=(0, 0, 0, 0))
    ImageDraw.Draw(img).rectangle([760, 300, 1159, 1079], fill=(255, 255, 255, 255))
    path = temp_dir / "subject.png"
    img.save(path)
    return path
