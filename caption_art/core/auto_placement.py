"""文字自动布局.

在背景图中寻找视觉上最"安静"（边缘最少）的连续区域，作为文字位置建议。

Features:
    - 亮度加权灰度转换
    - 有限差分梯度幅值（边缘检测），边界像素记为零
    - 网格评分（单元格平均梯度）
    - 低梯度单元格的 4 连通区域生长
    - 选取最大区域中心作为归一化位置
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Union

import numpy as np
from PIL import Image

from caption_art.models.text_layer import Transform
from caption_art.utils.constants import DEFAULT_GRID_SIZE

# 亮度权重
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


@dataclass(frozen=True)
class GridCell:
    """网格单元格.

    Attributes:
        x: 列号
        y: 行号
        score: 平均梯度幅值
    """

    x: int
    y: int
    score: float


@dataclass
class Region:
    """连续低梯度区域."""

    cells: list[GridCell] = field(default_factory=list)
    center_x: float = 0.0
    center_y: float = 0.0

    @property
    def size(self) -> int:
        return len(self.cells)


def _to_array(image: Union[Image.Image, np.ndarray]) -> np.ndarray:
    if isinstance(image, Image.Image):
        return np.asarray(image.convert("RGBA") if image.mode != "RGBA" else image)
    return np.asarray(image)


def image_to_grayscale(image: Union[Image.Image, np.ndarray]) -> np.ndarray:
    """转换为灰度.

    Args:
        image: RGBA 图片或 (H, W, 3|4) 数组

    Returns:
        (H, W) uint8 灰度数组，0.299R + 0.587G + 0.114B 四舍五入
    """
    pixels = _to_array(image)[..., :3].astype(np.float64)
    # 四舍五入（0.5 向上）
    gray = np.floor(pixels @ LUMA_WEIGHTS + 0.5)
    return np.clip(gray, 0, 255).astype(np.uint8)


def calculate_gradient_magnitude(grayscale: np.ndarray) -> np.ndarray:
    """计算梯度幅值.

    gx、gy 分别为与右侧、下方相邻像素的差值，幅值 sqrt(gx² + gy²)；
    最外一圈像素记为零。

    Args:
        grayscale: (H, W) 灰度数组

    Returns:
        (H, W) float32 梯度数组
    """
    gray = np.asarray(grayscale, dtype=np.float32)
    height, width = gray.shape
    gradient = np.zeros((height, width), dtype=np.float32)
    if height < 3 or width < 3:
        return gradient

    inner = gray[1:-1, 1:-1]
    gx = gray[1:-1, 2:] - inner
    gy = gray[2:, 1:-1] - inner
    gradient[1:-1, 1:-1] = np.sqrt(gx * gx + gy * gy)
    return gradient


def score_grid_cells(gradient: np.ndarray, grid_size: int = DEFAULT_GRID_SIZE) -> list[GridCell]:
    """按网格计算单元格平均梯度.

    只统计完整的单元格：cols = width // grid_size，rows = height // grid_size。

    Returns:
        按行优先排列的单元格列表
    """
    height, width = gradient.shape
    cols, rows = grid_dimensions(width, height, grid_size)
    if cols == 0 or rows == 0:
        return []

    blocks = gradient[: rows * grid_size, : cols * grid_size].reshape(rows, grid_size, cols, grid_size)
    means = blocks.mean(axis=(1, 3), dtype=np.float64)
    return [GridCell(x=col, y=row, score=float(means[row, col])) for row in range(rows) for col in range(cols)]


def grid_dimensions(width: int, height: int, grid_size: int) -> tuple[int, int]:
    """网格列数和行数."""
    if grid_size <= 0:
        raise ValueError(f"网格大小必须为正数: {grid_size}")
    return width // grid_size, height // grid_size


def find_contiguous_regions(
    cells: list[GridCell],
    cols: int,
    rows: int,
    threshold: Optional[float] = None,
) -> list[Region]:
    """查找连续的低梯度区域.

    评分 ≤ 阈值的单元格参与区域生长（4 连通）。阈值默认取评分中位数
    （排序后第 len // 2 个）。

    Args:
        cells: 行优先排列的单元格
        cols: 列数
        rows: 行数
        threshold: 评分阈值

    Returns:
        按单元格数量降序排列的区域（数量相同时保持发现顺序）
    """
    if not cells:
        return []

    if threshold is None:
        scores = sorted(cell.score for cell in cells)
        threshold = scores[len(scores) // 2]

    def qualifies(x: int, y: int) -> bool:
        return 0 <= x < cols and 0 <= y < rows and cells[y * cols + x].score <= threshold

    visited: set[int] = set()
    regions: list[Region] = []

    for row in range(rows):
        for col in range(cols):
            start = row * cols + col
            if start in visited or not qualifies(col, row):
                continue

            visited.add(start)
            queue = deque([(col, row)])
            region_cells: list[GridCell] = []
            while queue:
                x, y = queue.popleft()
                region_cells.append(cells[y * cols + x])
                for nx, ny in ((x - 1, y), (x + 1, y), (x, y - 1), (x, y + 1)):
                    index = ny * cols + nx
                    if qualifies(nx, ny) and index not in visited:
                        visited.add(index)
                        queue.append((nx, ny))

            regions.append(
                Region(
                    cells=region_cells,
                    center_x=sum(c.x for c in region_cells) / len(region_cells),
                    center_y=sum(c.y for c in region_cells) / len(region_cells),
                )
            )

    regions.sort(key=lambda r: r.size, reverse=True)
    return regions


def suggest_placement(
    image: Union[Image.Image, np.ndarray],
    grid_size: int = DEFAULT_GRID_SIZE,
    threshold: Optional[float] = None,
) -> Transform:
    """建议文字位置.

    纯函数，不修改输入。找不到合适区域时返回画面中心。

    Args:
        image: 背景图片（目标画布尺寸）
        grid_size: 网格大小（像素）
        threshold: 评分阈值，默认中位数

    Returns:
        位置建议，scale=1，rotation=0

    Example:
        >>> suggest_placement(Image.new("RGBA", (40, 40))).as_tuple()
        (0.5, 0.5, 1.0, 0.0)
    """
    gray = image_to_grayscale(image)
    height, width = gray.shape
    cols, rows = grid_dimensions(width, height, grid_size)

    cells = score_grid_cells(calculate_gradient_magnitude(gray), grid_size)
    regions = find_contiguous_regions(cells, cols, rows, threshold)
    if not regions:
        return Transform(x=0.5, y=0.5, scale=1.0, rotation=0.0)

    largest = regions[0]
    return Transform(
        x=(largest.center_x + 0.5) * grid_size / width,
        y=(largest.center_y + 0.5) * grid_size / height,
        scale=1.0,
        rotation=0.0,
    )
