"""辅助函数模块.

提供各种通用辅助函数。
"""

from __future__ import annotations

import hashlib
import math
from datetime import datetime, timezone
from typing import Optional


def clamp(value: float, min_val: float, max_val: float) -> float:
    """限制值在指定范围内.

    Args:
        value: 原始值
        min_val: 最小值
        max_val: 最大值

    Returns:
        限制后的值
    """
    return max(min_val, min(max_val, value))


def normalize_angle(degrees: float) -> float:
    """将角度归一化到 [0, 360).

    负角度按正方向回绕，例如 -90 -> 270。

    Args:
        degrees: 角度

    Returns:
        归一化后的角度
    """
    result = math.fmod(math.fmod(degrees, 360.0) + 360.0, 360.0)
    # fmod 可能因浮点误差返回 360.0
    return 0.0 if result >= 360.0 else result


def finite_or(value: float, default: float) -> float:
    """NaN 或无穷值时返回默认值."""
    if value is None or not math.isfinite(value):
        return default
    return value


def calculate_bytes_hash(data: bytes, algorithm: str = "md5") -> str:
    """计算字节数据哈希值.

    Args:
        data: 字节数据
        algorithm: 哈希算法 (md5, sha256)

    Returns:
        哈希值字符串
    """
    hash_func = hashlib.new(algorithm)
    hash_func.update(data)
    return hash_func.hexdigest()


def get_iso_timestamp(dt: Optional[datetime] = None) -> str:
    """获取适合文件名的 ISO8601 时间戳.

    冒号和小数点替换为连字符并去掉毫秒，例如 2024-05-01T12-30-45。

    Args:
        dt: 日期时间对象，默认为当前 UTC 时间

    Returns:
        时间戳字符串
    """
    if dt is None:
        dt = datetime.now(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H-%M-%S")


def safe_filename(filename: str) -> str:
    """生成安全的文件名.

    移除或替换不安全的字符。

    Args:
        filename: 原始文件名

    Returns:
        安全的文件名
    """
    # 不安全字符
    unsafe_chars = '<>:"/\\|?*'
    for char in unsafe_chars:
        filename = filename.replace(char, "_")
    return filename.strip()
