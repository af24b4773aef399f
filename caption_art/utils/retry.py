"""重试机制模块.

提供重试上下文，用于需要精细控制的重试场景（例如图片加载）。

Features:
    - 可配置最大尝试次数和固定延迟
    - 可选退避乘数
    - 最后一次失败后不再等待
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from caption_art.utils.logger import setup_logger

logger = setup_logger(__name__)


class RetryContext:
    """重试上下文管理器.

    Example:
        >>> async with RetryContext(max_attempts=3) as ctx:
        ...     while ctx.should_retry:
        ...         try:
        ...             result = await some_operation()
        ...             break
        ...         except Exception as e:
        ...             ctx.record_failure(e)
        ...             if ctx.should_retry:
        ...                 await ctx.wait()
    """

    def __init__(
        self,
        max_attempts: int = 3,
        delay: float = 1.0,
        backoff: float = 1.0,
        max_delay: float = 30.0,
        label: str = "操作",
    ) -> None:
        self.max_attempts = max(1, max_attempts)
        self.delay = max(0.0, delay)
        self.backoff = backoff
        self.max_delay = max_delay
        self.label = label
        self._attempt = 0
        self._last_exception: Optional[BaseException] = None
        self._current_delay = self.delay

    @property
    def attempt(self) -> int:
        """已失败的尝试次数."""
        return self._attempt

    @property
    def should_retry(self) -> bool:
        """是否还有剩余尝试次数."""
        return self._attempt < self.max_attempts

    @property
    def last_exception(self) -> Optional[BaseException]:
        """最后一次异常."""
        return self._last_exception

    def record_failure(self, exception: BaseException) -> None:
        """记录失败.

        Args:
            exception: 异常对象
        """
        self._last_exception = exception
        self._attempt += 1
        logger.warning(
            f"{self.label}失败 (尝试 {self._attempt}/{self.max_attempts}): {exception}"
        )

    async def wait(self) -> None:
        """等待下次重试."""
        await asyncio.sleep(self._current_delay)
        self._current_delay = min(self._current_delay * self.backoff, self.max_delay)

    def wait_sync(self) -> None:
        """同步等待下次重试."""
        time.sleep(self._current_delay)
        self._current_delay = min(self._current_delay * self.backoff, self.max_delay)

    async def __aenter__(self) -> "RetryContext":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        return False

    def __enter__(self) -> "RetryContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        return False
