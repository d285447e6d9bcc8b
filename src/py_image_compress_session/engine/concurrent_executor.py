"""并发执行器模块。

把阻塞的编码工作从事件循环转移到线程池或进程池，事件循环只负责等待结果。
"""

import asyncio
import logging
from collections.abc import Callable
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from functools import partial
from typing import Any, TypeVar

from ..config import get_config
from ..exceptions import ValidationError


logger = logging.getLogger(__name__)
T = TypeVar("T")


class ConcurrentExecutor:
    """后台执行器

    执行器按需创建，同一实例可被多个会话共享。
    """

    def __init__(
        self, max_workers: int | None = None, force_executor_type: str | None = None
    ):
        """初始化后台执行器

        Args:
            max_workers: 最大并发数，None 时使用配置
            force_executor_type: 强制指定执行器类型 ('thread'/'process'/None为自动选择)
        """
        max_workers = max_workers or get_config().engine.MAX_WORKERS
        if max_workers <= 0:
            raise ValidationError("max_workers 必须大于 0")
        if force_executor_type not in {None, "thread", "process"}:
            raise ValidationError(
                "force_executor_type 必须是 'thread', 'process' 或 None"
            )

        self.max_workers = max_workers
        self.force_executor_type = force_executor_type
        self._executors: dict[str, Executor] = {}

    async def run(
        self, func: Callable[..., T], *args: Any, payload_size: int = 0
    ) -> T:
        """在后台执行阻塞函数并等待结果

        Args:
            func: 阻塞函数（进程池模式下必须可序列化）
            *args: 函数参数
            payload_size: 输入数据大小，用于选择执行器类型

        Returns:
            函数返回值；函数抛出的异常原样传播
        """
        executor = self._get_executor(self._choose_executor_type(payload_size))
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(executor, partial(func, *args))

    def _choose_executor_type(self, payload_size: int) -> str:
        """根据任务特征选择执行器类型"""
        if self.force_executor_type is not None:
            return self.force_executor_type
        executor_type = get_config().get_executor_type(payload_size)
        logger.debug(
            f"使用{executor_type}执行器: 数据大小={payload_size / 1024 / 1024:.1f}MB"
        )
        return executor_type

    def _get_executor(self, executor_type: str) -> Executor:
        if executor_type not in self._executors:
            executor_class = (
                ProcessPoolExecutor if executor_type == "process" else ThreadPoolExecutor
            )
            self._executors[executor_type] = executor_class(
                max_workers=self.max_workers
            )
        return self._executors[executor_type]

    def shutdown(self, wait: bool = True) -> None:
        """关闭所有已创建的执行器"""
        for executor in self._executors.values():
            executor.shutdown(wait=wait)
        self._executors.clear()

    def __enter__(self) -> "ConcurrentExecutor":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        del exc_type, exc_val, exc_tb
        self.shutdown()
