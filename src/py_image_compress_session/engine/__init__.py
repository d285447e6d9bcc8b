"""压缩编排引擎模块。

包含批量并发执行、后台执行器和选项解析等核心编排逻辑。
"""

from .batch import BatchRunner
from .concurrent_executor import ConcurrentExecutor
from .config import OptionsResolver, resolve_options


__all__ = [
    "BatchRunner",
    "ConcurrentExecutor",
    "OptionsResolver",
    "resolve_options",
]
