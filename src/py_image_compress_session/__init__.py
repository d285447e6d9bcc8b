"""图像压缩会话编排库。

选择一张或多张图片，按目标体积与编码并发压缩，跟踪进行中状态并按输入顺序汇总结果。
"""

__version__ = "0.1.0"
__author__ = "crper"
__description__ = "图像压缩会话编排库，基于 asyncio 与 Pillow"

# 核心功能导出
from .coordinator import Coordinator
from .core.compression_engine import CompressionEngine, PillowCompressionEngine
from .engine.batch import BatchRunner
from .engine.config import resolve_options
from .models import (
    BatchResult,
    CompressionOptions,
    CompressionOutcome,
    CoordinatorSnapshot,
    ImageFile,
    OptionsOverride,
    SessionState,
)
from .session import CompressionSession


__all__ = [
    "BatchResult",
    "BatchRunner",
    "CompressionEngine",
    "CompressionOptions",
    "CompressionOutcome",
    "CompressionSession",
    "Coordinator",
    "CoordinatorSnapshot",
    "ImageFile",
    "OptionsOverride",
    "PillowCompressionEngine",
    "SessionState",
    "get_version",
    "resolve_options",
]


def get_version() -> str:
    """获取版本号。"""
    return __version__
