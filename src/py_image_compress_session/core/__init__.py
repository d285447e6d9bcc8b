"""压缩引擎包。

包含引擎接口和基于 Pillow 的默认实现。
"""

from .compression_engine import (
    CallableEngine,
    CompressionEngine,
    PillowCompressionEngine,
    compress_image_data,
)
from .formats import FormatProcessor, get_save_parameters


__all__ = [
    "CallableEngine",
    "CompressionEngine",
    "FormatProcessor",
    "PillowCompressionEngine",
    "compress_image_data",
    "get_save_parameters",
]
