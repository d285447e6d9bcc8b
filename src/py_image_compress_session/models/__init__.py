"""数据模型包。

定义压缩会话相关的数据结构和模型。
"""

from .compression_options import CompressionOptions, OptionsOverride
from .compression_result import BaseResult, BatchResult, CompressionOutcome
from .constants import (
    ImageFormats,
    get_extension_for_mime,
    get_mime_type,
    get_output_format,
    is_lossy_format,
    normalize_mime_type,
)
from .image import ImageFile, detect_mime_type
from .session_state import CoordinatorSnapshot, SessionState


__all__ = [
    "BaseResult",
    "BatchResult",
    "CompressionOptions",
    "CompressionOutcome",
    "CoordinatorSnapshot",
    "ImageFile",
    "ImageFormats",
    "OptionsOverride",
    "SessionState",
    "detect_mime_type",
    "get_extension_for_mime",
    "get_mime_type",
    "get_output_format",
    "is_lossy_format",
    "normalize_mime_type",
]
