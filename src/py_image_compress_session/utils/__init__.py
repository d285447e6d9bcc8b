"""工具模块包。

提供纯工具函数，不包含编排逻辑。
"""

from .file_helpers import find_image_files, load_image_files
from .logging_helpers import configure_logging, get_logger
from .message_formatter import MessageFormatter
from .naming_helpers import FileNamingStrategy, PathResolver
from .preview import (
    ImagePreview,
    build_preview,
    build_previews,
    describe_session,
    describe_snapshot,
)


__all__ = [
    "FileNamingStrategy",
    "ImagePreview",
    "MessageFormatter",
    "PathResolver",
    "build_preview",
    "build_previews",
    "configure_logging",
    "describe_session",
    "describe_snapshot",
    "find_image_files",
    "get_logger",
    "load_image_files",
]
