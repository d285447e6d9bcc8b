"""文件命名工具模块。

提供统一的输出文件命名策略和路径生成功能。
"""

import itertools
from functools import lru_cache
from pathlib import Path

from ..models.constants import get_extension_for_mime


class FileNamingStrategy:
    """文件命名策略类"""

    SUFFIX = "_compress"

    @staticmethod
    def generate_output_name(input_name: str, mime_type: str) -> str:
        """生成输出文件名

        Args:
            input_name: 输入文件名
            mime_type: 输出 MIME 类型

        Returns:
            str: 生成的文件名，如 photo.png -> photo_compress.webp
        """
        stem = Path(input_name).stem or "image"
        if not stem.endswith(FileNamingStrategy.SUFFIX):
            stem += FileNamingStrategy.SUFFIX
        return f"{stem}{FileNamingStrategy._get_extension(mime_type)}"

    @staticmethod
    @lru_cache(maxsize=32)
    def _get_extension(mime_type: str) -> str:
        return get_extension_for_mime(mime_type)


class PathResolver:
    """路径解析器"""

    @staticmethod
    def ensure_unique_path(path: Path) -> Path:
        """确保路径唯一，如果文件已存在则添加数字后缀

        Args:
            path: 原始路径

        Returns:
            Path: 唯一的路径
        """
        if not path.exists():
            return path

        base = path.stem
        suffix = path.suffix
        parent = path.parent

        for counter in itertools.count(1):
            new_path = parent / f"{base}_{counter}{suffix}"
            if not new_path.exists():
                return new_path

        return path  # pragma: no cover
