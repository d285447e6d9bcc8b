"""文件工具模块。

在"文件选择/拖放"这一外部输入边界上，把磁盘文件转换为 ImageFile。
"""

from collections.abc import Iterable, Iterator
from pathlib import Path

from PIL import Image

from ..models.image import ImageFile
from .logging_helpers import get_logger
from .message_formatter import MessageFormatter


logger = get_logger()


def find_image_files(directory: str | Path, recursive: bool = False) -> Iterator[Path]:
    """查找目录中的图像文件（按文件名排序）。

    Args:
        directory: 搜索目录
        recursive: 是否递归搜索子目录

    Yields:
        Path: 图像文件路径
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning(MessageFormatter.file_not_found(directory))
        return

    pattern = "**/*" if recursive else "*"
    supported_extensions = set(Image.registered_extensions().keys())

    for file_path in sorted(directory.glob(pattern)):
        if file_path.is_file() and file_path.suffix.lower() in supported_extensions:
            yield file_path


def load_image_files(paths: Iterable[str | Path]) -> list[ImageFile]:
    """按顺序读取多个图片文件，读取失败的文件被跳过并记录日志"""
    images = []
    for path in paths:
        try:
            images.append(ImageFile.from_path(path))
        except OSError as e:
            logger.warning(MessageFormatter.operation_failed("读取图片", path, e))
    return images
