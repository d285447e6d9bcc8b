"""图像压缩异常处理模块。

定义统一的异常类和错误处理机制：单张图片失败只影响该图片，批量聚合失败在会话边界兜底。
"""

import asyncio
from collections.abc import Callable
from functools import wraps
from typing import TypeVar

from PIL.Image import DecompressionBombError, UnidentifiedImageError

from .models.compression_result import BatchResult, CompressionOutcome
from .models.image import ImageFile
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()
T = TypeVar("T")


# 统一的异常类型
class CompressionError(Exception):
    """压缩相关错误基类"""

    def __init__(self, message: str, image_name: str | None = None):
        super().__init__(message)
        self.message = message
        self.image_name = image_name


class ValidationError(CompressionError):
    """参数验证错误"""

    pass


class ProcessingError(CompressionError):
    """处理过程错误"""

    pass


class UnsupportedFormatError(CompressionError):
    """不支持的格式错误"""

    pass


class ItemCompressionError(CompressionError):
    """单张图片压缩失败"""

    pass


class BatchCompressionError(CompressionError):
    """批量聚合本身失败"""

    pass


def handle_image_errors(operation_name: str = "图像压缩"):
    """统一的图像处理异常处理装饰器

    把 Pillow / 系统异常转换为本模块的异常类型，已是 CompressionError 的原样抛出。

    Args:
        operation_name: 操作名称，用于日志记录
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except CompressionError:
                raise
            except UnidentifiedImageError as e:
                logger.debug(f"{operation_name} - 无法识别图像格式: {e}")
                raise UnsupportedFormatError(f"不支持的图像格式: {e}") from e
            except DecompressionBombError as e:
                logger.debug(f"{operation_name} - 图像过大: {e}")
                raise ProcessingError(f"图像过大，可能存在安全风险: {e}") from e
            except OSError as e:
                logger.debug(f"{operation_name} - 编解码失败: {e}")
                raise ProcessingError(f"图像编解码失败: {e}") from e
            except (ValueError, TypeError) as e:
                logger.debug(f"{operation_name} - 参数错误: {e}")
                raise ValidationError(f"参数错误: {e}") from e
            except Exception as e:
                logger.debug(f"{operation_name} - 未知错误: {e}")
                raise ProcessingError(f"处理失败: {e}") from e

        return wrapper

    return decorator


class ErrorHandler:
    """统一错误处理器

    提供标准化的错误处理和日志记录功能。
    """

    @staticmethod
    def log_error(
        operation: str, target: str, error: BaseException, level: str = "error"
    ) -> None:
        """标准化的错误日志记录

        Args:
            operation: 操作名称（如"单图压缩"、"批量压缩"等）
            target: 相关图片名或会话名
            error: 异常对象
            level: 日志级别 ("error", "warning", "debug")
        """
        log_msg = MessageFormatter.format_error(operation, target, error)
        getattr(logger, level, logger.error)(log_msg)

    @staticmethod
    def handle_item_failure(
        error: BaseException,
        image: ImageFile | None,
        operation: str = "图像压缩",
    ) -> CompressionOutcome:
        """单张图片失败：记录日志并转换为失败结局，不再抛出"""
        target = image.name if image is not None else "<unknown>"

        match error:
            case ValidationError() | UnsupportedFormatError():
                ErrorHandler.log_error(operation, target, error, "warning")
            case asyncio.CancelledError():
                ErrorHandler.log_error(f"{operation} - 已取消", target, error, "warning")
            case MemoryError():
                ErrorHandler.log_error(f"{operation} - 内存不足", target, error, "error")
            case _:
                ErrorHandler.log_error(operation, target, error, "error")

        reason = getattr(error, "message", None) or str(error) or type(error).__name__
        return CompressionOutcome.failed(image, f"{operation}: {reason}")

    @staticmethod
    def handle_batch_failure(
        error: BaseException, session: str, item_count: int
    ) -> BatchResult:
        """批量聚合失败：记录日志并返回空的失败结果"""
        if not isinstance(error, CompressionError):
            error = BatchCompressionError(f"批量聚合失败: {error}")
        ErrorHandler.log_error(f"批量压缩({item_count} 张)", session, error, "error")
        return BatchResult(success=False, error=str(error))
