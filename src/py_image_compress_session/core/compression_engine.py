"""压缩引擎模块。

提供默认的 Pillow 压缩引擎：限制最长边、转换到目标编码，并迭代降低质量和尺寸，
直到输出体积不超过目标大小或迭代次数用尽。
"""

import inspect
import time
from collections.abc import Awaitable, Callable
from io import BytesIO
from typing import Protocol, runtime_checkable

from PIL import Image, ImageOps

from ..config import get_config
from ..engine.concurrent_executor import ConcurrentExecutor
from ..exceptions import UnsupportedFormatError, ValidationError, handle_image_errors
from ..models.compression_options import CompressionOptions
from ..models.constants import get_output_format, is_lossy_format, normalize_mime_type
from ..models.image import ImageFile
from ..utils.logging_helpers import get_logger
from ..utils.naming_helpers import FileNamingStrategy
from .formats import FormatProcessor, get_save_parameters


logger = get_logger()


@runtime_checkable
class CompressionEngine(Protocol):
    """压缩引擎接口：成功返回输出图片，失败抛出异常"""

    async def compress(
        self, image: ImageFile, options: CompressionOptions
    ) -> ImageFile: ...


EngineFunction = Callable[
    [ImageFile, CompressionOptions], Awaitable[ImageFile] | ImageFile
]


class CallableEngine:
    """把普通函数或协程函数包装为压缩引擎"""

    def __init__(self, func: EngineFunction):
        self.func = func

    async def compress(self, image: ImageFile, options: CompressionOptions) -> ImageFile:
        result = self.func(image, options)
        if inspect.isawaitable(result):
            result = await result
        return result


@handle_image_errors("图像压缩引擎")
def compress_image_data(
    image: ImageFile,
    options: CompressionOptions,
    max_iteration: int = 10,
    initial_quality: int = 90,
    min_quality: int = 10,
    quality_step: float = 0.95,
    scale_step: float = 0.95,
) -> ImageFile:
    """同步压缩单张图片。

    可以直接调用，也可以放到线程池/进程池中执行。

    Args:
        image: 输入图片
        options: 有效压缩选项
        max_iteration: 超出目标大小时最多再尝试的次数
        initial_quality: 初始质量 1-100
        min_quality: 质量下限
        quality_step: 每次迭代的质量衰减系数
        scale_step: 每次迭代的尺寸衰减系数

    Returns:
        ImageFile: 输出图片

    Raises:
        ValidationError: 输入为空
        UnsupportedFormatError: 输入无法解码或输出类型不支持
        ProcessingError: 编码失败
    """
    if image.is_empty():
        raise ValidationError("输入图片为空", image.name)

    target_format = get_output_format(options.file_type)
    if target_format is None:
        raise UnsupportedFormatError(f"不支持的输出类型: {options.file_type}", image.name)

    with image.open() as source:
        img = ImageOps.exif_transpose(source)
        original_dimensions = img.size
        img = _fit_within(img, options.max_width_or_height)
        was_resized = img.size != original_dimensions

        # 已满足所有约束时原样返回
        if (
            not was_resized
            and image.size <= options.max_size_bytes
            and normalize_mime_type(image.mime_type) == options.file_type
        ):
            logger.debug(f"{image.name} 已满足约束，跳过压缩")
            return image

        img = FormatProcessor().prepare_for_format(img, target_format)
        data = _encode_to_target(
            img,
            target_format,
            options.max_size_bytes,
            max_iteration=max_iteration,
            quality=initial_quality,
            min_quality=min_quality,
            quality_step=quality_step,
            scale_step=scale_step,
        )

    if len(data) > options.max_size_bytes:
        logger.info(
            f"{image.name} 迭代 {max_iteration} 次后仍超出目标大小 "
            f"({len(data)} > {options.max_size_bytes} bytes)，返回最小结果"
        )

    return ImageFile(
        name=FileNamingStrategy.generate_output_name(image.name, options.file_type),
        data=data,
        mime_type=options.file_type,
    )


def _encode_to_target(
    img: Image.Image,
    target_format: str,
    max_size_bytes: int,
    max_iteration: int,
    quality: int,
    min_quality: int,
    quality_step: float,
    scale_step: float,
) -> bytes:
    """迭代编码，返回不超过目标大小的第一个结果，否则返回最小结果"""
    lossy = is_lossy_format(target_format)
    current = img
    best: bytes | None = None

    for iteration in range(max_iteration + 1):
        data = _encode(current, target_format, quality)
        if best is None or len(data) < len(best):
            best = data

        logger.debug(
            f"第 {iteration} 次编码: {current.size[0]}x{current.size[1]} "
            f"质量={quality if lossy else '-'} 大小={len(data)}"
        )
        if len(data) <= max_size_bytes:
            return data

        if lossy:
            quality = max(min_quality, int(quality * quality_step))
        current = _scale(current, scale_step)

    return best if best is not None else b""


def _encode(img: Image.Image, target_format: str, quality: int) -> bytes:
    params = get_save_parameters(target_format, quality)
    buffer = BytesIO()
    try:
        img.save(buffer, **params)
    except OSError as e:
        if not params.get("optimize"):
            raise
        # optimize 要求整张输出放进一次写缓冲，高细节大图会超出
        logger.debug(f"optimize 编码失败，改用普通编码: {e}")
        buffer = BytesIO()
        img.save(buffer, **{**params, "optimize": False})
    return buffer.getvalue()


def _fit_within(img: Image.Image, max_width_or_height: int) -> Image.Image:
    """等比缩小到最长边不超过上限，不放大"""
    width, height = img.size
    longest = max(width, height)
    if longest <= max_width_or_height:
        return img

    ratio = max_width_or_height / longest
    new_size = (max(1, int(width * ratio)), max(1, int(height * ratio)))
    return img.resize(new_size, Image.Resampling.LANCZOS)


def _scale(img: Image.Image, factor: float) -> Image.Image:
    width, height = img.size
    new_size = (max(1, int(width * factor)), max(1, int(height * factor)))
    if new_size == img.size:
        return img
    return img.resize(new_size, Image.Resampling.LANCZOS)


class PillowCompressionEngine:
    """基于 Pillow 的默认压缩引擎

    use_web_worker 为真时编码在后台执行器中进行，否则直接在事件循环线程上执行。
    """

    def __init__(
        self,
        executor: ConcurrentExecutor | None = None,
        max_iteration: int | None = None,
        initial_quality: int | None = None,
    ):
        defaults = get_config().engine
        self.executor = executor or ConcurrentExecutor()
        self.max_iteration = (
            max_iteration if max_iteration is not None else defaults.MAX_ITERATION
        )
        self.initial_quality = initial_quality or defaults.INITIAL_QUALITY
        self.min_quality = defaults.MIN_QUALITY
        self.quality_step = defaults.QUALITY_STEP
        self.scale_step = defaults.SCALE_STEP

        if self.max_iteration < 0:
            raise ValidationError("max_iteration 不能为负数")
        if not 1 <= self.initial_quality <= 100:
            raise ValidationError(
                f"初始质量必须在 1-100 之间，当前值: {self.initial_quality}"
            )

    async def compress(self, image: ImageFile, options: CompressionOptions) -> ImageFile:
        """压缩单张图片"""
        args = (
            image,
            options,
            self.max_iteration,
            self.initial_quality,
            self.min_quality,
            self.quality_step,
            self.scale_step,
        )
        started = time.perf_counter()

        if options.use_web_worker:
            result = await self.executor.run(
                compress_image_data, *args, payload_size=image.size
            )
        else:
            result = compress_image_data(*args)

        logger.debug(
            f"{image.name}: {image.size} → {result.size} bytes, "
            f"耗时 {time.perf_counter() - started:.3f}s"
        )
        return result

    def close(self) -> None:
        """释放后台执行器"""
        self.executor.shutdown()
