"""压缩会话模块。

一个会话绑定一种用途（单图上传或批量上传）的压缩配置，并持有由它派生的状态：
最近的单图结果、最近的批量结果以及两个进行中标志。
"""

from collections.abc import Callable, Sequence
from typing import Any

from .core.compression_engine import (
    CallableEngine,
    CompressionEngine,
    EngineFunction,
    PillowCompressionEngine,
)
from .engine.batch import BatchRunner
from .engine.config import OptionsResolver, OverrideLike
from .exceptions import CompressionError, ErrorHandler, ItemCompressionError
from .models.compression_options import CompressionOptions
from .models.compression_result import BatchResult, CompressionOutcome
from .models.image import ImageFile
from .models.session_state import SessionState
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()

StateListener = Callable[[SessionState], Any]


class CompressionSession:
    """压缩会话

    状态只由本会话的压缩操作修改。compress_one 可重入：并发调用互不等待，
    single_result 取最后一个完成（而非最后一个开始）的成功结果；
    is_busy_single 在仍有单图调用未完成时保持为真。
    """

    def __init__(
        self,
        options: OverrideLike = None,
        engine: CompressionEngine | EngineFunction | None = None,
        name: str = "session",
        resolver: OptionsResolver | None = None,
        batch_runner: BatchRunner | None = None,
    ):
        """初始化压缩会话。

        Args:
            options: 覆盖全局默认值的会话选项（OptionsOverride 或字典，支持驼峰字段名）
            engine: 压缩引擎或压缩函数，None 时使用 Pillow 引擎
            name: 会话名称，用于日志
            resolver: 选项解析器
            batch_runner: 批量执行器

        Raises:
            ValidationError: 会话选项非法
        """
        self.name = name
        self._resolver = resolver or OptionsResolver()
        self._options = self._resolver.resolve(None, options)
        self._engine = self._as_engine(engine)
        self._batch_runner = batch_runner or BatchRunner(f"[{name}] 批量压缩")

        self._state = SessionState()
        self._single_in_flight = 0
        self._batch_in_flight = 0
        self._listeners: list[StateListener] = []

        logger.debug(f"初始化压缩会话 {name}: {self._options.to_engine_dict()}")

    @staticmethod
    def _as_engine(
        engine: CompressionEngine | EngineFunction | None,
    ) -> CompressionEngine:
        if engine is None:
            return PillowCompressionEngine()
        if isinstance(engine, CompressionEngine):
            return engine
        if callable(engine):
            return CallableEngine(engine)
        raise TypeError(f"不支持的压缩引擎类型: {type(engine).__name__}")

    @property
    def options(self) -> CompressionOptions:
        """会话的有效选项"""
        return self._options

    @property
    def engine(self) -> CompressionEngine:
        return self._engine

    @property
    def state(self) -> SessionState:
        """当前状态快照"""
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """注册状态监听器，每次状态变化后以新快照调用

        Returns:
            取消注册的函数
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def compress_one(
        self, image: ImageFile | None, override: OverrideLike = None
    ) -> ImageFile | None:
        """压缩单张图片。

        Args:
            image: 输入图片，None 或空图片时什么都不做
            override: 本次调用的覆盖选项

        Returns:
            ImageFile | None: 成功时返回输出图片，失败时返回 None（上一次结果保持不变）
        """
        if image is None or image.is_empty():
            logger.debug(f"[{self.name}] 忽略空输入")
            return None

        try:
            options = self._resolver.resolve(self._options, override)
        except CompressionError as e:
            ErrorHandler.handle_item_failure(e, image, f"[{self.name}] 单图压缩")
            return None

        outcome = await self._compress_outcome(image, options)
        return outcome.image if outcome.success else None

    async def compress_many(
        self, images: Sequence[ImageFile], override: OverrideLike = None
    ) -> list[ImageFile]:
        """并发压缩多张图片。

        Args:
            images: 有序输入
            override: 本次调用的覆盖选项

        Returns:
            list[ImageFile]: 按输入顺序排列的成功结果，失败项被剔除
        """
        result = await self.compress_many_detailed(images, override)
        return result.get_successful_images()

    async def compress_many_detailed(
        self, images: Sequence[ImageFile], override: OverrideLike = None
    ) -> BatchResult:
        """并发压缩多张图片，返回包含每一项结局的批量结果。

        状态变化与 compress_many 相同。
        """
        items = list(images)
        batch_result: BatchResult | None = None

        self._batch_in_flight += 1
        self._set_state(is_busy_batch=True)
        try:
            options = self._resolver.resolve(self._options, override)
            batch_result = await self._batch_runner.run_detailed(
                items, lambda item: self._compress_outcome(item, options)
            )
        except Exception as e:
            batch_result = ErrorHandler.handle_batch_failure(e, self.name, len(items))
        finally:
            self._batch_in_flight -= 1
            changes: dict[str, Any] = {"is_busy_batch": self._batch_in_flight > 0}
            # 被取消时保留上一次的批量结果
            if batch_result is not None:
                changes["batch_results"] = tuple(batch_result.get_successful_images())
            self._set_state(**changes)

        if batch_result.success:
            logger.info(
                MessageFormatter.batch_summary(
                    self.name,
                    batch_result.get_success_count(),
                    batch_result.get_total_count(),
                )
            )
        return batch_result

    async def _compress_outcome(
        self, image: ImageFile | None, options: CompressionOptions
    ) -> CompressionOutcome:
        """单图压缩的完整过程：置忙、调用引擎、更新结果、清除忙标志"""
        if image is None or image.is_empty():
            return ErrorHandler.handle_item_failure(
                ItemCompressionError("输入图片为空"), image, f"[{self.name}] 单图压缩"
            )

        outcome: CompressionOutcome | None = None

        self._single_in_flight += 1
        self._set_state(is_busy_single=True)
        try:
            outcome = await self._invoke_engine(image, options)
            return outcome
        finally:
            self._single_in_flight -= 1
            changes: dict[str, Any] = {"is_busy_single": self._single_in_flight > 0}
            if outcome is not None and outcome.success:
                changes["single_result"] = outcome.image
            self._set_state(**changes)

    async def _invoke_engine(
        self, image: ImageFile, options: CompressionOptions
    ) -> CompressionOutcome:
        """调用引擎并把结果或异常转换为结局"""
        operation = f"[{self.name}] 单图压缩"
        try:
            result = await self._engine.compress(image, options)
        except Exception as e:
            return ErrorHandler.handle_item_failure(e, image, operation)

        if not isinstance(result, ImageFile):
            return ErrorHandler.handle_item_failure(
                ItemCompressionError(
                    f"引擎返回了意外的类型: {type(result).__name__}", image.name
                ),
                image,
                operation,
            )

        return CompressionOutcome.ok(image, result)

    def _set_state(self, **changes: Any) -> None:
        """应用状态变化并通知监听器，无变化时不通知"""
        new_state = self._state.model_copy(update=changes)
        if new_state == self._state:
            return

        for field, value in changes.items():
            if getattr(self._state, field) != value:
                logger.debug(
                    MessageFormatter.state_changed(
                        self.name, field, _describe_value(value)
                    )
                )

        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception as e:
                ErrorHandler.log_error("状态通知", self.name, e, "warning")

    def __repr__(self) -> str:
        return f"CompressionSession(name={self.name!r}, options={self._options!r})"


def _describe_value(value: Any) -> Any:
    match value:
        case ImageFile():
            return value.name
        case tuple():
            return f"{len(value)} 张图片"
        case _:
            return value
