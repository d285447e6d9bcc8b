"""应用协调器模块。

把文件选择/拖放得到的原始图片转发给对应的压缩会话，保存最近的原始输入用于"压缩前"预览，
并把两个会话的状态重新发布给渲染层。本模块没有任何压缩逻辑。
"""

from collections.abc import Callable, Sequence
from typing import Any

from .config import get_config
from .core.compression_engine import (
    CompressionEngine,
    EngineFunction,
    PillowCompressionEngine,
)
from .engine.config import OptionsResolver, OverrideLike
from .exceptions import ErrorHandler
from .models.image import ImageFile
from .models.session_state import CoordinatorSnapshot, SessionState
from .session import CompressionSession
from .utils.logging_helpers import get_logger


logger = get_logger()

SnapshotListener = Callable[[CoordinatorSnapshot], Any]


class Coordinator:
    """单图 / 批量两个独立会话的协调器"""

    def __init__(
        self,
        engine: CompressionEngine | EngineFunction | None = None,
        single_options: OverrideLike = None,
        batch_options: OverrideLike = None,
    ):
        """初始化协调器。

        Args:
            engine: 两个会话共用的压缩引擎，None 时使用 Pillow 引擎
            single_options: 单图会话选项，默认输出 image/webp
            batch_options: 批量会话选项，默认输出 image/jpeg
        """
        defaults = get_config().session
        resolver = OptionsResolver()
        self._owns_engine = engine is None
        engine = engine or PillowCompressionEngine()

        self.single_session = CompressionSession(
            options=_with_default_file_type(
                resolver, defaults.SINGLE_FILE_TYPE, single_options
            ),
            engine=engine,
            name="single",
            resolver=resolver,
        )
        self.batch_session = CompressionSession(
            options=_with_default_file_type(
                resolver, defaults.BATCH_FILE_TYPE, batch_options
            ),
            engine=engine,
            name="batch",
            resolver=resolver,
        )

        self._input_image: ImageFile | None = None
        self._input_images: tuple[ImageFile, ...] = ()
        self._listeners: list[SnapshotListener] = []

        self.single_session.subscribe(self._on_session_change)
        self.batch_session.subscribe(self._on_session_change)

    @property
    def input_image(self) -> ImageFile | None:
        """当前单图输入"""
        return self._input_image

    @property
    def input_images(self) -> tuple[ImageFile, ...]:
        """当前批量输入"""
        return self._input_images

    async def handle_image_upload(self, image: ImageFile | None) -> ImageFile | None:
        """单文件选择：保存原始图片并交给单图会话

        Args:
            image: 选择的图片，取消选择时为 None

        Returns:
            ImageFile | None: 压缩结果
        """
        self._input_image = image
        self._publish()

        if image is None:
            return None
        logger.debug(f"单图上传: {image.name}")
        return await self.single_session.compress_one(image)

    async def handle_multiple_image_upload(
        self, images: Sequence[ImageFile]
    ) -> list[ImageFile]:
        """多文件拖放：保存原始图片并交给批量会话

        Args:
            images: 拖放的图片（有序）

        Returns:
            list[ImageFile]: 按输入顺序排列的成功结果
        """
        self._input_images = tuple(images)
        self._publish()

        logger.debug(f"批量上传: {len(self._input_images)} 张图片")
        return await self.batch_session.compress_many(self._input_images)

    def snapshot(self) -> CoordinatorSnapshot:
        """当前的完整快照"""
        return CoordinatorSnapshot(
            input_image=self._input_image,
            input_images=self._input_images,
            single=self.single_session.state,
            batch=self.batch_session.state,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """注册快照监听器

        Returns:
            取消注册的函数
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """释放协调器自己创建的默认引擎，外部传入的引擎由调用方负责"""
        if self._owns_engine:
            self.single_session.engine.close()

    def __enter__(self) -> "Coordinator":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        del exc_type, exc_val, exc_tb
        self.close()

    def _on_session_change(self, _state: SessionState) -> None:
        self._publish()

    def _publish(self) -> None:
        if not self._listeners:
            return

        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                ErrorHandler.log_error("快照通知", "coordinator", e, "warning")


def _with_default_file_type(
    resolver: OptionsResolver, file_type: str, options: OverrideLike
) -> dict[str, Any]:
    """会话默认输出类型 + 调用方选项，逐字段合并"""
    return {"file_type": file_type, **resolver.to_override(options).get_overrides()}
