"""会话状态模型。

压缩会话对外暴露的状态快照，供渲染层读取。
"""

from pydantic import BaseModel, ConfigDict, Field

from .image import ImageFile


class SessionState(BaseModel):
    """单个压缩会话的状态

    只由所属会话的压缩操作修改，外部拿到的都是不可变快照。
    """

    model_config = ConfigDict(frozen=True)

    single_result: ImageFile | None = Field(None, description="最近一次完成的单图结果")
    batch_results: tuple[ImageFile, ...] = Field(
        default=(), description="最近一次批量压缩的成功结果（输入顺序）"
    )
    is_busy_single: bool = Field(False, description="单图压缩进行中")
    is_busy_batch: bool = Field(False, description="批量压缩进行中")

    @property
    def is_busy(self) -> bool:
        """是否有任意压缩正在进行"""
        return self.is_busy_single or self.is_busy_batch


class CoordinatorSnapshot(BaseModel):
    """协调器对渲染层发布的完整快照"""

    model_config = ConfigDict(frozen=True)

    input_image: ImageFile | None = Field(None, description="当前单图输入")
    input_images: tuple[ImageFile, ...] = Field(default=(), description="当前批量输入")
    single: SessionState = Field(default_factory=SessionState, description="单图会话状态")
    batch: SessionState = Field(default_factory=SessionState, description="批量会话状态")
