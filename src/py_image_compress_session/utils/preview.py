"""预览工具模块。

渲染层使用的展示数据：从图片元数据派生大小和类型文本，核心会话逻辑不做文本格式化。
"""

from pydantic import BaseModel, Field

from ..models.image import ImageFile
from ..models.session_state import CoordinatorSnapshot, SessionState


class ImagePreview(BaseModel):
    """单张图片的预览信息"""

    name: str
    mime_type: str
    size_bytes: int
    size_kb_text: str = Field(description="如 12.34 KB")
    size_human: str = Field(description="如 12.34 kB")


def build_preview(image: ImageFile | None) -> ImagePreview | None:
    """构建单张图片的预览信息，无图片时返回 None"""
    if image is None:
        return None
    return ImagePreview(
        name=image.name,
        mime_type=image.mime_type,
        size_bytes=image.size,
        size_kb_text=f"{image.get_size_kb():.2f} KB",
        size_human=image.get_size_human(),
    )


def build_previews(images: tuple[ImageFile, ...] | list[ImageFile]) -> list[ImagePreview]:
    """按顺序构建多张图片的预览信息"""
    return [p for p in (build_preview(image) for image in images) if p is not None]


def describe_session(state: SessionState) -> dict[str, object]:
    """把会话状态转换为渲染层可直接使用的字典"""
    return {
        "single_result": build_preview(state.single_result),
        "batch_results": build_previews(state.batch_results),
        "is_busy_single": state.is_busy_single,
        "is_busy_batch": state.is_busy_batch,
    }


def describe_snapshot(snapshot: CoordinatorSnapshot) -> dict[str, object]:
    """把协调器快照转换为"压缩前/压缩后"两栏的展示数据"""
    return {
        "input_image": build_preview(snapshot.input_image),
        "input_images": build_previews(snapshot.input_images),
        "single": describe_session(snapshot.single),
        "batch": describe_session(snapshot.batch),
    }
