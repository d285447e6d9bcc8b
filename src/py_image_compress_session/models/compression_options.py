"""压缩选项模型。

定义压缩引擎的配置参数，以及"会话默认值 + 调用方覆盖"的两层合并规则。
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import ImageFormats, normalize_mime_type


def _validate_file_type(value: str) -> str:
    normalized = normalize_mime_type(value)
    if normalized not in ImageFormats.OUTPUT_MIME_TYPES:
        supported = ", ".join(ImageFormats.get_supported_output_types())
        raise ValueError(f"不支持的输出类型: {value}，支持的类型: {supported}")
    return normalized


class CompressionOptions(BaseModel):
    """完整的压缩选项，所有字段都有值"""

    model_config = ConfigDict(frozen=True)

    max_size_mb: float = Field(0.2, gt=0, description="输出最大体积（MB）")
    max_width_or_height: int = Field(1920, gt=0, description="最长边上限（像素）")
    file_type: str = Field("image/jpeg", description="输出 MIME 类型")
    use_web_worker: bool = Field(True, description="是否放到后台线程执行")

    @field_validator("file_type")
    @classmethod
    def validate_file_type(cls, v: str) -> str:
        return _validate_file_type(v)

    @property
    def max_size_bytes(self) -> int:
        """输出最大体积（字节）"""
        return int(self.max_size_mb * 1024 * 1024)

    def to_engine_dict(self) -> dict[str, Any]:
        """导出引擎接口使用的驼峰命名视图"""
        return {
            "maxSizeMB": self.max_size_mb,
            "maxWidthOrHeight": self.max_width_or_height,
            "fileType": self.file_type,
            "useWebWorker": self.use_web_worker,
        }


class OptionsOverride(BaseModel):
    """调用方提供的覆盖选项，未设置的字段保持 None"""

    model_config = ConfigDict(frozen=True)

    max_size_mb: float | None = Field(None, gt=0)
    max_width_or_height: int | None = Field(None, gt=0)
    file_type: str | None = None
    use_web_worker: bool | None = None

    @field_validator("file_type")
    @classmethod
    def validate_file_type(cls, v: str | None) -> str | None:
        return _validate_file_type(v) if v is not None else v

    def is_empty(self) -> bool:
        """是否没有任何覆盖字段"""
        return not self.get_overrides()

    def get_overrides(self) -> dict[str, Any]:
        """获取已设置的覆盖字段"""
        return self.model_dump(exclude_none=True)
