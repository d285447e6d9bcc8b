"""压缩结果模型。

定义单张图片的压缩结局（成功或失败）以及批量压缩的有序结果集合。
"""

from typing import Any

from humanize import naturalsize
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .image import ImageFile


class BaseResult(BaseModel):
    """结果基类，包含通用字段和方法"""

    success: bool = Field(description="是否成功")
    error: str | None = Field(None, description="错误信息")

    def is_successful(self) -> bool:
        """检查是否成功"""
        return self.success and self.error is None

    @staticmethod
    def format_size(size_bytes: int) -> str:
        """格式化文件大小为人类可读格式"""
        return naturalsize(size_bytes, format="%.2f")


class CompressionOutcome(BaseResult):
    """单张图片的压缩结局：成功携带输出图片，失败携带原因，二者恰有其一"""

    model_config = ConfigDict(frozen=True)

    input_name: str = Field(description="输入文件名")
    original_size: int = Field(0, description="原始大小（字节）")
    image: ImageFile | None = Field(None, description="输出图片")

    @model_validator(mode="after")
    def validate_exclusive(self) -> "CompressionOutcome":
        if self.success and (self.image is None or self.error is not None):
            raise ValueError("成功的结局必须携带输出图片且不能有错误信息")
        if not self.success and (self.image is not None or not self.error):
            raise ValueError("失败的结局必须携带错误信息且不能有输出图片")
        return self

    @classmethod
    def ok(cls, source: ImageFile, image: ImageFile) -> "CompressionOutcome":
        """创建成功结局"""
        return cls(
            success=True,
            input_name=source.name,
            original_size=source.size,
            image=image,
        )

    @classmethod
    def failed(cls, source: ImageFile | None, reason: str) -> "CompressionOutcome":
        """创建失败结局"""
        return cls(
            success=False,
            input_name=source.name if source is not None else "<unknown>",
            original_size=source.size if source is not None else 0,
            error=reason or "未知错误",
        )

    @property
    def compressed_size(self) -> int:
        """输出大小（字节），失败时为 0"""
        return self.image.size if self.image is not None else 0

    def get_size_saved(self) -> int:
        """节省的字节数"""
        if not self.success:
            return 0
        return max(0, self.original_size - self.compressed_size)

    def get_compression_ratio(self) -> float:
        """压缩比例（百分比）"""
        if self.original_size == 0:
            return 0.0
        return (self.get_size_saved() / self.original_size) * 100

    def get_summary(self) -> str:
        """压缩结局摘要"""
        if not self.success:
            return f"失败: {self.error}"

        return (
            f"{self.format_size(self.original_size)} → "
            f"{self.format_size(self.compressed_size)} "
            f"({self.get_compression_ratio():.1f}% 压缩)"
        )


class BatchResult(BaseResult):
    """批量压缩结果，outcomes 与输入顺序一一对应"""

    outcomes: list[CompressionOutcome] = Field(
        default_factory=list, description="按输入顺序排列的结局"
    )

    def get_successful_items(self) -> list[CompressionOutcome]:
        """获取成功的结局"""
        return [o for o in self.outcomes if o.success]

    def get_failed_items(self) -> list[CompressionOutcome]:
        """获取失败的结局"""
        return [o for o in self.outcomes if not o.success]

    def get_successful_images(self) -> list[ImageFile]:
        """按输入顺序获取成功的输出图片"""
        return [o.image for o in self.outcomes if o.success and o.image is not None]

    def get_total_count(self) -> int:
        """获取总数量"""
        return len(self.outcomes)

    def get_success_count(self) -> int:
        """获取成功数量"""
        return len(self.get_successful_items())

    def get_failure_count(self) -> int:
        """获取失败数量"""
        return len(self.get_failed_items())

    def get_success_rate(self) -> float:
        """获取成功率（百分比）"""
        total = self.get_total_count()
        if total == 0:
            return 0.0
        return (self.get_success_count() / total) * 100

    def get_total_original_size(self) -> int:
        """总原始大小"""
        return sum(o.original_size for o in self.outcomes)

    def get_total_compressed_size(self) -> int:
        """总压缩后大小"""
        return sum(o.compressed_size for o in self.outcomes if o.success)

    def get_summary(self) -> str:
        """批量处理摘要"""
        if not self.success:
            return f"批量压缩失败: {self.error}"

        return (
            f"处理 {self.get_success_count()}/{self.get_total_count()} 张图片 "
            f"(成功率 {self.get_success_rate():.1f}%), "
            f"{self.format_size(self.get_total_original_size())} → "
            f"{self.format_size(self.get_total_compressed_size())}"
        )

    def to_dict(self) -> dict[str, Any]:
        """导出摘要字典（不含图片内容）"""
        return {
            "success": self.success,
            "error": self.error,
            "total": self.get_total_count(),
            "succeeded": self.get_success_count(),
            "failed": self.get_failure_count(),
            "items": [
                {
                    "input_name": o.input_name,
                    "success": o.success,
                    "output_name": o.image.name if o.image is not None else None,
                    "compressed_size": o.compressed_size,
                    "error": o.error,
                }
                for o in self.outcomes
            ],
        }
