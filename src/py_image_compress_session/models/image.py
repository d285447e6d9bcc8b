"""图片文件模型。

定义压缩流程中流转的不可变图片对象：输入图片由调用方提供，输出图片由压缩引擎生成。
"""

from io import BytesIO
from pathlib import Path

from humanize import naturalsize
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, ConfigDict, Field, computed_field

from .constants import get_extension_for_mime, get_mime_type


class ImageFile(BaseModel):
    """不可变的图片文件（二进制内容 + 元数据）"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="文件名")
    data: bytes = Field(repr=False, description="文件内容")
    mime_type: str = Field(description="MIME 类型")

    @computed_field
    def size(self) -> int:
        """文件大小（字节）"""
        return len(self.data)

    @property
    def stem(self) -> str:
        """不含扩展名的文件名"""
        return Path(self.name).stem

    @property
    def extension(self) -> str:
        """MIME 类型对应的扩展名"""
        return get_extension_for_mime(self.mime_type)

    def is_empty(self) -> bool:
        """是否为空文件"""
        return not self.data

    def get_size_kb(self) -> float:
        """以 KB（1000 字节）为单位的大小"""
        return self.size / 1000

    def get_size_human(self) -> str:
        """人性化显示文件大小"""
        return naturalsize(self.size, format="%.2f")

    def open(self) -> Image.Image:
        """用 Pillow 打开图片内容"""
        return Image.open(BytesIO(self.data))

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> "ImageFile":
        """从磁盘读取图片文件

        Args:
            path: 图片路径
            mime_type: 指定 MIME 类型，None 时由 Pillow 识别

        Returns:
            ImageFile: 读取的图片
        """
        path = Path(path)
        data = path.read_bytes()
        return cls(
            name=path.name,
            data=data,
            mime_type=mime_type or detect_mime_type(data),
        )

    def save(self, directory: str | Path) -> Path:
        """将图片写入目录，返回写入路径"""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        output_path = directory / self.name
        output_path.write_bytes(self.data)
        return output_path


def detect_mime_type(data: bytes) -> str:
    """识别图片内容的 MIME 类型，无法识别时返回 application/octet-stream"""
    try:
        with Image.open(BytesIO(data)) as img:
            if img.format:
                return get_mime_type(img.format)
    except (UnidentifiedImageError, OSError):
        pass
    return "application/octet-stream"
