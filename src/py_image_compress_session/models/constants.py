"""图像类型相关常量定义。

维护 MIME 类型与 Pillow 格式名之间的映射，避免各处硬编码。
"""

from typing import Final

from PIL import Image


class ImageFormats:
    """MIME 类型与 Pillow 格式管理"""

    # 可作为压缩输出的类型
    OUTPUT_MIME_TYPES: Final[dict[str, str]] = {
        "image/jpeg": "JPEG",
        "image/png": "PNG",
        "image/webp": "WEBP",
    }

    # 用户友好的别名
    MIME_ALIASES: Final[dict[str, str]] = {
        "image/jpg": "image/jpeg",
        "image/pjpeg": "image/jpeg",
    }

    # Pillow 未提供或不准确的 MIME 类型
    SPECIAL_MIME_TYPES: Final[dict[str, str]] = {
        "ICO": "image/x-icon",
        "PPM": "image/x-portable-pixmap",
        "PGM": "image/x-portable-graymap",
        "PBM": "image/x-portable-bitmap",
    }

    # 首选扩展名
    PREFERRED_EXTENSIONS: Final[dict[str, str]] = {
        "JPEG": ".jpg",
        "TIFF": ".tiff",
    }

    LOSSY_FORMATS: Final[set[str]] = {"JPEG", "WEBP"}

    @classmethod
    def get_supported_output_types(cls) -> list[str]:
        """获取支持的输出 MIME 类型"""
        return sorted(cls.OUTPUT_MIME_TYPES)

    @classmethod
    def get_mime_type(cls, format_name: str) -> str:
        """由 Pillow 格式名获取 MIME 类型"""
        format_upper = format_name.upper()

        if format_upper in cls.SPECIAL_MIME_TYPES:
            return cls.SPECIAL_MIME_TYPES[format_upper]

        # Pillow 注册表，需先加载插件
        Image.init()
        if mime := Image.MIME.get(format_upper):
            return mime

        return f"image/{format_upper.lower()}"

    @classmethod
    def get_extension(cls, format_name: str) -> str:
        """获取扩展名，优先使用首选扩展名"""
        format_upper = format_name.upper()

        if format_upper in cls.PREFERRED_EXTENSIONS:
            return cls.PREFERRED_EXTENSIONS[format_upper]

        for ext, fmt in Image.registered_extensions().items():
            if fmt and fmt.upper() == format_upper:
                return ext.lower()

        return f".{format_upper.lower()}"


def normalize_mime_type(mime_type: str) -> str:
    """标准化 MIME 类型（小写、去空白、解析别名）"""
    normalized = mime_type.strip().lower()
    return ImageFormats.MIME_ALIASES.get(normalized, normalized)


def get_output_format(mime_type: str) -> str | None:
    """获取输出 MIME 类型对应的 Pillow 格式名，不支持时返回 None"""
    return ImageFormats.OUTPUT_MIME_TYPES.get(normalize_mime_type(mime_type))


def get_mime_type(format_name: str) -> str:
    """获取格式的 MIME 类型"""
    return ImageFormats.get_mime_type(format_name)


def get_extension_for_mime(mime_type: str) -> str:
    """获取 MIME 类型的首选扩展名"""
    format_name = get_output_format(mime_type)
    if format_name is None:
        # image/xxx -> .xxx
        return "." + normalize_mime_type(mime_type).rsplit("/", 1)[-1]
    return ImageFormats.get_extension(format_name)


def is_lossy_format(format_name: str) -> bool:
    """检查是否为有损格式（质量参数有效）"""
    return format_name.upper() in ImageFormats.LOSSY_FORMATS
