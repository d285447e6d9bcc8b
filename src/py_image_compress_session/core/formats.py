"""格式处理器模块。

为目标输出格式准备色彩模式，并给出 Pillow 的保存参数。
"""

import logging
from typing import Any

from PIL import Image


logger = logging.getLogger(__name__)

# JPEG 不支持透明度时的合成背景
JPEG_BACKGROUND = (255, 255, 255)


class FormatProcessor:
    """格式处理器"""

    def prepare_for_format(self, img: Image.Image, target_format: str) -> Image.Image:
        """为目标格式准备图片

        Args:
            img: PIL图片对象
            target_format: 目标格式（Pillow 格式名）

        Returns:
            Image.Image: 处理后的图片对象
        """
        match target_format:
            case "JPEG":
                return self._prepare_for_jpeg(img)
            case "PNG":
                return self._prepare_for_png(img)
            case "WEBP":
                return self._prepare_for_webp(img)
            case _:
                return img

    def _prepare_for_jpeg(self, img: Image.Image) -> Image.Image:
        """JPEG不支持透明度，带透明通道的图片合成到白色背景上"""
        if img.mode == "P":
            if "transparency" not in img.info:
                return img.convert("RGB")
            img = img.convert("RGBA")

        if img.mode in ("RGBA", "LA"):
            if img.mode == "LA":
                img = img.convert("RGBA")
            background = Image.new("RGB", img.size, JPEG_BACKGROUND)
            background.paste(img, mask=img.split()[-1])
            return background

        if img.mode != "RGB":
            # CMYK、灰度、二值等
            return img.convert("RGB")

        return img

    def _prepare_for_png(self, img: Image.Image) -> Image.Image:
        """PNG支持多种色彩模式，只处理不适合直接保存的模式"""
        if img.mode == "P":
            if "transparency" in img.info:
                return img.convert("RGBA")
            return img.convert("RGB")

        if img.mode == "CMYK":
            return img.convert("RGB")

        return img

    def _prepare_for_webp(self, img: Image.Image) -> Image.Image:
        """WebP支持RGB和RGBA"""
        if img.mode == "P":
            if "transparency" in img.info:
                return img.convert("RGBA")
            return img.convert("RGB")
        if img.mode == "LA":
            return img.convert("RGBA")
        if img.mode not in ("RGB", "RGBA"):
            return img.convert("RGB")

        return img


def get_save_parameters(format_name: str, quality: int) -> dict[str, Any]:
    """获取保存参数

    Args:
        format_name: Pillow 格式名
        quality: 当前质量值 1-100（PNG 忽略）

    Returns:
        dict: 传给 Image.save 的参数（包含 format）
    """
    match format_name:
        case "JPEG":
            return {"format": "JPEG", **get_jpeg_params(quality)}
        case "PNG":
            return {"format": "PNG", **get_png_params()}
        case "WEBP":
            return {"format": "WEBP", **get_webp_params(quality)}
        case _:
            return {"format": format_name}


def get_jpeg_params(quality: int) -> dict[str, Any]:
    """获取JPEG压缩参数

    - quality: 100 会禁用部分JPEG压缩算法，上限压到 95
    - subsampling: 高质量用 4:2:2，其余用 4:2:0
    """
    jpeg_quality = max(1, min(95, quality))
    return {
        "quality": jpeg_quality,
        "optimize": True,
        "progressive": False,
        "subsampling": 1 if jpeg_quality >= 85 else 2,
    }


def get_png_params() -> dict[str, Any]:
    """获取PNG压缩参数，PNG无质量参数，体积只能靠缩小尺寸控制"""
    return {
        "optimize": True,
        "compress_level": 9,
    }


def get_webp_params(quality: int) -> dict[str, Any]:
    """获取WebP压缩参数

    alpha_quality 控制透明通道质量，高质量时保持透明通道无损。
    """
    webp_quality = max(1, min(100, quality))
    params: dict[str, Any] = {
        "quality": webp_quality,
        "method": 4,
    }

    if webp_quality >= 85:
        params["alpha_quality"] = 100
    elif webp_quality >= 70:
        params["alpha_quality"] = min(100, webp_quality + 10)
    else:
        params["alpha_quality"] = webp_quality

    return params
