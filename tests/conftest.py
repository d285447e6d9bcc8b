"""测试配置文件。

提供测试所需的fixtures、样例图片和可控的假压缩引擎。
"""

import asyncio
from io import BytesIO

import pytest
from PIL import Image, ImageDraw

from py_image_compress_session.config import reset_config
from py_image_compress_session.models import CompressionOptions, ImageFile


def make_image(
    name: str,
    size: tuple[int, int] = (64, 48),
    format: str = "PNG",
    mode: str = "RGB",
    color: tuple[int, ...] | str = "red",
) -> ImageFile:
    """用 Pillow 生成一张内存图片"""
    img = Image.new(mode, size, color=color)
    draw = ImageDraw.Draw(img)
    for i in range(0, min(size), 8):
        draw.rectangle([i, i, i + 4, i + 4], fill=(i * 5 % 256, i * 7 % 256, 90))
    buffer = BytesIO()
    img.save(buffer, format=format)
    return ImageFile(
        name=f"{name}.{format.lower()}",
        data=buffer.getvalue(),
        mime_type=Image.MIME[format],
    )


def make_noise_image(name: str, size: tuple[int, int] = (800, 600)) -> ImageFile:
    """生成难以压缩的噪声 PNG"""
    import os

    img = Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3))
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return ImageFile(name=f"{name}.png", data=buffer.getvalue(), mime_type="image/png")


def make_payload(name: str, size: int = 1024, mime_type: str = "image/png") -> ImageFile:
    """生成只用于编排测试的不透明负载（假引擎不解码）"""
    return ImageFile(name=name, data=b"x" * size, mime_type=mime_type)


class FakeEngine:
    """可控的假压缩引擎

    - delays: 图片名 -> 延迟秒数
    - failures: 会抛出异常的图片名
    - calls: 记录 (图片名, 选项) 调用顺序
    - started / finished: 记录开始与完成顺序
    """

    def __init__(
        self,
        delays: dict[str, float] | None = None,
        failures: set[str] | None = None,
    ):
        self.delays = delays or {}
        self.failures = failures or set()
        self.calls: list[tuple[str, CompressionOptions]] = []
        self.started: list[str] = []
        self.finished: list[str] = []

    async def compress(self, image: ImageFile, options: CompressionOptions) -> ImageFile:
        self.calls.append((image.name, options))
        self.started.append(image.name)
        await asyncio.sleep(self.delays.get(image.name, 0))
        self.finished.append(image.name)

        if image.name in self.failures:
            raise RuntimeError(f"引擎无法处理 {image.name}")

        return ImageFile(
            name=f"compressed-{image.name}",
            data=image.data[: max(1, image.size // 2)],
            mime_type=options.file_type,
        )


class GatedEngine:
    """由测试控制完成时机的假引擎"""

    def __init__(self):
        self.gates: dict[str, asyncio.Event] = {}
        self.failures: set[str] = set()

    def gate(self, name: str) -> asyncio.Event:
        return self.gates.setdefault(name, asyncio.Event())

    async def compress(self, image: ImageFile, options: CompressionOptions) -> ImageFile:
        await self.gate(image.name).wait()
        if image.name in self.failures:
            raise ValueError(f"损坏的图片: {image.name}")
        return ImageFile(
            name=f"compressed-{image.name}", data=image.data, mime_type=options.file_type
        )


def run(coro):
    """在新的事件循环中执行协程"""
    return asyncio.run(coro)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """每个测试使用干净的全局配置"""
    for key in (
        "PIC_MAX_SIZE_MB",
        "PIC_MAX_WIDTH_OR_HEIGHT",
        "PIC_FILE_TYPE",
        "PIC_USE_WEB_WORKER",
        "PIC_MAX_ITERATION",
        "PIC_MAX_WORKERS",
        "PIC_LOG_LEVEL",
        "PIC_ENABLE_FILE_LOGGING",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def sample_images() -> dict[str, ImageFile]:
    """不同类型的样例图片"""
    return {
        "small_png": make_image("small", (50, 50)),
        "large_png": make_image("large", (3000, 2000)),
        "portrait_jpeg": make_image("portrait", (1200, 2400), format="JPEG"),
        "transparent": make_image(
            "transparent", (400, 400), mode="RGBA", color=(0, 0, 0, 0)
        ),
    }
