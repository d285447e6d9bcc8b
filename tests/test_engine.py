"""Pillow 压缩引擎测试"""

from io import BytesIO

import pytest
from PIL import Image

from py_image_compress_session.core.compression_engine import (
    CompressionEngine,
    PillowCompressionEngine,
    compress_image_data,
)
from py_image_compress_session.core.formats import (
    FormatProcessor,
    get_jpeg_params,
    get_save_parameters,
    get_webp_params,
)
from py_image_compress_session.engine.concurrent_executor import ConcurrentExecutor
from py_image_compress_session.exceptions import (
    UnsupportedFormatError,
    ValidationError,
)
from py_image_compress_session.models import CompressionOptions, ImageFile
from py_image_compress_session.session import CompressionSession
from tests.conftest import make_noise_image, run


def open_output(image: ImageFile) -> Image.Image:
    img = Image.open(BytesIO(image.data))
    img.load()
    return img


@pytest.fixture
def engine():
    engine = PillowCompressionEngine(ConcurrentExecutor(max_workers=2, force_executor_type="thread"))
    yield engine
    engine.close()


class TestPillowEngine:
    """默认引擎测试"""

    def test_implements_engine_protocol(self, engine):
        """测试默认引擎满足引擎接口"""
        assert isinstance(engine, CompressionEngine)

    def test_longest_side_capped(self, engine, sample_images):
        """测试最长边不超过上限并转换为目标类型"""
        options = CompressionOptions(file_type="image/jpeg")

        result = run(engine.compress(sample_images["large_png"], options))

        img = open_output(result)
        assert img.format == "JPEG"
        assert max(img.size) <= 1920
        assert result.mime_type == "image/jpeg"
        assert result.name == "large_compress.jpg"

    def test_portrait_to_webp(self, engine, sample_images):
        """测试竖图按高度缩放并输出 WebP"""
        options = CompressionOptions(file_type="image/webp", max_size_mb=5)

        result = run(engine.compress(sample_images["portrait_jpeg"], options))

        img = open_output(result)
        assert img.format == "WEBP"
        assert img.size == (960, 1920)
        assert result.name == "portrait_compress.webp"

    def test_small_image_not_upscaled(self, engine, sample_images):
        """测试小图不会被放大"""
        options = CompressionOptions(file_type="image/webp")

        result = run(engine.compress(sample_images["small_png"], options))

        assert open_output(result).size == (50, 50)

    def test_passthrough_when_constraints_met(self, sample_images):
        """测试已满足约束的输入原样返回"""
        image = sample_images["small_png"]
        options = CompressionOptions(file_type="image/png", use_web_worker=False)

        assert compress_image_data(image, options) is image

    def test_iterations_never_grow_output(self):
        """测试迭代压缩的结果不大于一次编码的结果"""
        image = make_noise_image("noise")
        options = CompressionOptions(file_type="image/jpeg", max_size_mb=0.01, use_web_worker=False)

        single_pass = compress_image_data(image, options, max_iteration=0)
        iterated = compress_image_data(image, options, max_iteration=10)

        assert iterated.size <= single_pass.size
        assert iterated.size < image.size

    def test_high_detail_jpeg_encodes(self):
        """测试高细节图片一次编码为 JPEG 也能成功"""
        image = make_noise_image("noise", size=(1200, 900))
        options = CompressionOptions(file_type="image/jpeg", max_size_mb=0.01, use_web_worker=False)

        result = compress_image_data(image, options, max_iteration=0)

        img = open_output(result)
        assert img.format == "JPEG"
        assert img.size == (1200, 900)

    def test_stops_once_under_target(self):
        """测试第一次编码满足目标大小时不再缩小"""
        image = make_noise_image("noise", size=(200, 150))
        options = CompressionOptions(file_type="image/jpeg", max_size_mb=10, use_web_worker=False)

        result = compress_image_data(image, options)

        assert open_output(result).size == (200, 150)

    def test_transparent_to_jpeg(self, engine, sample_images):
        """测试透明图片转 JPEG 时合成白色背景"""
        options = CompressionOptions(file_type="image/jpeg")

        result = run(engine.compress(sample_images["transparent"], options))

        img = open_output(result)
        assert img.mode == "RGB"
        assert all(channel >= 240 for channel in img.getpixel((399, 0)))

    def test_inline_when_worker_disabled(self, sample_images):
        """测试关闭后台执行时直接在事件循环中编码"""

        class UnusableExecutor(ConcurrentExecutor):
            async def run(self, func, *args, payload_size=0):
                raise AssertionError("不应使用后台执行器")

        engine = PillowCompressionEngine(UnusableExecutor())
        options = CompressionOptions(file_type="image/webp", use_web_worker=False)

        result = run(engine.compress(sample_images["small_png"], options))

        assert result.mime_type == "image/webp"

    def test_corrupt_input(self, engine):
        """测试无法解码的输入"""
        broken = ImageFile(name="broken.png", data=b"not an image", mime_type="image/png")

        with pytest.raises(UnsupportedFormatError):
            run(engine.compress(broken, CompressionOptions()))

    def test_empty_input(self):
        """测试空输入"""
        empty = ImageFile(name="empty.png", data=b"", mime_type="image/png")

        with pytest.raises(ValidationError):
            compress_image_data(empty, CompressionOptions())

    def test_invalid_engine_arguments(self):
        """测试非法的引擎参数"""
        with pytest.raises(ValidationError):
            PillowCompressionEngine(initial_quality=150)
        with pytest.raises(ValidationError):
            PillowCompressionEngine(max_iteration=-1)

    def test_corrupt_item_isolated_in_session(self, engine, sample_images):
        """测试真实引擎下损坏的图片只影响自身"""
        session = CompressionSession(engine=engine)
        broken = ImageFile(name="broken.png", data=b"garbage", mime_type="image/png")

        result = run(
            session.compress_many([sample_images["small_png"], broken, sample_images["large_png"]])
        )

        assert [i.name for i in result] == ["small_compress.jpg", "large_compress.jpg"]


class TestFormats:
    """格式参数测试"""

    def test_jpeg_params(self):
        """测试 JPEG 质量上限与子采样"""
        assert get_jpeg_params(100)["quality"] == 95
        assert get_jpeg_params(90)["subsampling"] == 1
        assert get_jpeg_params(50)["subsampling"] == 2

    def test_webp_alpha_quality(self):
        """测试 WebP 透明通道质量"""
        assert get_webp_params(90)["alpha_quality"] == 100
        assert get_webp_params(75)["alpha_quality"] == 85
        assert get_webp_params(40)["alpha_quality"] == 40

    def test_save_parameters_include_format(self):
        """测试保存参数包含格式名"""
        assert get_save_parameters("PNG", 80)["format"] == "PNG"
        assert "quality" not in get_save_parameters("PNG", 80)

    def test_prepare_palette_for_jpeg(self):
        """测试调色板图片转 JPEG"""
        img = Image.new("P", (10, 10))

        assert FormatProcessor().prepare_for_format(img, "JPEG").mode == "RGB"


class TestConcurrentExecutor:
    """后台执行器测试"""

    def test_runs_function_in_background(self):
        """测试在后台执行并返回结果"""
        with ConcurrentExecutor(max_workers=1, force_executor_type="thread") as executor:
            assert run(executor.run(pow, 2, 10)) == 1024

    def test_exceptions_propagate(self):
        """测试后台函数的异常原样传播"""
        with ConcurrentExecutor(force_executor_type="thread") as executor:
            with pytest.raises(ZeroDivisionError):
                run(executor.run(divmod, 1, 0))

    def test_executor_type_by_payload(self):
        """测试按数据大小选择执行器类型"""
        executor = ConcurrentExecutor()

        assert executor._choose_executor_type(1024) == "thread"
        assert executor._choose_executor_type(50 * 1024 * 1024) == "process"

    def test_invalid_arguments(self):
        """测试非法参数"""
        with pytest.raises(ValidationError):
            ConcurrentExecutor(max_workers=-1)
        with pytest.raises(ValidationError):
            ConcurrentExecutor(force_executor_type="gpu")
