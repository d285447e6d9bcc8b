#!/usr/bin/env python3
"""图像压缩会话演示脚本。

展示 py_image_compress_session 库的核心功能，包括：
- 单文件选择（输出 WebP）
- 多文件拖放（输出 JPEG，结果按输入顺序排列）
- 监听状态快照，渲染"压缩前/压缩后"两栏
"""

import asyncio
import sys
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageDraw

from py_image_compress_session import Coordinator, CoordinatorSnapshot, ImageFile
from py_image_compress_session.utils import (
    PathResolver,
    configure_logging,
    describe_snapshot,
    find_image_files,
    load_image_files,
)


def get_sample_images() -> list[ImageFile]:
    """读取 public/images 中的素材图片，没有时生成测试图片"""
    project_root = Path(__file__).parent.parent
    images = load_image_files(find_image_files(project_root / "public" / "images"))
    if images:
        print(f"📁 找到 {len(images)} 张素材图片")
        return images

    print("⚠️ 没有找到素材图片，将创建测试图像")
    generated = []
    for index, size in enumerate([(2400, 1600), (800, 600), (1200, 2400)]):
        img = Image.new("RGB", size, color=(40 * index, 120, 200))
        draw = ImageDraw.Draw(img)
        for x in range(0, size[0], 40):
            draw.line([(x, 0), (size[0] - x, size[1])], fill=(255, x % 256, 0), width=3)
        buffer = BytesIO()
        img.save(buffer, format="PNG")
        generated.append(
            ImageFile(name=f"sample_{index}.png", data=buffer.getvalue(), mime_type="image/png")
        )
    return generated


def get_output_dir(subdir: str = "") -> Path:
    """获取输出目录 - 使用项目的 tmp 目录"""
    project_root = Path(__file__).parent.parent
    output_dir = project_root / "tmp" / "examples"
    if subdir:
        output_dir = output_dir / subdir
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def save_results(images: list[ImageFile], subdir: str) -> None:
    output_dir = get_output_dir(subdir)
    for image in images:
        path = PathResolver.ensure_unique_path(output_dir / image.name)
        path.write_bytes(image.data)
        print(f"  💾 {path.name} ({image.get_size_human()})")


def render(snapshot: CoordinatorSnapshot) -> None:
    """简单的"渲染层"：打印每一次快照"""
    view = describe_snapshot(snapshot)
    single, batch = view["single"], view["batch"]
    print(
        f"  ⏳ 单图忙: {single['is_busy_single']} | 批量忙: {batch['is_busy_batch']} "
        f"| 批量结果: {len(batch['batch_results'])}"
    )


async def demo_single_upload(coordinator: Coordinator, image: ImageFile) -> None:
    """单文件选择演示"""
    print("=== 单文件选择演示 ===")
    print(f"📸 使用素材: {image.name} ({image.get_size_human()})")

    result = await coordinator.handle_image_upload(image)
    if result is None:
        print("❌ 压缩失败")
        return

    view = describe_snapshot(coordinator.snapshot())
    before, after = view["input_image"], view["single"]["single_result"]
    print(f"压缩前: {before.size_kb_text} {before.mime_type}")
    print(f"压缩后: {after.size_kb_text} {after.mime_type}")
    save_results([result], "single")


async def demo_multiple_upload(coordinator: Coordinator, images: list[ImageFile]) -> None:
    """多文件拖放演示，包含一张损坏的图片"""
    print("\n=== 多文件拖放演示 ===")
    broken = ImageFile(name="broken.png", data=b"not really a png", mime_type="image/png")
    inputs = [*images[:1], broken, *images[1:]]
    print(f"📁 拖放 {len(inputs)} 个文件: {', '.join(i.name for i in inputs)}")

    unsubscribe = coordinator.subscribe(render)
    try:
        results = await coordinator.handle_multiple_image_upload(inputs)
    finally:
        unsubscribe()

    print(f"批量处理: {len(results)}/{len(inputs)} 成功")
    save_results(results, "batch")


async def main() -> int:
    print("🖼️  图像压缩会话演示")
    print("=" * 50)
    configure_logging("INFO")

    images = get_sample_images()
    coordinator = Coordinator()
    try:
        await demo_single_upload(coordinator, images[0])
        await demo_multiple_upload(coordinator, images)
        print("\n✅ 所有演示完成！")
        return 0
    except Exception as e:
        print(f"\n❌ 演示过程中出现错误: {e}")
        return 1
    finally:
        coordinator.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
