"""批量执行器模块。

对有序输入中的每一项并发执行压缩操作，等待全部结束后按输入顺序重新组装结果。
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence

from ..exceptions import ErrorHandler
from ..models.compression_result import BatchResult, CompressionOutcome
from ..models.image import ImageFile
from ..utils.logging_helpers import get_logger


logger = get_logger()

ItemOperation = Callable[[ImageFile], Awaitable[CompressionOutcome]]


class BatchRunner:
    """批量并发执行器

    所有项同时启动，不分组、不流水线；单项失败只会被记录并剔除，
    执行器本身总是正常返回。结果顺序只取决于输入顺序，与完成先后无关。
    """

    def __init__(self, operation_name: str = "批量压缩"):
        self.operation_name = operation_name

    async def run(
        self, inputs: Sequence[ImageFile], op: ItemOperation
    ) -> list[ImageFile]:
        """执行批量操作，返回按输入顺序排列的成功输出

        Args:
            inputs: 有序输入
            op: 单项异步操作，返回 CompressionOutcome 或抛出异常

        Returns:
            list[ImageFile]: 成功项的输出，失败项被剔除
        """
        result = await self.run_detailed(inputs, op)
        return result.get_successful_images()

    async def run_detailed(
        self, inputs: Sequence[ImageFile], op: ItemOperation
    ) -> BatchResult:
        """执行批量操作，返回包含每一项结局的批量结果

        Args:
            inputs: 有序输入
            op: 单项异步操作

        Returns:
            BatchResult: outcomes 与 inputs 一一对应
        """
        items = list(inputs)
        if not items:
            return BatchResult(success=True, outcomes=[])

        # 按输入顺序依次启动，全部并发
        tasks = [asyncio.ensure_future(op(item)) for item in items]
        settled = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes = [
            self._to_outcome(item, result) for item, result in zip(items, settled)
        ]
        batch_result = BatchResult(success=True, outcomes=outcomes)

        logger.debug(
            f"{self.operation_name}: 成功 {batch_result.get_success_count()}"
            f"/{batch_result.get_total_count()}"
        )
        return batch_result

    def _to_outcome(
        self, item: ImageFile, result: CompressionOutcome | BaseException
    ) -> CompressionOutcome:
        """把单项的结算值转换为结局，异常视为该项失败"""
        if isinstance(result, BaseException):
            return ErrorHandler.handle_item_failure(result, item, self.operation_name)

        if not isinstance(result, CompressionOutcome):
            return ErrorHandler.handle_item_failure(
                TypeError(f"单项操作返回了意外的类型: {type(result).__name__}"),
                item,
                self.operation_name,
            )

        if not result.success:
            logger.warning(f"跳过失败项: {item.name} - {result.error}")
        return result
