"""批量执行器测试。

测试并发启动、按输入顺序组装和失败隔离。
"""

import asyncio

from py_image_compress_session.engine.batch import BatchRunner
from py_image_compress_session.models import CompressionOutcome, ImageFile
from tests.conftest import make_payload, run


def make_op(delays: dict[str, float] | None = None, failures: set[str] | None = None):
    """构造单项操作：按名称延迟，按名称返回失败结局"""
    delays = delays or {}
    failures = failures or set()
    started: list[str] = []

    async def op(image: ImageFile) -> CompressionOutcome:
        started.append(image.name)
        await asyncio.sleep(delays.get(image.name, 0))
        if image.name in failures:
            return CompressionOutcome.failed(image, "engine rejected")
        return CompressionOutcome.ok(
            image, ImageFile(name=f"out-{image.name}", data=b"z", mime_type="image/jpeg")
        )

    op.started = started
    return op


class TestBatchRunner:
    """批量执行器核心测试"""

    def test_order_independent_of_completion(self):
        """测试第一项最慢时结果仍按输入顺序排列"""
        inputs = [make_payload(n) for n in ("a", "b", "c")]
        op = make_op(delays={"a": 0.05, "b": 0.01, "c": 0})

        result = run(BatchRunner().run(inputs, op))

        assert [i.name for i in result] == ["out-a", "out-b", "out-c"]

    def test_failed_outcomes_filtered(self):
        """测试失败结局被剔除，其余保持顺序"""
        inputs = [make_payload(n) for n in ("a", "b", "c", "d")]
        op = make_op(failures={"b", "d"})

        result = run(BatchRunner().run(inputs, op))

        assert [i.name for i in result] == ["out-a", "out-c"]

    def test_raised_exceptions_isolated(self):
        """测试单项抛出异常不影响其他项，执行器本身不抛出"""
        inputs = [make_payload(n) for n in ("a", "b", "c")]

        async def op(image: ImageFile) -> CompressionOutcome:
            if image.name == "b":
                raise MemoryError("out of memory")
            await asyncio.sleep(0.01)
            return CompressionOutcome.ok(image, image)

        detailed = run(BatchRunner().run_detailed(inputs, op))

        assert detailed.success
        assert [o.input_name for o in detailed.outcomes] == ["a", "b", "c"]
        assert [o.success for o in detailed.outcomes] == [True, False, True]
        assert "out of memory" in detailed.outcomes[1].error

    def test_all_failed_resolves_empty(self):
        """测试全部失败时返回空结果而不是抛出"""
        inputs = [make_payload(n) for n in ("a", "b")]
        op = make_op(failures={"a", "b"})

        assert run(BatchRunner().run(inputs, op)) == []

    def test_empty_inputs(self):
        """测试空输入"""
        detailed = run(BatchRunner().run_detailed([], make_op()))

        assert detailed.success
        assert detailed.outcomes == []

    def test_all_items_started_before_any_finishes(self):
        """测试所有项同时启动，而不是逐个等待"""
        inputs = [make_payload(n) for n in ("a", "b", "c")]
        events: list[str] = []

        async def op(image: ImageFile) -> CompressionOutcome:
            events.append(f"start-{image.name}")
            await asyncio.sleep(0.01)
            events.append(f"end-{image.name}")
            return CompressionOutcome.ok(image, image)

        run(BatchRunner().run(inputs, op))

        assert events[:3] == ["start-a", "start-b", "start-c"]
        assert set(events[3:]) == {"end-a", "end-b", "end-c"}

    def test_waits_for_all_items(self):
        """测试在所有项结束前不返回部分结果"""
        inputs = [make_payload(n) for n in ("fast", "slow")]
        op = make_op(delays={"slow": 0.05})

        result = run(BatchRunner().run(inputs, op))

        assert len(result) == 2
        assert op.started == ["fast", "slow"]

    def test_unexpected_return_type_is_failure(self):
        """测试单项返回非结局对象时视为失败"""
        inputs = [make_payload("a")]

        async def op(image: ImageFile):
            return "not an outcome"

        detailed = run(BatchRunner().run_detailed(inputs, op))

        assert detailed.get_failure_count() == 1
