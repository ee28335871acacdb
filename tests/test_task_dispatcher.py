"""
TaskDispatcher 單元測試：請求/回應對應、錯誤回報、逾時與關閉。
"""
import asyncio
import threading

import pytest

from airis_codegen.errors import DispatcherUnavailableError, TaskFailedError, TaskTimeoutError
from airis_codegen.task_dispatcher import TaskDispatcher


def _echo(payload):
    return {"echo": payload["value"]}


def _boom(payload):
    raise ValueError("bad payload")


class TestSubmit:

    def test_success_returns_handler_result(self):
        async def run():
            async with TaskDispatcher(handlers={"echo": _echo}) as d:
                return await d.submit("echo", {"value": 42}), d.pending_count

        result, pending = asyncio.run(run())
        assert result == {"echo": 42}
        assert pending == 0

    def test_concurrent_results_correlate(self):
        async def run():
            async with TaskDispatcher(handlers={"echo": _echo}) as d:
                return await asyncio.gather(*(d.submit("echo", {"value": i}) for i in range(20)))

        results = asyncio.run(run())
        assert [r["echo"] for r in results] == list(range(20))

    def test_handler_error_becomes_task_failed(self):
        async def run():
            async with TaskDispatcher(handlers={"boom": _boom}) as d:
                await d.submit("boom", {})

        with pytest.raises(TaskFailedError) as exc_info:
            asyncio.run(run())
        assert str(exc_info.value) == "ValueError: bad payload"
        assert exc_info.value.task_type == "boom"

    def test_unknown_task_type_fails(self):
        async def run():
            async with TaskDispatcher(handlers={}) as d:
                await d.submit("nope", {})

        with pytest.raises(TaskFailedError, match="Unknown task type"):
            asyncio.run(run())

    def test_default_handlers_cover_pool_tasks(self):
        d = TaskDispatcher()
        assert set(d.handlers) == {"parse-scene", "transform", "optimize", "validate", "analyze-complexity"}


class TestTimeout:

    def test_timeout_discards_late_result(self):
        release = threading.Event()

        def slow(payload):
            release.wait(2)
            return {"late": True}

        async def run():
            d = TaskDispatcher(timeout=0.05, handlers={"slow": slow})
            await d.start()
            try:
                with pytest.raises(TaskTimeoutError) as exc_info:
                    await d.submit("slow", {})
                assert d.pending_count == 0
                release.set()
                # 給工作執行緒時間把遲到的結果送回
                await asyncio.sleep(0.1)
                assert d.pending_count == 0
                return exc_info.value
            finally:
                await d.close()

        err = asyncio.run(run())
        assert err.task_type == "slow"
        assert err.timeout == 0.05
        assert "timeout" in str(err)

    def test_per_call_timeout_override(self):
        release = threading.Event()

        def slow(payload):
            release.wait(2)
            return {}

        async def run():
            async with TaskDispatcher(timeout=30, handlers={"slow": slow}) as d:
                try:
                    await d.submit("slow", {}, timeout=0.05)
                finally:
                    release.set()

        with pytest.raises(TaskTimeoutError):
            asyncio.run(run())


class TestLifecycle:

    def test_submit_before_start_rejected(self):
        async def run():
            await TaskDispatcher().submit("optimize", {"code": ""})

        with pytest.raises(DispatcherUnavailableError):
            asyncio.run(run())

    def test_close_rejects_pending(self):
        release = threading.Event()

        def slow(payload):
            release.wait(2)
            return {}

        async def run():
            d = TaskDispatcher(handlers={"slow": slow})
            await d.start()
            task = asyncio.ensure_future(d.submit("slow", {}))
            await asyncio.sleep(0.05)
            release.set()
            await d.close()
            with pytest.raises(DispatcherUnavailableError):
                await task
            return d.running, d.pending_count

        running, pending = asyncio.run(run())
        assert running is False
        assert pending == 0

    def test_close_is_idempotent(self):
        async def run():
            d = TaskDispatcher()
            await d.start()
            await d.close()
            await d.close()
            return d.running

        assert asyncio.run(run()) is False

    def test_submit_after_close_rejected(self):
        async def run():
            d = TaskDispatcher()
            await d.start()
            await d.close()
            await d.submit("optimize", {"code": ""})

        with pytest.raises(DispatcherUnavailableError):
            asyncio.run(run())
