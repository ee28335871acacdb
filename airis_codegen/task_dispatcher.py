"""
Task Dispatcher — asynchronous request/response over a single background worker

Tasks are queued with a correlation id, executed in submission order by one
worker thread, and resolved back on the submitting event loop. Each task
carries its own deadline; a task that times out is removed from the pending
map and any later result for it is discarded.
"""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
import uuid
from typing import Callable, Dict, Optional

from .errors import DispatcherUnavailableError, TaskFailedError, TaskTimeoutError
from .worker_tasks import TASK_HANDLERS

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

_STOP = object()


class _Pending:
    __slots__ = ("future", "task_type", "loop", "timer")

    def __init__(self, future: asyncio.Future, task_type: str, loop: asyncio.AbstractEventLoop):
        self.future = future
        self.task_type = task_type
        self.loop = loop
        self.timer: Optional[asyncio.TimerHandle] = None


class TaskDispatcher:
    """Offloads pure CPU-bound tasks to a worker thread.

    Usage::

        async with TaskDispatcher(timeout=10) as dispatcher:
            result = await dispatcher.submit("optimize", {"code": source})
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, handlers: Optional[Dict[str, Callable[[dict], dict]]] = None):
        self.timeout = timeout
        self.handlers = dict(TASK_HANDLERS if handlers is None else handlers)
        self._queue: "queue.Queue" = queue.Queue()
        self._pending: Dict[str, _Pending] = {}
        self._lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._running = False

    # ── lifecycle ─────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def start(self) -> None:
        if self._running:
            return
        self._worker = threading.Thread(target=self._run, name="task-dispatcher", daemon=True)
        self._worker.start()
        self._running = True
        logger.debug("task dispatcher started (timeout=%ss)", self.timeout)

    async def close(self) -> None:
        """Stop the worker; tasks still pending are rejected."""
        if not self._running:
            return
        self._running = False
        self._queue.put(_STOP)
        with self._lock:
            pending = list(self._pending.items())
            self._pending.clear()
        for task_id, entry in pending:
            if entry.timer is not None:
                entry.timer.cancel()
            if not entry.future.done():
                entry.future.set_exception(DispatcherUnavailableError(f"dispatcher closed before {entry.task_type} ({task_id}) finished"))
        worker = self._worker
        self._worker = None
        if worker is not None and worker is not threading.current_thread():
            # 工作執行緒可能卡在長任務上，不無限等待
            await asyncio.get_running_loop().run_in_executor(None, worker.join, 1.0)
        logger.debug("task dispatcher closed (%d pending rejected)", len(pending))

    async def __aenter__(self) -> "TaskDispatcher":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ── submission ────────────────────────────────────────────

    async def submit(self, task_type: str, payload: dict, timeout: Optional[float] = None) -> dict:
        if not self._running:
            raise DispatcherUnavailableError("task dispatcher is not running")

        loop = asyncio.get_running_loop()
        task_id = uuid.uuid4().hex
        deadline = self.timeout if timeout is None else timeout
        entry = _Pending(loop.create_future(), task_type, loop)
        with self._lock:
            self._pending[task_id] = entry
        entry.timer = loop.call_later(deadline, self._expire, task_id, deadline)
        self._queue.put((task_id, task_type, payload))
        logger.debug("submitted %s (%s)", task_type, task_id)
        return await entry.future

    def _take(self, task_id: str) -> Optional[_Pending]:
        with self._lock:
            return self._pending.pop(task_id, None)

    def _expire(self, task_id: str, deadline: float) -> None:
        entry = self._take(task_id)
        if entry is None or entry.future.done():
            return
        logger.warning("task %s (%s) timed out after %ss", entry.task_type, task_id, deadline)
        entry.future.set_exception(TaskTimeoutError(task_id, entry.task_type, deadline))

    def _deliver(self, task_id: str, ok: bool, value) -> None:
        entry = self._take(task_id)
        if entry is None:
            logger.debug("discarding late result for %s", task_id)
            return
        if entry.timer is not None:
            entry.timer.cancel()
        if entry.future.done():
            return
        if ok:
            entry.future.set_result(value)
        else:
            entry.future.set_exception(TaskFailedError(task_id, entry.task_type, value))

    # ── worker ────────────────────────────────────────────────

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            task_id, task_type, payload = item
            with self._lock:
                entry = self._pending.get(task_id)
            if entry is None:
                # 已逾時或已關閉，不必再執行
                continue

            handler = self.handlers.get(task_type)
            if handler is None:
                ok, value = False, f"Unknown task type: {task_type}"
            else:
                try:
                    ok, value = True, handler(payload)
                except Exception as exc:  # 錯誤回報給呼叫端
                    ok, value = False, f"{type(exc).__name__}: {exc}"

            try:
                entry.loop.call_soon_threadsafe(self._deliver, task_id, ok, value)
            except RuntimeError:
                # 事件迴圈已關閉
                logger.debug("event loop closed; dropping result for %s", task_id)
