"""EventBus -- 进程内发布/订阅事件总线

按事件类型字符串分发，保留有界 FIFO 历史。
emit 同步调用订阅者；订阅者返回 awaitable 时调度到当前事件循环。
单个订阅者失败只记录日志，不影响其他订阅者与 emit 调用方。
"""

import asyncio
import inspect
from collections import deque
from collections.abc import Callable
from typing import Any

import structlog

from .config import EVENT_HISTORY_MAX, EVENT_MAX_REENTRY
from .models.event import Event

log = structlog.get_logger()

Listener = Callable[[Event], Any]


class EventBus:
    """事件总线"""

    def __init__(
        self,
        history_max: int = EVENT_HISTORY_MAX,
        max_reentry: int = EVENT_MAX_REENTRY,
    ) -> None:
        """
        Args:
            history_max: 历史容量，超出后丢弃最旧事件
            max_reentry: 同一类型事件在派发期间允许的重入层数
        """
        self._listeners: dict[str, list[Listener]] = {}
        self._history: deque[Event] = deque(maxlen=history_max)
        self._max_reentry = max_reentry
        # event type -> 当前正在派发的层数
        self._dispatching: dict[str, int] = {}
        # 异步订阅者的在途任务，持有引用防止被 GC
        self._pending: set[asyncio.Future] = set()

    def emit(
        self,
        type: str,
        payload: dict[str, Any] | None = None,
        source: str = "system",
    ) -> Event:
        """发布事件

        先写入历史，再按订阅顺序同步调用订阅者（遍历订阅列表快照）。

        Returns:
            已创建的 Event
        """
        event = Event(type=str(type), payload=dict(payload or {}), source=source)
        self._history.append(event)

        depth = self._dispatching.get(event.type, 0)
        if depth > self._max_reentry:
            log.warning(
                "event_cycle_suppressed",
                event_type=event.type,
                event_id=event.event_id,
                depth=depth,
            )
            return event

        self._dispatching[event.type] = depth + 1
        try:
            for listener in list(self._listeners.get(event.type, ())):
                self._invoke(listener, event)
        finally:
            if depth == 0:
                del self._dispatching[event.type]
            else:
                self._dispatching[event.type] = depth

        return event

    def on(self, type: str, callback: Listener) -> Callable[[], None]:
        """订阅事件类型

        Returns:
            取消订阅函数
        """
        event_type = str(type)
        self._listeners.setdefault(event_type, []).append(callback)

        def unsubscribe() -> None:
            self.off(event_type, callback)

        return unsubscribe

    def off(self, type: str, callback: Listener | None = None) -> None:
        """取消订阅；callback 为 None 时移除该类型全部订阅者"""
        event_type = str(type)
        if callback is None:
            self._listeners.pop(event_type, None)
            return

        listeners = self._listeners.get(event_type)
        if not listeners:
            return
        try:
            listeners.remove(callback)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event_type]

    def listener_count(self, type: str) -> int:
        return len(self._listeners.get(str(type), ()))

    def get_events_by_type(self, type: str) -> list[Event]:
        """按类型查询历史事件（最新在前）"""
        event_type = str(type)
        return [e for e in reversed(self._history) if e.type == event_type]

    def get_recent_events(self, n: int = 10) -> list[Event]:
        """最近 n 条事件（最新在前）"""
        if n <= 0:
            return []
        return list(reversed(self._history))[:n]

    @property
    def history(self) -> list[Event]:
        """完整历史（最旧在前）"""
        return list(self._history)

    def clear_listeners(self) -> None:
        self._listeners.clear()

    def clear_history(self) -> None:
        self._history.clear()

    async def wait_idle(self) -> None:
        """等待所有异步订阅者执行完毕"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _invoke(self, listener: Listener, event: Event) -> None:
        try:
            result = listener(event)
        except Exception as e:
            log.error(
                "event_listener_failed",
                event_type=event.type,
                event_id=event.event_id,
                listener=getattr(listener, "__qualname__", repr(listener)),
                error=str(e),
                exc_info=True,
            )
            return

        if not inspect.isawaitable(result):
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(result):
                result.close()
            log.warning(
                "event_listener_not_scheduled",
                event_type=event.type,
                reason="no running event loop",
            )
            return

        future = asyncio.ensure_future(result, loop=loop)
        self._pending.add(future)
        future.add_done_callback(
            lambda f, event=event: self._on_async_listener_done(f, event)
        )

    def _on_async_listener_done(self, future: asyncio.Future, event: Event) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            log.error(
                "event_listener_failed",
                event_type=event.type,
                event_id=event.event_id,
                error=str(exc),
            )
