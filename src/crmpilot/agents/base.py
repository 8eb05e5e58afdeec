"""Agent 基础设施 -- 统一的 start/stop/get_stats 能力集

Agent 只持有计算逻辑和事件订阅，不拥有领域数据；
start() 时向事件总线注册自己的事件处理器，stop() 时全部注销。
"""

from typing import Any, Protocol

import structlog

from crmpilot.core.event_bus import EventBus, Listener

log = structlog.get_logger()


class Agent(Protocol):
    """Agent 能力接口"""

    name: str
    version: str
    capabilities: tuple[str, ...]

    @property
    def is_active(self) -> bool:
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def get_stats(self) -> dict[str, Any]:
        ...


class BaseAgent:
    """Agent 基类

    start/stop 幂等；子类通过 event_handlers() 声明订阅，
    通过 _on_start/_on_stop 挂载额外的生命周期逻辑。
    """

    name: str = "agent"
    version: str = "1.0.0"
    capabilities: tuple[str, ...] = ()

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._active = False
        self._unsubscribers: list = []

    @property
    def is_active(self) -> bool:
        return self._active

    def event_handlers(self) -> dict[str, Listener]:
        """事件类型 -> 处理函数"""
        return {}

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        for event_type, handler in self.event_handlers().items():
            self._unsubscribers.append(self._bus.on(event_type, handler))
        self._on_start()
        log.info("agent_started", agent=self.name, version=self.version)

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._on_stop()
        log.info("agent_stopped", agent=self.name)

    def get_stats(self) -> dict[str, Any]:
        return {"name": self.name, "active": self._active}

    def _on_start(self) -> None:
        pass

    def _on_stop(self) -> None:
        pass
