"""AgentRegistry -- Agent 注册表与生命周期管理

按 name 索引 Agent；start_all/stop_all 按注册顺序启动、按逆序停止。
"""

from typing import Any

import structlog
from pydantic import BaseModel, Field

from .base import Agent

log = structlog.get_logger()


class AgentStatus(BaseModel):
    """单个 Agent 的状态快照"""

    name: str = Field(description="Agent 名称")
    version: str = Field(description="Agent 版本")
    status: str = Field(description="active / inactive")
    capabilities: list[str] = Field(default_factory=list)
    metrics: dict[str, Any] = Field(default_factory=dict, description="get_stats() 输出")


class AgentRegistry:
    """Agent 注册表

    同名 Agent 重复注册时覆盖旧实例（旧实例先停止）。
    """

    def __init__(self, agents: list[Agent] | None = None) -> None:
        self._agents: dict[str, Agent] = {}
        for agent in agents or []:
            self.register(agent)

    def register(self, agent: Agent) -> None:
        previous = self._agents.get(agent.name)
        if previous is not None and previous is not agent:
            previous.stop()
            log.warning("agent_replaced", agent=agent.name)
        self._agents[agent.name] = agent

    def unregister(self, name: str) -> Agent | None:
        agent = self._agents.pop(name, None)
        if agent is not None:
            agent.stop()
        return agent

    def get(self, name: str) -> Agent | None:
        return self._agents.get(name)

    def list_all(self) -> list[Agent]:
        """按注册顺序列出全部 Agent"""
        return list(self._agents.values())

    def start_all(self) -> None:
        for agent in self._agents.values():
            agent.start()

    def stop_all(self) -> None:
        for agent in reversed(list(self._agents.values())):
            agent.stop()

    def status(self) -> dict[str, AgentStatus]:
        """全部 Agent 的状态快照（name -> AgentStatus）"""
        return {
            name: AgentStatus(
                name=agent.name,
                version=agent.version,
                status="active" if agent.is_active else "inactive",
                capabilities=list(agent.capabilities),
                metrics=agent.get_stats(),
            )
            for name, agent in self._agents.items()
        }

    def __contains__(self, name: object) -> bool:
        return name in self._agents

    def __len__(self) -> int:
        return len(self._agents)
