"""Platform -- 单进程内的组件装配

构造顺序：EventBus → Store 组（以 EventBus 作为发布者）→ Agents → Registry
→ TaskQueue + TaskExecutor → MetricsSource → Orchestrator。
"""

from collections.abc import AsyncGenerator, Iterable, Mapping
from contextlib import asynccontextmanager
from typing import Any

import structlog

from crmpilot.agents.lead_agent import LeadAgent
from crmpilot.agents.registry import AgentRegistry
from crmpilot.agents.supply_agent import SupplyAgent
from crmpilot.agents.support_agent import SupportAgent
from crmpilot.core.config import SUPPLY_SWEEP_INTERVAL_S
from crmpilot.core.event_bus import EventBus
from crmpilot.core.models.inventory import InventoryItem
from crmpilot.core.models.lead import Lead
from crmpilot.core.models.ticket import SlaPolicy, Ticket
from crmpilot.core.store import StoreGroup, create_store_group
from crmpilot.core.store.protocols import MetricsSource
from crmpilot.core.task_queue import TaskQueue

from .config import OrchestratorConfig, load_orchestrator_config, load_sla_policy
from .executor import TaskExecutor
from .metrics_source import HttpMetricsSource, StoreMetricsSource
from .service import Orchestrator

log = structlog.get_logger()


class Platform:
    """一组已装配的组件"""

    def __init__(
        self,
        bus: EventBus,
        stores: StoreGroup,
        registry: AgentRegistry,
        queue: TaskQueue,
        executor: TaskExecutor,
        orchestrator: Orchestrator,
        lead_agent: LeadAgent,
        support_agent: SupportAgent,
        supply_agent: SupplyAgent,
    ) -> None:
        self.bus = bus
        self.stores = stores
        self.registry = registry
        self.queue = queue
        self.executor = executor
        self.orchestrator = orchestrator
        self.lead_agent = lead_agent
        self.support_agent = support_agent
        self.supply_agent = supply_agent

    async def start(self) -> None:
        """初始化编排器并启动全部 Agent"""
        await self.orchestrator.initialize()
        self.registry.start_all()
        log.info("platform_started", agents=[a.name for a in self.registry.list_all()])

    async def stop(self) -> None:
        """先停止 Agent，再关闭编排器，最后等待在途的异步订阅者"""
        self.registry.stop_all()
        await self.orchestrator.shutdown()
        await self.bus.wait_idle()
        log.info("platform_stopped")


def _select_metrics_source(
    config: OrchestratorConfig,
    stores: StoreGroup,
    sla_policy: SlaPolicy,
) -> MetricsSource:
    if config.metrics_mode == "http":
        return HttpMetricsSource(config.metrics_url, timeout_s=config.metrics_timeout_s)
    return StoreMetricsSource(
        stores.lead_store,
        stores.ticket_store,
        stores.inventory_store,
        sla_policy=sla_policy,
    )


def create_platform(
    config: OrchestratorConfig | None = None,
    *,
    leads: Iterable[Lead | Mapping[str, Any]] = (),
    tickets: Iterable[Ticket | Mapping[str, Any]] = (),
    items: Iterable[InventoryItem] = (),
    metrics_source: MetricsSource | None = None,
    sla_policy: SlaPolicy | None = None,
    sweep_interval_s: float = SUPPLY_SWEEP_INTERVAL_S,
    bus: EventBus | None = None,
) -> Platform:
    """装配平台组件

    Args:
        config: 编排器配置，None 时从环境变量加载
        leads: 种子线索（不发布事件）
        tickets: 种子工单
        items: 种子库存
        metrics_source: 指标源，None 时按 config.metrics_mode 选择
        sla_policy: SLA 策略，None 时从环境变量加载
        sweep_interval_s: SupplyAgent 巡检周期
        bus: 事件总线，None 时新建

    Returns:
        尚未启动的 Platform
    """
    config = config or load_orchestrator_config()
    sla_policy = sla_policy or load_sla_policy()
    bus = bus or EventBus()

    stores = create_store_group(bus, leads=leads, tickets=tickets, items=items)

    lead_agent = LeadAgent(bus, stores.lead_store)
    support_agent = SupportAgent(bus, processing_delay_s=config.processing_delay_s)
    supply_agent = SupplyAgent(bus, stores.inventory_store, sweep_interval_s=sweep_interval_s)
    registry = AgentRegistry([lead_agent, support_agent, supply_agent])

    executor = TaskExecutor(stores.ticket_store, stores.notification_sink)
    queue = TaskQueue(runner=executor)

    orchestrator = Orchestrator(
        bus,
        queue,
        registry,
        lead_agent,
        support_agent,
        supply_agent,
        stores.lead_store,
        stores.ticket_store,
        stores.inventory_store,
        metrics_source=metrics_source or _select_metrics_source(config, stores, sla_policy),
        config=config,
    )

    return Platform(
        bus=bus,
        stores=stores,
        registry=registry,
        queue=queue,
        executor=executor,
        orchestrator=orchestrator,
        lead_agent=lead_agent,
        support_agent=support_agent,
        supply_agent=supply_agent,
    )


@asynccontextmanager
async def platform_lifespan(
    platform: Platform | None = None,
    **kwargs: Any,
) -> AsyncGenerator[Platform, None]:
    """平台生命周期：进入时 start，退出时 stop

    Args:
        platform: 已装配的平台，None 时以 kwargs 调用 create_platform
    """
    platform = platform or create_platform(**kwargs)
    await platform.start()
    try:
        yield platform
    finally:
        await platform.stop()
