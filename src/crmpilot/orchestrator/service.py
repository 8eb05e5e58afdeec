"""Orchestrator -- 跨 Agent 工作流编排

职责：
1. 订阅路由事件，把事件转换为任务写入 TaskQueue
2. 线索 / 工单 / 库存 / 采购单工作流（*.processing_started → completed | failed）
3. 批处理：按 max_concurrent 分组，组内并发、组间串行
4. 维护指标快照并发布 metrics.updated
"""

import asyncio
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import BaseModel

from crmpilot.agents.lead_agent import LeadAgent
from crmpilot.agents.registry import AgentRegistry
from crmpilot.agents.supply_agent import SupplyAgent
from crmpilot.agents.support_agent import SupportAgent
from crmpilot.core.event_bus import EventBus
from crmpilot.core.exceptions import UnknownBatchTypeError
from crmpilot.core.models.enums import (
    Decision,
    EventType,
    RiskLevel,
    TicketPriority,
    TicketStatus,
)
from crmpilot.core.models.event import Event
from crmpilot.core.models.inventory import InventoryItem, PurchaseOrder
from crmpilot.core.models.lead import Lead
from crmpilot.core.models.metrics import MetricsSnapshot
from crmpilot.core.models.payloads import WorkflowFailedPayload
from crmpilot.core.models.results import (
    BatchResult,
    InventoryAnalysis,
    QualificationResult,
    SupportReply,
)
from crmpilot.core.models.task import TaskOutcome
from crmpilot.core.models.ticket import Ticket
from crmpilot.core.store.protocols import (
    InventoryStore,
    LeadStore,
    MetricsSource,
    TicketStore,
)
from crmpilot.core.task_queue import TaskQueue
from crmpilot.scoring.calculations import conversion_rate

from .config import OrchestratorConfig
from .routing import TIER_2_ASSIGNEE, EventRouter

log = structlog.get_logger()

# 批处理类型 -> processing_queues 键
BATCH_KINDS = ("leads", "tickets", "inventory")


def _workflow_event(domain: str, phase: str) -> str:
    """工作流生命周期事件名，如 lead.processing_started"""
    return f"{domain}.processing_{phase}"


def _item_id(item: Any) -> str | None:
    """提取批处理条目的标识（lead_id / ticket_id / sku）"""
    if isinstance(item, str):
        return item
    for key in ("lead_id", "ticket_id", "sku"):
        if isinstance(item, Mapping):
            value = item.get(key)
        else:
            value = getattr(item, key, None)
        if value is not None:
            return str(value)
    return None


def _to_jsonable(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    return result


class Orchestrator:
    """工作流编排器"""

    def __init__(
        self,
        bus: EventBus,
        queue: TaskQueue,
        registry: AgentRegistry,
        lead_agent: LeadAgent,
        support_agent: SupportAgent,
        supply_agent: SupplyAgent,
        lead_store: LeadStore,
        ticket_store: TicketStore,
        inventory_store: InventoryStore,
        metrics_source: MetricsSource | None = None,
        config: OrchestratorConfig | None = None,
    ) -> None:
        self._bus = bus
        self._queue = queue
        self._registry = registry
        self._lead_agent = lead_agent
        self._support_agent = support_agent
        self._supply_agent = supply_agent
        self._leads = lead_store
        self._tickets = ticket_store
        self._inventory = inventory_store
        self._metrics_source = metrics_source
        self.config = config or OrchestratorConfig()

        self._router = EventRouter(queue)
        self._initialized = False
        self._unsubscribers: list[Callable[[], None]] = []
        self.metrics: MetricsSnapshot | None = None
        self.metrics_error: str | None = None
        # 正在处理中的条目 ID
        self.processing_queues: dict[str, list[str]] = {kind: [] for kind in BATCH_KINDS}

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # ============================================================
    # 生命周期
    # ============================================================

    async def initialize(self) -> None:
        """订阅路由与指标事件，并拉取初始指标（幂等）"""
        if self._initialized:
            return

        self._subscribe()

        await self._initialize_metrics()

        self._initialized = True
        log.info("orchestrator_initialized", routed_types=self._router.routed_types)

    async def shutdown(self) -> None:
        """注销全部事件订阅，清空处理中队列（幂等）"""
        if not self._initialized:
            return
        self._bus.clear_listeners()
        self._unsubscribers.clear()
        for pending in self.processing_queues.values():
            pending.clear()
        self._initialized = False
        log.info("orchestrator_shutdown")

    def _subscribe(self) -> None:
        """订阅路由与指标事件；重复调用先退订旧订阅"""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = [
            self._bus.on(event_type, self._router) for event_type in self._router.routed_types
        ]
        self._unsubscribers.append(self._bus.on(EventType.LEAD_QUALIFIED, self._on_lead_qualified))
        self._unsubscribers.append(self._bus.on(EventType.TICKET_RESOLVED, self._on_ticket_resolved))
        self._unsubscribers.append(self._bus.on(EventType.METRICS_UPDATED, self._on_metrics_updated))

    async def _initialize_metrics(self) -> None:
        if self._metrics_source is None:
            return
        try:
            snapshot = await self._metrics_source.fetch_metrics()
        except Exception as e:
            self.metrics_error = str(e) or type(e).__name__
            log.warning(
                "metrics_init_failed",
                error=self.metrics_error,
                error_type=type(e).__name__,
                recoverable=getattr(e, "recoverable", True),
            )
            return

        self.metrics = snapshot
        self.metrics_error = None
        self._bus.emit(
            EventType.METRICS_UPDATED,
            {"type": "init", "metrics": snapshot.model_dump(mode="json")},
            source="Orchestrator",
        )

    # ============================================================
    # 线索工作流
    # ============================================================

    async def on_new_lead(self, lead: Lead | Mapping[str, Any] | str) -> QualificationResult | None:
        """线索资格工作流

        未入库的线索先静默写入 Store（不发布 lead.created），再交给 LeadAgent 评估。
        非 QUALIFY 判定发布 lead.unqualified；lead.qualified 由 LeadAgent 发布。
        """
        lead_id = _item_id(lead)
        queued = False
        try:
            lead_id = self._ensure_lead(lead)
            self._emit_workflow("lead", "started", {"lead_id": lead_id})
            self.processing_queues["leads"].append(lead_id)
            queued = True
            result = await self._lead_agent.qualify_lead(lead_id)
            if result is not None and result.decision != Decision.QUALIFY:
                self._bus.emit(
                    EventType.LEAD_UNQUALIFIED,
                    {
                        "lead_id": lead_id,
                        "score": result.score,
                        "decision": result.decision.value,
                    },
                    source="Orchestrator",
                )
        except Exception as e:
            self._emit_failed("lead", lead_id, e)
            raise
        finally:
            if queued:
                self._release("leads", lead_id)

        self._emit_workflow(
            "lead", "completed", {"lead_id": lead_id, "result": _to_jsonable(result)}
        )
        return result

    def _ensure_lead(self, lead: Lead | Mapping[str, Any] | str) -> str:
        if isinstance(lead, str):
            return lead
        lead_id = _item_id(lead)
        if lead_id is None or self._leads.find(lead_id) is None:
            lead_id = self._leads.add(lead, notify=False).lead_id
        return lead_id

    # ============================================================
    # 工单工作流
    # ============================================================

    async def on_ticket_opened(self, ticket: Ticket | Mapping[str, Any] | str) -> SupportReply | None:
        """工单处理工作流：草拟回复，必要时发布 ticket.escalation_required"""
        ticket_id = _item_id(ticket)
        queued = False
        try:
            stored = self._ensure_ticket(ticket)
            if stored is None:
                log.info("ticket_not_found", ticket_id=ticket_id)
                return None

            ticket_id = stored.ticket_id
            self._emit_workflow("ticket", "started", {"ticket_id": ticket_id})
            self.processing_queues["tickets"].append(ticket_id)
            queued = True
            reply = await self._support_agent.draft_support_reply(stored)
            if reply.escalation_needed:
                self._bus.emit(
                    EventType.TICKET_ESCALATION_REQUIRED,
                    {"ticket_id": ticket_id, "reason": "AI detected escalation needed"},
                    source="Orchestrator",
                )
                if self.config.auto_escalate:
                    self.escalate_ticket(ticket_id)
        except Exception as e:
            self._emit_failed("ticket", ticket_id, e)
            raise
        finally:
            if queued:
                self._release("tickets", ticket_id)

        self._emit_workflow(
            "ticket", "completed", {"ticket_id": ticket_id, "reply": _to_jsonable(reply)}
        )
        return reply

    def _ensure_ticket(self, ticket: Ticket | Mapping[str, Any] | str) -> Ticket | None:
        if isinstance(ticket, str):
            return self._tickets.find(ticket)
        ticket_id = _item_id(ticket)
        existing = self._tickets.find(ticket_id) if ticket_id else None
        return existing or self._tickets.add(ticket)

    def escalate_ticket(self, ticket_id: str) -> Ticket | None:
        """升级工单：High 优先级、转交 Tier-2、进入 in_progress"""
        updated = self._tickets.update(
            ticket_id,
            {
                "priority": TicketPriority.HIGH,
                "assignee": TIER_2_ASSIGNEE,
                "status": TicketStatus.IN_PROGRESS,
            },
        )
        if updated is None:
            log.info("ticket_not_found", ticket_id=ticket_id)
            return None

        log.info("ticket_escalated", ticket_id=ticket_id)
        self._bus.emit(
            EventType.TICKET_ESCALATED, {"ticket_id": ticket_id}, source="Orchestrator"
        )
        return updated

    async def on_ticket_reply(self, ticket_id: str, response: str) -> Ticket | None:
        """发送回复并结单

        首次回复同时记录 first_response_at；依次发布 ticket.replied / ticket.resolved。
        """
        ticket = self._tickets.find(ticket_id)
        if ticket is None:
            log.info("ticket_not_found", ticket_id=ticket_id)
            return None

        if self.config.processing_delay_s > 0:
            await asyncio.sleep(self.config.processing_delay_s)

        now = datetime.now(UTC)
        fields: dict[str, Any] = {"status": TicketStatus.RESOLVED, "resolved_at": now}
        if ticket.first_response_at is None:
            fields["first_response_at"] = now
        updated = self._tickets.update(ticket_id, fields)
        self._support_agent.mark_resolved()

        self._bus.emit(
            EventType.TICKET_REPLIED,
            {"ticket_id": ticket_id, "response": response},
            source="Orchestrator",
        )
        self._bus.emit(EventType.TICKET_RESOLVED, {"ticket_id": ticket_id}, source="Orchestrator")
        return updated

    # ============================================================
    # 库存 / 采购单工作流
    # ============================================================

    async def on_inventory_selected(self, item: InventoryItem | str) -> InventoryAnalysis | None:
        """库存分析工作流"""
        resolved = self._inventory.find(item) if isinstance(item, str) else item
        if resolved is None:
            log.info("inventory_item_not_found", sku=item)
            return None

        sku = resolved.sku
        self._emit_workflow("inventory", "started", {"sku": sku})
        self.processing_queues["inventory"].append(sku)
        try:
            analysis = await self._supply_agent.analyze_inventory(resolved)
            if analysis is None:
                return None
            if analysis.risk_level == RiskLevel.CRITICAL:
                self._bus.emit(
                    EventType.INVENTORY_CRITICAL_ALERT,
                    {
                        "sku": sku,
                        "item_name": resolved.name,
                        "current_stock": resolved.current_stock,
                        "reorder_point": resolved.reorder_point,
                    },
                    source="Orchestrator",
                )
            if analysis.order_recommendation is not None:
                self._bus.emit(
                    EventType.ORDER_RECOMMENDED,
                    {
                        "sku": sku,
                        "recommendation": analysis.order_recommendation.model_dump(mode="json"),
                    },
                    source="Orchestrator",
                )
            self._bus.emit(
                EventType.INVENTORY_ANALYZED,
                {"sku": sku, "analysis": analysis.model_dump(mode="json")},
                source="Orchestrator",
            )
        except Exception as e:
            self._emit_failed("inventory", sku, e)
            raise
        finally:
            self._release("inventory", sku)

        self._emit_workflow("inventory", "completed", {"sku": sku})
        return analysis

    async def on_order_generation(self, sku: str, quantity: int | None = None) -> PurchaseOrder | None:
        """采购单生成工作流；order.generated 由 InventoryStore 发布"""
        self._emit_workflow("order", "started", {"sku": sku})
        try:
            order = self._inventory.generate_order(sku, quantity)
        except Exception as e:
            self._emit_failed("order", sku, e)
            raise

        if order is None:
            log.info("inventory_item_not_found", sku=sku)
            return None

        self._emit_workflow(
            "order", "completed", {"sku": sku, "order_id": order.order_id}
        )
        self._publish_metrics("inventory", "order_generated")
        return order

    # ============================================================
    # 批处理
    # ============================================================

    async def process_batch(
        self,
        kind: str,
        items: Iterable[Any],
        max_concurrent: int | None = None,
    ) -> BatchResult:
        """分组批处理

        每组最多 max_concurrent 个条目并发执行，上一组全部完成后才开始下一组。
        单个条目失败记录到 errors，不中断整批。

        Args:
            kind: leads / tickets / inventory
            items: 待处理条目
            max_concurrent: 每组大小，None 时使用配置值
        """
        items = list(items)
        size = max(1, max_concurrent or self.config.max_concurrent)
        batch = BatchResult()

        log.info("batch_started", kind=kind, items=len(items), max_concurrent=size)
        for start in range(0, len(items), size):
            chunk = items[start : start + size]
            outcomes = await asyncio.gather(*(self._run_batch_item(kind, item) for item in chunk))
            for outcome in outcomes:
                if outcome["success"]:
                    batch.results.append(outcome)
                else:
                    batch.errors.append(outcome)

        log.info(
            "batch_completed",
            kind=kind,
            succeeded=len(batch.results),
            failed=len(batch.errors),
        )
        return batch

    async def _run_batch_item(self, kind: str, item: Any) -> dict[str, Any]:
        item_id = _item_id(item)
        try:
            if kind == "leads":
                result = await self.on_new_lead(item)
            elif kind == "tickets":
                result = await self.on_ticket_opened(item)
            elif kind == "inventory":
                result = await self.on_inventory_selected(item)
            else:
                raise UnknownBatchTypeError(kind)
        except Exception as e:
            return {"success": False, "item": item_id, "error": str(e)}
        return {"success": True, "item": item_id, "result": result}

    # ============================================================
    # 任务队列 / 状态 / 配置
    # ============================================================

    async def process_next_task(self) -> TaskOutcome | None:
        return await self._queue.process_next_task()

    async def drain_tasks(self, limit: int | None = None) -> list[TaskOutcome]:
        return await self._queue.drain(limit)

    def cleanup(self, now: datetime | None = None) -> int:
        """移除过期的终态任务"""
        return self._queue.cleanup(now)

    def get_agent_status(self) -> dict[str, dict[str, Any]]:
        return {name: status.model_dump() for name, status in self._registry.status().items()}

    def update_config(self, **changes: Any) -> OrchestratorConfig:
        """合并配置变更（整体重新校验）

        Raises:
            pydantic.ValidationError: 变更值非法
        """
        self.config = OrchestratorConfig.model_validate({**self.config.model_dump(), **changes})
        self._support_agent.processing_delay_s = self.config.processing_delay_s
        log.info("orchestrator_config_updated", **changes)
        return self.config

    # ============================================================
    # 指标维护
    # ============================================================

    def _on_lead_qualified(self, event: Event) -> None:
        leads = self._leads.list()
        self._set_metrics(total_leads=len(leads), conversion_rate=conversion_rate(leads))
        self._publish_metrics("leads", "qualified")

    def _on_ticket_resolved(self, event: Event) -> None:
        current = self.metrics or MetricsSnapshot()
        self._set_metrics(active_tickets=max(0, current.active_tickets - 1))
        self._publish_metrics("tickets", "resolved")

    def _on_metrics_updated(self, event: Event) -> None:
        log.debug(
            "metrics_updated",
            metric_type=event.payload.get("type"),
            action=event.payload.get("action"),
        )

    def _set_metrics(self, **fields: Any) -> None:
        current = self.metrics or MetricsSnapshot()
        self.metrics = current.model_copy(update=fields)

    def _publish_metrics(self, metric_type: str, action: str) -> None:
        snapshot = self.metrics or MetricsSnapshot()
        self._bus.emit(
            EventType.METRICS_UPDATED,
            {"type": metric_type, "action": action, "metrics": snapshot.model_dump(mode="json")},
            source="Orchestrator",
        )

    # ============================================================
    # 内部工具
    # ============================================================

    def _emit_workflow(self, domain: str, phase: str, payload: dict[str, Any]) -> None:
        self._bus.emit(_workflow_event(domain, phase), payload, source="Orchestrator")

    def _emit_failed(self, domain: str, subject_id: str | None, error: Exception) -> None:
        log.error(
            "workflow_failed",
            domain=domain,
            subject_id=subject_id,
            error=str(error),
            error_type=type(error).__name__,
        )
        payload = WorkflowFailedPayload(subject_id=subject_id, error=str(error) or type(error).__name__)
        self._emit_workflow(domain, "failed", payload.model_dump())

    def _release(self, kind: str, item_id: str) -> None:
        pending = self.processing_queues[kind]
        if item_id in pending:
            pending.remove(item_id)
