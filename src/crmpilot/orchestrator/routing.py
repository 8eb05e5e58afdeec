"""事件路由 -- 固定的 事件类型 → 任务 映射表

| 事件              | 任务                                   | 优先级    | 来源           |
|-------------------|----------------------------------------|-----------|----------------|
| lead.qualified    | schedule_demo                          | medium    | LeadAgent      |
| ticket.escalated  | reassign_ticket (new_assignee=Tier-2)  | high      | SupportAgent   |
| supply.alert      | create_fulfillment_ticket              | high      | SupplyAgent    |
| supply.alert      | show_toast (warning)                   | immediate | SupplyAgent    |
| order.generated   | show_toast (success)                   | immediate | InventoryStore |
"""

from collections.abc import Callable
from typing import Any

import structlog
from pydantic import BaseModel, Field

from crmpilot.core.models.enums import EventType, NotificationType, TaskPriority
from crmpilot.core.models.event import Event
from crmpilot.core.models.payloads import Notification
from crmpilot.core.task_queue import TaskQueue

log = structlog.get_logger()

TIER_2_ASSIGNEE = "Tier-2"


class TaskType:
    """任务类型名称"""

    SCHEDULE_DEMO = "schedule_demo"
    REASSIGN_TICKET = "reassign_ticket"
    CREATE_FULFILLMENT_TICKET = "create_fulfillment_ticket"
    SHOW_TOAST = "show_toast"


class TaskSpec(BaseModel):
    """路由产出的待入队任务描述"""

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    priority: TaskPriority
    source: str


def _schedule_demo(event: Event) -> list[TaskSpec]:
    return [
        TaskSpec(
            type=TaskType.SCHEDULE_DEMO,
            payload=dict(event.payload),
            priority=TaskPriority.MEDIUM,
            source="LeadAgent",
        )
    ]


def _reassign_ticket(event: Event) -> list[TaskSpec]:
    return [
        TaskSpec(
            type=TaskType.REASSIGN_TICKET,
            payload={**event.payload, "new_assignee": TIER_2_ASSIGNEE},
            priority=TaskPriority.HIGH,
            source="SupportAgent",
        )
    ]


def _supply_alert(event: Event) -> list[TaskSpec]:
    payload = event.payload
    toast = Notification(
        type=NotificationType.WARNING,
        title="Supply Alert",
        message=(
            f"{payload.get('item_name')} is running low "
            f"({payload.get('days_of_supply')} days remaining)"
        ),
    )
    return [
        TaskSpec(
            type=TaskType.CREATE_FULFILLMENT_TICKET,
            payload=dict(payload),
            priority=TaskPriority.HIGH,
            source="SupplyAgent",
        ),
        TaskSpec(
            type=TaskType.SHOW_TOAST,
            payload=toast.model_dump(mode="json"),
            priority=TaskPriority.IMMEDIATE,
            source="SupplyAgent",
        ),
    ]


def _order_generated(event: Event) -> list[TaskSpec]:
    payload = event.payload
    toast = Notification(
        type=NotificationType.SUCCESS,
        title="Order Generated",
        message=(
            f"Purchase order created for {payload.get('quantity')} units of "
            f"{payload.get('item_name')}"
        ),
    )
    return [
        TaskSpec(
            type=TaskType.SHOW_TOAST,
            payload=toast.model_dump(mode="json"),
            priority=TaskPriority.IMMEDIATE,
            source="InventoryStore",
        )
    ]


ROUTES: dict[str, Callable[[Event], list[TaskSpec]]] = {
    EventType.LEAD_QUALIFIED: _schedule_demo,
    EventType.TICKET_ESCALATED: _reassign_ticket,
    EventType.SUPPLY_ALERT: _supply_alert,
    EventType.ORDER_GENERATED: _order_generated,
}


def route_event(event: Event) -> list[TaskSpec]:
    """事件 → 任务列表；未登记的事件类型返回空列表"""
    route = ROUTES.get(event.type)
    if route is None:
        log.debug("event_unrouted", event_type=event.type)
        return []
    return route(event)


class EventRouter:
    """把路由结果写入任务队列（作为 EventBus 订阅者）"""

    def __init__(self, queue: TaskQueue) -> None:
        self._queue = queue

    @property
    def routed_types(self) -> list[str]:
        return list(ROUTES)

    def __call__(self, event: Event) -> None:
        for task_spec in route_event(event):
            self._queue.add_task(
                task_spec.type,
                task_spec.payload,
                priority=task_spec.priority,
                source=task_spec.source,
            )
