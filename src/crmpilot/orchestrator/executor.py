"""TaskExecutor -- 按任务类型分派执行

作为 TaskQueue 的 runner 使用。处理函数抛出的异常由队列捕获并把任务标记为 failed。
"""

from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from crmpilot.core.models.enums import TicketPriority
from crmpilot.core.models.payloads import Notification
from crmpilot.core.models.task import Task
from crmpilot.core.store.protocols import NotificationSink, TicketStore

from .routing import TaskType

log = structlog.get_logger()

TaskHandler = Callable[[Task], Awaitable[Any] | Any]

FULFILLMENT_ASSIGNEE = "Supply Chain Team"
SYSTEM_CUSTOMER_NAME = "System Generated"
SYSTEM_CUSTOMER_EMAIL = "system@crmcloud.com"


class TaskExecutor:
    """任务执行器

    内置 schedule_demo / reassign_ticket / create_fulfillment_ticket / show_toast，
    可通过 register() 追加或覆盖任务类型。
    """

    def __init__(self, ticket_store: TicketStore, notification_sink: NotificationSink) -> None:
        self._tickets = ticket_store
        self._notifications = notification_sink
        self._handlers: dict[str, TaskHandler] = {
            TaskType.SCHEDULE_DEMO: self._schedule_demo,
            TaskType.REASSIGN_TICKET: self._reassign_ticket,
            TaskType.CREATE_FULFILLMENT_TICKET: self._create_fulfillment_ticket,
            TaskType.SHOW_TOAST: self._show_toast,
        }

    def register(self, task_type: str, handler: TaskHandler) -> None:
        """注册自定义任务处理函数（同步或异步均可）"""
        self._handlers[task_type] = handler

    @property
    def task_types(self) -> list[str]:
        return list(self._handlers)

    async def __call__(self, task: Task) -> Any:
        handler = self._handlers.get(task.type)
        if handler is None:
            log.info("task_type_unknown", task_id=task.task_id, task_type=task.type)
            return None
        result = handler(task)
        if isinstance(result, Awaitable):
            result = await result
        return result

    def _schedule_demo(self, task: Task) -> None:
        log.info(
            "demo_scheduled",
            lead_id=task.payload.get("lead_id"),
            company=task.payload.get("company"),
            score=task.payload.get("score"),
        )

    def _reassign_ticket(self, task: Task) -> None:
        ticket_id = task.payload.get("ticket_id")
        assignee = task.payload.get("new_assignee")
        updated = self._tickets.update(ticket_id, {"assignee": assignee}) if ticket_id else None
        if updated is None:
            log.info("ticket_not_found", ticket_id=ticket_id, task_id=task.task_id)
            return
        log.info("ticket_reassigned", ticket_id=ticket_id, assignee=assignee)

    def _create_fulfillment_ticket(self, task: Task) -> None:
        payload = task.payload
        item_name = payload.get("item_name")
        ticket = self._tickets.add(
            {
                "subject": f"Fulfillment Risk: {item_name}",
                "priority": TicketPriority.HIGH,
                "category": "General",
                "customer_name": SYSTEM_CUSTOMER_NAME,
                "customer_email": SYSTEM_CUSTOMER_EMAIL,
                "message": (
                    f"Supply alert for {item_name} (SKU: {payload.get('sku')}). "
                    f"Current stock: {payload.get('current_stock')}, "
                    f"Days of supply: {payload.get('days_of_supply')}"
                ),
                "assignee": FULFILLMENT_ASSIGNEE,
            }
        )
        log.info("fulfillment_ticket_created", ticket_id=ticket.ticket_id, sku=payload.get("sku"))

    def _show_toast(self, task: Task) -> None:
        self._notifications.notify(Notification.model_validate(task.payload))
