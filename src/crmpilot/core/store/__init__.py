"""CRMPilot Core Store -- 内存实现

提供工厂函数创建共享同一 EventPublisher 的 Store 实例组。
"""

from collections.abc import Iterable, Mapping
from typing import Any

from ..models.inventory import InventoryItem
from ..models.lead import Lead
from ..models.ticket import Ticket
from .inventory_store import InMemoryInventoryStore
from .lead_store import InMemoryLeadStore
from .notification import RecordingNotificationSink
from .protocols import (
    EventPublisher,
    InventoryStore,
    LeadStore,
    MetricsSource,
    NotificationSink,
    TicketStore,
)
from .ticket_store import InMemoryTicketStore


class StoreGroup:
    """Store 实例组 -- 共享同一个事件发布者"""

    def __init__(self, publisher: EventPublisher | None = None) -> None:
        self.publisher = publisher
        self.lead_store = InMemoryLeadStore(publisher)
        self.ticket_store = InMemoryTicketStore()
        self.inventory_store = InMemoryInventoryStore(publisher)
        self.notification_sink = RecordingNotificationSink()


def create_store_group(
    publisher: EventPublisher | None = None,
    leads: Iterable[Lead | Mapping[str, Any]] = (),
    tickets: Iterable[Ticket | Mapping[str, Any]] = (),
    items: Iterable[InventoryItem] = (),
) -> StoreGroup:
    """创建 Store 实例组并写入种子数据

    种子数据不发布事件。

    Args:
        publisher: 事件发布者（通常是 EventBus）
        leads: 种子线索
        tickets: 种子工单
        items: 种子库存

    Returns:
        StoreGroup 实例
    """
    group = StoreGroup(publisher)
    for lead in leads:
        group.lead_store.add(lead, notify=False)
    for ticket in tickets:
        group.ticket_store.add(ticket)
    for item in items:
        group.inventory_store.add(item)
    return group


__all__ = [
    "StoreGroup",
    "create_store_group",
    "InMemoryLeadStore",
    "InMemoryTicketStore",
    "InMemoryInventoryStore",
    "RecordingNotificationSink",
    "EventPublisher",
    "LeadStore",
    "TicketStore",
    "InventoryStore",
    "NotificationSink",
    "MetricsSource",
]
