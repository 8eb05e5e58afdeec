"""Store Protocol 接口定义

Agent 与编排器只依赖这些抽象接口；Store 只依赖 EventPublisher，
具体实例在启动时注入，消除 Store 之间的循环依赖。
使用 Python Protocol 实现结构化子类型（duck typing）。

每次 Store 方法调用是一个原子单元，不存在跨调用的锁。
"""

from collections.abc import Mapping
from typing import Any, Protocol

from ..models.event import Event
from ..models.inventory import InventoryItem, PurchaseOrder
from ..models.lead import Lead
from ..models.metrics import MetricsSnapshot
from ..models.payloads import Notification
from ..models.ticket import Ticket


class EventPublisher(Protocol):
    """事件发布接口（EventBus 满足此接口）"""

    def emit(
        self,
        type: str,
        payload: dict[str, Any] | None = None,
        source: str = "system",
    ) -> Event:
        ...


class LeadStore(Protocol):
    """Lead 存储接口"""

    def find(self, lead_id: str) -> Lead | None:
        """根据 lead_id 查询线索"""
        ...

    def add(self, data: Lead | Mapping[str, Any], notify: bool = True) -> Lead:
        """新增线索（计算初始评分）；notify=True 时发布 lead.created"""
        ...

    def update(self, lead_id: str, fields: Mapping[str, Any]) -> Lead | None:
        """部分更新，总是刷新 last_activity；线索不存在返回 None"""
        ...

    def list(self) -> list[Lead]:
        """按插入顺序返回全部线索"""
        ...


class TicketStore(Protocol):
    """Ticket 存储接口"""

    def find(self, ticket_id: str) -> Ticket | None:
        ...

    def add(self, fields: Ticket | Mapping[str, Any]) -> Ticket:
        """新建工单（默认 open / Medium）"""
        ...

    def update(self, ticket_id: str, fields: Mapping[str, Any]) -> Ticket | None:
        """部分更新；工单不存在返回 None"""
        ...

    def list(self) -> list[Ticket]:
        ...


class InventoryStore(Protocol):
    """Inventory 存储接口"""

    def find(self, sku: str) -> InventoryItem | None:
        ...

    def list(self) -> list[InventoryItem]:
        ...

    def update_stock(self, sku: str, new_stock: int) -> InventoryItem | None:
        """更新库存（重新推导 status）并发布 inventory.changed"""
        ...

    def raise_alert(self, sku: str) -> None:
        """发布 supply.alert 事件；SKU 不存在时 no-op"""
        ...

    def generate_order(self, sku: str, quantity: int | None = None) -> PurchaseOrder | None:
        """生成采购单并发布 order.generated"""
        ...


class NotificationSink(Protocol):
    """UI 通知接收端（fire-and-forget）"""

    def notify(self, notification: Notification) -> None:
        ...


class MetricsSource(Protocol):
    """只读指标快照源"""

    async def fetch_metrics(self) -> MetricsSnapshot:
        ...
