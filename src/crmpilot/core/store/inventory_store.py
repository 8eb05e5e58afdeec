"""InventoryStore 内存实现

库存变更、供应告警、采购单生成都通过 EventPublisher 发布事件；
status 字段由模型推导，Store 不单独维护。
"""

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

import structlog

from crmpilot.scoring.calculations import days_of_supply, suggested_order_quantity

from ..models.enums import EventType
from ..models.inventory import InventoryItem, PurchaseOrder
from ..models.payloads import InventoryChangedPayload, SupplyAlertPayload
from .protocols import EventPublisher

log = structlog.get_logger()

SOURCE_NAME = "InventoryStore"


class InMemoryInventoryStore:
    """InventoryStore 的内存实现，sku 为唯一键"""

    def __init__(
        self,
        publisher: EventPublisher | None = None,
        items: Iterable[InventoryItem] = (),
    ) -> None:
        self._items: dict[str, InventoryItem] = {}
        self._publisher = publisher
        for item in items:
            self.add(item)

    def add(self, item: InventoryItem) -> InventoryItem:
        """登记物料；sku 重复时覆盖"""
        self._items[item.sku] = item
        return item

    def find(self, sku: str) -> InventoryItem | None:
        return self._items.get(sku)

    def list(self) -> list[InventoryItem]:
        return list(self._items.values())

    def update_stock(self, sku: str, new_stock: int) -> InventoryItem | None:
        """更新库存并发布 inventory.changed

        Raises:
            pydantic.ValidationError: new_stock 为负数
        """
        current = self._items.get(sku)
        if current is None:
            return None

        data = current.model_dump()
        data["current_stock"] = new_stock
        updated = InventoryItem.model_validate(data)
        self._items[sku] = updated

        log.debug(
            "inventory_stock_updated",
            sku=sku,
            old_stock=current.current_stock,
            new_stock=new_stock,
            status=updated.status.value,
        )
        self._emit(
            EventType.INVENTORY_CHANGED,
            InventoryChangedPayload(sku=sku, new_stock=new_stock).model_dump(),
        )
        return updated

    def receive(self, sku: str, quantity: int) -> InventoryItem | None:
        """入库"""
        item = self._items.get(sku)
        if item is None:
            return None
        return self.update_stock(sku, item.current_stock + quantity)

    def consume(self, sku: str, quantity: int) -> InventoryItem | None:
        """出库，库存最低降到 0

        是否需要告警由订阅 inventory.changed 的 SupplyAgent 判断。
        """
        item = self._items.get(sku)
        if item is None:
            return None
        return self.update_stock(sku, max(0, item.current_stock - quantity))

    def raise_alert(self, sku: str) -> None:
        item = self._items.get(sku)
        if item is None:
            return

        payload = SupplyAlertPayload(
            sku=sku,
            item_name=item.name,
            current_stock=item.current_stock,
            reorder_point=item.reorder_point,
            days_of_supply=days_of_supply(item),
        )
        log.info(
            "supply_alert_raised",
            sku=sku,
            current_stock=item.current_stock,
            days_of_supply=payload.days_of_supply,
        )
        self._emit(EventType.SUPPLY_ALERT, payload.model_dump())

    def generate_order(self, sku: str, quantity: int | None = None) -> PurchaseOrder | None:
        """生成采购单

        未指定数量时补足到 2 倍再订货点，且至少覆盖交期内需求。
        """
        item = self._items.get(sku)
        if item is None:
            return None

        order_quantity = quantity or suggested_order_quantity(item)
        now = datetime.now(UTC)
        order = PurchaseOrder(
            sku=sku,
            item_name=item.name,
            quantity=order_quantity,
            unit_cost=item.unit_cost,
            total_cost=order_quantity * item.unit_cost,
            supplier=item.supplier,
            expected_delivery=now + timedelta(days=item.supplier_eta_days),
            created_at=now,
        )
        log.info(
            "purchase_order_generated",
            order_id=order.order_id,
            sku=sku,
            quantity=order_quantity,
            total_cost=order.total_cost,
        )
        self._emit(EventType.ORDER_GENERATED, order.model_dump(mode="json"))
        return order

    def __len__(self) -> int:
        return len(self._items)

    def _emit(self, event_type: str, payload: dict) -> None:
        if self._publisher is not None:
            self._publisher.emit(event_type, payload, source=SOURCE_NAME)
