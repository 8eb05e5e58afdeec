"""SupplyAgent -- 库存风险分析与周期巡检

订阅 inventory.changed：需要补货时立即告警。
start() 时在当前事件循环上启动巡检任务，stop() 时取消。
"""

import asyncio
from typing import Any

import structlog

from crmpilot.core.config import SUPPLY_SWEEP_INTERVAL_S, SWEEP_ALERT_RISK_THRESHOLD
from crmpilot.core.event_bus import EventBus, Listener
from crmpilot.core.models.enums import EventType, InventoryStatus, OrderUrgency, Urgency
from crmpilot.core.models.event import Event
from crmpilot.core.models.inventory import InventoryItem
from crmpilot.core.models.results import (
    InventoryAnalysis,
    OrderRecommendation,
    Recommendation,
)
from crmpilot.core.store.protocols import InventoryStore
from crmpilot.scoring.calculations import (
    days_of_supply,
    reorder_needed,
    risk_level,
    round_half_up,
    suggested_order_quantity,
    supply_risk_score,
)

from .base import BaseAgent

log = structlog.get_logger()

EXPEDITE_DAYS_THRESHOLD = 7
OPTIMAL_RISK_THRESHOLD = 30
URGENT_RISK_THRESHOLD = 80


def build_recommendations(
    item: InventoryItem,
    *,
    dos: int,
    risk: int,
    needs_reorder: bool,
) -> list[Recommendation]:
    recommendations: list[Recommendation] = []

    if needs_reorder:
        recommendations.append(
            Recommendation(
                action="Generate Purchase Order",
                reason=(
                    f"Stock level ({item.current_stock}) is below reorder point "
                    f"({item.reorder_point})"
                ),
                priority=Urgency.HIGH if risk > URGENT_RISK_THRESHOLD else Urgency.MEDIUM,
            )
        )

    if dos < EXPEDITE_DAYS_THRESHOLD:
        recommendations.append(
            Recommendation(
                action="Expedite Delivery",
                reason=f"Only {dos} days of supply remaining",
                priority=Urgency.HIGH,
            )
        )

    if item.backorders > 0:
        recommendations.append(
            Recommendation(
                action="Customer Communication",
                reason=f"{item.backorders} units backordered",
                priority=Urgency.MEDIUM,
            )
        )

    if risk < OPTIMAL_RISK_THRESHOLD and not needs_reorder:
        recommendations.append(
            Recommendation(
                action="Stock Level Optimal",
                reason="Current stock levels are within acceptable range",
                priority=Urgency.LOW,
            )
        )

    return recommendations


class SupplyAgent(BaseAgent):
    """库存监控 Agent"""

    name = "SupplyAgent"
    version = "1.0.0"
    capabilities = ("inventory_monitoring", "risk_analysis", "reorder_recommendation")

    def __init__(
        self,
        bus: EventBus,
        inventory_store: InventoryStore,
        sweep_interval_s: float = SUPPLY_SWEEP_INTERVAL_S,
    ) -> None:
        super().__init__(bus)
        self._inventory = inventory_store
        self.sweep_interval_s = sweep_interval_s
        self._sweep_task: asyncio.Task | None = None
        self._analyzed = 0
        self._alerts_raised = 0

    def event_handlers(self) -> dict[str, Listener]:
        return {EventType.INVENTORY_CHANGED: self._handle_inventory_changed}

    async def analyze_inventory(self, item_or_sku: InventoryItem | str) -> InventoryAnalysis | None:
        """分析单个物料的供应风险

        Args:
            item_or_sku: InventoryItem 实例或 SKU

        Returns:
            InventoryAnalysis；SKU 不存在时返回 None
        """
        if isinstance(item_or_sku, str):
            item = self._inventory.find(item_or_sku)
            if item is None:
                log.info("inventory_item_not_found", sku=item_or_sku)
                return None
        else:
            item = item_or_sku

        dos = days_of_supply(item)
        risk = supply_risk_score(item)
        needs_reorder = reorder_needed(item)

        order_recommendation = None
        if needs_reorder:
            order_recommendation = OrderRecommendation(
                quantity=suggested_order_quantity(item),
                urgency=(
                    OrderUrgency.URGENT if risk > URGENT_RISK_THRESHOLD else OrderUrgency.NORMAL
                ),
            )

        self._analyzed += 1
        analysis = InventoryAnalysis(
            sku=item.sku,
            days_of_supply=dos,
            risk_score=risk,
            risk_level=risk_level(risk),
            needs_reorder=needs_reorder,
            recommendations=build_recommendations(
                item, dos=dos, risk=risk, needs_reorder=needs_reorder
            ),
            order_recommendation=order_recommendation,
        )
        log.info(
            "inventory_analyzed",
            sku=item.sku,
            risk_score=risk,
            risk_level=analysis.risk_level.value,
            needs_reorder=needs_reorder,
        )
        return analysis

    def sweep(self) -> int:
        """巡检全部物料，只对需要补货且风险 ≥ 60 的物料告警

        Returns:
            本次发出的告警数
        """
        alerts = 0
        for item in self._inventory.list():
            if reorder_needed(item) and supply_risk_score(item) >= SWEEP_ALERT_RISK_THRESHOLD:
                self._inventory.raise_alert(item.sku)
                alerts += 1

        self._alerts_raised += alerts
        if alerts:
            log.info("supply_sweep_alerts", alerts=alerts)
        return alerts

    def get_stats(self) -> dict[str, Any]:
        items = self._inventory.list()
        at_risk = [
            item
            for item in items
            if item.status in (InventoryStatus.LOW, InventoryStatus.CRITICAL)
        ]
        return {
            **super().get_stats(),
            "processed": self._analyzed,
            "monitored": len(items),
            "alerts": len(at_risk),
            "alerts_raised": self._alerts_raised,
            "efficiency": round_half_up((1 - len(at_risk) / max(len(items), 1)) * 100),
        }

    def _on_start(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.info("supply_sweep_not_scheduled", reason="no running event loop")
            return
        self._sweep_task = loop.create_task(self._sweep_loop())

    def _on_stop(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            self._sweep_task = None

    async def _sweep_loop(self) -> None:
        while self._active:
            await asyncio.sleep(self.sweep_interval_s)
            if not self._active:
                break
            try:
                self.sweep()
            except Exception as e:
                log.error("supply_sweep_failed", error=str(e), error_type=type(e).__name__)

    def _handle_inventory_changed(self, event: Event) -> None:
        sku = event.payload.get("sku")
        item = self._inventory.find(sku) if sku else None
        if item is None:
            return
        if reorder_needed(item):
            self._inventory.raise_alert(item.sku)
            self._alerts_raised += 1
