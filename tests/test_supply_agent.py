"""SupplyAgent 单元测试"""

import asyncio

import pytest
from crmpilot.agents import SupplyAgent, build_recommendations
from crmpilot.core.event_bus import EventBus
from crmpilot.core.models import OrderUrgency, RiskLevel, Urgency
from crmpilot.core.store import StoreGroup


@pytest.fixture
def agent(bus: EventBus, stores: StoreGroup) -> SupplyAgent:
    return SupplyAgent(bus, stores.inventory_store, sweep_interval_s=0.01)


class TestAnalyzeInventory:
    """analyze_inventory 测试"""

    async def test_critical_item(self, agent: SupplyAgent, critical_item):
        """库存 10 / 再订货点 100 / 交期 25 / 缺货 40 → 风险 90"""
        analysis = await agent.analyze_inventory(critical_item)

        assert analysis is not None
        assert analysis.days_of_supply == 2
        assert analysis.risk_score == 90
        assert analysis.risk_level == RiskLevel.CRITICAL
        assert analysis.needs_reorder is True
        assert analysis.order_recommendation is not None
        assert analysis.order_recommendation.quantity == 190
        assert analysis.order_recommendation.urgency == OrderUrgency.URGENT
        assert [r.action for r in analysis.recommendations] == [
            "Generate Purchase Order",
            "Expedite Delivery",
            "Customer Communication",
        ]
        assert analysis.recommendations[0].priority == Urgency.HIGH
        assert analysis.recommendations[1].reason == "Only 2 days of supply remaining"

    async def test_healthy_item(self, agent: SupplyAgent, make_item):
        analysis = await agent.analyze_inventory(make_item())

        assert analysis.risk_score == 0
        assert analysis.risk_level == RiskLevel.LOW
        assert analysis.needs_reorder is False
        assert analysis.order_recommendation is None
        assert [r.action for r in analysis.recommendations] == ["Stock Level Optimal"]

    async def test_lookup_by_sku(self, agent: SupplyAgent, stores: StoreGroup, critical_item):
        stores.inventory_store.add(critical_item)
        analysis = await agent.analyze_inventory("SKU-CRIT")
        assert analysis.sku == "SKU-CRIT"

    async def test_unknown_sku(self, agent: SupplyAgent):
        assert await agent.analyze_inventory("missing") is None

    async def test_normal_urgency_below_80(self, agent: SupplyAgent, make_item):
        """需要补货但风险不超过 80：normal"""
        item = make_item(current_stock=40, reorder_point=100, supplier_eta_days=12)
        analysis = await agent.analyze_inventory(item)

        # 30 + 20
        assert analysis.risk_score == 50
        assert analysis.order_recommendation.urgency == OrderUrgency.NORMAL
        assert analysis.recommendations[0].priority == Urgency.MEDIUM


def test_build_recommendations_backorders_only(make_item):
    item = make_item(backorders=5)
    recs = build_recommendations(item, dos=40, risk=0, needs_reorder=False)
    assert [r.action for r in recs] == ["Customer Communication", "Stock Level Optimal"]


class TestInventoryChanged:
    """inventory.changed 订阅测试"""

    def test_alert_when_reorder_needed(self, agent: SupplyAgent, stores: StoreGroup, bus: EventBus, make_item):
        stores.inventory_store.add(make_item())
        agent.start()

        stores.inventory_store.update_stock("SKU-0001", 50)

        alerts = bus.get_events_by_type("supply.alert")
        assert len(alerts) == 1
        assert alerts[0].payload["sku"] == "SKU-0001"
        assert agent.get_stats()["alerts_raised"] == 1

    def test_no_alert_above_reorder_point(self, agent: SupplyAgent, stores: StoreGroup, bus: EventBus, make_item):
        stores.inventory_store.add(make_item())
        agent.start()

        stores.inventory_store.update_stock("SKU-0001", 300)

        assert bus.get_events_by_type("supply.alert") == []


class TestSweep:
    """周期巡检测试"""

    def test_sweep_alerts_only_high_risk_reorders(
        self, agent: SupplyAgent, stores: StoreGroup, bus: EventBus, make_item, critical_item
    ):
        """需要补货且风险 ≥ 60 才告警"""
        stores.inventory_store.add(critical_item)
        stores.inventory_store.add(make_item(sku="SKU-LOW", current_stock=90))
        stores.inventory_store.add(make_item(sku="SKU-OK"))

        assert agent.sweep() == 1
        assert [e.payload["sku"] for e in bus.get_events_by_type("supply.alert")] == ["SKU-CRIT"]

    def test_start_without_loop_skips_sweep(self, agent: SupplyAgent):
        agent.start()
        assert agent._sweep_task is None
        agent.stop()

    async def test_background_sweep(self, agent: SupplyAgent, stores: StoreGroup, bus: EventBus, critical_item):
        """运行中的事件循环上按周期巡检，stop() 取消"""
        stores.inventory_store.add(critical_item)

        agent.start()
        await asyncio.sleep(0.05)
        agent.stop()

        assert agent._sweep_task is None
        assert len(bus.get_events_by_type("supply.alert")) >= 1


async def test_stats(agent: SupplyAgent, stores: StoreGroup, make_item, critical_item):
    stores.inventory_store.add(critical_item)
    stores.inventory_store.add(make_item(sku="SKU-LOW", current_stock=90))
    stores.inventory_store.add(make_item(sku="SKU-OK"))
    stores.inventory_store.add(make_item(sku="SKU-OK2"))

    await agent.analyze_inventory("SKU-CRIT")
    stats = agent.get_stats()

    assert stats["processed"] == 1
    assert stats["monitored"] == 4
    assert stats["alerts"] == 2
    assert stats["efficiency"] == 50
