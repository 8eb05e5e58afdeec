"""端到端场景集成测试

线索资格 → 工单回复 → 库存风险 → 供应告警任务 全链路
"""

import pytest
from crmpilot.core.models import Decision, RiskLevel, TaskPriority, TicketStatus, Urgency
from crmpilot.orchestrator import Platform, platform_lifespan
from crmpilot.orchestrator.__main__ import main, run_demo
from crmpilot.scoring import risk_level, supply_risk_score


class TestLeadScenario:
    """场景 1：满分线索资格"""

    async def test_perfect_lead_qualifies(self, live_platform: Platform, make_lead):
        """100 分 → QUALIFY → lead.qualified → schedule_demo"""
        result = await live_platform.orchestrator.on_new_lead(make_lead())

        assert result.score == 100
        assert result.decision == Decision.QUALIFY
        assert len(live_platform.bus.get_events_by_type("lead.qualified")) == 1

        outcomes = await live_platform.orchestrator.drain_tasks()
        assert [o.task.type for o in outcomes] == ["schedule_demo"]
        assert all(o.success for o in outcomes)

    async def test_threshold_boundary(self, live_platform: Platform, make_lead, days_ago):
        """70 分资格通过，69 分不通过"""
        at_threshold = await live_platform.orchestrator.on_new_lead(
            make_lead(source=None, last_activity=days_ago(40))
        )
        below = await live_platform.orchestrator.on_new_lead(
            make_lead(budget="$100K-250K", source="event", last_activity=days_ago(40))
        )

        assert (at_threshold.score, at_threshold.decision) == (70, Decision.QUALIFY)
        assert (below.score, below.decision) == (69, Decision.NURTURE)
        qualified = live_platform.bus.get_events_by_type("lead.qualified")
        assert [e.payload["lead_id"] for e in qualified] == [at_threshold.lead_id]
        [unqualified] = live_platform.bus.get_events_by_type("lead.unqualified")
        assert unqualified.payload["lead_id"] == below.lead_id


class TestTicketScenario:
    """场景 2：登录问题工单"""

    async def test_login_ticket_reply_and_resolve(self, live_platform: Platform, make_ticket):
        ticket = make_ticket()

        reply = await live_platform.orchestrator.on_ticket_opened(ticket)
        resolved = await live_platform.orchestrator.on_ticket_reply(
            ticket.ticket_id, reply.suggested_response
        )

        assert reply.intent == "login_issue"
        assert reply.urgency == Urgency.HIGH
        assert resolved.status == TicketStatus.RESOLVED
        assert live_platform.support_agent.get_stats() == {
            "name": "SupportAgent",
            "active": True,
            "processed": 1,
            "resolved": 1,
        }

    async def test_escalated_ticket_is_reassigned(self, live_platform: Platform, make_ticket):
        ticket = make_ticket(priority="High")

        reply = await live_platform.orchestrator.on_ticket_opened(ticket)
        assert reply.escalation_needed
        live_platform.orchestrator.escalate_ticket(ticket.ticket_id)
        outcomes = await live_platform.orchestrator.drain_tasks()

        assert [o.task.type for o in outcomes] == ["reassign_ticket"]
        assert outcomes[0].task.priority == TaskPriority.HIGH
        assert live_platform.stores.ticket_store.find(ticket.ticket_id).assignee == "Tier-2"


class TestInventoryScenario:
    """场景 3：高风险库存"""

    def test_risk_score(self, critical_item):
        """40 + 30 + 20 = 90 → critical"""
        assert supply_risk_score(critical_item) == 90
        assert risk_level(90) == RiskLevel.CRITICAL

    async def test_critical_analysis_and_order(self, live_platform: Platform):
        analysis = await live_platform.orchestrator.on_inventory_selected("SKU-CRIT")
        order = await live_platform.orchestrator.on_order_generation(
            "SKU-CRIT", analysis.order_recommendation.quantity
        )

        assert analysis.risk_level == RiskLevel.CRITICAL
        assert order.quantity == 190
        await live_platform.orchestrator.drain_tasks()
        titles = [n.title for n in live_platform.stores.notification_sink.notifications]
        assert titles == ["Order Generated"]


class TestSupplyAlertScenario:
    """场景 4：供应告警产生两个任务，toast 先执行"""

    async def test_supply_alert_tasks(self, live_platform: Platform):
        live_platform.stores.inventory_store.raise_alert("SKU-CRIT")

        pending = live_platform.queue.pending_tasks()
        assert [(t.type, t.priority) for t in pending] == [
            ("show_toast", TaskPriority.IMMEDIATE),
            ("create_fulfillment_ticket", TaskPriority.HIGH),
        ]

        outcomes = await live_platform.orchestrator.drain_tasks()

        assert [o.task.type for o in outcomes] == ["show_toast", "create_fulfillment_ticket"]
        [notification] = live_platform.stores.notification_sink.notifications
        assert notification.message == "Sensor Module Beta is running low (2 days remaining)"
        [ticket] = live_platform.stores.ticket_store.list()
        assert ticket.subject == "Fulfillment Risk: Sensor Module Beta"

    async def test_stock_drop_triggers_alert(self, live_platform: Platform):
        """库存降到再订货点以下：SupplyAgent 告警 → 任务入队"""
        live_platform.stores.inventory_store.consume("SKU-OK", 350)

        assert len(live_platform.bus.get_events_by_type("supply.alert")) == 1
        assert len(live_platform.queue.pending_tasks()) == 2


async def test_lifespan_builds_platform():
    """platform_lifespan 未传入平台时自行装配，退出后全部 Agent 停止"""
    async with platform_lifespan() as platform:
        assert platform.orchestrator.is_initialized
        assert len(platform.registry) == 3

    assert not platform.orchestrator.is_initialized
    assert not any(agent.is_active for agent in platform.registry.list_all())


async def test_demo_runs(capsys: pytest.CaptureFixture[str]):
    await run_demo()

    out = capsys.readouterr().out
    assert "== 线索资格 ==" in out
    assert "decision=QUALIFY" in out
    assert "show_toast" in out
    assert "Order Generated" in out


def test_cli_without_command(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr("sys.argv", ["crmpilot"])
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 1


def test_cli_unknown_command(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
    monkeypatch.setattr("sys.argv", ["crmpilot", "serve"])
    with pytest.raises(SystemExit):
        main()
    assert "未知命令: serve" in capsys.readouterr().out
