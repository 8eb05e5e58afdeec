"""LeadAgent 单元测试"""

import pytest
from crmpilot.agents import LeadAgent, next_stage, qualification_reasons
from crmpilot.core.event_bus import EventBus
from crmpilot.core.models import Decision, LeadStage
from crmpilot.core.store import StoreGroup


@pytest.fixture
def agent(bus: EventBus, stores: StoreGroup) -> LeadAgent:
    return LeadAgent(bus, stores.lead_store)


class TestQualifyLead:
    """qualify_lead 测试"""

    async def test_perfect_lead_qualifies(self, agent: LeadAgent, stores: StoreGroup, bus: EventBus, make_lead):
        """满分线索：QUALIFY，new → qualified，发布 lead.qualified"""
        lead = stores.lead_store.add(make_lead(), notify=False)

        result = await agent.qualify_lead(lead.lead_id)

        assert result is not None
        assert result.score == 100
        assert result.decision == Decision.QUALIFY
        stored = stores.lead_store.find(lead.lead_id)
        assert stored.score == 100
        assert stored.stage == LeadStage.QUALIFIED

        events = bus.get_events_by_type("lead.qualified")
        assert len(events) == 1
        payload = events[0].payload
        assert payload["lead_id"] == lead.lead_id
        assert payload["lead_name"] == "Sarah Chen"
        assert payload["company"] == "TechCorp Inc"
        assert payload["score"] == 100
        assert "qualification_time" in payload
        assert events[0].source == "LeadAgent"

    async def test_second_evaluation_moves_to_won(self, agent: LeadAgent, stores: StoreGroup, make_lead):
        """qualified 且分数 ≥ 85 时进入 won"""
        lead = stores.lead_store.add(make_lead(), notify=False)

        await agent.qualify_lead(lead.lead_id)
        await agent.qualify_lead(lead.lead_id)

        assert stores.lead_store.find(lead.lead_id).stage == LeadStage.WON

    async def test_boundary_score_70_qualifies(self, agent: LeadAgent, stores: StoreGroup, bus: EventBus, make_lead, days_ago):
        lead = stores.lead_store.add(
            make_lead(source=None, last_activity=days_ago(40)), notify=False
        )

        result = await agent.qualify_lead(lead.lead_id)

        assert result.score == 70
        assert result.decision == Decision.QUALIFY
        assert len(bus.get_events_by_type("lead.qualified")) == 1

    async def test_score_69_does_not_qualify(self, agent: LeadAgent, stores: StoreGroup, bus: EventBus, make_lead, days_ago):
        lead = stores.lead_store.add(
            make_lead(budget="$100K-250K", source="event", last_activity=days_ago(40)),
            notify=False,
        )

        result = await agent.qualify_lead(lead.lead_id)

        assert result.score == 69
        assert result.decision == Decision.NURTURE
        assert stores.lead_store.find(lead.lead_id).stage == LeadStage.NEW
        assert bus.get_events_by_type("lead.qualified") == []

    async def test_drop_lead(self, agent: LeadAgent, stores: StoreGroup, make_lead):
        """8.75 + 7 + 20 + 2.5 = 38.25 → 38 → DROP"""
        lead = stores.lead_store.add(
            make_lead(budget="$10K-50K", intent="low", source="ad"), notify=False
        )

        result = await agent.qualify_lead(lead.lead_id)

        assert result.score == 38
        assert result.decision == Decision.DROP
        assert result.reasons == ["Low overall score suggests need for further nurturing"]

    async def test_accepts_lead_or_mapping(self, agent: LeadAgent, stores: StoreGroup, make_lead):
        lead = stores.lead_store.add(make_lead(), notify=False)

        assert (await agent.qualify_lead(lead)).lead_id == lead.lead_id
        assert (await agent.qualify_lead({"lead_id": lead.lead_id})).lead_id == lead.lead_id

    async def test_unknown_lead(self, agent: LeadAgent, bus: EventBus):
        """不存在的线索返回 None，不发布事件"""
        assert await agent.qualify_lead("missing") is None
        assert await agent.qualify_lead({}) is None
        assert bus.history == []


class TestReasons:
    """判定理由测试"""

    def test_perfect_lead_reasons(self, make_lead):
        reasons = qualification_reasons(make_lead(), 100)
        assert reasons == [
            "High budget potential indicates strong purchasing power",
            "High purchase intent signals immediate buying opportunity",
            "Referral source typically indicates higher conversion rates",
            "Strong overall profile meets qualification criteria",
        ]

    def test_medium_profile(self, make_lead):
        lead = make_lead(budget="$100K-250K", intent="medium", source="event")
        assert qualification_reasons(lead, 60) == [
            "Good budget range for our solutions",
            "Medium intent suggests active evaluation phase",
            "Event leads often have immediate interest and timeline",
        ]

    def test_fallback_reason(self, make_lead):
        lead = make_lead(budget="$50K-100K", intent="low", source="website")
        assert qualification_reasons(lead, 50) == ["Standard qualification assessment completed"]


class TestNextStage:
    @pytest.mark.parametrize(
        ("stage", "score", "expected"),
        [
            (LeadStage.NEW, 70, LeadStage.QUALIFIED),
            (LeadStage.NEW, 69, LeadStage.NEW),
            (LeadStage.NEW, 100, LeadStage.QUALIFIED),
            (LeadStage.QUALIFIED, 85, LeadStage.WON),
            (LeadStage.QUALIFIED, 84, LeadStage.QUALIFIED),
            (LeadStage.CONTACTED, 100, LeadStage.CONTACTED),
            (LeadStage.WON, 10, LeadStage.WON),
        ],
    )
    def test_next_stage(self, stage, score, expected):
        assert next_stage(stage, score) == expected


class TestSubscriptions:
    """事件订阅测试"""

    def test_lead_created_triggers_evaluation(self, agent: LeadAgent, stores: StoreGroup, bus: EventBus, make_lead):
        """启动后，新增线索自动评估"""
        agent.start()

        lead = stores.lead_store.add(make_lead())

        assert stores.lead_store.find(lead.lead_id).stage == LeadStage.QUALIFIED
        assert len(bus.get_events_by_type("lead.qualified")) == 1

    def test_stopped_agent_ignores_events(self, agent: LeadAgent, stores: StoreGroup, bus: EventBus, make_lead):
        agent.start()
        agent.stop()

        lead = stores.lead_store.add(make_lead())

        assert stores.lead_store.find(lead.lead_id).stage == LeadStage.NEW
        assert bus.get_events_by_type("lead.qualified") == []

    def test_lead_updated_crossing_threshold(self, agent: LeadAgent, stores: StoreGroup, bus: EventBus, make_lead):
        """字段更新后分数向上跨过 70 时发布 lead.qualified"""
        lead = stores.lead_store.add(
            make_lead(budget="$10K-50K", intent="low", source="ad"), notify=False
        )
        stores.lead_store.update(lead.lead_id, {"budget": "$250K+", "intent": "high"})
        agent.start()

        bus.emit("lead.updated", {"lead_id": lead.lead_id})

        assert stores.lead_store.find(lead.lead_id).score == 93
        assert len(bus.get_events_by_type("lead.qualified")) == 1

    def test_lead_updated_without_score_change(self, agent: LeadAgent, stores: StoreGroup, bus: EventBus, make_lead):
        lead = stores.lead_store.add(make_lead(), notify=False)
        agent.start()

        bus.emit("lead.updated", {"lead_id": lead.lead_id})

        assert bus.get_events_by_type("lead.qualified") == []

    def test_start_is_idempotent(self, agent: LeadAgent, bus: EventBus):
        agent.start()
        agent.start()
        assert bus.listener_count("lead.created") == 1
        agent.stop()
        assert bus.listener_count("lead.created") == 0


async def test_stats(agent: LeadAgent, stores: StoreGroup, make_lead):
    first = stores.lead_store.add(make_lead(), notify=False)
    stores.lead_store.add(make_lead(budget="$10K-50K", intent="low", source="ad"), notify=False)

    await agent.qualify_lead(first.lead_id)
    stats = agent.get_stats()

    assert stats["name"] == "LeadAgent"
    assert stats["processed"] == 1
    assert stats["qualified"] == 1
    assert stats["qualified_emitted"] == 1
    # (100 + 38) / 2
    assert stats["avg_score"] == 69
