"""LeadAgent -- 线索评分与资格判定

qualify_lead 先完成全部计算，再通过一次 Store 调用写入 score + stage，
score ≥ 70 时发布 lead.qualified。
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from crmpilot.core.config import QUALIFY_THRESHOLD, WON_THRESHOLD
from crmpilot.core.event_bus import EventBus, Listener
from crmpilot.core.models.enums import (
    Decision,
    EventType,
    LeadBudget,
    LeadIntent,
    LeadSource,
    LeadStage,
)
from crmpilot.core.models.event import Event
from crmpilot.core.models.lead import Lead
from crmpilot.core.models.payloads import LeadQualifiedPayload
from crmpilot.core.models.results import QualificationResult
from crmpilot.core.store.protocols import LeadStore
from crmpilot.scoring.calculations import (
    lead_score,
    qualification_decision,
    round_half_up,
)

from .base import BaseAgent

log = structlog.get_logger()

LeadRef = str | Lead | Mapping[str, Any]


def next_stage(stage: LeadStage, score: int) -> LeadStage:
    """资格评估后的阶段：new→qualified (≥70)，qualified→won (≥85)"""
    if stage == LeadStage.NEW and score >= QUALIFY_THRESHOLD:
        return LeadStage.QUALIFIED
    if stage == LeadStage.QUALIFIED and score >= WON_THRESHOLD:
        return LeadStage.WON
    return stage


def qualification_reasons(lead: Lead, score: int) -> list[str]:
    """生成可读的判定理由"""
    reasons: list[str] = []

    if lead.budget == LeadBudget.TIER_250K_PLUS:
        reasons.append("High budget potential indicates strong purchasing power")
    elif lead.budget == LeadBudget.TIER_100K_250K:
        reasons.append("Good budget range for our solutions")

    if lead.intent == LeadIntent.HIGH:
        reasons.append("High purchase intent signals immediate buying opportunity")
    elif lead.intent == LeadIntent.MEDIUM:
        reasons.append("Medium intent suggests active evaluation phase")

    if lead.source == LeadSource.REFERRAL:
        reasons.append("Referral source typically indicates higher conversion rates")
    elif lead.source == LeadSource.EVENT:
        reasons.append("Event leads often have immediate interest and timeline")

    if score < 40:
        reasons.append("Low overall score suggests need for further nurturing")
    elif score >= QUALIFY_THRESHOLD:
        reasons.append("Strong overall profile meets qualification criteria")

    return reasons or ["Standard qualification assessment completed"]


def _resolve_lead_id(ref: LeadRef) -> str | None:
    if isinstance(ref, str):
        return ref
    if isinstance(ref, Lead):
        return ref.lead_id
    lead_id = ref.get("lead_id")
    return str(lead_id) if lead_id is not None else None


class LeadAgent(BaseAgent):
    """线索资格 Agent"""

    name = "LeadAgent"
    version = "1.0.0"
    capabilities = ("lead_scoring", "qualification", "stage_progression")

    def __init__(self, bus: EventBus, lead_store: LeadStore) -> None:
        super().__init__(bus)
        self._leads = lead_store
        self._processed = 0
        self._qualified = 0

    def event_handlers(self) -> dict[str, Listener]:
        return {
            EventType.LEAD_CREATED: self._handle_lead_created,
            EventType.LEAD_UPDATED: self._handle_lead_updated,
        }

    async def qualify_lead(self, lead_ref: LeadRef) -> QualificationResult | None:
        """评估线索资格

        Args:
            lead_ref: lead_id、Lead 实例或带 lead_id 的映射

        Returns:
            QualificationResult；线索不存在时返回 None
        """
        lead_id = _resolve_lead_id(lead_ref)
        if lead_id is None:
            return None
        return self.evaluate(lead_id)

    def evaluate(self, lead_id: str) -> QualificationResult | None:
        """同步评估（事件处理器与 qualify_lead 共用）"""
        lead = self._leads.find(lead_id)
        if lead is None:
            log.info("lead_not_found", lead_id=lead_id)
            return None

        score = lead_score(lead)
        stage = next_stage(lead.stage, score)
        result = QualificationResult(
            lead_id=lead_id,
            score=score,
            decision=qualification_decision(score),
            reasons=qualification_reasons(lead, score),
        )

        updated = self._leads.update(lead_id, {"score": score, "stage": stage})
        self._processed += 1

        log.info(
            "lead_qualified" if result.decision == Decision.QUALIFY else "lead_evaluated",
            lead_id=lead_id,
            score=score,
            decision=result.decision.value,
            stage=stage.value,
        )

        if score >= QUALIFY_THRESHOLD:
            self._qualified += 1
            self._emit_qualified(updated or lead, score)
        return result

    def get_stats(self) -> dict[str, Any]:
        leads = self._leads.list()
        scored = [lead.score for lead in leads if lead.score is not None]
        return {
            **super().get_stats(),
            "processed": self._processed,
            "qualified": sum(
                1 for lead in leads if lead.stage in (LeadStage.QUALIFIED, LeadStage.WON)
            ),
            "qualified_emitted": self._qualified,
            "avg_score": round_half_up(sum(scored) / len(scored)) if scored else 0,
        }

    def _handle_lead_created(self, event: Event) -> None:
        lead_id = event.payload.get("lead_id")
        if lead_id:
            self.evaluate(lead_id)

    def _handle_lead_updated(self, event: Event) -> None:
        """字段变化后重新评分，只在向上跨过阈值时发布 lead.qualified"""
        lead_id = event.payload.get("lead_id")
        lead = self._leads.find(lead_id) if lead_id else None
        if lead is None:
            return

        new_score = lead_score(lead)
        old_score = lead.score or 0
        if new_score == old_score:
            return

        updated = self._leads.update(lead.lead_id, {"score": new_score})
        if new_score >= QUALIFY_THRESHOLD > old_score:
            self._qualified += 1
            self._emit_qualified(updated or lead, new_score)

    def _emit_qualified(self, lead: Lead, score: int) -> None:
        payload = LeadQualifiedPayload(
            lead_id=lead.lead_id,
            lead_name=lead.name,
            company=lead.company,
            score=score,
            qualification_time=datetime.now(UTC).isoformat(),
        )
        self._bus.emit(EventType.LEAD_QUALIFIED, payload.model_dump(), source=self.name)
