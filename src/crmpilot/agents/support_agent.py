"""SupportAgent -- 工单分析与回复草拟

流水线：意图分类 → 实体抽取 → 紧急度 → 情绪 → 升级判断 → 下一步动作 → 分段回复。
回复段落顺序：致意 → 调查发现（有实体时）→ 排障步骤（最多 4 条）
→ 升级提示（需要时）→ 跟进承诺 → 工单信息页脚。
"""

import asyncio
from collections.abc import Mapping
from typing import Any

import structlog

from crmpilot.core.event_bus import EventBus
from crmpilot.core.models.enums import Sentiment, Urgency
from crmpilot.core.models.results import SupportReply
from crmpilot.core.models.ticket import Ticket
from crmpilot.nlu.intent_classifier import IntentClassifier
from crmpilot.nlu.knowledge_base import KnowledgeBase
from crmpilot.scoring.calculations import round_half_up

from .base import BaseAgent

log = structlog.get_logger()

POSITIVE_WORDS = ("thank", "please", "appreciate", "great", "good", "excellent")
NEGATIVE_WORDS = ("urgent", "critical", "broken", "frustrated", "angry", "terrible", "awful")

# 话题标签 -> 触发词
TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "authentication": ("login", "password"),
    "billing": ("billing", "payment"),
    "feature": ("feature", "function"),
    "bug": ("bug", "error"),
}

FOLLOW_UP_TIMEFRAMES: dict[Urgency, str] = {
    Urgency.HIGH: "2 hours",
    Urgency.MEDIUM: "24 hours",
    Urgency.LOW: "48 hours",
}

MAX_TROUBLESHOOTING_STEPS = 4
DEFAULT_FOLLOW_UP_STEP = "Follow up within 24 hours to confirm resolution"

_ACKNOWLEDGMENTS: dict[str, str] = {
    "login_issue": (
        "{prefix}Thank you for reporting this login issue. "
        "I'll help you regain access to your account quickly."
    ),
    "billing_issue": (
        "{prefix}I apologize for the billing confusion. "
        "Let me review your account and resolve this billing matter."
    ),
    "bug_report": (
        "{prefix}Thank you for reporting this bug. "
        "I'll investigate this issue and work on a solution."
    ),
    # 功能建议不加紧急前缀
    "feature_request": (
        "Thank you for this valuable feature suggestion. "
        "I'll ensure it reaches our product team."
    ),
    "integration_issue": (
        "{prefix}I understand integration issues can be disruptive. "
        "Let me help you get this connection working properly."
    ),
    "performance_issue": (
        "{prefix}I see you're experiencing performance issues. "
        "Let's work together to improve your experience."
    ),
}
_DEFAULT_ACKNOWLEDGMENT = (
    "{prefix}Thank you for contacting us. I'm here to help resolve your issue."
)

_FOLLOW_UPS: dict[str, str] = {
    "login_issue": (
        "If these steps don't resolve your login issue, I'll escalate to our "
        "authentication team. I'll follow up within {timeframe} to ensure you can "
        "access your account."
    ),
    "billing_issue": (
        "I'll process any necessary billing adjustments and send you a confirmation "
        "email. Please allow 2-3 business days for changes to appear, and contact me "
        "if you have any questions."
    ),
    "bug_report": (
        "I've logged this bug in our tracking system. Our development team will "
        "investigate, and I'll keep you updated on the progress. You can expect an "
        "update within {timeframe}."
    ),
    "feature_request": (
        "Your suggestion has been forwarded to our product team and added to our "
        "feature request backlog. We review these quarterly and prioritize based on "
        "customer feedback and business impact."
    ),
    "integration_issue": (
        "If the troubleshooting steps don't resolve the integration, I'll connect you "
        "with our technical integration team. I'll follow up within {timeframe} to "
        "ensure everything is working properly."
    ),
    "performance_issue": (
        "If you continue experiencing performance issues after trying these steps, "
        "please let me know. I'll monitor your account and follow up within "
        "{timeframe} to confirm the improvements."
    ),
}
_DEFAULT_FOLLOW_UP = "I'll follow up within {timeframe} to ensure your issue is fully resolved."

ESCALATION_NOTICE = (
    "**Priority Escalation**: Due to the urgency of this issue, I'm escalating this "
    "to our senior support team. You can expect a response within 2 hours."
)


def analyze_sentiment(message: str | None) -> Sentiment:
    """正/负面词计数比较，持平为 neutral"""
    lowered = (message or "").lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in lowered)
    negative = sum(1 for word in NEGATIVE_WORDS if word in lowered)
    if negative > positive:
        return Sentiment.NEGATIVE
    if positive > negative:
        return Sentiment.POSITIVE
    return Sentiment.NEUTRAL


def extract_key_topics(message: str | None) -> list[str]:
    lowered = (message or "").lower()
    return [
        topic
        for topic, words in TOPIC_KEYWORDS.items()
        if any(word in lowered for word in words)
    ]


class SupportAgent(BaseAgent):
    """客服回复 Agent"""

    name = "SupportAgent"
    version = "2.0.0"
    capabilities = (
        "advanced_nlu",
        "contextual_responses",
        "intent_classification",
        "entity_extraction",
        "escalation_detection",
    )

    def __init__(
        self,
        bus: EventBus,
        classifier: IntentClassifier | None = None,
        knowledge_base: KnowledgeBase | None = None,
        processing_delay_s: float = 0.0,
    ) -> None:
        """
        Args:
            bus: 事件总线
            classifier: 意图分类器，None 时使用内置意图表
            knowledge_base: 知识库，None 时使用内置数据
            processing_delay_s: 模拟处理耗时（秒），0 表示不等待
        """
        super().__init__(bus)
        self._classifier = classifier or IntentClassifier()
        self._kb = knowledge_base or KnowledgeBase()
        self.processing_delay_s = processing_delay_s
        self._processed = 0
        self._resolved = 0

    async def draft_support_reply(self, ticket: Ticket | Mapping[str, Any]) -> SupportReply:
        """分析工单并草拟回复"""
        if not isinstance(ticket, Ticket):
            ticket = Ticket.model_validate(dict(ticket))

        self._processed += 1
        if self.processing_delay_s > 0:
            await asyncio.sleep(self.processing_delay_s)

        message = ticket.message or ""
        intent_result = self._classifier.classify_intent(message)
        intent = intent_result.primary_intent
        entities = self._classifier.extract_entities(message)
        urgency = self._classifier.analyze_urgency(message, ticket.priority)
        sentiment = analyze_sentiment(message)
        escalation_needed = self._kb.should_escalate(intent, message, ticket.priority)
        next_steps = self._next_steps(intent, entities)

        response = self._compose_response(
            ticket,
            intent=intent,
            confidence=intent_result.confidence,
            entities=entities,
            urgency=urgency,
            escalation_needed=escalation_needed,
        )
        tags = self._tags(
            ticket,
            sentiment=sentiment,
            urgency=urgency,
            escalation_needed=escalation_needed,
            topics=extract_key_topics(message),
        )

        log.info(
            "support_reply_drafted",
            ticket_id=ticket.ticket_id,
            intent=intent,
            urgency=urgency.value,
            escalation_needed=escalation_needed,
        )
        return SupportReply(
            ticket_id=ticket.ticket_id,
            suggested_response=response,
            confidence=intent_result.confidence,
            category=ticket.category,
            intent=intent,
            sentiment=sentiment,
            urgency=urgency,
            escalation_needed=escalation_needed,
            next_steps=next_steps,
            tags=tags,
            entities=entities,
        )

    def mark_resolved(self) -> None:
        self._resolved += 1

    def get_stats(self) -> dict[str, Any]:
        return {
            **super().get_stats(),
            "processed": self._processed,
            "resolved": self._resolved,
        }

    def _next_steps(self, intent: str, entities: dict[str, list[str]]) -> list[str]:
        steps = list(self._kb.get_solution(intent).follow_up_actions)
        if "email" in entities:
            steps.append("Send confirmation email to provided address")
        if "error_code" in entities:
            steps.append(f"Research error code: {entities['error_code'][0]}")
        if "browser" in entities:
            steps.append(f"Test with {entities['browser'][0]} browser compatibility")
        steps.append(DEFAULT_FOLLOW_UP_STEP)
        return steps

    def _compose_response(
        self,
        ticket: Ticket,
        *,
        intent: str,
        confidence: float,
        entities: dict[str, list[str]],
        urgency: Urgency,
        escalation_needed: bool,
    ) -> str:
        sections: list[str] = []
        customer = ticket.customer_name or "Valued Customer"
        sections.append(f"Dear {customer},")

        prefix = "I understand this is urgent. " if urgency == Urgency.HIGH else ""
        sections.append(_ACKNOWLEDGMENTS.get(intent, _DEFAULT_ACKNOWLEDGMENT).format(prefix=prefix))

        if entities:
            sections.append(_investigation_section(entities))

        steps = self._kb.get_solution(intent).troubleshooting_steps[:MAX_TROUBLESHOOTING_STEPS]
        if steps:
            numbered = "\n".join(f"{i}. {step}" for i, step in enumerate(steps, start=1))
            sections.append(f"Here's how we can resolve this:\n\n{numbered}")

        if escalation_needed:
            sections.append(ESCALATION_NOTICE)

        timeframe = FOLLOW_UP_TIMEFRAMES.get(urgency, "24 hours")
        sections.append(_FOLLOW_UPS.get(intent, _DEFAULT_FOLLOW_UP).format(timeframe=timeframe))

        footer = [
            "---",
            f"Ticket ID: {ticket.ticket_id}",
            f"Classification: {intent} ({round_half_up(confidence * 100)}% confidence)",
            f"Priority: {ticket.priority} | Urgency: {urgency}",
        ]
        if "error_code" in entities:
            footer.append(f"Error Code: {entities['error_code'][0]}")
        sections.append("\n".join(footer))
        sections.append("Best regards,\nCRM Cloud Support Team")

        return "\n\n".join(sections)

    @staticmethod
    def _tags(
        ticket: Ticket,
        *,
        sentiment: Sentiment,
        urgency: Urgency,
        escalation_needed: bool,
        topics: list[str],
    ) -> list[str]:
        tags = [ticket.category.lower().replace(" ", "_"), f"priority_{str(ticket.priority).lower()}"]
        if sentiment != Sentiment.NEUTRAL:
            tags.append(f"sentiment_{sentiment}")
        if urgency == Urgency.HIGH:
            tags.append("urgent")
        if escalation_needed:
            tags.append("escalated")
        tags.extend(topics)
        return tags


def _investigation_section(entities: dict[str, list[str]]) -> str:
    lines = ["Based on my analysis:"]
    if "error_code" in entities:
        lines.append(
            f'- I found error code "{entities["error_code"][0]}" which indicates a specific system issue'
        )
    if "browser" in entities:
        lines.append(
            f"- You're using {entities['browser'][0]}, which helps me provide targeted solutions"
        )
    if "version" in entities:
        lines.append(
            f"- Version {entities['version'][0]} information helps me understand the context"
        )
    if "url" in entities:
        lines.append("- I've noted the specific URL mentioned for targeted troubleshooting")
    return "\n".join(lines)
