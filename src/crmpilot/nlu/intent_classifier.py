"""IntentClassifier -- 关键词 + 正则的确定性意图分类

意图得分 = (关键词命中次数 × 1.0 + 命中正则数 × 2.0) × 意图权重。
- 关键词：对小写消息做整词匹配，统计全部出现次数
- 正则：大小写不敏感，每条最多计一次
confidence 为原始加权分，不归一化。
"""

import re

import structlog
from pydantic import BaseModel, Field

from crmpilot.core.models.enums import TicketPriority, Urgency
from crmpilot.core.models.results import IntentResult

log = structlog.get_logger()

GENERAL_INTENT = "general"

KEYWORD_POINTS = 1.0
PATTERN_POINTS = 2.0


class IntentPattern(BaseModel):
    """单个意图的匹配规则"""

    name: str = Field(description="意图名称")
    keywords: list[str] = Field(default_factory=list, description="整词匹配关键词")
    patterns: list[str] = Field(default_factory=list, description="正则（大小写不敏感）")
    weight: float = Field(default=1.0, gt=0, description="意图权重")


def _get_default_intents() -> list[IntentPattern]:
    """内置意图表（顺序即同分时的优先顺序）"""
    return [
        IntentPattern(
            name="login_issue",
            keywords=[
                "login", "signin", "sign in", "password", "authentication",
                "access", "locked out", "forgot password",
            ],
            patterns=[
                r"can't log(?:in| in)|cannot log(?:in| in)",
                r"password (?:not working|incorrect|wrong)",
                r"(?:forgot|forgotten|lost) (?:my )?password",
                r"account (?:locked|blocked|suspended)",
            ],
            weight=1.2,
        ),
        IntentPattern(
            name="billing_issue",
            keywords=[
                "billing", "payment", "charge", "invoice", "refund",
                "subscription", "credit card", "overcharged",
            ],
            patterns=[
                r"(?:wrong|incorrect|unexpected) (?:charge|billing|amount)",
                r"(?:refund|money back|return)",
                r"subscription (?:cancelled|canceled|stopped)",
                r"payment (?:failed|declined|not working)",
            ],
            weight=1.1,
        ),
        IntentPattern(
            name="feature_request",
            keywords=[
                "feature", "functionality", "add", "improvement", "enhance",
                "suggestion", "would like", "need",
            ],
            patterns=[
                r"(?:can you|could you|please) add",
                r"(?:feature request|new feature)",
                r"would (?:like|love) to (?:see|have)",
                r"suggestion for improvement",
            ],
            weight=1.0,
        ),
        IntentPattern(
            name="bug_report",
            keywords=[
                "bug", "error", "broken", "not working", "issue", "problem",
                "crash", "freeze",
            ],
            patterns=[
                r"(?:error|bug|problem) (?:with|in|on)",
                r"(?:not working|broken|crashed)",
                r"(?:getting (?:an )?error|receiving (?:an )?error)",
                r"(?:page|app|system) (?:frozen|hanging|stuck)",
            ],
            weight=1.3,
        ),
        IntentPattern(
            name="integration_issue",
            keywords=[
                "integration", "api", "webhook", "sync", "connection",
                "third party", "export", "import",
            ],
            patterns=[
                r"(?:api|integration) (?:not working|failing|broken)",
                r"(?:sync|synchronization) (?:issue|problem|not working)",
                r"(?:webhook|connection) (?:failed|timeout|error)",
                r"(?:export|import) (?:not working|failing)",
            ],
            weight=1.1,
        ),
        IntentPattern(
            name="performance_issue",
            keywords=[
                "slow", "performance", "loading", "timeout", "lag", "speed",
                "response time",
            ],
            patterns=[
                r"(?:very|too|really) slow",
                r"(?:loading|takes) (?:forever|too long|a long time)",
                r"(?:performance|speed) (?:issue|problem)",
                r"(?:timeout|timed out)",
            ],
            weight=1.2,
        ),
    ]


# 实体抽取正则，返回完整匹配串
ENTITY_PATTERNS: dict[str, re.Pattern[str]] = {
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b"),
    "url": re.compile(r"https?://[^\s]+"),
    "error_code": re.compile(r"(?:error|code)\s*[:=#]?\s*([A-Z0-9_-]+)", re.IGNORECASE),
    "version": re.compile(r"(?:version|ver|v)\.?\s*(\d+(?:\.\d+)*)", re.IGNORECASE),
    "browser": re.compile(
        r"(?:chrome|firefox|safari|edge|internet explorer|ie)\s*(\d+)?",
        re.IGNORECASE,
    ),
    "os": re.compile(r"(?:windows|mac|linux|android|ios)\s*(\d+(?:\.\d+)*)?", re.IGNORECASE),
}

URGENT_KEYWORDS = (
    "urgent", "asap", "immediately", "critical", "emergency",
    "production down", "can't work",
)
MODERATE_KEYWORDS = ("soon", "important", "blocking", "affecting users")


class _CompiledIntent:
    __slots__ = ("name", "keyword_regexes", "pattern_regexes", "weight")

    def __init__(self, pattern: IntentPattern) -> None:
        self.name = pattern.name
        self.keyword_regexes = [
            re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)
            for keyword in pattern.keywords
        ]
        self.pattern_regexes = [re.compile(p, re.IGNORECASE) for p in pattern.patterns]
        self.weight = pattern.weight


class IntentClassifier:
    """意图分类器（无状态，可共享）"""

    def __init__(self, intents: list[IntentPattern] | None = None) -> None:
        """
        Args:
            intents: 意图表，None 时使用内置表
        """
        intent_list = intents if intents is not None else _get_default_intents()
        self._intents = [_CompiledIntent(pattern) for pattern in intent_list]

    @property
    def intent_names(self) -> list[str]:
        return [intent.name for intent in self._intents]

    def classify_intent(self, message: str | None) -> IntentResult:
        """对消息打分并选出主意图

        同分时按意图表顺序取先出现者；全部为 0 时返回 general。
        """
        text = message or ""
        lowered = text.lower()

        scores: dict[str, float] = {}
        for intent in self._intents:
            score = 0.0
            for regex in intent.keyword_regexes:
                score += len(regex.findall(lowered)) * KEYWORD_POINTS
            for regex in intent.pattern_regexes:
                if regex.search(text):
                    score += PATTERN_POINTS
            scores[intent.name] = score * intent.weight

        primary = GENERAL_INTENT
        confidence = 0.0
        for name, score in scores.items():
            if score > confidence:
                primary, confidence = name, score

        log.debug("intent_classified", primary_intent=primary, confidence=confidence)
        return IntentResult(
            primary_intent=primary,
            confidence=confidence,
            all_scores=scores,
        )

    @staticmethod
    def extract_entities(message: str | None) -> dict[str, list[str]]:
        """抽取实体，只返回至少命中一次的实体类型"""
        text = message or ""
        entities: dict[str, list[str]] = {}
        for entity_type, pattern in ENTITY_PATTERNS.items():
            matches = [m.group(0) for m in pattern.finditer(text)]
            if matches:
                entities[entity_type] = matches
        return entities

    @staticmethod
    def analyze_urgency(message: str | None, priority: TicketPriority | str | None) -> Urgency:
        """紧急度：紧急关键词或 High → high；一般关键词或 Medium → medium；否则 low"""
        lowered = (message or "").lower()
        priority_value = str(priority) if priority is not None else ""

        if any(k in lowered for k in URGENT_KEYWORDS) or priority_value == TicketPriority.HIGH:
            return Urgency.HIGH
        if any(k in lowered for k in MODERATE_KEYWORDS) or priority_value == TicketPriority.MEDIUM:
            return Urgency.MEDIUM
        return Urgency.LOW
