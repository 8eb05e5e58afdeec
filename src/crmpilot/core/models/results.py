"""Agent 输出结果模型"""

from typing import Any

from pydantic import BaseModel, Field

from .enums import Decision, OrderUrgency, RiskLevel, Sentiment, Urgency


class QualificationResult(BaseModel):
    """LeadAgent.qualify_lead 结果"""

    lead_id: str
    score: int = Field(ge=0, le=100)
    decision: Decision
    reasons: list[str] = Field(default_factory=list)


class IntentResult(BaseModel):
    """意图分类结果

    confidence 为原始加权分，不归一化到 [0,1]。
    """

    primary_intent: str = "general"
    confidence: float = 0.0
    all_scores: dict[str, float] = Field(default_factory=dict)


class SupportReply(BaseModel):
    """SupportAgent.draft_support_reply 结果"""

    ticket_id: str
    suggested_response: str
    confidence: float = Field(description="原始意图分")
    category: str
    intent: str
    sentiment: Sentiment
    urgency: Urgency
    escalation_needed: bool
    next_steps: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    entities: dict[str, list[str]] = Field(default_factory=dict)


class Recommendation(BaseModel):
    """库存处置建议"""

    action: str
    reason: str
    priority: Urgency


class OrderRecommendation(BaseModel):
    """补货建议（仅在需要补货时给出）"""

    recommended: bool = True
    quantity: int = Field(ge=0)
    urgency: OrderUrgency


class InventoryAnalysis(BaseModel):
    """SupplyAgent.analyze_inventory 结果"""

    sku: str
    days_of_supply: int
    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    needs_reorder: bool
    recommendations: list[Recommendation] = Field(default_factory=list)
    order_recommendation: OrderRecommendation | None = None


class BatchResult(BaseModel):
    """processBatch 结果：单项失败不中断整批"""

    results: list[Any] = Field(default_factory=list)
    errors: list[dict[str, Any]] = Field(default_factory=list)
