"""CRMPilot Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    BRANCH_STAGES,
    PRIORITY_RANK,
    STAGE_ORDER,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    Decision,
    EventType,
    InventoryStatus,
    LeadBudget,
    LeadIntent,
    LeadSource,
    LeadStage,
    NotificationType,
    OrderUrgency,
    RiskLevel,
    Sentiment,
    TaskPriority,
    TaskStatus,
    TicketPriority,
    TicketStatus,
    Urgency,
    validate_stage_transition,
    validate_transition,
)
from .event import Event
from .inventory import InventoryItem, PurchaseOrder, derive_inventory_status
from .lead import Lead
from .metrics import MetricsSnapshot
from .payloads import (
    InventoryChangedPayload,
    LeadEventPayload,
    LeadQualifiedPayload,
    Notification,
    SupplyAlertPayload,
    TicketEventPayload,
    WorkflowFailedPayload,
)
from .results import (
    BatchResult,
    IntentResult,
    InventoryAnalysis,
    OrderRecommendation,
    QualificationResult,
    Recommendation,
    SupportReply,
)
from .task import Task, TaskOutcome
from .ticket import DEFAULT_SLA_POLICY, SlaPolicy, Ticket

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    "EventType",
    "LeadStage",
    "LeadSource",
    "LeadIntent",
    "LeadBudget",
    "Decision",
    "TicketStatus",
    "TicketPriority",
    "InventoryStatus",
    "RiskLevel",
    "Urgency",
    "Sentiment",
    "OrderUrgency",
    "NotificationType",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "PRIORITY_RANK",
    "STAGE_ORDER",
    "BRANCH_STAGES",
    "validate_transition",
    "validate_stage_transition",
    # 实体
    "Event",
    "Task",
    "TaskOutcome",
    "Lead",
    "Ticket",
    "SlaPolicy",
    "DEFAULT_SLA_POLICY",
    "InventoryItem",
    "PurchaseOrder",
    "derive_inventory_status",
    "MetricsSnapshot",
    # Payloads
    "LeadEventPayload",
    "LeadQualifiedPayload",
    "TicketEventPayload",
    "InventoryChangedPayload",
    "SupplyAlertPayload",
    "Notification",
    "WorkflowFailedPayload",
    # 结果
    "QualificationResult",
    "IntentResult",
    "SupportReply",
    "Recommendation",
    "OrderRecommendation",
    "InventoryAnalysis",
    "BatchResult",
]
