"""枚举定义

包含 TaskStatus 状态机、TaskPriority 优先级排序、LeadStage 阶段推进规则，
以及线索/工单/库存/事件类型等领域枚举。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """任务状态机"""

    PENDING = "pending"
    PROCESSING = "processing"

    # 终态
    COMPLETED = "completed"
    FAILED = "failed"


# 合法状态流转（不做自动重试，FAILED 为终态）
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.PROCESSING},
    TaskStatus.PROCESSING: {TaskStatus.COMPLETED, TaskStatus.FAILED},
    TaskStatus.COMPLETED: set(),
    TaskStatus.FAILED: set(),
}

TERMINAL_STATES: set[TaskStatus] = {
    TaskStatus.COMPLETED,
    TaskStatus.FAILED,
}


class TaskPriority(StrEnum):
    """任务优先级"""

    IMMEDIATE = "immediate"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# 出队排序权重，数值越大越先处理
PRIORITY_RANK: dict[TaskPriority, int] = {
    TaskPriority.IMMEDIATE: 3,
    TaskPriority.HIGH: 2,
    TaskPriority.MEDIUM: 1,
    TaskPriority.LOW: 0,
}


class EventType(StrEnum):
    """领域事件类型（点分命名）"""

    LEAD_CREATED = "lead.created"
    LEAD_UPDATED = "lead.updated"
    LEAD_QUALIFIED = "lead.qualified"
    LEAD_UNQUALIFIED = "lead.unqualified"

    TICKET_ESCALATION_REQUIRED = "ticket.escalation_required"
    TICKET_ESCALATED = "ticket.escalated"
    TICKET_REPLIED = "ticket.replied"
    TICKET_RESOLVED = "ticket.resolved"

    INVENTORY_CHANGED = "inventory.changed"
    INVENTORY_ANALYZED = "inventory.analyzed"
    INVENTORY_CRITICAL_ALERT = "inventory.critical_alert"
    SUPPLY_ALERT = "supply.alert"

    ORDER_RECOMMENDED = "order.recommended"
    ORDER_GENERATED = "order.generated"

    METRICS_UPDATED = "metrics.updated"


class LeadStage(StrEnum):
    """线索阶段"""

    NEW = "new"
    CONTACTED = "contacted"
    NURTURE = "nurture"
    QUALIFIED = "qualified"
    WON = "won"
    # 分支阶段：任何时候都可以进入
    UNQUALIFIED = "unqualified"
    LOST = "lost"


# 主线推进顺序，只能前进不能回退
STAGE_ORDER: dict[LeadStage, int] = {
    LeadStage.NEW: 0,
    LeadStage.CONTACTED: 1,
    LeadStage.NURTURE: 2,
    LeadStage.QUALIFIED: 3,
    LeadStage.WON: 4,
}

BRANCH_STAGES: set[LeadStage] = {LeadStage.UNQUALIFIED, LeadStage.LOST}


class LeadSource(StrEnum):
    """线索来源"""

    REFERRAL = "referral"
    EVENT = "event"
    WEBSITE = "website"
    AD = "ad"


class LeadIntent(StrEnum):
    """购买意向"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LeadBudget(StrEnum):
    """预算档位"""

    TIER_10K_50K = "$10K-50K"
    TIER_50K_100K = "$50K-100K"
    TIER_100K_250K = "$100K-250K"
    TIER_250K_PLUS = "$250K+"


class Decision(StrEnum):
    """线索资格判定"""

    QUALIFY = "QUALIFY"
    NURTURE = "NURTURE"
    DROP = "DROP"


class TicketStatus(StrEnum):
    """工单状态"""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(StrEnum):
    """工单优先级（首字母大写，与 SLA 策略键一致）"""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class InventoryStatus(StrEnum):
    """库存状态（由库存量与再订货点推导）"""

    HEALTHY = "healthy"
    LOW = "low"
    CRITICAL = "critical"
    OUT_OF_STOCK = "out_of_stock"


class RiskLevel(StrEnum):
    """供应风险等级"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Urgency(StrEnum):
    """工单紧急度 / 建议优先级"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Sentiment(StrEnum):
    """工单情绪"""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class OrderUrgency(StrEnum):
    """补货建议紧急度"""

    NORMAL = "normal"
    URGENT = "urgent"


class NotificationType(StrEnum):
    """UI 通知类型"""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证任务状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed


def validate_stage_transition(from_stage: LeadStage, to_stage: LeadStage) -> bool:
    """验证线索阶段推进是否合法

    - 原地不动总是合法
    - 进入分支阶段（unqualified/lost）总是合法
    - 已处于分支阶段时只能在分支阶段之间移动
    - 主线阶段只能前进
    """
    if from_stage == to_stage or to_stage in BRANCH_STAGES:
        return True
    if from_stage in BRANCH_STAGES:
        return False
    return STAGE_ORDER[to_stage] > STAGE_ORDER[from_stage]
