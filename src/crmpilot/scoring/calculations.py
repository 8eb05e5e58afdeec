"""评分与指标计算 -- 纯函数，无 I/O

所有取整均为四舍五入（half-up），不使用 Python 内置 round 的银行家舍入。
缺失或不完整的输入退化为 0 / 100 等默认值，不抛异常。
依赖当前时间的函数接受可选的 now 参数，便于确定性测试。
"""

import math
from collections.abc import Iterable
from datetime import UTC, datetime

from crmpilot.core.config import NURTURE_THRESHOLD, QUALIFY_THRESHOLD
from crmpilot.core.models.enums import (
    Decision,
    LeadBudget,
    LeadIntent,
    LeadSource,
    LeadStage,
    RiskLevel,
    TicketStatus,
)
from crmpilot.core.models.inventory import InventoryItem
from crmpilot.core.models.lead import Lead
from crmpilot.core.models.ticket import DEFAULT_SLA_POLICY, SlaPolicy, Ticket

# ============================================================
# 线索评分权重与映射表
# ============================================================

BUDGET_WEIGHT = 0.35
INTENT_WEIGHT = 0.35
RECENCY_WEIGHT = 0.20
SOURCE_WEIGHT = 0.10

BUDGET_SCORES: dict[LeadBudget, int] = {
    LeadBudget.TIER_10K_50K: 25,
    LeadBudget.TIER_50K_100K: 50,
    LeadBudget.TIER_100K_250K: 75,
    LeadBudget.TIER_250K_PLUS: 100,
}

INTENT_SCORES: dict[LeadIntent, int] = {
    LeadIntent.LOW: 20,
    LeadIntent.MEDIUM: 60,
    LeadIntent.HIGH: 100,
}

SOURCE_SCORES: dict[LeadSource, int] = {
    LeadSource.REFERRAL: 100,
    LeadSource.EVENT: 75,
    LeadSource.WEBSITE: 50,
    LeadSource.AD: 25,
}

# 每天不活跃扣减的新鲜度分
RECENCY_DECAY_PER_DAY = 3


def round_half_up(value: float) -> int:
    """四舍五入到整数（0.5 向上）"""
    return math.floor(value + 0.5)


def round_one_decimal(value: float) -> float:
    """四舍五入保留一位小数"""
    return round_half_up(value * 10) / 10


def _as_utc(dt: datetime) -> datetime:
    # naive 时间按 UTC 处理
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


def _now(now: datetime | None) -> datetime:
    return _as_utc(now) if now is not None else datetime.now(UTC)


def _whole_days_between(start: datetime, end: datetime) -> int:
    return (_as_utc(end) - _as_utc(start)).days


def _whole_minutes_between(start: datetime, end: datetime) -> int:
    # 向零截断
    return int((_as_utc(end) - _as_utc(start)).total_seconds() / 60)


# ============================================================
# 线索
# ============================================================


def lead_score(lead: Lead | None, now: datetime | None = None) -> int:
    """线索加权评分 [0, 100]

    预算 .35 + 意向 .35 + 新鲜度 .20 + 来源 .10；
    新鲜度 = max(0, 100 - 3 × 距最近活跃的整天数)，无活跃记录计 0。
    """
    if lead is None:
        return 0

    budget_score = BUDGET_SCORES.get(lead.budget, 0)
    intent_score = INTENT_SCORES.get(lead.intent, 0)
    source_score = SOURCE_SCORES.get(lead.source, 0)

    if lead.last_activity is None:
        recency_score = 0
    else:
        days = _whole_days_between(lead.last_activity, _now(now))
        recency_score = max(0, 100 - days * RECENCY_DECAY_PER_DAY)

    total = (
        budget_score * BUDGET_WEIGHT
        + intent_score * INTENT_WEIGHT
        + recency_score * RECENCY_WEIGHT
        + source_score * SOURCE_WEIGHT
    )
    return round_half_up(min(100.0, max(0.0, total)))


def qualification_decision(score: int) -> Decision:
    """按 70 / 40 阈值给出资格判定"""
    if score >= QUALIFY_THRESHOLD:
        return Decision.QUALIFY
    if score >= NURTURE_THRESHOLD:
        return Decision.NURTURE
    return Decision.DROP


def conversion_rate(leads: Iterable[Lead]) -> float:
    """赢单率（%，一位小数）；空集合返回 0"""
    leads = list(leads)
    if not leads:
        return 0.0
    won = sum(1 for lead in leads if lead.stage == LeadStage.WON)
    return round_one_decimal(won / len(leads) * 100)


def avg_lead_score(leads: Iterable[Lead], now: datetime | None = None) -> int:
    """平均线索分（按当前字段重新计算）；空集合返回 0"""
    leads = list(leads)
    if not leads:
        return 0
    total = sum(lead_score(lead, now) for lead in leads)
    return round_half_up(total / len(leads))


def aging_buckets(leads: Iterable[Lead], now: datetime | None = None) -> dict[str, int]:
    """按创建天数分桶：0-7 / 8-30 / 31+"""
    buckets = {"0-7": 0, "8-30": 0, "31+": 0}
    current = _now(now)
    for lead in leads:
        days = _whole_days_between(lead.created_at, current)
        if days <= 7:
            buckets["0-7"] += 1
        elif days <= 30:
            buckets["8-30"] += 1
        else:
            buckets["31+"] += 1
    return buckets


# ============================================================
# 工单 / SLA
# ============================================================


def first_response_time(ticket: Ticket | None) -> int | None:
    """首次响应耗时（整分钟）；未响应返回 None"""
    if ticket is None or ticket.first_response_at is None:
        return None
    return _whole_minutes_between(ticket.created_at, ticket.first_response_at)


def resolution_time(ticket: Ticket | None) -> int | None:
    """解决耗时（整分钟）；未解决返回 None"""
    if ticket is None or ticket.resolved_at is None:
        return None
    return _whole_minutes_between(ticket.created_at, ticket.resolved_at)


def sla_breached(ticket: Ticket | None, policy: SlaPolicy = DEFAULT_SLA_POLICY) -> bool:
    """首次响应超时，或解决时长超过该优先级时限，即视为违约"""
    if ticket is None:
        return False

    first_response = first_response_time(ticket)
    if first_response is not None and first_response > policy.first_response_mins:
        return True

    resolution = resolution_time(ticket)
    limit = policy.resolution_mins_by_priority.get(ticket.priority)
    if resolution is not None and limit is not None and resolution > limit:
        return True

    return False


def sla_compliance(
    tickets: Iterable[Ticket],
    policy: SlaPolicy = DEFAULT_SLA_POLICY,
) -> int:
    """SLA 达标率（%）；空集合返回 100"""
    tickets = list(tickets)
    if not tickets:
        return 100
    breached = sum(1 for ticket in tickets if sla_breached(ticket, policy))
    return round_half_up((len(tickets) - breached) / len(tickets) * 100)


def avg_handle_time(tickets: Iterable[Ticket]) -> float:
    """已解决工单的平均处理时长（小时，一位小数）"""
    durations = [
        minutes
        for minutes in (resolution_time(ticket) for ticket in tickets)
        if minutes is not None
    ]
    if not durations:
        return 0.0
    return round_one_decimal(sum(durations) / len(durations) / 60)


def backlog(tickets: Iterable[Ticket]) -> int:
    """未解决（非 resolved/closed）工单数"""
    return sum(
        1
        for ticket in tickets
        if ticket.status not in (TicketStatus.RESOLVED, TicketStatus.CLOSED)
    )


def csat_average(tickets: Iterable[Ticket]) -> float:
    """平均满意度（一位小数）；无评分返回 0"""
    scores = [ticket.csat for ticket in tickets if ticket.csat]
    if not scores:
        return 0.0
    return round_one_decimal(sum(scores) / len(scores))


# ============================================================
# 供应链
# ============================================================


def days_of_supply(item: InventoryItem | None) -> int:
    """可供应天数 = round(库存 / max(1, 日需求))"""
    if item is None:
        return 0
    return round_half_up(item.current_stock / max(1, item.daily_demand))


def reorder_needed(item: InventoryItem | None) -> bool:
    """库存不高于再订货点即需要补货"""
    if item is None:
        return False
    return item.current_stock <= item.reorder_point


def supply_risk_score(item: InventoryItem | None) -> int:
    """供应风险分 [0, 100]，三项累加后封顶

    - 库存比（库存/再订货点）：≤0.2 → 40, ≤0.5 → 30, ≤1 → 20
    - 供应商交期：>20 → 30, >10 → 20, >5 → 10
    - 缺货量 / 一周需求：>2 → 30, >1 → 20, >0.5 → 10
    """
    if item is None:
        return 0

    risk = 0

    if item.reorder_point > 0:
        stock_ratio = item.current_stock / item.reorder_point
        if stock_ratio <= 0.2:
            risk += 40
        elif stock_ratio <= 0.5:
            risk += 30
        elif stock_ratio <= 1:
            risk += 20

    eta = item.supplier_eta_days
    if eta > 20:
        risk += 30
    elif eta > 10:
        risk += 20
    elif eta > 5:
        risk += 10

    backorder_ratio = item.backorders / max(1, item.daily_demand * 7)
    if backorder_ratio > 2:
        risk += 30
    elif backorder_ratio > 1:
        risk += 20
    elif backorder_ratio > 0.5:
        risk += 10

    return min(100, risk)


def risk_level(risk_score: int) -> RiskLevel:
    """critical >80, high >60, medium >30, 其余 low"""
    if risk_score > 80:
        return RiskLevel.CRITICAL
    if risk_score > 60:
        return RiskLevel.HIGH
    if risk_score > 30:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def suggested_order_quantity(item: InventoryItem) -> int:
    """补足到 2 倍再订货点，且至少覆盖交期内需求"""
    return max(
        item.reorder_point * 2 - item.current_stock,
        item.daily_demand * item.supplier_eta_days,
    )


def fill_rate(items: Iterable[InventoryItem]) -> int:
    """满足率（%）：(月需求 - 缺货) / 月需求；空集合或零需求返回 100"""
    items = list(items)
    if not items:
        return 100
    total_backorders = sum(item.backorders for item in items)
    monthly_demand = sum(item.daily_demand * 30 for item in items)
    if monthly_demand == 0:
        return 100
    return round_half_up((monthly_demand - total_backorders) / monthly_demand * 100)


def inventory_value(items: Iterable[InventoryItem]) -> float:
    """库存总价值 = Σ 库存 × 单位成本"""
    return sum(item.current_stock * item.unit_cost for item in items)


def turnover(items: Iterable[InventoryItem]) -> float:
    """库存周转率 = 年需求价值 / 库存价值（一位小数）"""
    items = list(items)
    if not items:
        return 0.0
    annual_demand_value = sum(item.daily_demand * 365 * item.unit_cost for item in items)
    stock_value = inventory_value(items)
    if stock_value == 0:
        return 0.0
    return round_one_decimal(annual_demand_value / stock_value)
