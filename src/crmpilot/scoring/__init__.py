"""CRMPilot Scoring Engine -- 评分与聚合指标（纯函数）"""

from .calculations import (
    aging_buckets,
    avg_handle_time,
    avg_lead_score,
    backlog,
    conversion_rate,
    csat_average,
    days_of_supply,
    fill_rate,
    first_response_time,
    inventory_value,
    lead_score,
    qualification_decision,
    reorder_needed,
    resolution_time,
    risk_level,
    round_half_up,
    sla_breached,
    sla_compliance,
    suggested_order_quantity,
    supply_risk_score,
    turnover,
)

__all__ = [
    "lead_score",
    "qualification_decision",
    "conversion_rate",
    "avg_lead_score",
    "aging_buckets",
    "first_response_time",
    "resolution_time",
    "sla_breached",
    "sla_compliance",
    "avg_handle_time",
    "backlog",
    "csat_average",
    "days_of_supply",
    "reorder_needed",
    "supply_risk_score",
    "risk_level",
    "suggested_order_quantity",
    "fill_rate",
    "inventory_value",
    "turnover",
    "round_half_up",
]
