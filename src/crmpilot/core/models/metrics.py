"""指标快照模型

HTTP 指标端点返回 camelCase 字段，通过 alias 兼容；
populate_by_name 允许本地计算时直接用 snake_case 构造。
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MetricsSnapshot(BaseModel):
    """跨领域指标快照（只读）"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_leads: int = 0
    active_tickets: int = 0
    inventory_alerts: int = 0
    conversion_rate: float = 0.0
    avg_lead_score: float = 0.0
    sla_compliance: float = Field(default=100.0)
    avg_handle_time: float = 0.0
    fill_rate: float = Field(default=100.0)
    inventory_value: float = 0.0
