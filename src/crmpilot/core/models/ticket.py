"""Ticket Domain Model + SLA 策略"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, model_validator
from ulid import ULID

from .enums import TicketPriority, TicketStatus


def _new_ticket_id() -> str:
    # ULID 末 8 位为随机部分
    return f"TCK-{str(ULID())[-8:]}"


class Ticket(BaseModel):
    """Ticket 数据模型

    不变量：
    - resolved_at 已设置 => first_response_at 必须已设置
    - status == resolved => resolved_at 必须已设置
    """

    ticket_id: str = Field(default_factory=_new_ticket_id, description="工单号 TCK-XXXXXXXX")
    subject: str = Field(default="", description="主题")
    customer_name: str = Field(default="", description="客户名称")
    customer_email: str = Field(default="", description="客户邮箱")
    category: str = Field(default="General", description="工单分类")
    priority: TicketPriority = Field(default=TicketPriority.MEDIUM, description="优先级")
    status: TicketStatus = Field(default=TicketStatus.OPEN, description="状态")
    message: str = Field(default="", description="客户原始消息")
    assignee: str | None = Field(default=None, description="处理人")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="创建时间",
    )
    first_response_at: datetime | None = Field(default=None, description="首次响应时间")
    resolved_at: datetime | None = Field(default=None, description="解决时间")
    csat: int | None = Field(default=None, ge=1, le=5, description="满意度评分")
    tags: list[str] = Field(default_factory=list, description="标签")

    @model_validator(mode="after")
    def _check_resolution_invariants(self) -> "Ticket":
        if self.resolved_at is not None and self.first_response_at is None:
            raise ValueError("resolved_at 已设置但缺少 first_response_at")
        if self.status == TicketStatus.RESOLVED and self.resolved_at is None:
            raise ValueError("status=resolved 但缺少 resolved_at")
        return self


class SlaPolicy(BaseModel):
    """SLA 策略：首次响应阈值 + 按优先级的解决时限（分钟）"""

    first_response_mins: int = Field(default=240, ge=0, description="首次响应时限（分钟）")
    resolution_mins_by_priority: dict[TicketPriority, int] = Field(
        default_factory=lambda: {
            TicketPriority.HIGH: 480,
            TicketPriority.MEDIUM: 1440,
            TicketPriority.LOW: 4320,
        },
        description="各优先级解决时限（分钟）",
    )


DEFAULT_SLA_POLICY = SlaPolicy()
