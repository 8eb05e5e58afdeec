"""Lead Domain Model

score 只由资格评估（或入库时的初始评分）写入；
stage 只能沿主线前进，或进入 unqualified/lost 分支。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field
from ulid import ULID

from .enums import LeadBudget, LeadIntent, LeadSource, LeadStage


class Lead(BaseModel):
    """Lead 数据模型"""

    lead_id: str = Field(
        default_factory=lambda: str(ULID()),
        description="唯一标识",
    )
    name: str = Field(description="联系人姓名")
    company: str = Field(default="", description="公司名称")
    email: str = Field(default="", description="联系邮箱")
    source: LeadSource | None = Field(default=None, description="线索来源")
    budget: LeadBudget | None = Field(default=None, description="预算档位")
    intent: LeadIntent | None = Field(default=None, description="购买意向")
    last_activity: datetime | None = Field(default=None, description="最近活跃时间")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="创建时间",
    )
    score: int | None = Field(default=None, ge=0, le=100, description="线索评分")
    stage: LeadStage = Field(default=LeadStage.NEW, description="线索阶段")
