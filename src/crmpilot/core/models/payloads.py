"""Event Payload 子类型

事件总线上传递的是 dict；这里定义各事件的结构，
发送方用 model_dump(mode="json") 生成 payload。
"""

from pydantic import BaseModel, Field

from .enums import NotificationType


class LeadEventPayload(BaseModel):
    """lead.created / lead.updated 事件 payload"""

    lead_id: str


class LeadQualifiedPayload(BaseModel):
    """lead.qualified 事件 payload"""

    lead_id: str
    lead_name: str
    company: str
    score: int
    qualification_time: str = Field(description="ISO8601 时间戳")


class TicketEventPayload(BaseModel):
    """ticket.* 事件 payload"""

    ticket_id: str


class InventoryChangedPayload(BaseModel):
    """inventory.changed 事件 payload"""

    sku: str
    new_stock: int


class SupplyAlertPayload(BaseModel):
    """supply.alert 事件 payload"""

    sku: str
    item_name: str
    current_stock: int
    reorder_point: int
    days_of_supply: int


class Notification(BaseModel):
    """UI 通知（toast）"""

    type: NotificationType = Field(default=NotificationType.INFO)
    title: str
    message: str = ""


class WorkflowFailedPayload(BaseModel):
    """*.processing_failed 事件 payload"""

    subject_id: str | None = Field(default=None, description="处理对象 ID（lead_id/ticket_id/sku）")
    error: str
