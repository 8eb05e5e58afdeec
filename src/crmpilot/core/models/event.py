"""Event Domain Model

事件一经创建即不可变，仅追加到事件总线历史中。
event_id 使用 ULID 格式，时间有序。
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from ulid import ULID


class Event(BaseModel):
    """Event 数据模型

    type 使用字符串而非 EventType，总线允许任意自定义事件类型。
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(
        default_factory=lambda: str(ULID()),
        description="唯一标识，ULID 格式，时间有序",
    )
    type: str = Field(description="事件类型，如 lead.qualified")
    payload: dict[str, Any] = Field(default_factory=dict, description="结构化 payload")
    source: str = Field(default="system", description="事件来源（Agent/Store 名称）")
    ts: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="事件时间戳",
    )
