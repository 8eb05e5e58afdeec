"""Task Domain Model

任务由编排器的事件路由创建，状态在队列内原地流转：
pending -> processing -> completed | failed
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field
from ulid import ULID

from .enums import TaskPriority, TaskStatus


class Task(BaseModel):
    """Task 数据模型"""

    task_id: str = Field(
        default_factory=lambda: str(ULID()),
        description="唯一标识，ULID 格式",
    )
    type: str = Field(description="任务类型，如 schedule_demo")
    payload: dict[str, Any] = Field(default_factory=dict, description="任务参数")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    source: str = Field(default="system", description="创建来源")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="创建时间",
    )
    started_at: datetime | None = Field(default=None, description="开始处理时间")
    completed_at: datetime | None = Field(default=None, description="完成时间")
    failed_at: datetime | None = Field(default=None, description="失败时间")
    error: str | None = Field(default=None, description="失败原因")


class TaskOutcome(BaseModel):
    """processNextTask 的单次处理结果"""

    success: bool
    task: Task
    error: str | None = None
