"""TaskQueue -- 优先级任务队列

入队后整体按优先级稳定排序（同优先级保持 FIFO）。
不自动循环执行：调用方显式调用 process_next_task / drain。
失败为终态，不自动重试。
"""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from .config import TASK_RETENTION_HOURS
from .exceptions import InvalidTransitionError
from .models.enums import (
    PRIORITY_RANK,
    TERMINAL_STATES,
    TaskPriority,
    TaskStatus,
    validate_transition,
)
from .models.task import Task, TaskOutcome

log = structlog.get_logger()

TaskRunner = Callable[[Task], Awaitable[Any]]


class TaskQueue:
    """优先级任务队列"""

    def __init__(
        self,
        runner: TaskRunner | None = None,
        retention_hours: int = TASK_RETENTION_HOURS,
    ) -> None:
        """
        Args:
            runner: 任务执行函数，未设置时任务按 no-op 完成
            retention_hours: 终态任务保留时长
        """
        self._tasks: list[Task] = []
        self._runner = runner
        self._retention = timedelta(hours=retention_hours)

    def set_runner(self, runner: TaskRunner | None) -> None:
        self._runner = runner

    def add_task(
        self,
        type: str,
        payload: dict[str, Any] | None = None,
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        source: str = "system",
    ) -> Task:
        """创建 pending 任务并重排队列

        list.sort 是稳定排序，reverse=True 同样保持相等元素的原始顺序。
        """
        task = Task(
            type=type,
            payload=dict(payload or {}),
            priority=TaskPriority(priority),
            source=source,
        )
        self._tasks.append(task)
        self._tasks.sort(key=lambda t: PRIORITY_RANK[t.priority], reverse=True)

        log.debug(
            "task_enqueued",
            task_id=task.task_id,
            task_type=task.type,
            priority=task.priority.value,
            source=source,
        )
        return task

    async def process_next_task(self) -> TaskOutcome | None:
        """处理优先级最高的 pending 任务

        Returns:
            TaskOutcome；没有 pending 任务时返回 None
        """
        task = next((t for t in self._tasks if t.status == TaskStatus.PENDING), None)
        if task is None:
            return None

        self._transition(task, TaskStatus.PROCESSING)
        task.started_at = datetime.now(UTC)

        try:
            await self._run(task)
        except Exception as e:
            self._transition(task, TaskStatus.FAILED)
            task.failed_at = datetime.now(UTC)
            task.error = str(e) or type(e).__name__
            log.warning(
                "task_failed",
                task_id=task.task_id,
                task_type=task.type,
                error=task.error,
            )
            return TaskOutcome(success=False, task=task, error=task.error)

        self._transition(task, TaskStatus.COMPLETED)
        task.completed_at = datetime.now(UTC)
        log.debug("task_completed", task_id=task.task_id, task_type=task.type)
        return TaskOutcome(success=True, task=task)

    async def drain(self, limit: int | None = None) -> list[TaskOutcome]:
        """连续处理直到没有 pending 任务（或达到 limit）

        执行过程中新入队的任务同样会被处理。
        """
        outcomes: list[TaskOutcome] = []
        while limit is None or len(outcomes) < limit:
            outcome = await self.process_next_task()
            if outcome is None:
                break
            outcomes.append(outcome)
        return outcomes

    def pending_tasks(self) -> list[Task]:
        """按出队顺序返回 pending 任务"""
        return [t for t in self._tasks if t.status == TaskStatus.PENDING]

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def get_task(self, task_id: str) -> Task | None:
        return next((t for t in self._tasks if t.task_id == task_id), None)

    def cleanup(self, now: datetime | None = None) -> int:
        """移除超过保留时长的终态任务

        Returns:
            移除的任务数
        """
        cutoff = (now or datetime.now(UTC)) - self._retention
        kept = [
            t
            for t in self._tasks
            if not (t.status in TERMINAL_STATES and t.created_at < cutoff)
        ]
        removed = len(self._tasks) - len(kept)
        self._tasks = kept
        if removed:
            log.info("tasks_cleaned_up", removed=removed, remaining=len(kept))
        return removed

    def clear(self) -> None:
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)

    async def _run(self, task: Task) -> None:
        if self._runner is None:
            log.info("task_runner_missing", task_id=task.task_id, task_type=task.type)
            return
        await self._runner(task)

    @staticmethod
    def _transition(task: Task, to_status: TaskStatus) -> None:
        if not validate_transition(task.status, to_status):
            raise InvalidTransitionError(task.task_id, task.status, to_status)
        task.status = to_status
