"""LeadStore 内存实现

dict 保持插入顺序，list() 按插入顺序返回。
更新通过合并后的字典重新校验，校验失败时原记录保持不变。
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from crmpilot.scoring.calculations import lead_score

from ..exceptions import InvalidStageTransitionError
from ..models.enums import EventType, validate_stage_transition
from ..models.lead import Lead
from ..models.payloads import LeadEventPayload
from .protocols import EventPublisher

log = structlog.get_logger()

SOURCE_NAME = "LeadStore"


class InMemoryLeadStore:
    """LeadStore 的内存实现"""

    def __init__(self, publisher: EventPublisher | None = None) -> None:
        self._leads: dict[str, Lead] = {}
        self._publisher = publisher

    def find(self, lead_id: str) -> Lead | None:
        return self._leads.get(lead_id)

    def add(self, data: Lead | Mapping[str, Any], notify: bool = True) -> Lead:
        """新增线索

        未提供 last_activity 时取当前时间；未提供 score 时按当前字段计算初始评分。
        """
        lead = data if isinstance(data, Lead) else Lead.model_validate(dict(data))

        if lead.last_activity is None:
            lead = lead.model_copy(update={"last_activity": datetime.now(UTC)})
        if lead.score is None:
            lead = lead.model_copy(update={"score": lead_score(lead)})

        self._leads[lead.lead_id] = lead
        log.debug("lead_added", lead_id=lead.lead_id, score=lead.score)

        if notify and self._publisher is not None:
            self._publisher.emit(
                EventType.LEAD_CREATED,
                LeadEventPayload(lead_id=lead.lead_id).model_dump(),
                source=SOURCE_NAME,
            )
        return lead

    def update(self, lead_id: str, fields: Mapping[str, Any]) -> Lead | None:
        """部分更新线索，总是刷新 last_activity

        Raises:
            InvalidStageTransitionError: stage 回退
            pydantic.ValidationError: 字段值非法
        """
        current = self._leads.get(lead_id)
        if current is None:
            return None

        data = current.model_dump()
        data.update(fields)
        data["lead_id"] = lead_id
        data["last_activity"] = datetime.now(UTC)
        updated = Lead.model_validate(data)

        if not validate_stage_transition(current.stage, updated.stage):
            raise InvalidStageTransitionError(lead_id, current.stage, updated.stage)

        self._leads[lead_id] = updated
        return updated

    def list(self) -> list[Lead]:
        return list(self._leads.values())

    def __len__(self) -> int:
        return len(self._leads)
