"""TicketStore 内存实现"""

from collections.abc import Mapping
from typing import Any

import structlog

from ..models.ticket import Ticket

log = structlog.get_logger()


class InMemoryTicketStore:
    """TicketStore 的内存实现

    更新后的记录整体重新校验，保证 resolved_at / first_response_at 不变量。
    """

    def __init__(self) -> None:
        self._tickets: dict[str, Ticket] = {}

    def find(self, ticket_id: str) -> Ticket | None:
        return self._tickets.get(ticket_id)

    def add(self, fields: Ticket | Mapping[str, Any]) -> Ticket:
        ticket = fields if isinstance(fields, Ticket) else Ticket.model_validate(dict(fields))
        self._tickets[ticket.ticket_id] = ticket
        log.debug(
            "ticket_added",
            ticket_id=ticket.ticket_id,
            priority=ticket.priority.value,
            assignee=ticket.assignee,
        )
        return ticket

    def update(self, ticket_id: str, fields: Mapping[str, Any]) -> Ticket | None:
        current = self._tickets.get(ticket_id)
        if current is None:
            return None

        data = current.model_dump()
        data.update(fields)
        data["ticket_id"] = ticket_id
        updated = Ticket.model_validate(data)
        self._tickets[ticket_id] = updated
        return updated

    def list(self) -> list[Ticket]:
        return list(self._tickets.values())

    def __len__(self) -> int:
        return len(self._tickets)
