"""MetricsSource 实现

- StoreMetricsSource: 由 Store 数据经评分引擎计算
- HttpMetricsSource: GET {base_url}/api/metrics（camelCase JSON）
"""

import httpx
import structlog
from pydantic import ValidationError

from crmpilot.core.exceptions import MetricsUnavailableError
from crmpilot.core.models.enums import InventoryStatus
from crmpilot.core.models.metrics import MetricsSnapshot
from crmpilot.core.models.ticket import DEFAULT_SLA_POLICY, SlaPolicy
from crmpilot.core.store.protocols import InventoryStore, LeadStore, TicketStore
from crmpilot.scoring.calculations import (
    avg_handle_time,
    avg_lead_score,
    backlog,
    conversion_rate,
    fill_rate,
    inventory_value,
    sla_compliance,
)

log = structlog.get_logger()

METRICS_PATH = "/api/metrics"


class StoreMetricsSource:
    """从内存 Store 计算指标快照"""

    def __init__(
        self,
        lead_store: LeadStore,
        ticket_store: TicketStore,
        inventory_store: InventoryStore,
        sla_policy: SlaPolicy = DEFAULT_SLA_POLICY,
    ) -> None:
        self._leads = lead_store
        self._tickets = ticket_store
        self._inventory = inventory_store
        self._sla_policy = sla_policy

    async def fetch_metrics(self) -> MetricsSnapshot:
        leads = self._leads.list()
        tickets = self._tickets.list()
        items = self._inventory.list()
        return MetricsSnapshot(
            total_leads=len(leads),
            active_tickets=backlog(tickets),
            inventory_alerts=sum(1 for item in items if item.status == InventoryStatus.CRITICAL),
            conversion_rate=conversion_rate(leads),
            avg_lead_score=avg_lead_score(leads),
            sla_compliance=sla_compliance(tickets, self._sla_policy),
            avg_handle_time=avg_handle_time(tickets),
            fill_rate=fill_rate(items),
            inventory_value=inventory_value(items),
        )


class HttpMetricsSource:
    """HTTP 指标源

    连接失败、超时、非 2xx 响应、响应体无法解析都转换为 MetricsUnavailableError。
    """

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: 指标服务基础 URL
            timeout_s: 请求超时（秒）
            transport: 自定义 httpx transport（测试注入 MockTransport）
        """
        self._url = f"{base_url.rstrip('/')}{METRICS_PATH}"
        self._timeout_s = timeout_s
        self._transport = transport

    @property
    def url(self) -> str:
        return self._url

    async def fetch_metrics(self) -> MetricsSnapshot:
        try:
            async with httpx.AsyncClient(transport=self._transport) as http_client:
                resp = await http_client.get(self._url, timeout=self._timeout_s)
                resp.raise_for_status()
                return MetricsSnapshot.model_validate(resp.json())
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            log.debug("metrics_fetch_failed", url=self._url, error=str(e))
            raise MetricsUnavailableError(self._url, e) from e
