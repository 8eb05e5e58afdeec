"""CRMPilot 测试配置 -- 共享 fixture"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio
from crmpilot.core.event_bus import EventBus
from crmpilot.core.models import InventoryItem, Lead, SlaPolicy, Ticket
from crmpilot.core.store import StoreGroup, create_store_group
from crmpilot.orchestrator import OrchestratorConfig, Platform, create_platform


@pytest.fixture
def now() -> datetime:
    """固定的参考时间"""
    return datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def stores(bus: EventBus) -> StoreGroup:
    """以 bus 作为发布者的空 Store 组"""
    return create_store_group(bus)


@pytest.fixture
def make_lead() -> Callable[..., Lead]:
    """Lead 工厂：默认是一个满分线索（$250K+ / high / referral / 刚活跃）"""

    def _make(**overrides: Any) -> Lead:
        data: dict[str, Any] = {
            "name": "Sarah Chen",
            "company": "TechCorp Inc",
            "email": "sarah@techcorp.example",
            "source": "referral",
            "budget": "$250K+",
            "intent": "high",
            "last_activity": datetime.now(UTC),
        }
        data.update(overrides)
        return Lead.model_validate(data)

    return _make


@pytest.fixture
def make_ticket() -> Callable[..., Ticket]:
    def _make(**overrides: Any) -> Ticket:
        data: dict[str, Any] = {
            "subject": "Login issues with CRM Cloud",
            "customer_name": "John Smith",
            "customer_email": "john@example.com",
            "category": "Technical",
            "priority": "Medium",
            "message": "I can't login, password incorrect, urgent!!",
        }
        data.update(overrides)
        return Ticket.model_validate(data)

    return _make


@pytest.fixture
def make_item() -> Callable[..., InventoryItem]:
    """InventoryItem 工厂：默认是库存充足、低风险的物料"""

    def _make(**overrides: Any) -> InventoryItem:
        data: dict[str, Any] = {
            "sku": "SKU-0001",
            "name": "Widget Pro X1",
            "current_stock": 400,
            "reorder_point": 100,
            "max_stock": 500,
            "daily_demand": 10,
            "supplier_eta_days": 3,
            "backorders": 0,
            "unit_cost": 20.0,
            "supplier": "TechSupply Co",
        }
        data.update(overrides)
        return InventoryItem.model_validate(data)

    return _make


@pytest.fixture
def critical_item(make_item: Callable[..., InventoryItem]) -> InventoryItem:
    """stock 10 / reorder point 100 / ETA 25 / backorders 40 / demand 5"""
    return make_item(
        sku="SKU-CRIT",
        name="Sensor Module Beta",
        current_stock=10,
        reorder_point=100,
        daily_demand=5,
        supplier_eta_days=25,
        backorders=40,
    )


@pytest.fixture
def days_ago(now: datetime) -> Callable[[float], datetime]:
    return lambda days: now - timedelta(days=days)


@pytest.fixture
def platform_config() -> OrchestratorConfig:
    """测试用配置（不读环境变量）"""
    return OrchestratorConfig(metrics_mode="local", max_concurrent=3, processing_delay_s=0)


@pytest.fixture
def platform(platform_config: OrchestratorConfig) -> Platform:
    """已装配、未启动的平台"""
    return create_platform(platform_config, sla_policy=SlaPolicy())


@pytest_asyncio.fixture
async def started_platform(platform: Platform) -> AsyncGenerator[Platform, None]:
    """已启动的平台，测试结束后停止"""
    await platform.start()
    yield platform
    await platform.stop()
