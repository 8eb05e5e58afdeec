"""集成测试共享 fixture"""

from collections.abc import AsyncGenerator

import pytest_asyncio
from crmpilot.core.models import SlaPolicy
from crmpilot.orchestrator import OrchestratorConfig, Platform, create_platform, platform_lifespan


@pytest_asyncio.fixture
async def live_platform(critical_item, make_item) -> AsyncGenerator[Platform, None]:
    """带种子库存、已启动的平台"""
    platform = create_platform(
        OrchestratorConfig(metrics_mode="local", max_concurrent=2),
        items=[critical_item, make_item(sku="SKU-OK", name="Widget Pro X1")],
        sla_policy=SlaPolicy(),
    )
    async with platform_lifespan(platform) as started:
        yield started
