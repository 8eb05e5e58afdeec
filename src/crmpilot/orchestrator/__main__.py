"""CLI 入口模块 -- python -m crmpilot.orchestrator <command>

支持的命令：
  demo  装配平台，依次运行线索 / 工单 / 库存工作流并消费任务队列
"""

import asyncio
import sys

from crmpilot.core.logging_config import setup_logging
from crmpilot.core.models.inventory import InventoryItem

from .config import OrchestratorConfig
from .platform import create_platform, platform_lifespan

DEMO_LEADS = [
    {
        "name": "Sarah Chen",
        "company": "TechCorp Inc",
        "email": "sarah.chen@techcorp.example",
        "source": "referral",
        "budget": "$250K+",
        "intent": "high",
    },
    {
        "name": "Tom Anderson",
        "company": "DataFlow Inc",
        "email": "tom@dataflow.example",
        "source": "ad",
        "budget": "$10K-50K",
        "intent": "low",
    },
]

DEMO_TICKET = {
    "subject": "Login issues with CRM Cloud",
    "customer_name": "John Smith",
    "customer_email": "john.smith@example.com",
    "category": "Technical",
    "priority": "Medium",
    "message": "I can't login, my password is incorrect and this is urgent!! Using Chrome.",
}

DEMO_ITEMS = [
    InventoryItem(
        sku="SKU-0001",
        name="Widget Pro X1",
        current_stock=10,
        reorder_point=100,
        max_stock=300,
        daily_demand=5,
        supplier_eta_days=25,
        backorders=40,
        unit_cost=120.0,
        supplier="TechSupply Co",
    ),
    InventoryItem(
        sku="SKU-0002",
        name="Circuit Board Alpha",
        current_stock=400,
        reorder_point=120,
        max_stock=480,
        daily_demand=12,
        supplier_eta_days=7,
        unit_cost=45.0,
        supplier="Component Central",
    ),
]


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m crmpilot.orchestrator <command>")
        print("命令:")
        print("  demo  运行端到端演示工作流")
        sys.exit(1)

    command = sys.argv[1]

    if command == "demo":
        setup_logging()
        asyncio.run(run_demo())
    else:
        print(f"未知命令: {command}")
        print("可用命令: demo")
        sys.exit(1)


async def run_demo() -> None:
    """执行演示工作流并打印摘要"""
    platform = create_platform(OrchestratorConfig(), items=DEMO_ITEMS)

    async with platform_lifespan(platform):
        orchestrator = platform.orchestrator

        print("== 线索资格 ==")
        batch = await orchestrator.process_batch("leads", DEMO_LEADS)
        for entry in batch.results:
            result = entry["result"]
            print(f"  {entry['item']}: score={result.score} decision={result.decision}")

        print("== 工单处理 ==")
        reply = await orchestrator.on_ticket_opened(DEMO_TICKET)
        if reply is not None:
            print(f"  {reply.ticket_id}: intent={reply.intent} urgency={reply.urgency}")
            print(f"  tags={', '.join(reply.tags)}")
            if reply.escalation_needed:
                orchestrator.escalate_ticket(reply.ticket_id)
            await orchestrator.on_ticket_reply(reply.ticket_id, reply.suggested_response)

        print("== 库存分析 ==")
        for item in DEMO_ITEMS:
            analysis = await orchestrator.on_inventory_selected(item.sku)
            if analysis is not None:
                print(
                    f"  {analysis.sku}: risk={analysis.risk_score} "
                    f"level={analysis.risk_level} reorder={analysis.needs_reorder}"
                )
        platform.supply_agent.sweep()
        await orchestrator.on_order_generation("SKU-0001")

        print("== 任务队列 ==")
        outcomes = await orchestrator.drain_tasks()
        for outcome in outcomes:
            status = "ok" if outcome.success else f"failed: {outcome.error}"
            print(f"  [{outcome.task.priority}] {outcome.task.type} ({status})")

        print("== 通知 ==")
        for notification in platform.stores.notification_sink.notifications:
            print(f"  [{notification.type}] {notification.title}: {notification.message}")

        print("== 摘要 ==")
        print(f"  事件数: {len(platform.bus.history)}")
        print(f"  工单数: {len(platform.stores.ticket_store.list())}")
        if orchestrator.metrics is not None:
            print(f"  转化率: {orchestrator.metrics.conversion_rate}%")


if __name__ == "__main__":
    main()
