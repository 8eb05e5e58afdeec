"""CRMPilot Orchestrator -- 事件路由、任务执行、工作流编排与平台装配"""

from .config import OrchestratorConfig, load_orchestrator_config, load_sla_policy
from .executor import TaskExecutor
from .metrics_source import HttpMetricsSource, StoreMetricsSource
from .platform import Platform, create_platform, platform_lifespan
from .routing import ROUTES, EventRouter, TaskSpec, TaskType, route_event
from .service import Orchestrator

__all__ = [
    "Orchestrator",
    "OrchestratorConfig",
    "load_orchestrator_config",
    "load_sla_policy",
    "TaskExecutor",
    "EventRouter",
    "TaskSpec",
    "TaskType",
    "ROUTES",
    "route_event",
    "HttpMetricsSource",
    "StoreMetricsSource",
    "Platform",
    "create_platform",
    "platform_lifespan",
]
