"""OrchestratorConfig -- 编排器配置加载

从环境变量加载配置；非法值记录 warning 后回退默认值，不阻塞启动。
"""

import os
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field, ValidationError

from crmpilot.core.models.ticket import SlaPolicy

log = structlog.get_logger()

_TRUE_VALUES = {"1", "true", "yes", "on"}


class OrchestratorConfig(BaseModel):
    """编排器配置 -- 从环境变量加载

    环境变量:
        CRMPILOT_METRICS_MODE: 指标来源（local/http）
        CRMPILOT_METRICS_URL: HTTP 指标服务基础 URL
        CRMPILOT_METRICS_TIMEOUT_S: 指标请求超时（秒）
        CRMPILOT_MAX_CONCURRENT: 批处理并发度
        CRMPILOT_PROCESSING_DELAY_S: 模拟处理耗时（秒）
        CRMPILOT_AUTO_ESCALATE: 需要升级的工单是否自动升级
    """

    metrics_mode: Literal["local", "http"] = Field(
        default="local",
        description="指标来源：local（由 Store 计算）/ http（GET /api/metrics）",
    )
    metrics_url: str = Field(
        default="http://localhost:3000",
        description="HTTP 指标服务基础 URL",
    )
    metrics_timeout_s: float = Field(default=5.0, gt=0, description="指标请求超时（秒）")
    max_concurrent: int = Field(default=3, ge=1, description="批处理每组并发数")
    processing_delay_s: float = Field(default=0.0, ge=0, description="模拟处理耗时（秒）")
    auto_escalate: bool = Field(default=False, description="需要升级的工单自动升级")


# 环境变量 -> 配置字段
_ENV_FIELDS = {
    "CRMPILOT_METRICS_MODE": "metrics_mode",
    "CRMPILOT_METRICS_URL": "metrics_url",
    "CRMPILOT_METRICS_TIMEOUT_S": "metrics_timeout_s",
    "CRMPILOT_MAX_CONCURRENT": "max_concurrent",
    "CRMPILOT_PROCESSING_DELAY_S": "processing_delay_s",
}


def load_orchestrator_config() -> OrchestratorConfig:
    """从环境变量加载编排器配置

    每个字段单独校验，某个值非法只回退该字段。

    Returns:
        OrchestratorConfig 实例
    """
    kwargs: dict[str, Any] = {}

    for env_var, field_name in _ENV_FIELDS.items():
        val = os.environ.get(env_var)
        if not val:
            continue
        try:
            OrchestratorConfig(**{field_name: val})
        except ValidationError:
            log.warning(
                "invalid_orchestrator_config",
                env_var=env_var,
                value=val,
                fallback=OrchestratorConfig.model_fields[field_name].default,
            )
            continue
        kwargs[field_name] = val

    if val := os.environ.get("CRMPILOT_AUTO_ESCALATE"):
        kwargs["auto_escalate"] = val.strip().lower() in _TRUE_VALUES

    return OrchestratorConfig(**kwargs)


def load_sla_policy() -> SlaPolicy:
    """加载 SLA 策略，CRMPILOT_SLA_FIRST_RESPONSE_MINS 覆盖首次响应时限"""
    val = os.environ.get("CRMPILOT_SLA_FIRST_RESPONSE_MINS")
    if not val:
        return SlaPolicy()
    try:
        return SlaPolicy(first_response_mins=val)
    except ValidationError:
        log.warning(
            "invalid_orchestrator_config",
            env_var="CRMPILOT_SLA_FIRST_RESPONSE_MINS",
            value=val,
            fallback=SlaPolicy.model_fields["first_response_mins"].default,
        )
        return SlaPolicy()
