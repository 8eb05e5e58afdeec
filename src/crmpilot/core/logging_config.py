"""structlog 配置模块

dev 模式：pretty print 可读输出
json 模式：结构化 JSON 输出
"""

import logging
import os
import sys

import structlog

# 第三方库日志统一抬高到 WARNING
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    log_format: str | None = None,
    log_level: str | None = None,
) -> None:
    """初始化 structlog 配置

    参数优先于环境变量；未传入时读取：
    - CRMPILOT_LOG_FORMAT: "json" 结构化输出 / "dev" (默认) 可读输出
    - CRMPILOT_LOG_LEVEL: 日志级别 (默认 INFO)
    """
    log_format = log_format or os.environ.get("CRMPILOT_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("CRMPILOT_LOG_LEVEL", "INFO")
    level = getattr(logging, log_level.upper(), logging.INFO)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )

    # 第三方库走标准库 logging
    logging.basicConfig(level=level, stream=sys.stderr, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
