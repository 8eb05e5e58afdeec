"""配置常量模块 -- 可通过环境变量覆盖

包含事件历史容量、任务保留时长、供应巡检周期等可配置常量，
以及评分阈值等固定业务常量。
"""

import os


def _int_env(name: str, default: int) -> int:
    """读取整数环境变量，非法值回退到默认值"""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    """读取浮点环境变量，非法值回退到默认值"""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# 事件总线历史容量（FIFO，超出后丢弃最旧事件）
EVENT_HISTORY_MAX: int = _int_env("CRMPILOT_EVENT_HISTORY_MAX", 100)

# 同一事件类型在派发过程中允许的重入层数（0 表示禁止重入）
EVENT_MAX_REENTRY: int = _int_env("CRMPILOT_EVENT_MAX_REENTRY", 0)

# 终态任务保留时长（小时），超过后由 cleanup 移除
TASK_RETENTION_HOURS: int = _int_env("CRMPILOT_TASK_RETENTION_HOURS", 24)

# Supply Agent 后台巡检周期（秒）
SUPPLY_SWEEP_INTERVAL_S: float = _float_env("CRMPILOT_SUPPLY_SWEEP_INTERVAL_S", 30.0)

# 线索资格阈值
QUALIFY_THRESHOLD: int = 70
NURTURE_THRESHOLD: int = 40
WON_THRESHOLD: int = 85

# 巡检告警的最低风险分
SWEEP_ALERT_RISK_THRESHOLD: int = 60
