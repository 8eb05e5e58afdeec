"""CRMPilot 异常体系

NotFound 不使用异常表达：查询返回 None，由调用方视为 no-op。
"""


class CRMPilotError(Exception):
    """CRMPilot 基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试或降级恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class MetricsUnavailableError(CRMPilotError):
    """指标源不可达（连接失败、超时、非 2xx 响应、响应体无法解析）

    Orchestrator 初始化时捕获此异常，记录日志后继续。
    """

    def __init__(self, url: str, original_error: Exception) -> None:
        """
        Args:
            url: 尝试访问的指标地址
            original_error: 原始异常
        """
        super().__init__(
            f"指标源不可达: {url} -- {original_error}",
            recoverable=True,
        )
        self.url = url
        self.original_error = original_error


class InvalidTransitionError(CRMPilotError):
    """任务状态非法流转"""

    def __init__(self, task_id: str, from_status: str, to_status: str) -> None:
        super().__init__(
            f"任务 {task_id} 不允许从 {from_status} 流转到 {to_status}",
            recoverable=False,
        )
        self.task_id = task_id
        self.from_status = from_status
        self.to_status = to_status


class InvalidStageTransitionError(CRMPilotError):
    """线索阶段非法回退"""

    def __init__(self, lead_id: str, from_stage: str, to_stage: str) -> None:
        super().__init__(
            f"线索 {lead_id} 不允许从 {from_stage} 回退到 {to_stage}",
            recoverable=False,
        )
        self.lead_id = lead_id
        self.from_stage = from_stage
        self.to_stage = to_stage


class UnknownBatchTypeError(CRMPilotError):
    """processBatch 不支持的批处理类型"""

    def __init__(self, kind: str) -> None:
        super().__init__(f"未知的批处理类型: {kind}", recoverable=False)
        self.kind = kind
