"""NotificationSink 内存实现 -- 记录所有通知，供 UI 轮询或测试断言"""

from collections import deque

import structlog

from ..models.payloads import Notification

log = structlog.get_logger()


class RecordingNotificationSink:
    """记录通知的 Sink（有界，超出后丢弃最旧）"""

    def __init__(self, maxlen: int = 100) -> None:
        self._notifications: deque[Notification] = deque(maxlen=maxlen)

    def notify(self, notification: Notification) -> None:
        self._notifications.append(notification)
        log.info(
            "notification_sent",
            type=notification.type.value,
            title=notification.title,
            message=notification.message,
        )

    @property
    def notifications(self) -> list[Notification]:
        return list(self._notifications)

    def clear(self) -> None:
        self._notifications.clear()
