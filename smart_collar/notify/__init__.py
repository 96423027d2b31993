"""通知：通知日志、推送通道与分发。"""
from smart_collar.notify.channel import FcmPushChannel, LogPushChannel, PushChannel
from smart_collar.notify.dispatcher import NotificationDispatcher
from smart_collar.notify.models import DispatchStatus, NotificationRecord, SendResult

__all__ = [
    "DispatchStatus",
    "FcmPushChannel",
    "LogPushChannel",
    "NotificationDispatcher",
    "NotificationRecord",
    "PushChannel",
    "SendResult",
]
