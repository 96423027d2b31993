"""推送通道：FCM（firebase_admin.messaging）与本地日志通道。"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import firebase_admin
from firebase_admin import messaging
from firebase_admin.exceptions import FirebaseError

from smart_collar.config import ANDROID_CHANNEL_ID
from smart_collar.exceptions import PushDeliveryError
from smart_collar.notify.models import SendResult

logger = logging.getLogger(__name__)


class PushChannel(ABC):
    """send(token, title, body, data) -> SendResult；失败抛 PushDeliveryError。"""

    @abstractmethod
    async def send(self, token: str, title: str, body: str, data: Dict[str, str]) -> SendResult:
        ...


class FcmPushChannel(PushChannel):
    """Firebase Cloud Messaging：高优先级、默认提示音、指定 Android 通知渠道。"""

    def __init__(self, app: Optional[firebase_admin.App] = None, channel_id: str = ANDROID_CHANNEL_ID):
        self._app = app
        self.channel_id = channel_id

    def build_message(self, token: str, title: str, body: str, data: Dict[str, str]) -> messaging.MulticastMessage:
        return messaging.MulticastMessage(
            tokens=[token],
            notification=messaging.Notification(title=title, body=body),
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    channel_id=self.channel_id,
                    sound="default",
                ),
            ),
            data=data,
        )

    async def send(self, token: str, title: str, body: str, data: Dict[str, str]) -> SendResult:
        message = self.build_message(token, title, body, data)
        try:
            response = await asyncio.to_thread(messaging.send_each_for_multicast, message, app=self._app)
        except (FirebaseError, ValueError) as e:
            raise PushDeliveryError(f"FCM 推送失败: {e}") from e
        return SendResult(success_count=response.success_count, failure_count=response.failure_count)


class LogPushChannel(PushChannel):
    """只写日志的通道（未配置 Firebase 时的本地模式）。"""

    async def send(self, token: str, title: str, body: str, data: Dict[str, str]) -> SendResult:
        logger.info("[本地推送] token=%s title=%r body=%r data=%s", token, title, body, data)
        return SendResult(success_count=1)
