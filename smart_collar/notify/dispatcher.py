"""通知分发：先写通知日志，再按设备 token 推送。"""
import logging
from enum import Enum
from typing import Optional, Union

from smart_collar.clock import Clock, to_epoch_ms, utc_now
from smart_collar.exceptions import StoreError
from smart_collar.notify.channel import PushChannel
from smart_collar.notify.models import DEFAULT_KIND, DispatchStatus, NotificationRecord
from smart_collar.store.base import TreeStore
from smart_collar.store.paths import device_token_path, notifications_path

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """对调用方是“发出即忘”：dispatch 从不抛异常，失败只记日志。

    日志写入先于投递；写日志失败仍尝试投递。
    """

    def __init__(self, store: TreeStore, channel: PushChannel, clock: Clock = utc_now):
        self._store = store
        self._channel = channel
        self._clock = clock

    async def dispatch(
        self,
        uid: str,
        title: str,
        body: str,
        kind: Union[str, Enum, None] = None,
        pet_id: Optional[str] = None,
    ) -> DispatchStatus:
        kind_value = kind.value if isinstance(kind, Enum) else (kind or DEFAULT_KIND)
        timestamp = to_epoch_ms(self._clock())
        record = NotificationRecord(
            title=title,
            message=body,
            timestamp=timestamp,
            kind=kind_value,
            pet_id=pet_id,
        )
        extra = {"uid": uid, "pet_id": pet_id, "kind": kind_value}
        try:
            await self._store.push(notifications_path(uid), record.to_store())
        except StoreError:
            logger.exception("写入通知日志失败 %s (%s)", uid, kind_value, extra=extra)

        try:
            token = await self._store.get(device_token_path(uid))
        except StoreError:
            logger.exception("读取设备 token 失败 %s，放弃推送", uid, extra=extra)
            return DispatchStatus.FAILED
        if not token:
            logger.warning("跳过推送 %s：未登记设备 token", uid, extra=extra)
            return DispatchStatus.NO_TOKEN

        data = {
            "type": kind_value,
            "petId": pet_id or "",
            "timestamp": str(timestamp),
        }
        try:
            result = await self._channel.send(str(token), title, body, data)
        except Exception:
            # 任何投递异常都不能影响告警/提醒流程
            logger.exception("推送失败 %s (%s)", uid, kind_value, extra=extra)
            return DispatchStatus.FAILED
        logger.info(
            "推送已发送 %s (%s): %d 成功, %d 失败",
            uid, kind_value, result.success_count, result.failure_count,
            extra=extra,
        )
        return DispatchStatus.DELIVERED
