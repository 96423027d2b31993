"""告警冷却：同一宠物同一告警类型在冷却窗口内只允许推送一次。"""
import logging
from typing import Any

from smart_collar.clock import Clock, to_epoch_ms, utc_now
from smart_collar.config import NOTIFICATION_COOLDOWN_MS
from smart_collar.exceptions import StoreError
from smart_collar.pets.models import AlertKind
from smart_collar.store.base import TreeStore
from smart_collar.store.paths import last_alert_path

logger = logging.getLogger(__name__)


class CooldownGate:
    """last_alerts/{kind} 记录上次推送的毫秒时间戳。

    窗口从上次推送起固定计算，不随检查滑动。判断与写入通过存储事务
    原子完成，并发评估同一告警时只有一个能拿到发送权。存储出错时放行。
    """

    def __init__(self, store: TreeStore, cooldown_ms: int = NOTIFICATION_COOLDOWN_MS, clock: Clock = utc_now):
        self._store = store
        self.cooldown_ms = cooldown_ms
        self._clock = clock

    async def should_send(self, uid: str, pet_id: str, kind: AlertKind) -> bool:
        now = to_epoch_ms(self._clock())
        claimed = False

        def claim(last_sent: Any) -> Any:
            nonlocal claimed
            # 事务可能重试，以最后一次执行的决定为准
            claimed = not isinstance(last_sent, (int, float)) or now - last_sent >= self.cooldown_ms
            return now if claimed else last_sent

        try:
            await self._store.transaction(last_alert_path(uid, pet_id, kind.value), claim)
        except StoreError:
            logger.exception("检查告警冷却失败 %s/%s (%s)，放行", uid, pet_id, kind.value)
            return True
        if not claimed:
            logger.info("告警 %s 处于冷却期，跳过 %s/%s", kind.value, uid, pet_id)
        return claimed

    async def reset(self, uid: str, pet_id: str, kind: AlertKind) -> None:
        """删除冷却记录（指标恢复正常 / 回到围栏内）；失败只记日志。"""
        try:
            await self._store.delete(last_alert_path(uid, pet_id, kind.value))
        except StoreError:
            logger.exception("重置告警冷却失败 %s/%s (%s)", uid, pet_id, kind.value)
            return
        logger.debug("告警冷却已重置 %s/%s (%s)", uid, pet_id, kind.value)
