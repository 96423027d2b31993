"""心率 / 体温阈值评估。"""
import logging
from typing import Optional, Union

from pydantic import ValidationError

from smart_collar.alerts.cooldown import CooldownGate
from smart_collar.alerts.models import EvaluationOutcome
from smart_collar.exceptions import StoreError
from smart_collar.notify.dispatcher import NotificationDispatcher
from smart_collar.pets.models import METRIC_ALERT_KINDS, MetricKind, NotificationSettings
from smart_collar.store.base import TreeStore
from smart_collar.store.paths import settings_path

logger = logging.getLogger(__name__)

# 指标 → (名称, 读数单位, 阈值单位)，用于通知正文
_LABELS = {
    MetricKind.BPM: ("Heart rate", " bpm", ""),
    MetricKind.TEMPERATURE: ("Temperature", "°C", "°C"),
}


def format_value(value: Union[int, float]) -> str:
    """整数值不带小数点（200 而不是 200.0）。"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def alert_message(metric: MetricKind, value: float, high: bool, bound: float) -> str:
    name, unit, bound_unit = _LABELS[metric]
    direction, side = ("high", "max") if high else ("low", "min")
    return f"{name} too {direction}: {format_value(value)}{unit} ({side} {format_value(bound)}{bound_unit})"


class ThresholdEvaluator:
    """读取宠物阈值配置，越界时经冷却闸门分发告警，恢复正常时重置冷却。

    与上下限相等视为正常（严格大于 / 小于才告警）。
    """

    def __init__(self, store: TreeStore, gate: CooldownGate, dispatcher: NotificationDispatcher):
        self._store = store
        self._gate = gate
        self._dispatcher = dispatcher

    async def _load_settings(self, uid: str, pet_id: str) -> Optional[NotificationSettings]:
        raw = await self._store.get(settings_path(uid, pet_id))
        if not isinstance(raw, dict):
            return None
        try:
            return NotificationSettings.model_validate(raw)
        except ValidationError as e:
            logger.warning("告警配置格式错误 %s/%s: %s", uid, pet_id, e)
            return None

    async def evaluate(self, uid: str, pet_id: str, metric: MetricKind, value: float) -> EvaluationOutcome:
        try:
            settings = await self._load_settings(uid, pet_id)
        except StoreError:
            logger.exception("读取告警配置失败 %s/%s", uid, pet_id)
            return EvaluationOutcome.ERROR
        if settings is None:
            return EvaluationOutcome.NOT_CONFIGURED
        if not settings.enabled_for(metric):
            return EvaluationOutcome.DISABLED

        low_bound, high_bound = settings.bounds_for(metric)
        high_kind, low_kind = METRIC_ALERT_KINDS[metric]
        if high_bound is not None and value > high_bound:
            kind, message = high_kind, alert_message(metric, value, True, high_bound)
        elif low_bound is not None and value < low_bound:
            kind, message = low_kind, alert_message(metric, value, False, low_bound)
        else:
            await self._gate.reset(uid, pet_id, high_kind)
            await self._gate.reset(uid, pet_id, low_kind)
            return EvaluationOutcome.IN_RANGE

        logger.info(
            "%s/%s %s 越界: %s", uid, pet_id, metric.value, message,
            extra={"uid": uid, "pet_id": pet_id, "kind": kind.value},
        )
        if not await self._gate.should_send(uid, pet_id, kind):
            return EvaluationOutcome.SUPPRESSED
        await self._dispatcher.dispatch(uid, f"SmartCollar Alert: {metric.value}", message, kind, pet_id)
        return EvaluationOutcome.ALERTED
