"""电子围栏评估。"""
import logging
import math
from typing import Optional

from pydantic import ValidationError

from smart_collar.alerts.cooldown import CooldownGate
from smart_collar.alerts.models import EvaluationOutcome
from smart_collar.exceptions import StoreError
from smart_collar.geo import distance_meters
from smart_collar.notify.dispatcher import NotificationDispatcher
from smart_collar.pets.models import AlertKind, Geofence
from smart_collar.store.base import TreeStore
from smart_collar.store.paths import geofence_path

logger = logging.getLogger(__name__)


class GeofenceEvaluator:
    """距中心超过半径（严格大于）即离开围栏；回到围栏内重置冷却。"""

    def __init__(self, store: TreeStore, gate: CooldownGate, dispatcher: NotificationDispatcher):
        self._store = store
        self._gate = gate
        self._dispatcher = dispatcher

    async def _load_geofence(self, uid: str, pet_id: str) -> Optional[Geofence]:
        raw = await self._store.get(geofence_path(uid, pet_id))
        if not isinstance(raw, dict):
            return None
        try:
            return Geofence.model_validate(raw)
        except ValidationError as e:
            logger.warning("围栏配置格式错误 %s/%s: %s", uid, pet_id, e)
            return None

    async def evaluate(self, uid: str, pet_id: str, latitude: float, longitude: float) -> EvaluationOutcome:
        try:
            fence = await self._load_geofence(uid, pet_id)
        except StoreError:
            logger.exception("读取围栏失败 %s/%s", uid, pet_id)
            return EvaluationOutcome.ERROR
        if fence is None:
            logger.debug("%s/%s 未设置围栏", uid, pet_id)
            return EvaluationOutcome.NOT_CONFIGURED

        distance = distance_meters(latitude, longitude, fence.center_latitude, fence.center_longitude)
        logger.debug(
            "%s/%s 当前 (%s, %s)，距围栏中心 %.2f m（半径 %s m）",
            uid, pet_id, latitude, longitude, distance, fence.radius_meters,
        )
        if distance <= fence.radius_meters:
            await self._gate.reset(uid, pet_id, AlertKind.GEOFENCE)
            return EvaluationOutcome.IN_RANGE

        logger.info(
            "%s/%s 已离开围栏，距离 %.0f m", uid, pet_id, distance,
            extra={"uid": uid, "pet_id": pet_id, "kind": AlertKind.GEOFENCE.value},
        )
        if not await self._gate.should_send(uid, pet_id, AlertKind.GEOFENCE):
            return EvaluationOutcome.SUPPRESSED
        # 四舍五入（.5 进位）
        rounded = int(math.floor(distance + 0.5))
        await self._dispatcher.dispatch(
            uid,
            "SmartCollar Alert: Geofence",
            f"Your pet has left the safe zone! Distance: {rounded}m",
            AlertKind.GEOFENCE,
            pet_id,
        )
        return EvaluationOutcome.ALERTED
