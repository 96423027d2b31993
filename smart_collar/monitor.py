"""项圈遥测入口：HTTP 请求与数据库订阅都汇聚到这里。"""
import logging

from smart_collar.alerts.geofence import GeofenceEvaluator
from smart_collar.alerts.models import EvaluationOutcome
from smart_collar.alerts.threshold import ThresholdEvaluator
from smart_collar.pets.models import MetricKind

logger = logging.getLogger(__name__)


class CollarMonitor:
    def __init__(self, thresholds: ThresholdEvaluator, geofence: GeofenceEvaluator):
        self.thresholds = thresholds
        self.geofence = geofence

    async def on_bpm_update(self, uid: str, pet_id: str, value: float) -> EvaluationOutcome:
        logger.debug("心率更新 %s/%s: %s", uid, pet_id, value)
        return await self.thresholds.evaluate(uid, pet_id, MetricKind.BPM, value)

    async def on_temperature_update(self, uid: str, pet_id: str, value: float) -> EvaluationOutcome:
        logger.debug("体温更新 %s/%s: %s", uid, pet_id, value)
        return await self.thresholds.evaluate(uid, pet_id, MetricKind.TEMPERATURE, value)

    async def on_location_update(self, uid: str, pet_id: str, latitude: float, longitude: float) -> EvaluationOutcome:
        logger.debug("位置更新 %s/%s: (%s, %s)", uid, pet_id, latitude, longitude)
        return await self.geofence.evaluate(uid, pet_id, latitude, longitude)
