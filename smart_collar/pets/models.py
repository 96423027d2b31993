"""宠物告警配置与遥测数据模型（字段名与移动端数据库一致）。"""
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class MetricKind(str, Enum):
    """阈值类遥测指标。"""
    BPM = "bpm"                   # 心率
    TEMPERATURE = "temperature"   # 体温


class AlertKind(str, Enum):
    """告警类型，也是 last_alerts 下的键。"""
    HR_HIGH = "hr_high"
    HR_LOW = "hr_low"
    TEMP_HIGH = "temp_high"
    TEMP_LOW = "temp_low"
    GEOFENCE = "geofence"


# 指标 → (过高, 过低) 告警类型
METRIC_ALERT_KINDS = {
    MetricKind.BPM: (AlertKind.HR_HIGH, AlertKind.HR_LOW),
    MetricKind.TEMPERATURE: (AlertKind.TEMP_HIGH, AlertKind.TEMP_LOW),
}


class NotificationSettings(BaseModel):
    """宠物告警开关与阈值（只读）。未配置的上/下限不会触发该侧告警。"""
    heart_rate_alert: bool = Field(
        False,
        validation_alias=AliasChoices("heartRateAlert", "heartRateAlertEnabled"),
        description="心率告警开关",
    )
    min_heart_rate: Optional[float] = Field(
        None, validation_alias="minHeartRate", description="心率下限 bpm"
    )
    max_heart_rate: Optional[float] = Field(
        None, validation_alias="maxHeartRate", description="心率上限 bpm"
    )
    temp_alert: bool = Field(
        False,
        validation_alias=AliasChoices("tempAlert", "tempAlertEnabled"),
        description="体温告警开关",
    )
    min_temp: Optional[float] = Field(
        None, validation_alias="minTemp", description="体温下限 °C"
    )
    max_temp: Optional[float] = Field(
        None, validation_alias="maxTemp", description="体温上限 °C"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("heart_rate_alert", "temp_alert", mode="before")
    @classmethod
    def _null_is_off(cls, v):
        # 移动端可能把开关写成 null
        return False if v is None else v

    def enabled_for(self, metric: MetricKind) -> bool:
        if metric == MetricKind.BPM:
            return self.heart_rate_alert
        return self.temp_alert

    def bounds_for(self, metric: MetricKind) -> tuple[Optional[float], Optional[float]]:
        """返回 (下限, 上限)。"""
        if metric == MetricKind.BPM:
            return self.min_heart_rate, self.max_heart_rate
        return self.min_temp, self.max_temp


class Geofence(BaseModel):
    """圆形电子围栏：中心点 + 半径（米）。"""
    center_latitude: float = Field(..., validation_alias=AliasChoices("latitude", "centerLatitude"), ge=-90, le=90)
    center_longitude: float = Field(..., validation_alias=AliasChoices("longitude", "centerLongitude"), ge=-180, le=180)
    radius_meters: float = Field(..., validation_alias=AliasChoices("radius", "radiusMeters"), ge=0)

    model_config = ConfigDict(extra="ignore", populate_by_name=True)
