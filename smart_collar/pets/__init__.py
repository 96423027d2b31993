"""宠物告警配置：阈值、电子围栏与告警类型。"""
from smart_collar.pets.models import (
    AlertKind,
    Geofence,
    MetricKind,
    NotificationSettings,
)

__all__ = [
    "AlertKind",
    "Geofence",
    "MetricKind",
    "NotificationSettings",
]
