"""告警：冷却闸门、阈值评估与电子围栏评估。"""
from smart_collar.alerts.cooldown import CooldownGate
from smart_collar.alerts.geofence import GeofenceEvaluator
from smart_collar.alerts.models import EvaluationOutcome
from smart_collar.alerts.threshold import ThresholdEvaluator

__all__ = [
    "CooldownGate",
    "EvaluationOutcome",
    "GeofenceEvaluator",
    "ThresholdEvaluator",
]
