"""告警评估结果。"""
from enum import Enum


class EvaluationOutcome(str, Enum):
    """一次阈值 / 围栏评估的结果。"""
    NOT_CONFIGURED = "not_configured"   # 未设置阈值或围栏
    DISABLED = "disabled"               # 该指标告警已关闭
    IN_RANGE = "in_range"               # 正常（已重置冷却）
    ALERTED = "alerted"                 # 越界并已分发通知
    SUPPRESSED = "suppressed"           # 越界但处于冷却期
    ERROR = "error"                     # 读取配置失败
