"""通知记录与推送结果数据模型。"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# 无指定类型时的通知类型；提醒类通知的类型
DEFAULT_KIND = "alert"
REMINDER_KIND = "reminder"
SOURCE_SERVER = "server"


class NotificationRecord(BaseModel):
    """写入 users/{uid}/notifications 的通知日志（只追加）。"""
    title: str = Field(..., description="标题")
    message: str = Field(..., description="正文")
    timestamp: int = Field(..., description="发送时间（毫秒时间戳）")
    kind: str = Field(DEFAULT_KIND, alias="type", description="告警类型 / reminder / alert")
    pet_id: Optional[str] = Field(None, alias="petId", description="宠物 ID")
    source: str = Field(SOURCE_SERVER, description="来源，服务端固定为 server")

    model_config = ConfigDict(populate_by_name=True)

    def to_store(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class SendResult(BaseModel):
    """推送通道返回的投递计数。"""
    success_count: int = 0
    failure_count: int = 0


class DispatchStatus(str, Enum):
    """一次 dispatch 的结果（仅用于日志与测试，调用方无需处理）。"""
    DELIVERED = "delivered"   # 已交给推送通道
    NO_TOKEN = "no_token"     # 未登记设备 token，只写了日志
    FAILED = "failed"         # 推送失败（已记录）
