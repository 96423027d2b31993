"""宠物待办提醒数据模型。"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ReminderTrigger(str, Enum):
    """三个一次性提醒时间窗，值为对应的已发送标记字段。"""
    ONE_HOUR = "oneHourNotifSent"     # 到期前 1 小时内
    SAME_DAY = "dayNotifSent"         # 到期当天
    NEXT_DAY = "tomorrowNotifSent"    # 到期前一天

    @property
    def body_prefix(self) -> str:
        return _BODY_PREFIX[self]


_BODY_PREFIX = {
    ReminderTrigger.ONE_HOUR: "Your pet has an upcoming task in 1 hour: ",
    ReminderTrigger.SAME_DAY: "Today's task for your pet: ",
    ReminderTrigger.NEXT_DAY: "Reminder for tomorrow: ",
}


class Reminder(BaseModel):
    """单条提醒；标记只会从 False 变为 True，completed 后不再提醒。"""
    id: str = Field("", description="提醒 ID（数据库中的键）")
    title: str = Field("", description="标题")
    notes: Optional[str] = Field(None, description="备注")
    due_date: datetime = Field(..., validation_alias=AliasChoices("date", "dueDate"), description="到期时间")
    completed: bool = Field(False, description="是否已完成")
    one_hour_notif_sent: bool = Field(False, validation_alias="oneHourNotifSent")
    day_notif_sent: bool = Field(False, validation_alias="dayNotifSent")
    tomorrow_notif_sent: bool = Field(False, validation_alias="tomorrowNotifSent")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("due_date")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        # 无时区的时间按 UTC 处理
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    def is_sent(self, trigger: ReminderTrigger) -> bool:
        if trigger == ReminderTrigger.ONE_HOUR:
            return self.one_hour_notif_sent
        if trigger == ReminderTrigger.SAME_DAY:
            return self.day_notif_sent
        return self.tomorrow_notif_sent


class FiredTrigger(BaseModel):
    """一次扫描中触发的提醒。"""
    uid: str
    pet_id: str
    reminder_id: str
    trigger: ReminderTrigger
    flag_saved: bool = True
