"""提醒扫描：定时检查所有宠物的待办，按三个时间窗各推送一次。"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, List, Optional, Tuple

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from pydantic import ValidationError

from smart_collar.clock import Clock, utc_now
from smart_collar.config import REMINDER_CHECK_INTERVAL_MS
from smart_collar.exceptions import StoreError
from smart_collar.health.models import FiredTrigger, Reminder, ReminderTrigger
from smart_collar.notify.dispatcher import NotificationDispatcher
from smart_collar.notify.models import REMINDER_KIND
from smart_collar.store.base import TreeStore
from smart_collar.store.paths import USERS, reminder_path

logger = logging.getLogger(__name__)

JOB_ID = "reminder_sweep"


def due_triggers(reminder: Reminder, now: datetime) -> List[ReminderTrigger]:
    """返回当前应触发的提醒（三者互不排斥）。日期按 UTC 日历日比较。"""
    if reminder.completed:
        return []
    now = now.astimezone(timezone.utc)
    due = reminder.due_date
    today = now.date()
    tomorrow = (now + timedelta(days=1)).date()
    out = []
    if not reminder.is_sent(ReminderTrigger.ONE_HOUR) and due - timedelta(hours=1) <= now < due:
        out.append(ReminderTrigger.ONE_HOUR)
    if not reminder.is_sent(ReminderTrigger.SAME_DAY) and due.date() == today:
        out.append(ReminderTrigger.SAME_DAY)
    if not reminder.is_sent(ReminderTrigger.NEXT_DAY) and due.date() == tomorrow:
        out.append(ReminderTrigger.NEXT_DAY)
    return out


def iter_open_reminders(users: Any) -> Iterator[Tuple[str, str, Reminder]]:
    """遍历 users 快照中未完成的提醒，格式错误的记录跳过。"""
    if not isinstance(users, dict):
        return
    for uid, user in users.items():
        pets = user.get("pets") if isinstance(user, dict) else None
        if not isinstance(pets, dict):
            continue
        for pet_id, pet in pets.items():
            reminders = pet.get("reminders") if isinstance(pet, dict) else None
            if not isinstance(reminders, dict):
                continue
            for reminder_id, raw in reminders.items():
                if not isinstance(raw, dict) or raw.get("completed"):
                    continue
                try:
                    reminder = Reminder.model_validate({**raw, "id": reminder_id})
                except ValidationError as e:
                    logger.warning("提醒格式错误 %s/%s/%s: %s", uid, pet_id, reminder_id, e)
                    continue
                yield uid, pet_id, reminder


class ReminderScheduler:
    """提醒扫描任务，start()/stop() 控制定时运行，run_once() 执行一次扫描。

    每个时间窗发送后把对应标记写为 True；写标记失败时下次扫描会重发
    （至少一次）。
    """

    def __init__(
        self,
        store: TreeStore,
        dispatcher: NotificationDispatcher,
        interval_ms: int = REMINDER_CHECK_INTERVAL_MS,
        clock: Clock = utc_now,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self.interval_ms = interval_ms
        self._clock = clock
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """在当前事件循环中启动定时扫描（立即执行第一次）。"""
        if self.running:
            return
        self._scheduler = AsyncIOScheduler(timezone=timezone.utc)
        self._scheduler.add_job(
            self.run_once,
            "interval",
            seconds=self.interval_ms / 1000,
            id=JOB_ID,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("提醒扫描已启动，间隔 %d 秒", self.interval_ms // 1000)

    def stop(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("提醒扫描已停止")

    async def run_once(self) -> List[FiredTrigger]:
        """扫描一次，返回本次触发的提醒。"""
        now = self._clock()
        logger.info("检查提醒 %s", now.isoformat())
        try:
            users = await self._store.get(USERS)
        except StoreError:
            logger.exception("读取提醒失败，等待下次扫描")
            return []

        fired: List[FiredTrigger] = []
        for uid, pet_id, reminder in iter_open_reminders(users):
            for trigger in due_triggers(reminder, now):
                fired.append(await self._fire(uid, pet_id, reminder, trigger))
        return fired

    async def _fire(self, uid: str, pet_id: str, reminder: Reminder, trigger: ReminderTrigger) -> FiredTrigger:
        logger.info("发送提醒 %s/%s/%s (%s): %s", uid, pet_id, reminder.id, trigger.value, reminder.title)
        await self._dispatcher.dispatch(
            uid,
            f"Reminder: {reminder.title}",
            f"{trigger.body_prefix}{reminder.notes or ''}",
            REMINDER_KIND,
            pet_id,
        )
        flag_saved = True
        try:
            await self._store.set(reminder_path(uid, pet_id, reminder.id, trigger.value), True)
        except StoreError:
            logger.exception("写入提醒标记失败 %s/%s/%s (%s)", uid, pet_id, reminder.id, trigger.value)
            flag_saved = False
        return FiredTrigger(
            uid=uid,
            pet_id=pet_id,
            reminder_id=reminder.id,
            trigger=trigger,
            flag_saved=flag_saved,
        )
