"""宠物待办提醒。"""
from smart_collar.health.models import FiredTrigger, Reminder, ReminderTrigger
from smart_collar.health.reminders import ReminderScheduler, due_triggers

__all__ = [
    "FiredTrigger",
    "Reminder",
    "ReminderTrigger",
    "ReminderScheduler",
    "due_triggers",
]
