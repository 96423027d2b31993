"""存储键路径约定（与移动端共用的数据库结构）。"""
from smart_collar.store.base import join_path

USERS = "users"


def user_path(uid: str, *parts: str) -> str:
    return join_path(USERS, uid, *parts)


def pets_path(uid: str) -> str:
    return user_path(uid, "pets")


def pet_path(uid: str, pet_id: str, *parts: str) -> str:
    return user_path(uid, "pets", pet_id, *parts)


def device_token_path(uid: str) -> str:
    return user_path(uid, "deviceToken")


def notifications_path(uid: str) -> str:
    return user_path(uid, "notifications")


def settings_path(uid: str, pet_id: str) -> str:
    return pet_path(uid, pet_id, "notification_settings")


def geofence_path(uid: str, pet_id: str) -> str:
    return pet_path(uid, pet_id, "geofence")


def last_alert_path(uid: str, pet_id: str, kind: str) -> str:
    return pet_path(uid, pet_id, "last_alerts", kind)


def reminder_path(uid: str, pet_id: str, reminder_id: str, *parts: str) -> str:
    return pet_path(uid, pet_id, "reminders", reminder_id, *parts)


def collar_path(uid: str, pet_id: str, field: str) -> str:
    """项圈遥测字段：bpm / temperature / location。"""
    return pet_path(uid, pet_id, "collar_data", field)
