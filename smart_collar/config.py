"""SmartCollar 全局配置与路径。"""
import os
from pathlib import Path

# 项目根目录（smart_collar 包所在目录的上一级）
ROOT_DIR = Path(__file__).resolve().parent.parent
# 本地数据目录：无 Firebase 凭据时使用 JSON 树存储
DATA_DIR = Path(os.environ.get("DATA_DIR", str(ROOT_DIR / "data")))

# 告警冷却（毫秒）：同一宠物同一告警类型在窗口内只推送一次
NOTIFICATION_COOLDOWN_MS = int(os.environ.get("NOTIFICATION_COOLDOWN_MS", 2 * 60 * 1000))
# 提醒扫描间隔（毫秒）
REMINDER_CHECK_INTERVAL_MS = int(os.environ.get("REMINDER_CHECK_INTERVAL_MS", 10 * 60 * 1000))

# HTTP 服务
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", 10000))

# Firebase（两项都配置时使用实时数据库与 FCM）
FIREBASE_CREDENTIALS = os.environ.get("FIREBASE_CREDENTIALS", "").strip()
FIREBASE_DATABASE_URL = os.environ.get("FIREBASE_DATABASE_URL", "").strip()

# 推送
ANDROID_CHANNEL_ID = os.environ.get("ANDROID_CHANNEL_ID", "smartcollar_channel")


def firebase_enabled() -> bool:
    """是否已配置 Firebase 凭据与数据库地址。"""
    return bool(FIREBASE_CREDENTIALS and FIREBASE_DATABASE_URL)


def ensure_dirs() -> None:
    """确保数据目录存在。"""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
