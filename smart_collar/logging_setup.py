"""日志初始化：LOG_LEVEL 控制级别，LOG_JSON=1 输出 JSON 行。"""
import json
import logging
import os
import sys

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = os.getenv("LOG_JSON", "0").lower() in ("1", "true", "t", "yes", "on")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "lvl": record.levelname,
            "log": record.name,
            "msg": record.getMessage(),
        }
        for k in ("uid", "pet_id", "kind"):
            if hasattr(record, k):
                base[k] = getattr(record, k)
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


def configure_logging() -> None:
    """配置根日志器（进程启动时调用一次）。"""
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(LOG_LEVEL)
    h = logging.StreamHandler(sys.stdout)
    if LOG_JSON:
        h.setFormatter(_JsonFormatter())
    else:
        h.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"))
    root.addHandler(h)
    # SDK 的连接日志太吵
    for name in ("apscheduler", "urllib3", "google"):
        logging.getLogger(name).setLevel(logging.WARNING)
