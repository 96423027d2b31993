"""服务入口：初始化存储与推送通道 → 组装告警 / 提醒组件 → 启动 HTTP 服务。"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import uvicorn
from fastapi import FastAPI

from smart_collar import __version__, config
from smart_collar.alerts import CooldownGate, GeofenceEvaluator, ThresholdEvaluator
from smart_collar.api import create_app
from smart_collar.clock import Clock, utc_now
from smart_collar.health import ReminderScheduler
from smart_collar.logging_setup import configure_logging
from smart_collar.monitor import CollarMonitor
from smart_collar.notify import FcmPushChannel, LogPushChannel, NotificationDispatcher, PushChannel
from smart_collar.store import JsonTreeStore, TreeStore
from smart_collar.subscriptions import SubscriptionManager

logger = logging.getLogger(__name__)


@dataclass
class Services:
    store: TreeStore
    gate: CooldownGate
    dispatcher: NotificationDispatcher
    monitor: CollarMonitor
    scheduler: ReminderScheduler
    subscriptions: SubscriptionManager


def build_services(
    store: TreeStore,
    channel: PushChannel,
    cooldown_ms: int = config.NOTIFICATION_COOLDOWN_MS,
    reminder_interval_ms: int = config.REMINDER_CHECK_INTERVAL_MS,
    clock: Clock = utc_now,
) -> Services:
    """按依赖顺序组装各组件。"""
    gate = CooldownGate(store, cooldown_ms, clock)
    dispatcher = NotificationDispatcher(store, channel, clock)
    monitor = CollarMonitor(
        ThresholdEvaluator(store, gate, dispatcher),
        GeofenceEvaluator(store, gate, dispatcher),
    )
    return Services(
        store=store,
        gate=gate,
        dispatcher=dispatcher,
        monitor=monitor,
        scheduler=ReminderScheduler(store, dispatcher, reminder_interval_ms, clock),
        subscriptions=SubscriptionManager(store, monitor),
    )


def create_backends() -> tuple[TreeStore, PushChannel]:
    """配置了 Firebase 则用实时数据库 + FCM，否则本地 JSON 存储 + 日志通道。"""
    if config.firebase_enabled():
        from smart_collar.store.firebase import FirebaseTreeStore, create_firebase_app

        app = create_firebase_app(config.FIREBASE_CREDENTIALS, config.FIREBASE_DATABASE_URL)
        logger.info("使用 Firebase 实时数据库: %s", config.FIREBASE_DATABASE_URL)
        return FirebaseTreeStore(app), FcmPushChannel(app)
    config.ensure_dirs()
    logger.warning("未配置 Firebase，使用本地存储 %s，推送只写日志", config.DATA_DIR)
    return JsonTreeStore(config.DATA_DIR), LogPushChannel()


def create_service_app(services: Services) -> FastAPI:
    """HTTP 应用；生命周期内运行提醒扫描与数据库订阅。"""

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        services.scheduler.start()
        await services.subscriptions.start()
        try:
            yield
        finally:
            await services.subscriptions.stop()
            services.scheduler.stop()
            await services.store.close()

    return create_app(services.monitor, services.store, lifespan=lifespan)


def main(port: Optional[int] = None) -> None:
    configure_logging()
    logger.info("SmartCollar %s 启动", __version__)
    store, channel = create_backends()
    services = build_services(store, channel)
    app = create_service_app(services)
    uvicorn.run(app, host=config.HOST, port=port or config.PORT, log_config=None)


if __name__ == "__main__":
    main()
