"""数据库订阅：发现主人和宠物，为每只宠物注册心率 / 体温 / 位置三个字段监听。"""
import functools
import logging
from typing import Any, List, NamedTuple, Optional, Set, Tuple

from smart_collar.monitor import CollarMonitor
from smart_collar.store.base import TreeStore, Unsubscribe, ValueCallback
from smart_collar.store.paths import USERS, collar_path, pets_path

logger = logging.getLogger(__name__)


class Registration(NamedTuple):
    """一条字段监听：路径 + 变更回调。"""
    path: str
    on_change: ValueCallback


def parse_reading(value: Any) -> Optional[float]:
    """遥测读数转为数字；空值、0 与非数字视为无读数。"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or value == 0:
        return None
    return value


def parse_location(value: Any) -> Optional[Tuple[float, float]]:
    """位置需同时包含纬度和经度。"""
    if not isinstance(value, dict):
        return None
    lat, lon = value.get("latitude"), value.get("longitude")
    if isinstance(lat, bool) or isinstance(lon, bool):
        return None
    if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        return None
    return float(lat), float(lon)


class SubscriptionManager:
    def __init__(self, store: TreeStore, monitor: CollarMonitor):
        self._store = store
        self._monitor = monitor
        self._owners: Set[str] = set()
        self._pets: Set[Tuple[str, str]] = set()
        self._unsubscribes: List[Unsubscribe] = []

    @property
    def watched_pets(self) -> Set[Tuple[str, str]]:
        return set(self._pets)

    def registrations_for(self, uid: str, pet_id: str) -> List[Registration]:
        """某只宠物需要的三条字段监听。"""
        monitor = self._monitor

        async def on_bpm(value: Any) -> None:
            reading = parse_reading(value)
            if reading is not None:
                await monitor.on_bpm_update(uid, pet_id, reading)

        async def on_temperature(value: Any) -> None:
            reading = parse_reading(value)
            if reading is not None:
                await monitor.on_temperature_update(uid, pet_id, reading)

        async def on_location(value: Any) -> None:
            location = parse_location(value)
            if location is not None:
                await monitor.on_location_update(uid, pet_id, *location)

        return [
            Registration(collar_path(uid, pet_id, "bpm"), on_bpm),
            Registration(collar_path(uid, pet_id, "temperature"), on_temperature),
            Registration(collar_path(uid, pet_id, "location"), on_location),
        ]

    async def start(self) -> None:
        self._unsubscribes.append(await self._store.watch_children(USERS, self._on_owner_added))

    async def stop(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes.clear()
        self._owners.clear()
        self._pets.clear()

    async def _on_owner_added(self, uid: str, _data: Any) -> None:
        if uid in self._owners:
            return
        self._owners.add(uid)
        on_pet = functools.partial(self._on_pet_added, uid)
        self._unsubscribes.append(await self._store.watch_children(pets_path(uid), on_pet))

    async def _on_pet_added(self, uid: str, pet_id: str, _data: Any) -> None:
        if (uid, pet_id) in self._pets:
            return
        self._pets.add((uid, pet_id))
        for registration in self.registrations_for(uid, pet_id):
            self._unsubscribes.append(await self._store.watch(registration.path, registration.on_change))
        logger.info("已订阅项圈数据 %s/%s", uid, pet_id)
