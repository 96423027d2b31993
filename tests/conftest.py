"""测试公共夹具：可控时钟、记录型推送通道、可注入故障的本地存储。"""
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from smart_collar.exceptions import PushDeliveryError, StoreError
from smart_collar.notify.channel import PushChannel
from smart_collar.notify.models import SendResult
from smart_collar.store.local import JsonTreeStore

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingChannel(PushChannel):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Dict[str, Any]] = []

    async def send(self, token: str, title: str, body: str, data: Dict[str, str]) -> SendResult:
        if self.fail:
            raise PushDeliveryError("boom")
        self.sent.append({"token": token, "title": title, "body": body, "data": data})
        return SendResult(success_count=1)

    def kinds(self) -> List[str]:
        return [m["data"]["type"] for m in self.sent]


class FlakyStore(JsonTreeStore):
    """fail_on 中列出的操作抛 StoreError（"save" 表示落盘失败）；saves 统计成功落盘次数。"""

    def __init__(self, base_dir: Path, fail_on: Optional[set] = None):
        super().__init__(base_dir)
        self.fail_on = fail_on or set()
        self.saves = 0

    def _check(self, op: str, path: str) -> None:
        if op in self.fail_on:
            raise StoreError(f"{op} failed", path)

    def _dump(self, text: str, seq: int) -> None:
        self._check("save", str(self._path()))
        super()._dump(text, seq)
        self.saves += 1

    async def get(self, path: str) -> Any:
        self._check("get", path)
        return await super().get(path)

    async def set(self, path: str, value: Any) -> None:
        self._check("set", path)
        await super().set(path, value)

    async def delete(self, path: str) -> None:
        self._check("delete", path)
        await super().delete(path)

    async def push(self, path: str, value: Any) -> str:
        self._check("push", path)
        return await super().push(path, value)

    async def transaction(self, path: str, update) -> Any:
        self._check("transaction", path)
        return await super().transaction(path, update)


def write_tree(base_dir: Path, tree: Dict[str, Any]) -> None:
    """预置本地存储内容（JsonTreeStore 启动时加载）。"""
    base_dir.mkdir(parents=True, exist_ok=True)
    with open(base_dir / JsonTreeStore._filename, "w", encoding="utf-8") as f:
        json.dump(tree, f, indent=2, ensure_ascii=False)


def pet_tree(uid: str = "u1", pet_id: str = "p1", token: Optional[str] = "tok-1", **pet: Any) -> Dict[str, Any]:
    user: Dict[str, Any] = {"pets": {pet_id: pet or {"name": "Mochi"}}}
    if token:
        user["deviceToken"] = token
    return {"users": {uid: user}}


HR_SETTINGS = {
    "heartRateAlert": True,
    "minHeartRate": 60,
    "maxHeartRate": 180,
    "tempAlert": True,
    "minTemp": 37.5,
    "maxTemp": 39.5,
}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()
