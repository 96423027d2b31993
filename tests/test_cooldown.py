"""告警冷却闸门测试。"""
import asyncio

from smart_collar.alerts.cooldown import CooldownGate
from smart_collar.clock import to_epoch_ms
from smart_collar.pets.models import AlertKind
from smart_collar.store.local import JsonTreeStore
from tests.conftest import FlakyStore

LAST_HR_HIGH = "users/u1/pets/p1/last_alerts/hr_high"


def test_second_send_within_window_is_suppressed(tmp_path, clock) -> None:
    async def scenario():
        gate = CooldownGate(JsonTreeStore(tmp_path), 120_000, clock)
        first = await gate.should_send("u1", "p1", AlertKind.HR_HIGH)
        clock.advance(seconds=119)
        second = await gate.should_send("u1", "p1", AlertKind.HR_HIGH)
        clock.advance(seconds=1)
        third = await gate.should_send("u1", "p1", AlertKind.HR_HIGH)
        return first, second, third

    assert asyncio.run(scenario()) == (True, False, True)


def test_window_is_fixed_from_last_send(tmp_path, clock) -> None:
    async def scenario():
        store = JsonTreeStore(tmp_path)
        gate = CooldownGate(store, 120_000, clock)
        await gate.should_send("u1", "p1", AlertKind.HR_HIGH)
        sent_at = await store.get(LAST_HR_HIGH)
        clock.advance(seconds=60)
        await gate.should_send("u1", "p1", AlertKind.HR_HIGH)
        return sent_at, await store.get(LAST_HR_HIGH)

    sent_at, after_suppressed = asyncio.run(scenario())
    assert sent_at == to_epoch_ms(clock.now) - 60_000
    assert after_suppressed == sent_at


def test_kinds_and_pets_are_independent(tmp_path, clock) -> None:
    async def scenario():
        gate = CooldownGate(JsonTreeStore(tmp_path), 120_000, clock)
        return [
            await gate.should_send("u1", "p1", AlertKind.HR_HIGH),
            await gate.should_send("u1", "p1", AlertKind.HR_LOW),
            await gate.should_send("u1", "p2", AlertKind.HR_HIGH),
            await gate.should_send("u2", "p1", AlertKind.HR_HIGH),
        ]

    assert asyncio.run(scenario()) == [True, True, True, True]


def test_reset_allows_immediate_send(tmp_path, clock) -> None:
    async def scenario():
        store = JsonTreeStore(tmp_path)
        gate = CooldownGate(store, 120_000, clock)
        await gate.should_send("u1", "p1", AlertKind.GEOFENCE)
        await gate.reset("u1", "p1", AlertKind.GEOFENCE)
        removed = await store.get("users/u1/pets/p1/last_alerts/geofence")
        return removed, await gate.should_send("u1", "p1", AlertKind.GEOFENCE)

    removed, allowed = asyncio.run(scenario())
    assert removed is None
    assert allowed is True


def test_concurrent_checks_send_once(tmp_path, clock) -> None:
    async def scenario():
        gate = CooldownGate(JsonTreeStore(tmp_path), 120_000, clock)
        return await asyncio.gather(*(gate.should_send("u1", "p1", AlertKind.TEMP_HIGH) for _ in range(5)))

    assert sorted(asyncio.run(scenario())) == [False, False, False, False, True]


def test_store_failure_fails_open(tmp_path, clock) -> None:
    async def scenario():
        gate = CooldownGate(FlakyStore(tmp_path, {"transaction"}), 120_000, clock)
        return [await gate.should_send("u1", "p1", AlertKind.HR_HIGH) for _ in range(2)]

    assert asyncio.run(scenario()) == [True, True]


def test_reset_failure_is_not_fatal(tmp_path, clock) -> None:
    gate = CooldownGate(FlakyStore(tmp_path, {"delete"}), 120_000, clock)
    asyncio.run(gate.reset("u1", "p1", AlertKind.HR_HIGH))
