from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from pyadtsync.accessory import Characteristic, SecuritySystemAccessory, Service
from pyadtsync.config import AdtConfig
from pyadtsync.engine import StateSyncEngine
from pyadtsync.exceptions import AdtPolicyRejection
from pyadtsync.models import (
    VALID_CURRENT_STATES,
    VALID_TARGET_STATES,
    ArmingState,
    FaultStatus,
    LowBatteryStatus,
    StatusSnapshot,
    TargetState,
)

STAY = StatusSnapshot(
    arming_state=ArmingState.ARMED_STAY,
    target_state=TargetState.ARMED_STAY,
    fault_status=FaultStatus.NO_FAULT,
    battery_level=15,
    low_battery_status=LowBatteryStatus.LOW,
)
TRIGGERED_FAULT = StatusSnapshot(arming_state=ArmingState.TRIGGERED, fault_status=FaultStatus.FAULT)


@dataclass
class _RecordingSink:
    updates: list[tuple[Service, Characteristic, int | str]] = field(default_factory=list)

    def update_value(self, service: Service, characteristic: Characteristic, value: int | str) -> None:
        self.updates.append((service, characteristic, value))

    def latest(self) -> dict[Characteristic, int | str]:
        return {characteristic: value for _, characteristic, value in self.updates}


@dataclass
class _Device:
    snapshot: StatusSnapshot = STAY
    change_calls: list[TargetState] = field(default_factory=list)

    async def login(self) -> None:
        return None

    async def get_current_status(self) -> StatusSnapshot:
        return self.snapshot

    async def change_state(self, target: TargetState) -> None:
        self.change_calls.append(target)


def _engine(device: _Device) -> StateSyncEngine:
    config = AdtConfig(username="user", password="secret", domain="portal.example.com", name="Home")
    return StateSyncEngine(config, device)


def test_information_and_valid_values() -> None:
    accessory = SecuritySystemAccessory(_engine(_Device()), _RecordingSink())

    assert accessory.information == {
        Characteristic.NAME: "Home",
        Characteristic.MANUFACTURER: "ADT",
        Characteristic.SERIAL_NUMBER: "See ADT Smart Security app",
    }
    assert accessory.valid_values[Characteristic.CURRENT_STATE] == VALID_CURRENT_STATES == (0, 1, 3, 4)
    assert accessory.valid_values[Characteristic.TARGET_STATE] == VALID_TARGET_STATES == (0, 1, 3)


@pytest.mark.asyncio
async def test_refreshed_snapshot_is_pushed_to_characteristics() -> None:
    sink = _RecordingSink()
    engine = _engine(_Device())
    accessory = SecuritySystemAccessory(engine, sink).attach()

    await engine.init()

    latest = sink.latest()
    assert latest[Characteristic.NAME] == "Home"
    assert latest[Characteristic.CURRENT_STATE] == 3
    assert latest[Characteristic.TARGET_STATE] == 3
    assert latest[Characteristic.STATUS_FAULT] == 0
    assert latest[Characteristic.BATTERY_LEVEL] == 15
    assert latest[Characteristic.STATUS_LOW_BATTERY] == 1

    accessory.detach()
    count = len(sink.updates)
    await engine.init()
    assert len(sink.updates) == count
    await engine.close()


@pytest.mark.asyncio
async def test_attach_after_init_pushes_cached_snapshot() -> None:
    sink = _RecordingSink()
    engine = _engine(_Device())
    await engine.init()

    SecuritySystemAccessory(engine, sink).attach()

    assert sink.latest()[Characteristic.BATTERY_LEVEL] == 15
    await engine.close()


@pytest.mark.asyncio
async def test_get_handlers_read_engine_state() -> None:
    engine = _engine(_Device())
    accessory = SecuritySystemAccessory(engine, _RecordingSink())
    await engine.init()

    assert await accessory.get_current_state() is ArmingState.ARMED_STAY
    assert await accessory.get_target_state() is TargetState.ARMED_STAY
    assert await accessory.get_battery_level() == 15
    assert await accessory.get_low_battery_status() is LowBatteryStatus.LOW
    accessory.identify()
    await engine.close()


@pytest.mark.asyncio
async def test_set_target_state_dispatches_to_device() -> None:
    device = _Device()
    engine = _engine(device)
    accessory = SecuritySystemAccessory(engine, _RecordingSink())
    await engine.init()

    accessory.set_target_state(0)
    await engine.drain()

    assert device.change_calls == [TargetState.DISARMED]
    await engine.close()


@pytest.mark.asyncio
async def test_set_target_state_rejected_when_not_ready() -> None:
    device = _Device(snapshot=TRIGGERED_FAULT)
    engine = _engine(device)
    accessory = SecuritySystemAccessory(engine, _RecordingSink())
    await engine.init()

    with pytest.raises(AdtPolicyRejection, match="not ready"):
        accessory.set_target_state(1)

    assert device.change_calls == []
    await engine.close()


def test_set_target_state_rejects_invalid_value() -> None:
    accessory = SecuritySystemAccessory(_engine(_Device()), _RecordingSink())

    with pytest.raises(ValueError):
        accessory.set_target_state(4)


def test_unknown_values_are_not_pushed() -> None:
    sink = _RecordingSink()
    accessory = SecuritySystemAccessory(_engine(_Device()), sink)

    accessory.update_characteristics(TRIGGERED_FAULT)

    latest = sink.latest()
    assert latest[Characteristic.CURRENT_STATE] == 4
    assert latest[Characteristic.STATUS_FAULT] == 1
    assert Characteristic.TARGET_STATE not in latest
