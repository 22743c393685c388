"""Security-system accessory adapter.

Maps :class:`~pyadtsync.engine.StateSyncEngine` reads and writes onto the
characteristics of a security-system accessory with a battery service.
Registering the accessory with a host framework is left to the caller:
hand the adapter a :class:`CharacteristicSink` and route the host's
get/set callbacks to its coroutines.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

from pyadtsync.engine import StateSyncEngine
from pyadtsync.models.status import (
    VALID_CURRENT_STATES,
    VALID_TARGET_STATES,
    ArmingState,
    LowBatteryStatus,
    StatusSnapshot,
    TargetState,
)

_logger = logging.getLogger(__name__)

MANUFACTURER = "ADT"
SERIAL_NUMBER = "See ADT Smart Security app"


class Service(StrEnum):
    ACCESSORY_INFORMATION = "AccessoryInformation"
    SECURITY_SYSTEM = "SecuritySystem"
    BATTERY = "BatteryService"


class Characteristic(StrEnum):
    NAME = "Name"
    MANUFACTURER = "Manufacturer"
    SERIAL_NUMBER = "SerialNumber"
    CURRENT_STATE = "SecuritySystemCurrentState"
    TARGET_STATE = "SecuritySystemTargetState"
    STATUS_FAULT = "StatusFault"
    BATTERY_LEVEL = "BatteryLevel"
    STATUS_LOW_BATTERY = "StatusLowBattery"


class CharacteristicSink(Protocol):
    """Receives characteristic value pushes (the host accessory's side)."""

    def update_value(self, service: Service, characteristic: Characteristic, value: int | str) -> None:
        ...


class SecuritySystemAccessory:
    """Security system + battery accessory backed by a :class:`StateSyncEngine`."""

    def __init__(self, engine: StateSyncEngine, sink: CharacteristicSink, *, name: str | None = None) -> None:
        self._engine = engine
        self._sink = sink
        self.name = name or engine.config.name
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def information(self) -> dict[Characteristic, str]:
        return {
            Characteristic.NAME: self.name,
            Characteristic.MANUFACTURER: MANUFACTURER,
            Characteristic.SERIAL_NUMBER: SERIAL_NUMBER,
        }

    @property
    def valid_values(self) -> dict[Characteristic, tuple[int, ...]]:
        """Value restrictions to apply on the host's state characteristics."""
        return {
            Characteristic.CURRENT_STATE: VALID_CURRENT_STATES,
            Characteristic.TARGET_STATE: VALID_TARGET_STATES,
        }

    def attach(self) -> SecuritySystemAccessory:
        """Publish accessory information and follow every refreshed snapshot."""
        for characteristic, value in self.information.items():
            self._sink.update_value(Service.ACCESSORY_INFORMATION, characteristic, value)
        if self._unsubscribe is None:
            self._unsubscribe = self._engine.on_state_changed(self.update_characteristics)
        current = self._engine.cache.get()
        if current is not None:
            self.update_characteristics(current)
        return self

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def identify(self) -> None:
        _logger.info("Identify requested. Not supported yet.")

    # ------------------------------------------------------------------
    # Characteristic handlers
    # ------------------------------------------------------------------

    async def get_battery_level(self) -> int:
        _logger.info("Battery level requested")
        return await self._engine.get_battery_level()

    async def get_low_battery_status(self) -> LowBatteryStatus:
        _logger.info("Battery status requested")
        return await self._engine.get_low_battery_status()

    async def get_current_state(self) -> ArmingState:
        _logger.info("Current state requested")
        return await self._engine.get_current_state()

    async def get_target_state(self) -> TargetState:
        _logger.info("Target state requested")
        return await self._engine.get_target_state()

    def set_target_state(self, value: int) -> None:
        """Handle a target state write.

        Raises
        ------
        ValueError
            *value* is outside :data:`VALID_TARGET_STATES`.
        AdtPolicyRejection
            The panel is faulted and not ready.
        """
        _logger.info("Received target status %s", value)
        if value not in VALID_TARGET_STATES:
            raise ValueError(f"Invalid target state {value!r}")
        self._engine.request_target_state(value)

    def update_characteristics(self, snapshot: StatusSnapshot) -> None:
        """Push *snapshot* to the host characteristics."""
        _logger.debug(
            "Updating alarm characteristics to arming=%s target=%s fault=%s battery=%s low=%s",
            snapshot.arming_state.name,
            snapshot.target_state.name,
            snapshot.fault_status.name,
            snapshot.battery_level,
            snapshot.low_battery_status.name,
        )
        updates: tuple[tuple[Service, Characteristic, int], ...] = (
            (Service.SECURITY_SYSTEM, Characteristic.CURRENT_STATE, int(snapshot.arming_state)),
            (Service.SECURITY_SYSTEM, Characteristic.TARGET_STATE, int(snapshot.target_state)),
            (Service.SECURITY_SYSTEM, Characteristic.STATUS_FAULT, int(snapshot.fault_status)),
            (Service.BATTERY, Characteristic.BATTERY_LEVEL, snapshot.battery_level),
            (Service.BATTERY, Characteristic.STATUS_LOW_BATTERY, int(snapshot.low_battery_status)),
        )
        for service, characteristic, value in updates:
            if value < 0:
                _logger.debug("Skipping %s: value unknown", characteristic)
                continue
            self._sink.update_value(service, characteristic, value)
