"""Alarm status snapshot model.

The portal reports the alarm as ``{"alarm": {...}}``; the numeric codes
are the accessory characteristic values, so they pass through unchanged.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field, model_validator

from pyadtsync.models._base import AdtBaseModel, AdtEnum

# ------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------


class ArmingState(AdtEnum):
    """Observed panel mode (current state characteristic)."""

    UNKNOWN = -1
    DISARMED = 0
    ARMED_AWAY = 1
    ARMED_NIGHT = 2  # placeholder, never reported by the panel
    ARMED_STAY = 3
    TRIGGERED = 4


class TargetState(AdtEnum):
    """Requested panel mode (target state characteristic)."""

    UNKNOWN = -1
    DISARMED = 0
    ARMED_AWAY = 1
    ARMED_STAY = 3


class FaultStatus(AdtEnum):
    UNKNOWN = -1
    NO_FAULT = 0
    FAULT = 1


class LowBatteryStatus(AdtEnum):
    UNKNOWN = -1
    NORMAL = 0
    LOW = 1


#: Characteristic values accepted for the current state.
VALID_CURRENT_STATES: tuple[int, ...] = (
    ArmingState.DISARMED,
    ArmingState.ARMED_AWAY,
    ArmingState.ARMED_STAY,
    ArmingState.TRIGGERED,
)

#: Characteristic values accepted for the target state.
VALID_TARGET_STATES: tuple[int, ...] = (
    TargetState.DISARMED,
    TargetState.ARMED_AWAY,
    TargetState.ARMED_STAY,
)


# ------------------------------------------------------------------
# Model
# ------------------------------------------------------------------


class StatusSnapshot(AdtBaseModel):
    """Immutable alarm status as last fetched from the device."""

    # Older portal builds misspell the low battery key.
    _KEY_ALIASES: ClassVar[dict[str, str]] = {"lowBatterStatus": "lowBatteryStatus"}

    arming_state: ArmingState = ArmingState.UNKNOWN
    target_state: TargetState = TargetState.UNKNOWN
    fault_status: FaultStatus = FaultStatus.NO_FAULT
    battery_level: int = Field(default=100, ge=0, le=100)
    low_battery_status: LowBatteryStatus = LowBatteryStatus.NORMAL

    @model_validator(mode="before")
    @classmethod
    def _unwrap_alarm(cls, values: Any) -> Any:
        """Accept the portal's ``{"alarm": {...}}`` envelope."""
        if isinstance(values, dict) and isinstance(values.get("alarm"), dict):
            original = values["raw"] if isinstance(values.get("raw"), dict) else dict(values)
            inner = AdtBaseModel._clean_dict(dict(values["alarm"]), cls._KEY_ALIASES)
            inner["raw"] = original
            return inner
        return values

    @property
    def is_faulted(self) -> bool:
        return self.fault_status == FaultStatus.FAULT

    @property
    def is_low_battery(self) -> bool:
        return self.low_battery_status == LowBatteryStatus.LOW
