"""Payload models for pyadtsync."""

from pyadtsync.models._base import AdtBaseModel, AdtEnum
from pyadtsync.models.status import (
    VALID_CURRENT_STATES,
    VALID_TARGET_STATES,
    ArmingState,
    FaultStatus,
    LowBatteryStatus,
    StatusSnapshot,
    TargetState,
)

__all__ = [
    "VALID_CURRENT_STATES",
    "VALID_TARGET_STATES",
    "AdtBaseModel",
    "AdtEnum",
    "ArmingState",
    "FaultStatus",
    "LowBatteryStatus",
    "StatusSnapshot",
    "TargetState",
]
