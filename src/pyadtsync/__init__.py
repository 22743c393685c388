"""pyadtsync - Keep a security-system accessory in sync with an ADT-style alarm portal."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyadtsync")
except PackageNotFoundError:
    __version__ = "0+local"
from pyadtsync.accessory import Characteristic, CharacteristicSink, SecuritySystemAccessory, Service
from pyadtsync.config import AdtConfig
from pyadtsync.device import DeviceClient, HttpDeviceClient
from pyadtsync.engine import StateSyncEngine
from pyadtsync.exceptions import (
    AdtApiError,
    AdtAuthenticationError,
    AdtConfigError,
    AdtError,
    AdtFetchError,
    AdtPolicyRejection,
    AdtSessionExpiredError,
    AdtTimeoutError,
    AdtTransportError,
)
from pyadtsync.models import (
    ArmingState,
    FaultStatus,
    LowBatteryStatus,
    StatusSnapshot,
    TargetState,
)

__all__ = [
    "__version__",
    "AdtApiError",
    "AdtAuthenticationError",
    "AdtConfig",
    "AdtConfigError",
    "AdtError",
    "AdtFetchError",
    "AdtPolicyRejection",
    "AdtSessionExpiredError",
    "AdtTimeoutError",
    "AdtTransportError",
    "ArmingState",
    "Characteristic",
    "CharacteristicSink",
    "DeviceClient",
    "FaultStatus",
    "HttpDeviceClient",
    "LowBatteryStatus",
    "SecuritySystemAccessory",
    "Service",
    "StateSyncEngine",
    "StatusSnapshot",
    "TargetState",
]
