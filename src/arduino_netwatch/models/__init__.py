"""
Pydantic models for Arduino Netwatch.
"""
from .common import BasePydanticModel, ConnectionStatus, ServiceState
from .devices import (
    EMPTY_SNAPSHOT,
    Device,
    Snapshot,
    WifiInfo,
    freeze_snapshot,
    snapshot_to_dict,
)

__all__ = [
    "BasePydanticModel",
    "ConnectionStatus",
    "Device",
    "EMPTY_SNAPSHOT",
    "ServiceState",
    "Snapshot",
    "WifiInfo",
    "freeze_snapshot",
    "snapshot_to_dict",
]
