from collections.abc import Mapping
from types import MappingProxyType

from pydantic import Field

from .common import BasePydanticModel, ConnectionStatus


class Device(BasePydanticModel):
    """Address attributes of one discovered device. Empty string means unknown."""
    ip: str = Field(default="", alias="IP")
    mask: str = Field(default="", alias="Mask")
    mac: str = Field(default="", alias="MAC")

# Read-only view over a dict built once per discovery cycle
Snapshot = Mapping[str, Device]

EMPTY_SNAPSHOT: Snapshot = MappingProxyType({})

def freeze_snapshot(devices: dict[str, Device]) -> Snapshot:
    return MappingProxyType(dict(devices))

def snapshot_to_dict(snapshot: Snapshot) -> dict[str, dict[str, str]]:
    """Renders a snapshot with the wire-facing field names (IP, Mask, MAC)."""
    return {key: device.model_dump(by_alias=True) for key, device in snapshot.items()}

class WifiInfo(BasePydanticModel):
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    ap: str | None = None
    ssid: str | None = None
    security: str | None = None
    signal: str = "0 dBm" # Placeholder kept for disconnected boards

    @property
    def connected(self) -> bool:
        return self.status == ConnectionStatus.CONNECTED
