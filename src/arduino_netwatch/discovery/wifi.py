"""Parsing of the board's `iwinfo` status line."""

from ..models.common import ConnectionStatus
from ..models.devices import WifiInfo

DEFAULT_SIGNAL = "0"
DEFAULT_SIGNAL_UNIT = "dBm"


def parse_iwinfo(raw: str | None) -> WifiInfo:
    """
    Parses a line like ``"AP1 MySSID WPA2 -45 dBm"``.

    Tokens map positionally to access point, SSID, security mode, signal value and unit.
    A missing line means disconnected. Missing text tokens become None; a missing signal
    value or unit falls back to ``0`` / ``dBm``.
    """
    if not raw:
        return WifiInfo(status=ConnectionStatus.DISCONNECTED)

    tokens = str(raw).split()

    def token(index: int) -> str | None:
        return tokens[index] if index < len(tokens) else None

    return WifiInfo(
        status=ConnectionStatus.CONNECTED,
        ap=token(0),
        ssid=token(1),
        security=token(2),
        signal=f"{token(3) or DEFAULT_SIGNAL} {token(4) or DEFAULT_SIGNAL_UNIT}",
    )
