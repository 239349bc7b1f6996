"""Arduino Netwatch - background discovery of the devices seen by an Arduino board.

Polls the board for its network device table on a fixed interval, caches the
result, and serves the cached snapshot to consumers without blocking them.
"""

__version__ = "0.1.0"

from .config import Config
from .discovery import DeviceDiscoveryService
from .gateway import BaseCallGateway, HTTPCallGateway

__all__ = ["BaseCallGateway", "Config", "DeviceDiscoveryService", "HTTPCallGateway"]
