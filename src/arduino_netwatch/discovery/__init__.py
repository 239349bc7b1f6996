"""
Device discovery: the periodic poll/cache/query cycle.
"""

from .discovery_service import DeviceDiscoveryService
from .snapshot import build_snapshot
from .wifi import parse_iwinfo

__all__ = [
    "DeviceDiscoveryService",
    "build_snapshot",
    "parse_iwinfo",
]
