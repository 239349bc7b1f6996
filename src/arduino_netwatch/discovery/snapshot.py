"""Builds a device snapshot from a raw `netinfo` payload."""

from collections.abc import Mapping
from typing import Any

import structlog

from ..gateway.exceptions import MalformedPayloadError
from ..models.devices import Device, Snapshot, freeze_snapshot

logger = structlog.get_logger(__name__)

ARP_DEVICE_FIELD = "Device"
ARP_IP_FIELD = "IP address"
ARP_MASK_FIELD = "Mask"
ARP_MAC_FIELD = "HW address"


def _device_keys(payload: Any) -> list[str]:
    if not isinstance(payload, Mapping):
        raise MalformedPayloadError(f"netinfo payload is {type(payload).__name__}, expected an object")
    device_info = payload.get("deviceinfo")
    if not isinstance(device_info, Mapping):
        raise MalformedPayloadError("netinfo payload has no 'deviceinfo' object")
    return [str(key) for key in device_info]


def _arp_records_by_device(payload: Mapping[str, Any]) -> dict[str, Mapping[str, Any]]:
    arp_table = payload.get("arptable")
    if arp_table is None:
        return {}
    if not isinstance(arp_table, list):
        logger.warning("Ignoring malformed 'arptable'.", arptable_type=type(arp_table).__name__)
        return {}

    records: dict[str, Mapping[str, Any]] = {}
    for record in arp_table:
        if isinstance(record, Mapping) and isinstance(record.get(ARP_DEVICE_FIELD), str):
            # A later row for the same device replaces an earlier one
            records[record[ARP_DEVICE_FIELD]] = record
    return records


def _field(record: Mapping[str, Any], name: str) -> str:
    value = record.get(name)
    return str(value) if value else ""


def build_snapshot(payload: Any) -> Snapshot:
    """
    Merges the device-info table with the ARP table of a `netinfo` payload.

    Every key of `deviceinfo` becomes one entry; its IP, mask and MAC are copied from the
    ARP record whose `Device` field equals the key, or left empty when there is none.
    A payload without a usable `deviceinfo` table yields an empty snapshot and a warning.
    """
    try:
        keys = _device_keys(payload)
    except MalformedPayloadError as e:
        logger.warning("Error parsing devices, using an empty device set.", error=str(e))
        return freeze_snapshot({})

    arp_records = _arp_records_by_device(payload)
    devices: dict[str, Device] = {}
    for key in keys:
        record = arp_records.get(key, {})
        devices[key] = Device(
            ip=_field(record, ARP_IP_FIELD),
            mask=_field(record, ARP_MASK_FIELD),
            mac=_field(record, ARP_MAC_FIELD),
        )
    return freeze_snapshot(devices)
