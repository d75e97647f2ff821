"""Fold per-tick device sightings into presence intervals."""

from __future__ import annotations

from collections.abc import Iterable

from btpresence.core.model import (
    DeviceProperties,
    DeviceRecord,
    DeviceSighting,
    PresenceInterval,
    RadioMetadata,
)
from btpresence.core.sanitize import sanitize
from btpresence.core.vendor import VendorResolver

DEFAULT_GAP_TOLERANCE = 5
_UNKNOWN_NAME = "Unknown"


def enrich(properties: DeviceProperties, observed_at: int, resolver: VendorResolver) -> DeviceSighting:
    """Build a sighting from raw properties, adding the vendor and sanitizing free text."""
    return DeviceSighting(
        device_id=properties.address,
        observed_at=observed_at,
        vendor=sanitize(resolver.resolve(properties.address)),
        display_name=sanitize(properties.local_name or _UNKNOWN_NAME),
        metadata=RadioMetadata(
            address_type=properties.address_type,
            device_class=properties.device_class,
            rssi=properties.rssi,
            tx_power_level=properties.tx_power_level,
            services=tuple(properties.services),
            manufacturer_data=dict(properties.manufacturer_data),
            service_data=dict(properties.service_data),
        ),
    )


def to_record(sighting: DeviceSighting) -> DeviceRecord:
    return DeviceRecord(
        device_id=sighting.device_id,
        vendor=sighting.vendor,
        display_name=sighting.display_name,
        metadata=sighting.metadata,
    )


def fold(
    records: dict[str, DeviceRecord],
    sighting: DeviceSighting,
    now: int,
    gap_tolerance: int = DEFAULT_GAP_TOLERANCE,
) -> None:
    """Merge one sighting into ``records``.

    The device's last interval is extended to ``now`` when the silent gap since
    its end is at most ``gap_tolerance`` seconds; otherwise a new ``[now, now]``
    interval is opened. Metadata is always replaced by the latest sighting.
    Timestamps are assumed non-decreasing across calls.
    """
    record = records.get(sighting.device_id)
    if record is None:
        record = to_record(sighting)
        records[sighting.device_id] = record
    else:
        record.vendor = sighting.vendor
        record.display_name = sighting.display_name
        record.metadata = sighting.metadata

    if record.intervals and now - record.intervals[-1].end <= gap_tolerance:
        record.intervals[-1] = PresenceInterval(start=record.intervals[-1].start, end=now)
    else:
        record.intervals.append(PresenceInterval(start=now, end=now))


def format_intervals(intervals: Iterable[PresenceInterval]) -> str:
    return ",".join(f"{interval.start}-{interval.end}" for interval in intervals)
