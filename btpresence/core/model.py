"""Core data models used across the aggregator, controller, and report builder."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path


class ScanMode(enum.Enum):
    INSTANT = "instant"
    SCHEDULED = "scheduled"


@dataclass(frozen=True)
class ScanConfig:
    mode: ScanMode
    start_after_duration: int = 0
    scan_duration: int = 0
    instant_window: float = 5.0
    poll_interval: float = 0.5
    gap_tolerance: int = 5
    output_dir: Path = Path(".")
    oui_path: Path | None = None
    adapter: str | None = None


@dataclass(frozen=True)
class DeviceProperties:
    address: str
    address_type: str | None = None
    device_class: int | None = None
    local_name: str | None = None
    manufacturer_data: dict[int, bytes] = field(default_factory=dict)
    service_data: dict[str, bytes] = field(default_factory=dict)
    services: tuple[str, ...] = ()
    rssi: int | None = None
    tx_power_level: int | None = None


@dataclass(frozen=True)
class RadioMetadata:
    address_type: str | None = None
    device_class: int | None = None
    rssi: int | None = None
    tx_power_level: int | None = None
    services: tuple[str, ...] = ()
    manufacturer_data: dict[int, bytes] = field(default_factory=dict)
    service_data: dict[str, bytes] = field(default_factory=dict)


@dataclass(frozen=True)
class DeviceSighting:
    device_id: str
    observed_at: int
    vendor: str
    display_name: str
    metadata: RadioMetadata


@dataclass(frozen=True)
class PresenceInterval:
    start: int
    end: int


@dataclass
class DeviceRecord:
    device_id: str
    vendor: str
    display_name: str
    metadata: RadioMetadata
    intervals: list[PresenceInterval] = field(default_factory=list)


@dataclass
class ScanSession:
    """State of a single run, owned by the controller until the report is built."""

    mode: ScanMode
    started_at: float
    duration: int | None = None
    records: dict[str, DeviceRecord] = field(default_factory=dict)
    snapshot: list[DeviceRecord] = field(default_factory=list)

    def record_store(self) -> list[DeviceRecord]:
        if self.mode is ScanMode.INSTANT:
            return list(self.snapshot)
        return list(self.records.values())


@dataclass(frozen=True)
class ScanReport:
    mode: ScanMode
    document: dict[str, dict[str, str]]
    path: Path
    write_error: str | None = None

    @property
    def has_records(self) -> bool:
        return bool(self.document)
