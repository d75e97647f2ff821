"""Render device records into the per-run JSON report document."""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

from btpresence.core.aggregator import format_intervals
from btpresence.core.errors import ReportWriteError
from btpresence.core.model import DeviceRecord, ScanMode

UNKNOWN = "Unknown"
REPORT_FILENAMES = {
    ScanMode.INSTANT: "bluetooth_instantdata.json",
    ScanMode.SCHEDULED: "bluetooth_scheduleddata.json",
}


def _optional(value: int | str | None) -> str:
    return UNKNOWN if value is None else str(value)


def _embedded_json(data: dict[str, list[int]]) -> str:
    return json.dumps(data, separators=(",", ":"))


def _services_text(services: Iterable[str]) -> str:
    return f"[{', '.join(services)}]"


def build_entry(record: DeviceRecord, mode: ScanMode) -> dict[str, str]:
    """Flatten one record into the report's string-only entry shape."""
    metadata = record.metadata
    entry: dict[str, str] = {}
    if mode is ScanMode.SCHEDULED:
        entry["bluetooth_durations"] = format_intervals(record.intervals)
    entry["address_type"] = _optional(metadata.address_type)
    entry["classe"] = _optional(metadata.device_class)
    entry["fabricant"] = record.vendor
    entry["local_name"] = record.display_name
    entry["mac_bluetooth"] = record.device_id
    entry["manufacturer_data"] = _embedded_json(
        {str(company): list(payload) for company, payload in metadata.manufacturer_data.items()}
    )
    entry["rssi"] = _optional(metadata.rssi)
    entry["service_data"] = _embedded_json(
        {uuid: list(payload) for uuid, payload in metadata.service_data.items()}
    )
    entry["services"] = _services_text(metadata.services)
    entry["tx_power_level"] = _optional(metadata.tx_power_level)
    return entry


def build(records: Iterable[DeviceRecord], mode: ScanMode) -> dict[str, dict[str, str]]:
    """Key Instant entries by snapshot position and Scheduled entries by device id."""
    if mode is ScanMode.INSTANT:
        return {str(index): build_entry(record, mode) for index, record in enumerate(records)}
    return {record.device_id: build_entry(record, mode) for record in records}


def render(document: dict[str, dict[str, str]]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def report_path(output_dir: Path, mode: ScanMode) -> Path:
    return output_dir / REPORT_FILENAMES[mode]


def write_report(document: dict[str, dict[str, str]], path: Path) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render(document) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ReportWriteError(f"Could not write report file {path}: {exc}") from exc
    return path
