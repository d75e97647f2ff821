"""Stable public API for building tooling on top of btpresence.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from pathlib import Path

from btpresence.core.config import load_config
from btpresence.core.errors import (
    AdapterUnavailableError,
    BtPresenceError,
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
    MissingModeError,
    RadioError,
    ReportWriteError,
)
from btpresence.core.model import (
    DeviceProperties,
    DeviceRecord,
    PresenceInterval,
    ScanConfig,
    ScanMode,
    ScanReport,
)
from btpresence.core.service import ScanService
from btpresence.radio.base import Radio

__all__ = [
    "AdapterUnavailableError",
    "BtPresenceError",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "MissingModeError",
    "RadioError",
    "ReportWriteError",
    "DeviceProperties",
    "DeviceRecord",
    "PresenceInterval",
    "ScanConfig",
    "ScanMode",
    "ScanReport",
    "Radio",
    "Client",
]


class Client:
    """Public client for running scans and resolving vendors.

    A `Client` wraps configuration, vendor lookup and the scan session
    controller behind a stable API intended for third-party tools. Pass a
    custom `radio` to scan through something other than bleak.
    """

    def __init__(self, config: ScanConfig, *, radio: Radio | None = None) -> None:
        self._service = ScanService(config, radio=radio)

    @classmethod
    def from_file(cls, path: Path | None = None, *, radio: Radio | None = None) -> Client:
        return cls(load_config(path), radio=radio)

    @property
    def config(self) -> ScanConfig:
        return self._service.config

    def scan(self) -> ScanReport:
        return self._service.scan()

    def lookup_vendor(self, address: str) -> str:
        return self._service.lookup_vendor(address)
