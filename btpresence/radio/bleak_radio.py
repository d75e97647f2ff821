"""Radio collaborator backed by bleak's BleakScanner."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from bleak import BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

from btpresence.core.errors import AdapterUnavailableError, RadioError
from btpresence.core.model import DeviceProperties

SYSFS_BLUETOOTH = Path("/sys/class/bluetooth")
DEFAULT_ADAPTER = "default"
LOGGER = logging.getLogger(__name__)


def _bluez_props(device: BLEDevice) -> dict[str, Any]:
    details = device.details
    if isinstance(details, dict):
        props = details.get("props")
        if isinstance(props, dict):
            return props
    return {}


def _address_type(props: dict[str, Any]) -> str | None:
    value = props.get("AddressType")
    if not value:
        return None
    return str(value).capitalize()


def _device_class(props: dict[str, Any]) -> int | None:
    value = props.get("Class")
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class BleakDevice:
    def __init__(self, device: BLEDevice, advertisement: AdvertisementData) -> None:
        self._device = device
        self._advertisement = advertisement

    async def properties(self) -> DeviceProperties | None:
        adv = self._advertisement
        if not self._device.address:
            return None
        try:
            props = _bluez_props(self._device)
            return DeviceProperties(
                address=self._device.address.upper(),
                address_type=_address_type(props),
                device_class=_device_class(props),
                local_name=adv.local_name or self._device.name,
                manufacturer_data={int(k): bytes(v) for k, v in adv.manufacturer_data.items()},
                service_data={str(k): bytes(v) for k, v in adv.service_data.items()},
                services=tuple(str(uuid) for uuid in adv.service_uuids),
                rssi=adv.rssi,
                tx_power_level=adv.tx_power,
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise RadioError(f"Could not read properties for {self._device.address}: {exc}") from exc


class BleakAdapter:
    def __init__(self, name: str = DEFAULT_ADAPTER, *, scanning_mode: str = "active") -> None:
        self.name = name
        self._scanning_mode = scanning_mode
        self._scanner: BleakScanner | None = None

    def _build_scanner(self) -> BleakScanner:
        kwargs: dict[str, Any] = {"scanning_mode": self._scanning_mode}
        if self.name != DEFAULT_ADAPTER:
            kwargs["adapter"] = self.name
        return BleakScanner(**kwargs)

    async def start_scan(self) -> None:
        try:
            self._scanner = self._build_scanner()
            await self._scanner.start()
        except (BleakError, OSError) as exc:
            raise AdapterUnavailableError(f"Bluetooth adapter '{self.name}' could not start scanning: {exc}") from exc
        LOGGER.info("Scanning started on %s", self.name)

    async def stop_scan(self) -> None:
        if self._scanner is None:
            return
        try:
            await self._scanner.stop()
        except (BleakError, OSError) as exc:
            raise RadioError(f"Bluetooth adapter '{self.name}' could not stop scanning: {exc}") from exc
        LOGGER.info("Scanning stopped on %s", self.name)

    async def visible_devices(self) -> Sequence[BleakDevice]:
        if self._scanner is None:
            return []
        try:
            seen = self._scanner.discovered_devices_and_advertisement_data
        except (BleakError, OSError) as exc:
            raise RadioError(f"Could not list devices on '{self.name}': {exc}") from exc
        return [BleakDevice(device, advertisement) for device, advertisement in seen.values()]


def _system_adapters(sysfs: Path) -> list[str] | None:
    if not sysfs.is_dir():
        return None
    return sorted(entry.name for entry in sysfs.iterdir() if entry.name.startswith("hci"))


class BleakRadio:
    def __init__(self, adapter: str | None = None, *, sysfs: Path = SYSFS_BLUETOOTH) -> None:
        self._adapter = adapter
        self._sysfs = sysfs

    async def list_adapters(self) -> Sequence[BleakAdapter]:
        names = _system_adapters(self._sysfs)
        if names is None:
            # No sysfs (macOS, Windows): bleak picks the platform adapter itself.
            return [BleakAdapter(self._adapter or DEFAULT_ADAPTER)]
        if self._adapter is not None:
            names = [name for name in names if name == self._adapter]
        LOGGER.debug("Bluetooth adapters found: %s", names)
        return [BleakAdapter(name) for name in names]
